from transit.ingest.adapter_contract import (
    ConversionDecl,
    LanguageAdapter,
    SourceUnit,
    TypeDecl,
)
from transit.ingest.rust_syntax import TypeSyntaxError, parse_type


def resolve_adapter(*, path, language_id=None, default_language_id="rust"):
    from transit.ingest.registry import resolve_adapter as _resolve_adapter

    return _resolve_adapter(
        path=path,
        language_id=language_id,
        default_language_id=default_language_id,
    )


def load_source_units(paths, *, language_id=None):
    from transit.ingest.registry import load_source_units as _load_source_units

    return _load_source_units(paths, language_id=language_id)


__all__ = [
    "ConversionDecl",
    "LanguageAdapter",
    "SourceUnit",
    "TypeDecl",
    "TypeSyntaxError",
    "load_source_units",
    "parse_type",
    "resolve_adapter",
]
