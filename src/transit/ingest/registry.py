from __future__ import annotations

from pathlib import Path

from transit.exceptions import SourceUnitError
from transit.ingest.adapter_contract import LanguageAdapter, SourceUnit
from transit.ingest.json_adapter import JsonAdapter
from transit.ingest.rust_adapter import RustAdapter
from transit.invariants import never


_ADAPTERS_BY_LANGUAGE: dict[str, LanguageAdapter] = {}
_ADAPTERS_BY_EXTENSION: dict[str, LanguageAdapter] = {}


def register_adapter(adapter: LanguageAdapter) -> None:
    _ADAPTERS_BY_LANGUAGE[adapter.language_id] = adapter
    for extension in adapter.file_extensions:
        _ADAPTERS_BY_EXTENSION[extension.lower()] = adapter


def adapter_for_language(language_id: str) -> LanguageAdapter | None:
    return _ADAPTERS_BY_LANGUAGE.get(language_id.lower())


def adapter_for_extension(extension: str) -> LanguageAdapter | None:
    return _ADAPTERS_BY_EXTENSION.get(extension.lower())


def resolve_adapter(
    *,
    path: Path,
    language_id: str | None = None,
    default_language_id: str = "rust",
) -> LanguageAdapter:
    if language_id is not None:
        adapter = adapter_for_language(language_id)
        if adapter is None:
            never("unknown language adapter", language_id=language_id)
        return adapter
    adapter = adapter_for_extension(path.suffix)
    if adapter is not None:
        return adapter
    # Import-time registration guarantees a canonical fallback adapter.
    return _ADAPTERS_BY_LANGUAGE[default_language_id.lower()]


def load_source_units(
    paths: list[Path],
    *,
    language_id: str | None = None,
) -> list[SourceUnit]:
    """Load every path through its adapter; any failure aborts the whole load."""
    units: list[SourceUnit] = []
    for path in paths:
        if not path.is_file():
            raise SourceUnitError(path, "read", "not a file")
        adapter = resolve_adapter(path=path, language_id=language_id)
        units.extend(adapter.load_units([path]))
    return units


register_adapter(RustAdapter())
register_adapter(JsonAdapter())
