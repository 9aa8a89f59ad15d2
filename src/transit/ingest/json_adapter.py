from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from transit.analysis.timeout_context import check_deadline
from transit.exceptions import SourceUnitError
from transit.ingest.adapter_contract import (
    ConversionDecl,
    LanguageAdapter,
    SourceUnit,
    TypeDecl,
)
from transit.ingest.rust_adapter import read_source
from transit.ingest.rust_lexer import LexError
from transit.ingest.rust_syntax import TypeSyntaxError, parse_type
from transit.schema import SourceUnitDTO
from transit.types import TypeRef


class JsonAdapter(LanguageAdapter):
    """Pre-extracted declarations, one unit per JSON document."""

    language_id = "json"
    file_extensions = (".json",)

    def parse_source(self, text: str, *, path: Path) -> SourceUnit:
        try:
            dto = SourceUnitDTO.model_validate_json(text)
        except ValidationError as exc:
            raise SourceUnitError(path, "validate", str(exc)) from exc
        types = tuple(
            TypeDecl(name=entry.name, kind=entry.kind, arity=entry.arity)
            for entry in dto.types
        )
        conversions: list[ConversionDecl] = []
        skipped: list[str] = []
        for index, entry in enumerate(dto.conversions):
            check_deadline()
            try:
                conversions.append(
                    ConversionDecl(
                        trait_path=_with_source_arg(parse_type(entry.trait), entry.source),
                        source=parse_type(entry.source),
                        target=parse_type(entry.target),
                        impl_params=tuple(entry.impl_params),
                    )
                )
            except (LexError, TypeSyntaxError) as exc:
                skipped.append(f"conversions[{index}]: {exc}")
        unit_path = Path(dto.path) if dto.path else path
        return SourceUnit(
            path=unit_path,
            types=types,
            conversions=tuple(conversions),
            skipped=tuple(skipped),
        )

    def load_units(self, paths: list[Path]) -> list[SourceUnit]:
        units: list[SourceUnit] = []
        for path in paths:
            check_deadline()
            units.append(self.parse_source(read_source(path), path=path))
        return units


def _with_source_arg(trait_path: TypeRef, source_text: str) -> TypeRef:
    if trait_path.args or not trait_path.is_path:
        return trait_path
    return TypeRef.path(*trait_path.segments, args=(parse_type(source_text),))
