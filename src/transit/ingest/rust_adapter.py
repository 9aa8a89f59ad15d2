from __future__ import annotations

from pathlib import Path

from transit.analysis.timeout_context import check_deadline
from transit.exceptions import SourceUnitError
from transit.ingest.adapter_contract import LanguageAdapter, SourceUnit
from transit.ingest.rust_lexer import LexError, tokenize
from transit.ingest.rust_syntax import scan_items


class RustAdapter(LanguageAdapter):
    language_id = "rust"
    file_extensions = (".rs",)

    def parse_source(self, text: str, *, path: Path) -> SourceUnit:
        try:
            stream = tokenize(text)
        except LexError as exc:
            raise SourceUnitError(path, "lex", str(exc)) from exc
        items = scan_items(stream)
        return SourceUnit(
            path=path,
            types=tuple(items.types),
            conversions=tuple(items.conversions),
            skipped=tuple(items.skipped),
        )

    def load_units(self, paths: list[Path]) -> list[SourceUnit]:
        units: list[SourceUnit] = []
        for path in paths:
            check_deadline()
            units.append(self.parse_source(read_source(path), path=path))
        return units


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnitError(path, "read", str(exc)) from exc
