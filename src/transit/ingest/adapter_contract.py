from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from transit.types import TypeRef

TYPE_KIND_STRUCT = "struct"
TYPE_KIND_ENUM = "enum"


@dataclass(frozen=True)
class TypeDecl:
    name: str
    kind: str = TYPE_KIND_STRUCT
    arity: int = 0


@dataclass(frozen=True)
class ConversionDecl:
    """A conversion declaration as written: `impl Trait<source> for target`."""

    trait_path: TypeRef
    source: TypeRef
    target: TypeRef
    # Type parameters introduced by the enclosing `impl<...>`.
    impl_params: tuple[str, ...] = ()


@dataclass(frozen=True)
class SourceUnit:
    path: Path
    types: tuple[TypeDecl, ...] = ()
    conversions: tuple[ConversionDecl, ...] = ()
    # Declarations recognized as items but too malformed to extract.
    skipped: tuple[str, ...] = ()


@runtime_checkable
class LanguageAdapter(Protocol):
    language_id: str
    file_extensions: tuple[str, ...]

    def parse_source(self, text: str, *, path: Path) -> SourceUnit: ...

    def load_units(self, paths: list[Path]) -> list[SourceUnit]: ...
