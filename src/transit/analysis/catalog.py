from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator

from transit.analysis.timeout_context import check_deadline
from transit.ingest.adapter_contract import SourceUnit, TypeDecl
from transit.order_contract import sort_once
from transit.types import TypeRef, type_sort_key


@dataclass(frozen=True)
class DefinedTypeSet:
    """Zero-argument references to every struct or enum declared in the input.

    Only members are valid destinations for synthesized conversions.
    """

    declarations: Dict[TypeRef, TypeDecl] = field(default_factory=dict)

    def __contains__(self, ref: object) -> bool:
        return ref in self.declarations

    def __len__(self) -> int:
        return len(self.declarations)

    def __iter__(self) -> Iterator[TypeRef]:
        return iter(sort_once(self.declarations, source="DefinedTypeSet.iter", key=type_sort_key))

    def with_types(self, names: Iterable[str]) -> "DefinedTypeSet":
        merged = dict(self.declarations)
        for name in names:
            merged.setdefault(TypeRef.path(name), TypeDecl(name=name))
        return DefinedTypeSet(declarations=merged)


def collect_defined_types(units: Iterable[SourceUnit]) -> DefinedTypeSet:
    """Collect declared names; a name declared twice keeps the entry from the first unit by path."""
    declarations: Dict[TypeRef, TypeDecl] = {}
    for unit in sort_once(units, source="collect_defined_types.units", key=lambda unit: str(unit.path)):
        check_deadline()
        for decl in unit.types:
            # Arity is ignored: `struct C<T>` still defines the bare name `C`.
            declarations.setdefault(TypeRef.path(decl.name), decl)
    return DefinedTypeSet(declarations=declarations)
