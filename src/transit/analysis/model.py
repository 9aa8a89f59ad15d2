from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Tuple

from transit.invariants import never
from transit.order_contract import sort_once
from transit.types import TypeRef, render_type, type_sort_key

Route = Tuple[TypeRef, ...]

REASON_GENERIC_TARGET = "generic_target"
REASON_SELF_LOOP = "self_loop"
REASON_GENERIC_SOURCE = "generic_source"
REASON_AMBIGUOUS = "ambiguous"
REASON_FOREIGN = "foreign"


@dataclass(frozen=True)
class ConversionEdge:
    source: TypeRef
    target: TypeRef

    def __post_init__(self) -> None:
        if self.source == self.target:
            never("conversion edge loops back to its source", type=render_type(self.source))

    def __str__(self) -> str:
        return f"{render_type(self.source)} -> {render_type(self.target)}"


@dataclass(frozen=True)
class ConversionGraph:
    edges: frozenset[ConversionEdge] = frozenset()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[TypeRef, TypeRef]]) -> "ConversionGraph":
        return cls(edges=frozenset(ConversionEdge(source, target) for source, target in pairs))

    @cached_property
    def adjacency(self) -> Dict[TypeRef, Tuple[TypeRef, ...]]:
        grouped: Dict[TypeRef, List[TypeRef]] = {}
        for edge in self.edges:
            grouped.setdefault(edge.source, []).append(edge.target)
        return {
            source: tuple(
                sort_once(targets, source="ConversionGraph.adjacency", key=type_sort_key)
            )
            for source, targets in grouped.items()
        }

    def successors(self, source: TypeRef) -> Tuple[TypeRef, ...]:
        return self.adjacency.get(source, ())

    def contains(self, source: TypeRef, target: TypeRef) -> bool:
        return target in self.adjacency.get(source, ())

    def sorted_edges(self) -> List[ConversionEdge]:
        return sort_once(
            self.edges,
            source="ConversionGraph.sorted_edges",
            key=lambda edge: (type_sort_key(edge.source), type_sort_key(edge.target)),
        )

    def with_edges(self, pairs: Iterable[tuple[TypeRef, TypeRef]]) -> "ConversionGraph":
        added = frozenset(ConversionEdge(source, target) for source, target in pairs)
        return ConversionGraph(edges=self.edges | added)

    def __len__(self) -> int:
        return len(self.edges)

    def __iter__(self) -> Iterator[ConversionEdge]:
        return iter(self.sorted_edges())


@dataclass(frozen=True)
class SynthesizedEdge:
    source: TypeRef
    target: TypeRef
    via: TypeRef

    def __str__(self) -> str:
        return (
            f"{render_type(self.source)} -> {render_type(self.target)}"
            f" (via {render_type(self.via)})"
        )


@dataclass(frozen=True)
class Exclusion:
    """A reachable pair that was deliberately not synthesized."""

    source: TypeRef
    target: TypeRef
    reason: str
    routes: Tuple[Route, ...] = ()

    def __str__(self) -> str:
        return f"{render_type(self.source)} -> {render_type(self.target)}: {self.reason}"


@dataclass(frozen=True)
class ClosureResult:
    edges: List[SynthesizedEdge] = field(default_factory=list)
    exclusions: List[Exclusion] = field(default_factory=list)


@dataclass(frozen=True)
class DroppedDeclaration:
    path: Path
    source: TypeRef
    target: TypeRef
    reason: str

    def __str__(self) -> str:
        return (
            f"{self.path}: {render_type(self.source)} -> {render_type(self.target)}:"
            f" {self.reason}"
        )


@dataclass(frozen=True)
class RegistryResult:
    graph: ConversionGraph
    dropped: List[DroppedDeclaration] = field(default_factory=list)
