"""Transitive closure over the conversion graph.

Reachability is saturated with a FIFO worklist: every (source, target) pair is
enqueued once and keeps the route it was first reached by. Those first routes
are prefix-closed, so per source they form a breadth-first tree.

Any other simple route from a source to a target has to skip at least one
edge of the first route. A pair therefore has a second distinct route exactly
when the target stays reachable after one edge of its first route is removed.
A pair is only synthesized when its route is unique, it is not already a
direct edge, and its target is declared in the analyzed input.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Tuple

from transit.analysis.catalog import DefinedTypeSet
from transit.analysis.model import (
    REASON_AMBIGUOUS,
    REASON_FOREIGN,
    ClosureResult,
    ConversionGraph,
    Exclusion,
    Route,
    SynthesizedEdge,
)
from transit.analysis.timeout_context import check_deadline
from transit.order_contract import sort_once
from transit.types import TypeRef, type_sort_key

Pair = Tuple[TypeRef, TypeRef]
Hop = Tuple[TypeRef, TypeRef]


def _pair_key(pair: Pair) -> tuple[str, str]:
    return (type_sort_key(pair[0]), type_sort_key(pair[1]))


def _hops(source: TypeRef, route: Route) -> List[Hop]:
    nodes = (source, *route)
    return list(zip(nodes, nodes[1:]))


def _saturate(graph: ConversionGraph) -> Dict[Pair, Route]:
    """First route of every reachable pair, in discovery order."""
    recorded: Dict[Pair, Route] = {}
    worklist: Deque[Pair] = deque()
    for edge in graph.sorted_edges():
        pair = (edge.source, edge.target)
        recorded[pair] = (edge.target,)
        worklist.append(pair)
    while worklist:
        check_deadline()
        source, target = worklist.popleft()
        route = recorded[(source, target)]
        for following in graph.successors(target):
            # A hop already on the route was recorded with a shorter prefix.
            if following == source or (source, following) in recorded:
                continue
            recorded[(source, following)] = route + (following,)
            worklist.append((source, following))
    return recorded


class _Detours:
    """Breadth-first search from a source with one edge removed.

    Searches are cached per (source, removed edge); only edges of first
    routes are ever removed, so a source costs at most one search per type it
    reaches.
    """

    def __init__(self, graph: ConversionGraph):
        self.graph = graph
        self._parents: Dict[Tuple[TypeRef, Hop], Dict[TypeRef, TypeRef]] = {}

    def _search(self, source: TypeRef, removed: Hop) -> Dict[TypeRef, TypeRef]:
        key = (source, removed)
        parents = self._parents.get(key)
        if parents is not None:
            return parents
        parents = {}
        frontier: Deque[TypeRef] = deque([source])
        while frontier:
            check_deadline()
            node = frontier.popleft()
            for following in self.graph.successors(node):
                if following == source or following in parents or (node, following) == removed:
                    continue
                parents[following] = node
                frontier.append(following)
        self._parents[key] = parents
        return parents

    def route_avoiding(self, source: TypeRef, target: TypeRef, removed: Hop) -> Route | None:
        parents = self._search(source, removed)
        if target not in parents:
            return None
        nodes = [target]
        while parents[nodes[-1]] != source:
            nodes.append(parents[nodes[-1]])
        return tuple(reversed(nodes))

    def second_route(self, source: TypeRef, route: Route) -> Route | None:
        for removed in _hops(source, route):
            alternative = self.route_avoiding(source, route[-1], removed)
            if alternative is not None:
                return alternative
        return None


def synthesize(graph: ConversionGraph, defined: DefinedTypeSet) -> ClosureResult:
    """Derive every conversion implied by a unique composition route.

    The graph is read-only here. Excluded pairs are reported, not raised:
    ambiguous pairs have two or more distinct routes of two or more hops,
    and foreign pairs target a type not declared in the input.
    """
    detours = _Detours(graph)
    edges: List[SynthesizedEdge] = []
    exclusions: List[Exclusion] = []
    for (source, target), route in _saturate(graph).items():
        check_deadline()
        if graph.contains(source, target):
            continue
        alternative = detours.second_route(source, route)
        if alternative is not None:
            exclusions.append(
                Exclusion(
                    source=source,
                    target=target,
                    reason=REASON_AMBIGUOUS,
                    routes=(route, alternative),
                )
            )
            continue
        if target not in defined:
            exclusions.append(
                Exclusion(source=source, target=target, reason=REASON_FOREIGN, routes=(route,))
            )
            continue
        edges.append(SynthesizedEdge(source=source, target=target, via=route[-2]))

    edges = sort_once(
        edges,
        source="synthesize.edges",
        key=lambda edge: _pair_key((edge.source, edge.target)),
    )
    exclusions = sort_once(
        exclusions,
        source="synthesize.exclusions",
        key=lambda entry: _pair_key((entry.source, entry.target)),
    )
    return ClosureResult(edges=edges, exclusions=exclusions)


def synthesize_edges(graph: ConversionGraph, defined: DefinedTypeSet) -> List[SynthesizedEdge]:
    return synthesize(graph, defined).edges
