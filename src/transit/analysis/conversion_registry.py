from __future__ import annotations

from typing import Iterable, List, Set, Tuple
import re

from transit.analysis.model import (
    REASON_GENERIC_SOURCE,
    REASON_GENERIC_TARGET,
    REASON_SELF_LOOP,
    ConversionGraph,
    DroppedDeclaration,
    RegistryResult,
)
from transit.analysis.timeout_context import check_deadline
from transit.ingest.adapter_contract import ConversionDecl, SourceUnit
from transit.order_contract import sort_once
from transit.types import ARRAY, OPAQUE, TypeRef

DEFAULT_CONSTRUCT_NAME = "From"

_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_conversion_construct(trait_path: TypeRef, construct_name: str = DEFAULT_CONSTRUCT_NAME) -> bool:
    """Match on the trailing segment only; any qualifying prefix is accepted."""
    return trait_path.ends_with((construct_name,))


def _words(text: str) -> Set[str]:
    return set(_WORD.findall(text))


def _mentions(ref: TypeRef, names: Set[str]) -> bool:
    if ref.is_path and ref.segments and ref.segments[0] in names:
        return True
    if ref.modifier == ARRAY and _words(ref.length) & names:
        return True
    if ref.modifier == OPAQUE and _words(ref.segments[0]) & names:
        return True
    return any(_mentions(arg, names) for arg in ref.args)


def normalize_declaration(decl: ConversionDecl) -> Tuple[TypeRef, TypeRef] | str:
    """Return the normalized (source, target) pair or the reason it is dropped."""
    target = decl.target
    if target.is_generic:
        return REASON_GENERIC_TARGET
    source = decl.source.replace_self(target)
    type_params = {name for name in decl.impl_params if not name.startswith("'")}
    if type_params and _mentions(source, type_params):
        return REASON_GENERIC_SOURCE
    if source == target:
        return REASON_SELF_LOOP
    return (source, target)


def build_conversion_graph(
    units: Iterable[SourceUnit],
    *,
    construct_name: str = DEFAULT_CONSTRUCT_NAME,
) -> RegistryResult:
    pairs: Set[Tuple[TypeRef, TypeRef]] = set()
    dropped: List[DroppedDeclaration] = []
    for unit in units:
        check_deadline()
        for decl in unit.conversions:
            check_deadline()
            if not is_conversion_construct(decl.trait_path, construct_name):
                continue
            outcome = normalize_declaration(decl)
            if isinstance(outcome, str):
                dropped.append(
                    DroppedDeclaration(
                        path=unit.path,
                        source=decl.source,
                        target=decl.target,
                        reason=outcome,
                    )
                )
                continue
            pairs.add(outcome)
    dropped = sort_once(
        dropped,
        source="build_conversion_graph.dropped",
        key=lambda entry: (str(entry.path), str(entry.source), str(entry.target), entry.reason),
    )
    return RegistryResult(graph=ConversionGraph.from_pairs(pairs), dropped=dropped)
