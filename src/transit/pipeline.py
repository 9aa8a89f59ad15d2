"""End-to-end pass: catalog, registry, closure, emission."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from transit.analysis.catalog import DefinedTypeSet, collect_defined_types
from transit.analysis.closure import synthesize
from transit.analysis.conversion_registry import build_conversion_graph
from transit.analysis.model import (
    ConversionGraph,
    DroppedDeclaration,
    Exclusion,
    SynthesizedEdge,
)
from transit.analysis.timeout_context import (
    STAGE_CATALOG,
    STAGE_CLOSURE,
    STAGE_EMISSION,
    STAGE_LOAD,
    STAGE_REGISTRY,
    Deadline,
    WorkBudget,
    deadline_scope,
    stage_scope,
    work_budget_scope,
)
from transit.config import TransitConfig
from transit.ingest.adapter_contract import SourceUnit
from transit.ingest.registry import load_source_units
from transit.order_contract import require_ordered
from transit.schema import (
    ConversionEdgeDTO,
    DroppedDeclarationDTO,
    ExclusionDTO,
    SynthesizedEdgeDTO,
    TransitivityReportDTO,
)
from transit.synthesis.emission import plan_emission
from transit.synthesis.model import EmissionPlan
from transit.types import render_type


@dataclass(frozen=True)
class TransitivityReport:
    defined: DefinedTypeSet
    graph: ConversionGraph
    edges: List[SynthesizedEdge]
    exclusions: List[Exclusion] = field(default_factory=list)
    dropped: List[DroppedDeclaration] = field(default_factory=list)
    emission: EmissionPlan = field(default_factory=EmissionPlan)
    warnings: List[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        return self.emission.render()

    def to_dto(self) -> TransitivityReportDTO:
        return TransitivityReportDTO(
            defined_types=[render_type(ref) for ref in self.defined],
            direct_edges=[
                ConversionEdgeDTO(source=render_type(edge.source), target=render_type(edge.target))
                for edge in self.graph.sorted_edges()
            ],
            synthesized=[
                SynthesizedEdgeDTO(
                    source=render_type(edge.source),
                    target=render_type(edge.target),
                    via=render_type(edge.via),
                )
                for edge in self.edges
            ],
            exclusions=[
                ExclusionDTO(
                    source=render_type(entry.source),
                    target=render_type(entry.target),
                    reason=entry.reason,
                    routes=[[render_type(hop) for hop in route] for route in entry.routes],
                )
                for entry in self.exclusions
            ],
            dropped=[
                DroppedDeclarationDTO(
                    path=str(entry.path),
                    source=render_type(entry.source),
                    target=render_type(entry.target),
                    reason=entry.reason,
                )
                for entry in self.dropped
            ],
            warnings=list(self.warnings),
        )


@contextmanager
def analysis_scope(config: TransitConfig) -> Iterator[None]:
    """Bound the pass by wall-clock deadline and a shared work budget."""
    with deadline_scope(Deadline.from_timeout_ms(config.timeout_ms)):
        with work_budget_scope(WorkBudget(limit=config.gas_limit)):
            yield


def build_transitivity(
    units: Sequence[SourceUnit],
    *,
    config: TransitConfig = TransitConfig(),
) -> TransitivityReport:
    with analysis_scope(config):
        with stage_scope(STAGE_CATALOG):
            defined = collect_defined_types(units)
        with stage_scope(STAGE_REGISTRY):
            registry = build_conversion_graph(units, construct_name=config.construct_name)
        with stage_scope(STAGE_CLOSURE):
            closure = synthesize(registry.graph, defined)
        edges = require_ordered(
            closure.edges,
            source="build_transitivity.edges",
            key=lambda edge: (render_type(edge.source), render_type(edge.target)),
        )
        with stage_scope(STAGE_EMISSION):
            emission = plan_emission(edges, config.emitter())
    warnings: List[str] = []
    for unit in units:
        warnings.extend(f"{unit.path}: skipped {entry}" for entry in unit.skipped)
    if not edges:
        warnings.append("No conversions qualified for synthesis.")
    return TransitivityReport(
        defined=defined,
        graph=registry.graph,
        edges=edges,
        exclusions=closure.exclusions,
        dropped=registry.dropped,
        emission=emission,
        warnings=warnings,
    )


def build_transitivity_from_paths(
    paths: Iterable[Path],
    *,
    config: TransitConfig = TransitConfig(),
    language_id: str | None = None,
) -> TransitivityReport:
    """Load every unit first; a single unreadable unit aborts the pass."""
    with analysis_scope(config), stage_scope(STAGE_LOAD):
        units = load_source_units(list(paths), language_id=language_id)
    return build_transitivity(units, config=config)


def fold_synthesized(graph: ConversionGraph, edges: Iterable[SynthesizedEdge]) -> ConversionGraph:
    """Return a new graph with synthesized edges added as direct edges."""
    return graph.with_edges((edge.source, edge.target) for edge in edges)
