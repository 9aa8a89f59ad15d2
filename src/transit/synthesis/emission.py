from __future__ import annotations

from typing import Iterable, List

from transit.analysis.model import SynthesizedEdge
from transit.analysis.timeout_context import check_deadline
from transit.synthesis.model import EmissionPlan, EmitterConfig, RenderedConversion
from transit.types import OPAQUE, TypeRef, render_type

_IMPLICIT_LIFETIMES = frozenset({"'static", "'_"})


def _lifetimes(ref: TypeRef, found: List[str]) -> List[str]:
    if ref.lifetime and ref.lifetime not in _IMPLICIT_LIFETIMES and ref.lifetime not in found:
        found.append(ref.lifetime)
    if ref.modifier == OPAQUE:
        text = ref.segments[0]
        if text.startswith("'") and text not in _IMPLICIT_LIFETIMES and text not in found:
            found.append(text)
        return found
    for arg in ref.args:
        _lifetimes(arg, found)
    return found


def render_conversion(edge: SynthesizedEdge, config: EmitterConfig = EmitterConfig()) -> str:
    """Render `From<source> for target` as two existing conversions through `via`."""
    trait = config.trait_path
    source = render_type(edge.source)
    target = render_type(edge.target)
    via = render_type(edge.via)
    lifetimes = _lifetimes(edge.source, [])
    generics = f"<{', '.join(lifetimes)}>" if lifetimes else ""
    one = config.indent
    return "\n".join(
        [
            f"impl{generics} {trait}<{source}> for {target} {{",
            f"{one}fn from(value: {source}) -> Self {{",
            f"{one * 2}<{target} as {trait}<{via}>>::from(",
            f"{one * 3}<{via} as {trait}<{source}>>::from(value),",
            f"{one * 2})",
            f"{one}}}",
            "}",
        ]
    )


def plan_emission(
    edges: Iterable[SynthesizedEdge],
    config: EmitterConfig = EmitterConfig(),
) -> EmissionPlan:
    conversions: List[RenderedConversion] = []
    for edge in edges:
        check_deadline()
        conversions.append(
            RenderedConversion(
                source=render_type(edge.source),
                target=render_type(edge.target),
                via=render_type(edge.via),
                text=render_conversion(edge, config),
            )
        )
    return EmissionPlan(conversions=conversions, prelude=config.prelude, header=config.header)


def render_conversions(
    edges: Iterable[SynthesizedEdge],
    config: EmitterConfig = EmitterConfig(),
) -> str:
    return plan_emission(edges, config).render()
