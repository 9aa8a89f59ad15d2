"""Rendering of synthesized conversions."""

from transit.synthesis.emission import plan_emission, render_conversion, render_conversions
from transit.synthesis.model import EmissionPlan, EmitterConfig, RenderedConversion

__all__ = [
    "EmissionPlan",
    "EmitterConfig",
    "RenderedConversion",
    "plan_emission",
    "render_conversion",
    "render_conversions",
]
