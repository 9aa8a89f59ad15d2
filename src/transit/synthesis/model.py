from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

DEFAULT_TRAIT_PATH = "::std::convert::From"
DEFAULT_PRELUDE = ("use crate::schema::*;", "use crate::utils::*;")


@dataclass(frozen=True)
class EmitterConfig:
    trait_path: str = DEFAULT_TRAIT_PATH
    prelude: tuple[str, ...] = DEFAULT_PRELUDE
    header: str = ""
    indent: str = "    "


@dataclass(frozen=True)
class RenderedConversion:
    source: str
    target: str
    via: str
    text: str


@dataclass(frozen=True)
class EmissionPlan:
    conversions: List[RenderedConversion] = field(default_factory=list)
    prelude: tuple[str, ...] = ()
    header: str = ""

    def render(self) -> str:
        lines: List[str] = []
        if self.header:
            lines.extend(f"// {line}".rstrip() for line in self.header.splitlines())
        lines.extend(self.prelude)
        chunks = ["\n".join(lines)] if lines else []
        chunks.extend(conversion.text for conversion in self.conversions)
        if not chunks:
            return ""
        return "\n".join(chunks) + "\n"
