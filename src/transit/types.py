"""Structural type references.

A `TypeRef` identifies a type the way it is written in source: an ordered
path of name segments plus the generic arguments of the last segment.
Wrapped forms (references, pointers, tuples, slices, arrays) are distinct
values; `&T` never compares equal to `T`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

PATH = ""
REF = "&"
REF_MUT = "&mut"
PTR_CONST = "*const"
PTR_MUT = "*mut"
TUPLE = "()"
SLICE = "[]"
ARRAY = "[;]"
OPAQUE = "opaque"

SELF_SEGMENT = "Self"


@dataclass(frozen=True)
class TypeRef:
    segments: tuple[str, ...] = ()
    args: tuple["TypeRef", ...] = ()
    modifier: str = PATH
    # Array length expression, kept as source text.
    length: str = ""
    # Reference lifetimes do not change which conversion is meant.
    lifetime: str = field(default="", compare=False)

    @classmethod
    def path(cls, *segments: str, args: Iterable["TypeRef"] = ()) -> "TypeRef":
        return cls(segments=tuple(segments), args=tuple(args))

    @classmethod
    def reference(
        cls, inner: "TypeRef", *, mutable: bool = False, lifetime: str = ""
    ) -> "TypeRef":
        return cls(args=(inner,), modifier=REF_MUT if mutable else REF, lifetime=lifetime)

    @classmethod
    def opaque(cls, text: str) -> "TypeRef":
        return cls(segments=(text,), modifier=OPAQUE)

    @property
    def is_path(self) -> bool:
        return self.modifier == PATH

    @property
    def is_generic(self) -> bool:
        """True when generic arguments appear anywhere in the type."""
        if self.is_path:
            return bool(self.args) or any("<" in segment for segment in self.segments)
        if self.modifier == OPAQUE:
            return "<" in self.segments[0]
        return any(arg.is_generic for arg in self.args)

    def ends_with(self, suffix: Iterable[str]) -> bool:
        wanted = tuple(suffix)
        if not self.is_path or not wanted or len(wanted) > len(self.segments):
            return False
        return self.segments[-len(wanted):] == wanted

    def replace_self(self, concrete: "TypeRef") -> "TypeRef":
        if self.is_path:
            args = tuple(arg.replace_self(concrete) for arg in self.args)
            if self.segments and self.segments[0] == SELF_SEGMENT:
                if len(self.segments) == 1 and not args:
                    return concrete
                if concrete.is_path and not concrete.args:
                    return TypeRef(
                        segments=concrete.segments + self.segments[1:],
                        args=args,
                    )
            return replace(self, args=args)
        if self.modifier == OPAQUE:
            return self
        return replace(self, args=tuple(arg.replace_self(concrete) for arg in self.args))

    def __str__(self) -> str:
        return render_type(self)


def render_type(ref: TypeRef) -> str:
    """Render a type reference in Rust surface syntax."""
    modifier = ref.modifier
    if modifier == PATH:
        text = "::".join(ref.segments)
        if ref.args:
            text += "<" + ", ".join(render_type(arg) for arg in ref.args) + ">"
        return text
    if modifier in (REF, REF_MUT):
        parts = ["&"]
        if ref.lifetime:
            parts.append(f"{ref.lifetime} ")
        if modifier == REF_MUT:
            parts.append("mut ")
        parts.append(render_type(ref.args[0]))
        return "".join(parts)
    if modifier in (PTR_CONST, PTR_MUT):
        return f"{modifier} {render_type(ref.args[0])}"
    if modifier == TUPLE:
        if len(ref.args) == 1:
            return f"({render_type(ref.args[0])},)"
        return "(" + ", ".join(render_type(arg) for arg in ref.args) + ")"
    if modifier == SLICE:
        return f"[{render_type(ref.args[0])}]"
    if modifier == ARRAY:
        return f"[{render_type(ref.args[0])}; {ref.length}]"
    return ref.segments[0]


def type_sort_key(ref: TypeRef) -> str:
    return render_type(ref)
