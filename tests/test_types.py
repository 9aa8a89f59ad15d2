from __future__ import annotations

from transit.types import ARRAY, SLICE, TUPLE, TypeRef, render_type


def test_type_ref_equality_is_structural() -> None:
    left = TypeRef.path("Vec", args=(TypeRef.path("String"),))
    right = TypeRef.path("Vec", args=(TypeRef.path("String"),))
    assert left == right
    assert hash(left) == hash(right)
    assert left != TypeRef.path("Vec", args=(TypeRef.path("str"),))


def test_reference_is_distinct_from_referent() -> None:
    plain = TypeRef.path("B")
    assert TypeRef.reference(plain) != plain
    assert TypeRef.reference(plain) != TypeRef.reference(plain, mutable=True)


def test_reference_lifetime_does_not_affect_identity() -> None:
    plain = TypeRef.path("B")
    assert TypeRef.reference(plain, lifetime="'a") == TypeRef.reference(plain)
    assert render_type(TypeRef.reference(plain, lifetime="'a", mutable=True)) == "&'a mut B"


def test_is_generic_looks_through_wrappers() -> None:
    generic = TypeRef.path("C", args=(TypeRef.path("T"),))
    assert generic.is_generic
    assert TypeRef.reference(generic).is_generic
    assert not TypeRef.reference(TypeRef.path("C")).is_generic
    assert TypeRef(args=(TypeRef.path("A"), generic), modifier=TUPLE).is_generic


def test_ends_with_matches_trailing_segments() -> None:
    ref = TypeRef.path("std", "convert", "From")
    assert ref.ends_with(("From",))
    assert ref.ends_with(("convert", "From"))
    assert not ref.ends_with(("Into",))
    assert not TypeRef.path("From").ends_with(("std", "From"))
    assert not TypeRef.reference(TypeRef.path("From")).ends_with(("From",))


def test_replace_self_preserves_wrapping() -> None:
    concrete = TypeRef.path("B")
    self_ref = TypeRef.reference(TypeRef.path("Self"))
    assert self_ref.replace_self(concrete) == TypeRef.reference(concrete)
    assert TypeRef.path("Self").replace_self(concrete) == concrete
    boxed = TypeRef.path("Box", args=(TypeRef.path("Self"),))
    assert boxed.replace_self(concrete) == TypeRef.path("Box", args=(concrete,))
    assert TypeRef.path("Self", "Item").replace_self(concrete) == TypeRef.path("B", "Item")
    assert TypeRef.path("A").replace_self(concrete) == TypeRef.path("A")


def test_render_type_covers_wrapped_forms() -> None:
    element = TypeRef.path("u8")
    assert render_type(TypeRef(args=(element,), modifier=SLICE)) == "[u8]"
    assert render_type(TypeRef(args=(element,), modifier=ARRAY, length="4")) == "[u8; 4]"
    assert render_type(TypeRef(args=(element,), modifier=TUPLE)) == "(u8,)"
    assert render_type(TypeRef(modifier=TUPLE)) == "()"
    nested = TypeRef.path("std", "collections", "HashMap", args=(element, TypeRef.path("String")))
    assert str(nested) == "std::collections::HashMap<u8, String>"
