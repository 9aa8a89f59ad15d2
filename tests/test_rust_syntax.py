from __future__ import annotations

import pytest

from transit.ingest.rust_lexer import tokenize
from transit.ingest.rust_syntax import TypeSyntaxError, parse_type, scan_items
from transit.types import OPAQUE, TypeRef


def _scan(source: str):
    return scan_items(tokenize(source))


def test_scan_collects_structs_and_enums_with_arity() -> None:
    items = _scan(
        """
        #[derive(Debug)]
        pub struct A;
        pub(crate) struct B(u8, u16);
        struct C<T> { value: T }
        enum D<'a, T, const N: usize> { X(&'a [T; N]) }
        union U { a: u8 }
        fn helper() -> A { A }
        """
    )
    assert [(decl.name, decl.kind, decl.arity) for decl in items.types] == [
        ("A", "struct", 0),
        ("B", "struct", 0),
        ("C", "struct", 1),
        ("D", "enum", 3),
    ]


def test_scan_collects_trait_impls_with_arguments() -> None:
    items = _scan(
        """
        impl From<A> for B {
            fn from(_: A) -> Self { B }
        }
        impl ::std::convert::From<&Self> for C {
            fn from(_: &Self) -> Self { C }
        }
        impl<T> From<B> for D<T> where T: Default {
            fn from(_: B) -> Self { unimplemented!() }
        }
        impl Default for A { fn default() -> Self { A } }
        impl A { fn new() -> Self { A } }
        """
    )
    assert [(str(decl.trait_path), str(decl.source), str(decl.target)) for decl in items.conversions] == [
        ("From<A>", "A", "B"),
        ("std::convert::From<&Self>", "&Self", "C"),
        ("From<B>", "B", "D<T>"),
    ]
    assert items.conversions[2].impl_params == ("T",)


def test_scan_ignores_nested_items_and_macros() -> None:
    items = _scan(
        """
        mod inner {
            pub struct Hidden;
            impl From<Hidden> for super::Outer { fn from(_: Hidden) -> Self { todo!() } }
        }
        macro_rules! make { () => { struct Made; }; }
        const NAMES: [&str; 2] = ["struct X;", "impl"];
        struct Outer;
        """
    )
    assert [decl.name for decl in items.types] == ["Outer"]
    assert items.conversions == []


def test_negative_and_unsafe_impls() -> None:
    items = _scan(
        """
        unsafe impl Send for A {}
        impl !Sync for A {}
        unsafe impl From<A> for B {}
        """
    )
    assert [str(decl.source) for decl in items.conversions] == ["A"]


def test_malformed_impl_header_is_skipped_not_fatal() -> None:
    items = _scan(
        """
        impl From<A for B {}
        struct Kept;
        """
    )
    assert [decl.name for decl in items.types] == ["Kept"]
    assert items.conversions == []
    assert items.skipped


def test_parse_type_paths_and_generics() -> None:
    ref = parse_type("::std::collections::HashMap<String, Vec<u8>>")
    assert ref.segments == ("std", "collections", "HashMap")
    assert ref.args == (
        TypeRef.path("String"),
        TypeRef.path("Vec", args=(TypeRef.path("u8"),)),
    )


def test_parse_type_wrapped_forms() -> None:
    assert parse_type("&'a mut Self") == TypeRef.reference(TypeRef.path("Self"), mutable=True)
    assert str(parse_type("(A, B)")) == "(A, B)"
    assert str(parse_type("(A)")) == "A"
    assert str(parse_type("[u8; 32]")) == "[u8; 32]"
    assert str(parse_type("&[T]")) == "&[T]"
    assert str(parse_type("*const u8")) == "*const u8"


def test_parse_type_opaque_forms() -> None:
    boxed = parse_type("Box<dyn Fn(A) -> B + Send>")
    assert boxed.args[0].modifier == OPAQUE
    assert boxed.args[0].segments == ("dyn Fn(A) -> B + Send",)
    lifetimes = parse_type("Cow<'static, str>")
    assert lifetimes.args[0] == TypeRef.opaque("'static")
    binding = parse_type("Box<dyn Iterator<Item = u8>>")
    assert binding.args[0].modifier == OPAQUE


def test_parse_type_rejects_garbage() -> None:
    with pytest.raises(TypeSyntaxError):
        parse_type("A B")
    with pytest.raises(TypeSyntaxError):
        parse_type(";")
