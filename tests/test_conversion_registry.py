from __future__ import annotations

from pathlib import Path

from transit.analysis.conversion_registry import build_conversion_graph, is_conversion_construct
from transit.analysis.model import REASON_GENERIC_SOURCE, REASON_GENERIC_TARGET, REASON_SELF_LOOP
from transit.ingest.adapter_contract import ConversionDecl, SourceUnit
from transit.types import TypeRef

A = TypeRef.path("A")
B = TypeRef.path("B")
C = TypeRef.path("C")


def _pairs(result) -> set[tuple[str, str]]:
    return {(str(edge.source), str(edge.target)) for edge in result.graph.edges}


def test_construct_matches_by_trailing_segment() -> None:
    assert is_conversion_construct(TypeRef.path("From", args=(A,)))
    assert is_conversion_construct(TypeRef.path("std", "convert", "From", args=(A,)))
    assert is_conversion_construct(TypeRef.path("some_module", "From", args=(A,)))
    assert not is_conversion_construct(TypeRef.path("TryFrom", args=(A,)))
    assert is_conversion_construct(TypeRef.path("Into", args=(A,)), "Into")


def test_registry_accepts_any_qualification(rust_unit) -> None:
    unit = rust_unit(
        """
        impl From<PathA> for PathB { fn from(_: PathA) -> Self { PathB } }
        impl std::convert::From<PathB> for PathC { fn from(_: PathB) -> Self { PathC } }
        impl ::std::convert::From<PathC> for PathD { fn from(_: PathC) -> Self { PathD } }
        impl some_module::From<PathD> for PathE { fn from(_: PathD) -> Self { PathE } }
        impl TryFrom<PathE> for PathA { type Error = (); }
        """
    )
    result = build_conversion_graph([unit])
    assert _pairs(result) == {
        ("PathA", "PathB"),
        ("PathB", "PathC"),
        ("PathC", "PathD"),
        ("PathD", "PathE"),
    }
    assert result.dropped == []


def test_registry_drops_generic_targets(rust_unit) -> None:
    unit = rust_unit(
        """
        impl From<A> for B { fn from(_: A) -> Self { B } }
        impl<T> From<B> for C<T> { fn from(_: B) -> Self { unimplemented!() } }
        impl From<B> for Wrapper<String> { fn from(_: B) -> Self { todo!() } }
        """
    )
    result = build_conversion_graph([unit])
    assert _pairs(result) == {("A", "B")}
    assert [entry.reason for entry in result.dropped] == [
        REASON_GENERIC_TARGET,
        REASON_GENERIC_TARGET,
    ]


def test_registry_resolves_self_with_wrapping(rust_unit) -> None:
    unit = rust_unit(
        """
        impl From<&Self> for B { fn from(_: &Self) -> Self { B } }
        impl From<Box<Self>> for C { fn from(_: Box<Self>) -> Self { C } }
        """
    )
    assert _pairs(build_conversion_graph([unit])) == {("&B", "B"), ("Box<C>", "C")}


def test_registry_drops_self_loops(rust_unit) -> None:
    unit = rust_unit("impl From<Self> for B { fn from(v: Self) -> Self { v } }")
    result = build_conversion_graph([unit])
    assert len(result.graph) == 0
    assert [entry.reason for entry in result.dropped] == [REASON_SELF_LOOP]


def test_registry_drops_blanket_sources(rust_unit) -> None:
    unit = rust_unit("impl<T: Into<A>> From<T> for B { fn from(v: T) -> Self { todo!() } }")
    result = build_conversion_graph([unit])
    assert len(result.graph) == 0
    assert [entry.reason for entry in result.dropped] == [REASON_GENERIC_SOURCE]


def test_registry_unions_and_deduplicates_units() -> None:
    decl = ConversionDecl(trait_path=TypeRef.path("From", args=(A,)), source=A, target=B)
    other = ConversionDecl(trait_path=TypeRef.path("From", args=(B,)), source=B, target=C)
    first = SourceUnit(path=Path("a.rs"), conversions=(decl, decl))
    second = SourceUnit(path=Path("b.rs"), conversions=(other, decl))
    forward = build_conversion_graph([first, second])
    backward = build_conversion_graph([second, first])
    assert forward.graph == backward.graph
    assert len(forward.graph) == 2


def test_registry_uses_configured_construct_name() -> None:
    into = ConversionDecl(trait_path=TypeRef.path("core", "Convert", args=(A,)), source=A, target=B)
    unit = SourceUnit(path=Path("a.rs"), conversions=(into,))
    assert len(build_conversion_graph([unit]).graph) == 0
    assert len(build_conversion_graph([unit], construct_name="Convert").graph) == 1


def test_registry_drops_sources_sized_by_const_parameters(rust_unit) -> None:
    unit = rust_unit(
        """
        impl<const N: usize> From<[u8; N]> for Digest { fn from(_: [u8; N]) -> Self { todo!() } }
        impl From<[u8; 32]> for Digest { fn from(_: [u8; 32]) -> Self { todo!() } }
        impl<T> From<Box<dyn Fn(T)>> for Callback { fn from(_: Box<dyn Fn(T)>) -> Self { todo!() } }
        """
    )
    result = build_conversion_graph([unit])
    assert _pairs(result) == {("[u8; 32]", "Digest")}
    assert [entry.reason for entry in result.dropped] == [REASON_GENERIC_SOURCE, REASON_GENERIC_SOURCE]
