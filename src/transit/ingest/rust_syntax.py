"""Item scanning and type parsing over a Rust token stream.

Only file-level items are inspected. `struct` and `enum` declarations become
`TypeDecl`s and trait implementations carrying at least one generic argument
become `ConversionDecl` candidates. Everything else is skipped as a balanced
token run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from transit.ingest.adapter_contract import (
    TYPE_KIND_ENUM,
    TYPE_KIND_STRUCT,
    ConversionDecl,
    TypeDecl,
)
from transit.ingest.rust_lexer import (
    IDENT,
    LIFETIME,
    LITERAL,
    OPENERS,
    PUNCT,
    Token,
    TokenStream,
    tokenize,
)
from transit.types import (
    ARRAY,
    PTR_CONST,
    PTR_MUT,
    SLICE,
    TUPLE,
    TypeRef,
    render_type,
)

_ITEM_PREFIXES = frozenset({"pub", "unsafe", "default", "async", "extern", "auto"})
_OPAQUE_STARTS = frozenset({"dyn", "impl", "fn", "unsafe", "extern", "for"})


class TypeSyntaxError(ValueError):
    """A type or item header could not be read."""


@dataclass
class ScannedItems:
    types: List[TypeDecl] = field(default_factory=list)
    conversions: List[ConversionDecl] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def _join_tokens(tokens: Sequence[Token]) -> str:
    parts: List[str] = []
    previous: Token | None = None
    for token in tokens:
        if previous is not None and _needs_space(previous, token):
            parts.append(" ")
        parts.append(token.text)
        previous = token
    return "".join(parts)


def _needs_space(left: Token, right: Token) -> bool:
    wordy = (IDENT, LIFETIME, LITERAL)
    if left.kind in wordy and right.kind in wordy:
        return True
    if left.is_punct("->") or right.is_punct("->"):
        return True
    if left.is_punct("+") or right.is_punct("+"):
        return True
    return left.is_punct(",") or left.is_punct("=") or right.is_punct("=")


class _Cursor:
    def __init__(self, stream: TokenStream, start: int = 0, end: int | None = None):
        self.tokens = stream.tokens
        self.groups = stream.groups
        self.pos = start
        self.end = len(stream.tokens) if end is None else end

    def at_end(self) -> bool:
        return self.pos >= self.end

    def peek(self, offset: int = 0) -> Token | None:
        index = self.pos + offset
        if index < self.end:
            return self.tokens[index]
        return None

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise TypeSyntaxError("unexpected end of input")
        self.pos += 1
        return token

    def at_punct(self, text: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token is not None and token.is_punct(text)

    def at_ident(self, text: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token is not None and token.is_ident(text)

    def expect_punct(self, text: str) -> Token:
        token = self.next()
        if not token.is_punct(text):
            raise TypeSyntaxError(f"expected {text!r}, found {token.text!r} (line {token.line})")
        return token

    def skip_group(self) -> List[Token]:
        """Consume a balanced delimiter group starting at the cursor."""
        close = self.groups[self.pos]
        run = self.tokens[self.pos:close + 1]
        self.pos = close + 1
        return run

    def skip_angles(self) -> List[Token]:
        """Consume a balanced `<...>` run starting at the cursor."""
        start = self.pos
        depth = 0
        while True:
            token = self.peek()
            if token is None:
                raise TypeSyntaxError("unbalanced '<'")
            if token.kind == PUNCT and token.text in OPENERS:
                self.skip_group()
                continue
            self.pos += 1
            if token.is_punct("<"):
                depth += 1
            elif token.is_punct(">"):
                depth -= 1
                if depth == 0:
                    return self.tokens[start:self.pos]

    def capture_until_boundary(self) -> List[Token]:
        """Consume tokens up to a `,`, `;`, `{`, unmatched `>` or `=`."""
        start = self.pos
        depth = 0
        while True:
            token = self.peek()
            if token is None:
                break
            if token.kind == PUNCT:
                if token.text in OPENERS:
                    if token.text == "{" and depth == 0:
                        break
                    self.skip_group()
                    continue
                if token.text == "<":
                    depth += 1
                elif token.text == ">":
                    if depth == 0:
                        break
                    depth -= 1
                elif token.text in (",", ";", "=") and depth == 0:
                    break
            elif token.is_ident("where") and depth == 0:
                break
            self.pos += 1
        if self.pos == start:
            raise TypeSyntaxError("expected a type")
        return self.tokens[start:self.pos]


def _parse_type(cursor: _Cursor) -> TypeRef:
    token = cursor.peek()
    if token is None:
        raise TypeSyntaxError("expected a type, found end of input")
    if token.is_punct("&"):
        cursor.next()
        lifetime = ""
        if cursor.peek() is not None and cursor.peek().kind == LIFETIME:
            lifetime = cursor.next().text
        mutable = cursor.at_ident("mut")
        if mutable:
            cursor.next()
        return TypeRef.reference(_parse_type(cursor), mutable=mutable, lifetime=lifetime)
    if token.is_punct("*"):
        cursor.next()
        qualifier = cursor.next()
        if qualifier.is_ident("const"):
            return TypeRef(args=(_parse_type(cursor),), modifier=PTR_CONST)
        if qualifier.is_ident("mut"):
            return TypeRef(args=(_parse_type(cursor),), modifier=PTR_MUT)
        raise TypeSyntaxError(f"malformed raw pointer (line {qualifier.line})")
    if token.is_punct("("):
        return _parse_parenthesized(cursor)
    if token.is_punct("["):
        return _parse_bracketed(cursor)
    if token.is_punct("<"):
        return TypeRef.opaque(_join_tokens(cursor.capture_until_boundary()))
    if token.is_punct("!") or token.is_ident("_"):
        cursor.next()
        return TypeRef.opaque(token.text)
    if token.kind == IDENT and token.text in _OPAQUE_STARTS:
        return TypeRef.opaque(_join_tokens(cursor.capture_until_boundary()))
    if token.is_punct("::") or token.kind == IDENT:
        return _parse_path(cursor)
    raise TypeSyntaxError(f"unexpected {token.text!r} in type (line {token.line})")


def _parse_parenthesized(cursor: _Cursor) -> TypeRef:
    close = cursor.groups[cursor.pos]
    inner = _Cursor(TokenStream(cursor.tokens, cursor.groups), cursor.pos + 1, close)
    cursor.pos = close + 1
    elements: List[TypeRef] = []
    trailing_comma = False
    while not inner.at_end():
        elements.append(_parse_type(inner))
        trailing_comma = False
        if inner.at_end():
            break
        inner.expect_punct(",")
        trailing_comma = True
    if len(elements) == 1 and not trailing_comma:
        return elements[0]
    return TypeRef(args=tuple(elements), modifier=TUPLE)


def _parse_bracketed(cursor: _Cursor) -> TypeRef:
    close = cursor.groups[cursor.pos]
    inner = _Cursor(TokenStream(cursor.tokens, cursor.groups), cursor.pos + 1, close)
    cursor.pos = close + 1
    element = _parse_type(inner)
    if inner.at_end():
        return TypeRef(args=(element,), modifier=SLICE)
    inner.expect_punct(";")
    length = _join_tokens(inner.tokens[inner.pos:inner.end])
    if not length:
        raise TypeSyntaxError("array type without length")
    return TypeRef(args=(element,), modifier=ARRAY, length=length)


def _parse_path(cursor: _Cursor) -> TypeRef:
    if cursor.at_punct("::"):
        cursor.next()
    segments: List[str] = []
    args: tuple[TypeRef, ...] = ()
    while True:
        token = cursor.next()
        if token.kind != IDENT:
            raise TypeSyntaxError(f"expected path segment, found {token.text!r} (line {token.line})")
        segment = token.text
        if cursor.at_punct("!"):
            # Macro in type position.
            cursor.next()
            if cursor.peek() is None or cursor.peek().text not in OPENERS:
                raise TypeSyntaxError(f"malformed type macro (line {token.line})")
            body = cursor.skip_group()
            prefix = "::".join(segments + [segment])
            return TypeRef.opaque(f"{prefix}!{_join_tokens(body)}")
        if cursor.at_punct("("):
            # Fn-family sugar: `Fn(A) -> B`.
            body = cursor.skip_group()
            text = segment + _join_tokens(body)
            if cursor.at_punct("->"):
                cursor.next()
                text += " -> " + render_type(_parse_type(cursor))
            return TypeRef.opaque("::".join(segments + [text]))
        args = ()
        if cursor.at_punct("::") and cursor.at_punct("<", 1):
            cursor.next()
        if cursor.at_punct("<"):
            args = _parse_generic_args(cursor)
        if cursor.at_punct("::") and cursor.peek(1) is not None and cursor.peek(1).kind == IDENT:
            cursor.next()
            if args:
                segment += "<" + ", ".join(render_type(arg) for arg in args) + ">"
                args = ()
            segments.append(segment)
            continue
        segments.append(segment)
        return TypeRef(segments=tuple(segments), args=args)


def _parse_generic_args(cursor: _Cursor) -> tuple[TypeRef, ...]:
    cursor.expect_punct("<")
    args: List[TypeRef] = []
    while not cursor.at_punct(">"):
        token = cursor.peek()
        if token is None:
            raise TypeSyntaxError("unterminated generic argument list")
        if token.kind in (LIFETIME, LITERAL):
            cursor.next()
            args.append(TypeRef.opaque(token.text))
        elif token.is_punct("{"):
            args.append(TypeRef.opaque(_join_tokens(cursor.skip_group())))
        elif token.kind == IDENT and (cursor.at_punct("=", 1) or cursor.at_punct(":", 1)):
            # Associated type binding or bound: `Item = T`, `Item: Clone`.
            name = cursor.next()
            separator = cursor.next()
            rest = cursor.capture_until_boundary()
            args.append(TypeRef.opaque(_join_tokens([name, separator, *rest])))
        else:
            args.append(_parse_type(cursor))
        if cursor.at_punct(","):
            cursor.next()
        elif not cursor.at_punct(">"):
            found = cursor.peek()
            raise TypeSyntaxError(
                f"unexpected {found.text!r} in generic arguments (line {found.line})"
                if found is not None
                else "unterminated generic argument list"
            )
    cursor.next()
    return tuple(args)


def _generic_param_names(run: Sequence[Token]) -> tuple[str, ...]:
    """Names of the type parameters declared in a `<...>` parameter list."""
    names: List[str] = []
    depth = 0
    expecting = True
    index = 0
    while index < len(run):
        token = run[index]
        if token.is_punct("<"):
            depth += 1
            expecting = depth == 1
        elif token.is_punct(">"):
            depth -= 1
        elif token.is_punct(",") and depth == 1:
            expecting = True
        elif expecting and depth == 1:
            if token.is_ident("const") and index + 1 < len(run):
                names.append(run[index + 1].text)
                index += 1
            elif token.kind == IDENT:
                names.append(token.text)
            elif token.kind == LIFETIME:
                names.append(token.text)
            expecting = False
        index += 1
    return tuple(names)


def _skip_item(cursor: _Cursor) -> None:
    """Consume the rest of an item: up to `;` or a closing top-level `{}`."""
    while not cursor.at_end():
        token = cursor.peek()
        if token.kind == PUNCT and token.text in OPENERS:
            is_brace = token.text == "{"
            cursor.skip_group()
            if is_brace:
                return
            continue
        cursor.next()
        if token.is_punct(";"):
            return


def _skip_attributes(cursor: _Cursor) -> None:
    while cursor.at_punct("#"):
        offset = 2 if cursor.at_punct("!", 1) else 1
        if not cursor.at_punct("[", offset):
            return
        cursor.pos += offset
        cursor.skip_group()


def _skip_item_prefixes(cursor: _Cursor) -> None:
    while True:
        token = cursor.peek()
        if token is None or token.kind != IDENT or token.text not in _ITEM_PREFIXES:
            return
        cursor.next()
        if token.text == "pub" and cursor.at_punct("("):
            cursor.skip_group()
        elif token.text == "extern" and cursor.peek() is not None and cursor.peek().kind == LITERAL:
            cursor.next()


def _scan_type_decl(cursor: _Cursor, kind: str, items: ScannedItems) -> None:
    name_token = cursor.peek()
    if name_token is None or name_token.kind != IDENT:
        items.skipped.append(f"line {cursor.tokens[cursor.pos - 1].line}: {kind} without a name")
        _skip_item(cursor)
        return
    cursor.next()
    arity = 0
    if cursor.at_punct("<"):
        arity = len(_generic_param_names(cursor.skip_angles()))
    items.types.append(TypeDecl(name=name_token.text, kind=kind, arity=arity))
    _skip_item(cursor)


def _scan_impl(cursor: _Cursor, items: ScannedItems) -> None:
    line = cursor.tokens[cursor.pos - 1].line
    try:
        params: tuple[str, ...] = ()
        if cursor.at_punct("<"):
            params = _generic_param_names(cursor.skip_angles())
        if cursor.at_ident("const"):
            cursor.next()
        if cursor.at_punct("!"):
            _skip_item(cursor)
            return
        first = _parse_type(cursor)
        if not cursor.at_ident("for"):
            _skip_item(cursor)
            return
        cursor.next()
        target = _parse_type(cursor)
    except TypeSyntaxError as exc:
        items.skipped.append(f"line {line}: impl header: {exc}")
        _skip_item(cursor)
        return
    _skip_item(cursor)
    if not first.is_path or not first.args:
        return
    items.conversions.append(
        ConversionDecl(
            trait_path=first,
            source=first.args[0],
            target=target,
            impl_params=params,
        )
    )


def scan_items(stream: TokenStream) -> ScannedItems:
    items = ScannedItems()
    cursor = _Cursor(stream)
    while not cursor.at_end():
        _skip_attributes(cursor)
        _skip_item_prefixes(cursor)
        token = cursor.peek()
        if token is None:
            break
        if token.is_ident("struct"):
            cursor.next()
            _scan_type_decl(cursor, TYPE_KIND_STRUCT, items)
        elif token.is_ident("enum"):
            cursor.next()
            _scan_type_decl(cursor, TYPE_KIND_ENUM, items)
        elif token.is_ident("impl"):
            cursor.next()
            _scan_impl(cursor, items)
        else:
            _skip_item(cursor)
    return items


def parse_type(text: str) -> TypeRef:
    """Parse a single Rust type expression."""
    cursor = _Cursor(tokenize(text))
    ref = _parse_type(cursor)
    if not cursor.at_end():
        leftover = cursor.peek()
        raise TypeSyntaxError(f"unexpected {leftover.text!r} after type")
    return ref
