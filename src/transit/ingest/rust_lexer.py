"""Tokenizer for Rust source text.

Only as much of the lexical grammar is modelled as item scanning needs:
identifiers, lifetimes, literals (so their contents never leak into the token
stream), punctuation, and balanced `()`, `[]`, `{}` groups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

IDENT = "ident"
LIFETIME = "lifetime"
LITERAL = "literal"
PUNCT = "punct"

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

_MULTI_PUNCT = ("::", "->", "=>")


class LexError(ValueError):
    def __init__(self, message: str, line: int):
        super().__init__(f"line {line}: {message}")
        self.line = line


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int

    def is_punct(self, text: str) -> bool:
        return self.kind == PUNCT and self.text == text

    def is_ident(self, text: str) -> bool:
        return self.kind == IDENT and self.text == text


@dataclass(frozen=True)
class TokenStream:
    tokens: List[Token]
    # Index of every opening delimiter mapped to its closing delimiter.
    groups: Dict[int, int]


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_ident_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


class _Lexer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.tokens: List[Token] = []

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def _advance(self, count: int = 1) -> str:
        chunk = self.text[self.pos:self.pos + count]
        self.line += chunk.count("\n")
        self.pos += count
        return chunk

    def _emit(self, kind: str, text: str, line: int) -> None:
        self.tokens.append(Token(kind=kind, text=text, line=line))

    def run(self) -> List[Token]:
        if self.text.startswith("#!") and not self.text.startswith("#!["):
            while self._peek() not in ("", "\n"):
                self._advance()
        while self.pos < len(self.text):
            ch = self._peek()
            if ch.isspace():
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                while self._peek() not in ("", "\n"):
                    self._advance()
            elif ch == "/" and self._peek(1) == "*":
                self._block_comment()
            elif ch == '"':
                self._string(prefix="")
            elif ch == "'":
                self._quote()
            elif _is_ident_start(ch):
                self._ident_or_prefixed_literal()
            elif ch.isdigit():
                self._number()
            else:
                self._punct()
        return self.tokens

    def _block_comment(self) -> None:
        start_line = self.line
        self._advance(2)
        depth = 1
        while depth:
            if self.pos >= len(self.text):
                raise LexError("unterminated block comment", start_line)
            if self._peek() == "/" and self._peek(1) == "*":
                self._advance(2)
                depth += 1
            elif self._peek() == "*" and self._peek(1) == "/":
                self._advance(2)
                depth -= 1
            else:
                self._advance()

    def _string(self, *, prefix: str) -> None:
        start_line = self.line
        start = self.pos - len(prefix)
        self._advance()
        while True:
            ch = self._peek()
            if not ch:
                raise LexError("unterminated string literal", start_line)
            if ch == "\\":
                self._advance(2)
                continue
            self._advance()
            if ch == '"':
                break
        self._emit(LITERAL, self.text[start:self.pos], start_line)

    def _raw_string(self, *, prefix: str) -> None:
        start_line = self.line
        start = self.pos - len(prefix)
        hashes = 0
        while self._peek() == "#":
            self._advance()
            hashes += 1
        if self._peek() != '"':
            raise LexError("malformed raw string literal", start_line)
        self._advance()
        terminator = '"' + "#" * hashes
        end = self.text.find(terminator, self.pos)
        if end < 0:
            raise LexError("unterminated raw string literal", start_line)
        self._advance(end + len(terminator) - self.pos)
        self._emit(LITERAL, self.text[start:self.pos], start_line)

    def _quote(self) -> None:
        start_line = self.line
        start = self.pos
        nxt = self._peek(1)
        if nxt == "\\":
            self._advance(3)
            while self._peek() and self._peek() != "'":
                self._advance()
            if not self._peek():
                raise LexError("unterminated character literal", start_line)
            self._advance()
            self._emit(LITERAL, self.text[start:self.pos], start_line)
            return
        if nxt and self._peek(2) == "'":
            self._advance(3)
            self._emit(LITERAL, self.text[start:self.pos], start_line)
            return
        if nxt and _is_ident_start(nxt):
            self._advance()
            while _is_ident_char(self._peek()):
                self._advance()
            self._emit(LIFETIME, self.text[start:self.pos], start_line)
            return
        raise LexError("stray quote", start_line)

    def _ident_or_prefixed_literal(self) -> None:
        ch = self._peek()
        nxt = self._peek(1)
        if ch in ("b", "c") and nxt == '"':
            self._advance()
            self._string(prefix=ch)
            return
        if ch == "b" and nxt == "'":
            start_line = self.line
            self._advance()
            self._quote()
            last = self.tokens.pop()
            self._emit(LITERAL, "b" + last.text, start_line)
            return
        if ch in ("b", "c") and nxt == "r" and self._peek(2) in ('"', "#"):
            self._advance(2)
            self._raw_string(prefix=ch + "r")
            return
        if ch == "r" and (nxt == '"' or (nxt == "#" and self._peek(2) in ('"', "#"))):
            self._advance()
            self._raw_string(prefix="r")
            return
        start_line = self.line
        start = self.pos
        if ch == "r" and nxt == "#" and _is_ident_start(self._peek(2)):
            # Raw identifier: the `r#` prefix is not part of the name.
            self._advance(2)
            start = self.pos
        while _is_ident_char(self._peek()):
            self._advance()
        self._emit(IDENT, self.text[start:self.pos], start_line)

    def _number(self) -> None:
        start_line = self.line
        start = self.pos
        while _is_ident_char(self._peek()):
            self._advance()
        self._emit(LITERAL, self.text[start:self.pos], start_line)

    def _punct(self) -> None:
        start_line = self.line
        for multi in _MULTI_PUNCT:
            if self.text.startswith(multi, self.pos):
                self._advance(len(multi))
                self._emit(PUNCT, multi, start_line)
                return
        self._emit(PUNCT, self._advance(), start_line)


def _match_groups(tokens: List[Token]) -> Dict[int, int]:
    groups: Dict[int, int] = {}
    stack: List[int] = []
    for index, token in enumerate(tokens):
        if token.kind != PUNCT:
            continue
        if token.text in OPENERS:
            stack.append(index)
        elif token.text in CLOSERS:
            if not stack:
                raise LexError(f"unmatched {token.text!r}", token.line)
            opener = stack.pop()
            if OPENERS[tokens[opener].text] != token.text:
                raise LexError(
                    f"{tokens[opener].text!r} from line {tokens[opener].line}"
                    f" closed by {token.text!r}",
                    token.line,
                )
            groups[opener] = index
    if stack:
        opener = stack[-1]
        raise LexError(f"unclosed {tokens[opener].text!r}", tokens[opener].line)
    return groups


def tokenize(text: str) -> TokenStream:
    tokens = _Lexer(text).run()
    return TokenStream(tokens=tokens, groups=_match_groups(tokens))
