"""Base parser protocol and the scanning helpers shared by every dialect.

``Scanner`` is the character-level cursor the tokenizers build on; ``TokenCursor``
is the token-level cursor the parsers build on. Both live for exactly one call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Protocol

from mermaid_sync.types import ParseError, ParseResult

logger = logging.getLogger(__name__)


class Parser(Protocol):
    """Protocol that all diagram parsers must implement."""

    def parse(self, src: str) -> ParseResult[Any]:
        """Parse source text into a diagram or a list of errors."""
        ...


class ParseFailure(Exception):
    """Raised inside a parser when a construct is malformed beyond recovery."""


@dataclass
class Token:
    type: Enum
    value: str
    line: int
    column: int


# ─── Character scanner ───────────────────────────────────────────────────────


@dataclass
class Scanner:
    """Stateful character cursor with 1-indexed line/column tracking."""

    src: str
    pos: int = 0
    line: int = 1
    column: int = 1

    def eof(self) -> bool:
        return self.pos >= len(self.src)

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        return self.src[idx] if idx < len(self.src) else ""

    def startswith(self, s: str) -> bool:
        return self.src.startswith(s, self.pos)

    def rest_of_line(self) -> str:
        end = self.src.find("\n", self.pos)
        return self.src[self.pos :] if end == -1 else self.src[self.pos : end]

    def advance(self, count: int = 1) -> str:
        start = self.pos
        for _ in range(count):
            if self.eof():
                break
            ch = self.src[self.pos]
            self.pos += 1
            if ch == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return self.src[start : self.pos]

    def skip_whitespace(self, chars: str = " \t") -> None:
        while not self.eof() and self.src[self.pos] in chars:
            self.advance()

    def read_while(self, pred: Callable[[str], bool]) -> str:
        start = self.pos
        while not self.eof() and pred(self.src[self.pos]):
            self.advance()
        return self.src[start : self.pos]

    def read_comment(self) -> str:
        """Consume a ``%%`` comment up to (not including) the newline."""
        return self.advance(len(self.rest_of_line()))

    def read_string(self) -> str:
        """Consume a double-quoted string; an unterminated string ends at the line break."""
        self.advance()
        value = self.read_while(lambda ch: ch not in '"\n')
        if self.peek() == '"':
            self.advance()
        return value


def is_identifier_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def is_identifier_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


# ─── Token cursor ────────────────────────────────────────────────────────────


@dataclass
class TokenCursor:
    """Token-level cursor and error sink for a single parse call.

    Subclasses set ``skippable`` (newline/comment token types) and ``eof_type``
    and implement ``parse_document`` and ``build_diagram``.
    """

    tokens: list[Token]
    pos: int = 0
    errors: list[ParseError] = field(default_factory=list)

    skippable: ClassVar[tuple[Enum, ...]] = ()
    eof_type: ClassVar[Enum]

    def current(self) -> Token:
        return self.tokens[min(self.pos, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current()
        if self.pos < len(self.tokens):
            self.pos += 1
        return token

    def check(self, *types: Enum) -> bool:
        return self.current().type in types

    def at_eof(self) -> bool:
        return self.check(self.eof_type)

    def match(self, *types: Enum) -> bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, type_: Enum, message: str) -> Token:
        if self.check(type_):
            return self.advance()
        raise ParseFailure(message)

    def skip_newlines(self) -> None:
        while self.match(*self.skippable):
            pass

    def error(self, token: Token, message: str) -> None:
        self.errors.append(ParseError(line=token.line, column=token.column, message=message))

    def parse_document(self) -> None:
        raise NotImplementedError

    def build_diagram(self) -> Any:
        raise NotImplementedError

    def run(self) -> ParseResult[Any]:
        """Parse the whole token stream; any recorded error fails the parse."""
        try:
            self.parse_document()
        except ParseFailure as exc:
            self.error(self.current(), str(exc))
        except Exception as exc:  # noqa: BLE001 - converted into a parse error
            logger.exception("unexpected failure while parsing")
            self.error(self.current(), str(exc) or "Unknown parse error")
        if self.errors:
            logger.debug("parse failed with %d error(s)", len(self.errors))
            return ParseResult.fail(self.errors)
        return ParseResult.ok(self.build_diagram())
