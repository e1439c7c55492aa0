"""Shared type definitions for mermaid-sync.

Small types used by every dialect: positions, parse errors, parse results and id minting.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Generic, TypeVar

D = TypeVar("D")


def new_id() -> str:
    """Mint an opaque unique identifier for a model element."""
    return str(uuid.uuid4())


@dataclass
class Position:
    """A 2D canvas position."""

    x: int = 0
    y: int = 0


@dataclass
class ParseError:
    """A structural error found while parsing, tagged with a 1-indexed source position."""

    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"


@dataclass
class ParseResult(Generic[D]):
    """Outcome of a parse: either a complete diagram or a non-empty error list, never both."""

    success: bool
    diagram: D | None = None
    errors: list[ParseError] = field(default_factory=list)

    @classmethod
    def ok(cls, diagram: D) -> ParseResult[D]:
        return cls(success=True, diagram=diagram)

    @classmethod
    def fail(cls, errors: list[ParseError]) -> ParseResult[D]:
        return cls(success=False, errors=list(errors))
