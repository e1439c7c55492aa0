"""Parser registry — auto-detect diagram type and dispatch to the right parser."""

from __future__ import annotations

from typing import Any

from mermaid_sync.parsers.base import Parser
from mermaid_sync.parsers.er import ErParser, parse_er
from mermaid_sync.parsers.flowchart import FlowchartParser, parse_flowchart
from mermaid_sync.parsers.sequence import SequenceParser, parse_sequence
from mermaid_sync.types import ParseResult

_HEADERS: list[tuple[str, str]] = [
    ("erDiagram", "er"),
    ("sequenceDiagram", "sequence"),
    ("flowchart", "flowchart"),
    ("graph", "flowchart"),
]


def detect_type(src: str) -> str:
    """Detect the diagram type from the first meaningful line. Returns 'er', 'flowchart' or 'sequence'."""
    for line in src.split("\n"):
        line = line.strip()
        if not line or line.startswith("%%"):
            continue
        for header, diagram_type in _HEADERS:
            if line.startswith(header):
                return diagram_type
        break
    return "flowchart"  # default


_PARSERS: dict[str, type[Parser]] = {
    "er": ErParser,
    "flowchart": FlowchartParser,
    "sequence": SequenceParser,
}

DIAGRAM_TYPES: tuple[str, ...] = tuple(_PARSERS)


def parse(src: str, diagram_type: str | None = None) -> ParseResult[Any]:
    """Parse with the named dialect, or auto-detect it from the header line."""
    diagram_type = diagram_type or detect_type(src)
    parser_cls = _PARSERS.get(diagram_type)
    if parser_cls is None:
        raise ValueError(f"Unsupported diagram type: {diagram_type}")
    return parser_cls().parse(src)


__all__ = [
    "DIAGRAM_TYPES",
    "ErParser",
    "FlowchartParser",
    "Parser",
    "SequenceParser",
    "detect_type",
    "parse",
    "parse_er",
    "parse_flowchart",
    "parse_sequence",
]
