"""mermaid-sync: keep Mermaid ER, flowchart and sequence text in sync with a typed diagram model."""

from mermaid_sync.config import GeneratorOptions
from mermaid_sync.generators import generate, generate_er, generate_flowchart, generate_sequence
from mermaid_sync.ir.graph import GraphIR
from mermaid_sync.parsers import detect_type, parse, parse_er, parse_flowchart, parse_sequence
from mermaid_sync.sync import DiagramSession
from mermaid_sync.types import ParseError, ParseResult, Position

__all__ = [
    "DiagramSession",
    "GeneratorOptions",
    "GraphIR",
    "ParseError",
    "ParseResult",
    "Position",
    "detect_type",
    "generate",
    "generate_er",
    "generate_flowchart",
    "generate_sequence",
    "parse",
    "parse_er",
    "parse_flowchart",
    "parse_sequence",
]
