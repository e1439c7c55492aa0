"""Generator registry: dispatch a diagram model to the generator for its dialect."""

from __future__ import annotations

from typing import Any

from mermaid_sync.config import GeneratorOptions
from mermaid_sync.generators.base import Generator
from mermaid_sync.generators.er import ErGenerator, generate_er
from mermaid_sync.generators.flowchart import FlowchartGenerator, generate_flowchart
from mermaid_sync.generators.sequence import SequenceGenerator, generate_sequence
from mermaid_sync.ir.er import ErDiagram
from mermaid_sync.ir.flowchart import FlowchartDiagram
from mermaid_sync.ir.sequence import SequenceDiagram

_GENERATORS: dict[type, type[Generator]] = {
    ErDiagram: ErGenerator,
    FlowchartDiagram: FlowchartGenerator,
    SequenceDiagram: SequenceGenerator,
}


def generate(diagram: Any, options: GeneratorOptions | None = None) -> str:
    """Render any supported diagram model as Mermaid text."""
    generator_cls = _GENERATORS.get(type(diagram))
    if generator_cls is None:
        raise TypeError(f"Unsupported diagram model: {type(diagram).__name__}")
    return generator_cls().generate(diagram, options)


__all__ = [
    "ErGenerator",
    "FlowchartGenerator",
    "Generator",
    "SequenceGenerator",
    "generate",
    "generate_er",
    "generate_flowchart",
    "generate_sequence",
]
