"""Live text/model synchronization for one diagram.

A ``DiagramSession`` is the thin state holder an editor sits on: every text
edit goes through ``update_from_text`` and every model edit through
``update_from_model``. Failed parses never clobber the last good diagram.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from mermaid_sync.config import GeneratorOptions
from mermaid_sync.generators import generate
from mermaid_sync.ir.er import ErDiagram
from mermaid_sync.ir.flowchart import FlowchartDiagram
from mermaid_sync.ir.sequence import SequenceDiagram
from mermaid_sync.parsers import parse
from mermaid_sync.types import ParseError, Position

logger = logging.getLogger(__name__)

_EMPTY_DIAGRAMS: dict[str, type] = {
    "er": ErDiagram,
    "flowchart": FlowchartDiagram,
    "sequence": SequenceDiagram,
}


def _positions_by_name(diagram: Any) -> dict[str, Position]:
    """Positions keyed by display text: entity name (ER) or node label (flowchart)."""
    positions: dict[str, Position] = {}
    if isinstance(diagram, ErDiagram):
        for entity in diagram.entities:
            positions.setdefault(entity.name, entity.position)
    elif isinstance(diagram, FlowchartDiagram):
        for node in diagram.nodes:
            positions.setdefault(node.label, node.position)
    return positions


def restore_positions(previous: Any, current: Any) -> None:
    """Copy positions from ``previous`` onto same-named elements of ``current`` in place."""
    positions = _positions_by_name(previous)
    if not positions:
        return
    if isinstance(current, ErDiagram):
        items = [(e.name, e) for e in current.entities]
    elif isinstance(current, FlowchartDiagram):
        items = [(n.label, n) for n in current.nodes]
    else:
        return
    for name, item in items:
        if name in positions:
            item.position = copy.copy(positions[name])


@dataclass
class DiagramSession:
    """Current text, last successfully parsed diagram, and the errors of the last parse."""

    diagram_type: str
    text: str = ""
    diagram: Any = None
    errors: list[ParseError] = field(default_factory=list)
    options: GeneratorOptions = field(default_factory=GeneratorOptions)

    def __post_init__(self) -> None:
        factory = _EMPTY_DIAGRAMS.get(self.diagram_type)
        if factory is None:
            raise ValueError(f"Unsupported diagram type: {self.diagram_type}")
        if self.diagram is None:
            self.diagram = factory()
        if not self.text:
            self.text = generate(self.diagram, self.options)

    def update_from_text(self, text: str) -> bool:
        """Parse ``text``; on success replace the diagram, on failure keep it and record errors."""
        self.text = text
        result = parse(text, self.diagram_type)
        if not result.success:
            self.errors = result.errors
            logger.debug("keeping previous %s diagram: %d parse error(s)", self.diagram_type, len(result.errors))
            return False

        restore_positions(self.diagram, result.diagram)
        self.diagram = result.diagram
        self.errors = []
        return True

    def update_from_model(self, diagram: Any) -> str:
        """Adopt a copy of ``diagram`` and regenerate the text from it."""
        if not isinstance(diagram, _EMPTY_DIAGRAMS[self.diagram_type]):
            raise TypeError(f"Expected a {self.diagram_type} diagram, got {type(diagram).__name__}")
        self.diagram = copy.deepcopy(diagram)
        self.text = generate(self.diagram, self.options)
        self.errors = []
        return self.text
