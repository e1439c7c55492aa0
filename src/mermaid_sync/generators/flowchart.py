"""Flowchart generator: model to canonical ``flowchart`` text.

Node ids in the output are synthesized from labels, not taken from the model.
A node listed by several subgraphs is emitted in the first one only, and every
edge is emitted exactly once: inside the subgraph that holds both endpoints,
otherwise after all subgraph blocks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from mermaid_sync.config import DEFAULT_OPTIONS, GeneratorOptions
from mermaid_sync.ir.flowchart import (
    LINK_SYMBOLS,
    RESERVED_WORDS,
    SHAPE_BRACKETS,
    Edge,
    FlowchartDiagram,
    LinkType,
    Node,
    Subgraph,
)

logger = logging.getLogger(__name__)

_MAX_ID_LENGTH = 20
_NON_ID_CHARS = re.compile(r"[^a-zA-Z0-9_]")
# (opener, closer, character the inline label may not contain)
_INLINE_LINKS: dict[LinkType, tuple[str, str, str]] = {
    LinkType.Arrow: ("--", "-->", "-"),
    LinkType.Open: ("--", "---", "-"),
    LinkType.DottedArrow: ("-.", ".->", "."),
    LinkType.Dotted: ("-.", ".-", "."),
    LinkType.ThickArrow: ("==", "==>", "="),
    LinkType.Thick: ("==", "===", "="),
}
_TITLE_WORDS = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?: [A-Za-z_][A-Za-z0-9_]*)*")
_BRACKET_CHARS = frozenset("[](){}<>/\\")


# ─── Id synthesis ────────────────────────────────────────────────────────────


@dataclass
class _IdAllocator:
    """Label-derived ids for one generation call, one per model node."""

    assigned: dict[str, str] = field(default_factory=dict)
    used: set[str] = field(default_factory=set)

    def id_for(self, node: Node) -> str:
        existing = self.assigned.get(node.id)
        if existing is not None:
            return existing

        base = _NON_ID_CHARS.sub("_", node.label).strip("_")[:_MAX_ID_LENGTH]
        if not base:
            base = f"node_{len(self.assigned)}"
        if base[0].isdigit():
            base = f"n_{base}"
        if base in RESERVED_WORDS:
            base = f"{base}_"

        candidate, suffix = base, 0
        while candidate in self.used:
            suffix += 1
            candidate = f"{base}_{suffix}"

        self.assigned[node.id] = candidate
        self.used.add(candidate)
        return candidate


# ─── Line rendering ──────────────────────────────────────────────────────────


def _format_node_label(label: str) -> str:
    needs_quotes = label != label.strip() or any(ch in _BRACKET_CHARS for ch in label)
    if needs_quotes and '"' not in label:
        return f'"{label}"'
    return label


def _node_line(node: Node, ids: _IdAllocator, indent: str) -> str:
    start, end = SHAPE_BRACKETS[node.shape]
    return f"{indent}{ids.id_for(node)}{start}{_format_node_label(node.label)}{end}"


def _link_symbol(edge: Edge) -> str:
    """``-->|text|``, or the inline ``-- text -->`` form when the text holds a pipe."""
    symbol = LINK_SYMBOLS[edge.link_type]
    label = edge.label
    if not label:
        return symbol
    if "|" in label:
        inline = _INLINE_LINKS.get(edge.link_type)
        if inline is not None and inline[2] not in label:
            opener, closer, _ = inline
            return f"{opener} {label} {closer}"
        logger.debug("edge %s label %r has no lossless form", edge.id, label)
    return f"{symbol}|{label}|"


def _edge_line(edge: Edge, nodes: dict[str, Node], ids: _IdAllocator, indent: str) -> str | None:
    source = nodes.get(edge.source_node_id)
    target = nodes.get(edge.target_node_id)
    if source is None or target is None:
        logger.debug("dropping edge %s with unresolved endpoint", edge.id)
        return None
    return f"{indent}{ids.id_for(source)} {_link_symbol(edge)} {ids.id_for(target)}"


def _subgraph_title(subgraph: Subgraph, index: int) -> str:
    label = subgraph.label
    if _TITLE_WORDS.fullmatch(label) and not RESERVED_WORDS.intersection(label.split(" ")):
        return label
    return f"sg_{index}[{_format_node_label(label)}]"


# ─── Generator ───────────────────────────────────────────────────────────────


def generate_flowchart(diagram: FlowchartDiagram, options: GeneratorOptions | None = None) -> str:
    """Render a flowchart diagram as Mermaid text."""
    options = options or DEFAULT_OPTIONS
    indent, inner = options.indent(), options.indent(2)
    ids = _IdAllocator()

    nodes: dict[str, Node] = {}
    for node in diagram.nodes:
        nodes.setdefault(node.id, node)

    claims: dict[str, int] = {}
    for index, subgraph in enumerate(diagram.subgraphs):
        for node_id in subgraph.node_ids:
            if node_id in nodes:
                claims.setdefault(node_id, index)

    lines = [f"flowchart {diagram.direction.value}"]
    for node in nodes.values():
        if node.id not in claims:
            lines.append(_node_line(node, ids, indent))

    emitted: set[int] = set()
    for index, subgraph in enumerate(diagram.subgraphs):
        members = [nid for nid in dict.fromkeys(subgraph.node_ids) if claims.get(nid) == index]
        lines.append(f"{indent}subgraph {_subgraph_title(subgraph, index)}")
        if subgraph.direction is not None:
            lines.append(f"{inner}direction {subgraph.direction.value}")
        lines.extend(_node_line(nodes[nid], ids, inner) for nid in members)

        member_set = set(members)
        for edge_index, edge in enumerate(diagram.edges):
            if edge.source_node_id in member_set and edge.target_node_id in member_set:
                line = _edge_line(edge, nodes, ids, inner)
                if line is not None:
                    lines.append(line)
                emitted.add(edge_index)
        lines.append(f"{indent}end")

    for edge_index, edge in enumerate(diagram.edges):
        if edge_index not in emitted:
            line = _edge_line(edge, nodes, ids, indent)
            if line is not None:
                lines.append(line)

    return "\n".join(lines)


class FlowchartGenerator:
    """Flowchart diagram generator."""

    def generate(self, diagram: FlowchartDiagram, options: GeneratorOptions | None = None) -> str:
        return generate_flowchart(diagram, options)
