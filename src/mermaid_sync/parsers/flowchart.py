"""Flowchart parser — hand-rolled recursive descent.

Parses Mermaid flowchart/graph DSL into the model types from ir.flowchart.
Node shapes and link styles are recognised by the tokenizer; the parser only
sees node, link and keyword tokens.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from mermaid_sync.ir.flowchart import (
    RESERVED_WORDS,
    SHAPE_BRACKETS,
    Direction,
    Edge,
    FlowchartDiagram,
    LinkType,
    Node,
    NodeShape,
    Subgraph,
)
from mermaid_sync.layout import assign_grid_positions, flowchart_grid
from mermaid_sync.parsers.base import (
    Scanner,
    Token,
    TokenCursor,
    is_identifier_char,
    is_identifier_start,
)
from mermaid_sync.types import ParseResult

logger = logging.getLogger(__name__)

# ─── Tokenizer ───────────────────────────────────────────────────────────────


class FlowchartTokenType(Enum):
    KEYWORD = "KEYWORD"  # flowchart, graph, direction
    DIRECTION = "DIRECTION"
    IDENTIFIER = "IDENTIFIER"
    LINK = "LINK"
    NODE_TEXT = "NODE_TEXT"  # identifier immediately followed by a shape
    SUBGRAPH = "SUBGRAPH"
    END = "END"
    NEWLINE = "NEWLINE"
    COMMENT = "COMMENT"
    EOF = "EOF"


@dataclass
class FlowchartToken(Token):
    node_shape: NodeShape | None = None
    node_label: str | None = None
    link_type: LinkType | None = None
    link_label: str | None = None


_KEYWORDS = frozenset({"flowchart", "graph", "direction"})
DIRECTION_NAMES = frozenset(d.value for d in Direction)

# Link connectors: labelled forms first, then text forms, then bare arrows.
_LINK_PATTERNS: list[tuple[re.Pattern[str], LinkType]] = [
    (re.compile(r"-->[ \t]*\|([^|\n]*)\|"), LinkType.Arrow),
    (re.compile(r"---[ \t]*\|([^|\n]*)\|"), LinkType.Open),
    (re.compile(r"-\.->[ \t]*\|([^|\n]*)\|"), LinkType.DottedArrow),
    (re.compile(r"-\.-[ \t]*\|([^|\n]*)\|"), LinkType.Dotted),
    (re.compile(r"==>[ \t]*\|([^|\n]*)\|"), LinkType.ThickArrow),
    (re.compile(r"===[ \t]*\|([^|\n]*)\|"), LinkType.Thick),
    (re.compile(r"~~~[ \t]*\|([^|\n]*)\|"), LinkType.Invisible),
    (re.compile(r"-- ([^-\n]+) -->"), LinkType.Arrow),
    (re.compile(r"-- ([^-\n]+) ---"), LinkType.Open),
    (re.compile(r"-\. ([^.\n]+) \.->"), LinkType.DottedArrow),
    (re.compile(r"-\. ([^.\n]+) \.-"), LinkType.Dotted),
    (re.compile(r"== ([^=\n]+) ==>"), LinkType.ThickArrow),
    (re.compile(r"== ([^=\n]+) ==="), LinkType.Thick),
    (re.compile(r"-->"), LinkType.Arrow),
    (re.compile(r"---"), LinkType.Open),
    (re.compile(r"-\.->"), LinkType.DottedArrow),
    (re.compile(r"-\.-"), LinkType.Dotted),
    (re.compile(r"==>"), LinkType.ThickArrow),
    (re.compile(r"==="), LinkType.Thick),
    (re.compile(r"~~~"), LinkType.Invisible),
]

# Longest start bracket first; equal-length starts keep table order.
_SHAPE_PATTERNS: list[tuple[NodeShape, str, str]] = sorted(
    ((shape, start, end) for shape, (start, end) in SHAPE_BRACKETS.items()),
    key=lambda item: -len(item[1]),
)


def _try_read_link(sc: Scanner, line: int, column: int) -> FlowchartToken | None:
    for pattern, link_type in _LINK_PATTERNS:
        m = pattern.match(sc.src, sc.pos)
        if m:
            sc.advance(m.end() - m.start())
            label = m.group(1).strip() if m.groups() else None
            return FlowchartToken(
                FlowchartTokenType.LINK,
                m.group(0),
                line,
                column,
                link_type=link_type,
                link_label=label or None,
            )
    return None


def _try_read_shape(sc: Scanner) -> tuple[NodeShape, str] | None:
    """Read ``<start>label<end>`` at the cursor.

    Among shapes sharing the longest matching start bracket, the one whose end
    bracket occurs first on the line wins. An unterminated label runs to end of line.
    A double-quoted label is taken verbatim and may contain bracket characters.
    """
    candidates = [c for c in _SHAPE_PATTERNS if sc.startswith(c[1])]
    if not candidates:
        return None
    longest = len(candidates[0][1])
    line_text = sc.rest_of_line()

    if line_text.startswith('"', longest):
        close = line_text.find('"', longest + 1)
        for shape, start, end in candidates:
            if close != -1 and len(start) == longest and line_text.startswith(end, close + 1):
                sc.advance(close + 1 + len(end))
                return shape, line_text[longest + 1 : close]

    best: tuple[int, NodeShape, str, str] | None = None
    for shape, start, end in candidates:
        if len(start) != longest:
            break
        idx = line_text.find(end, len(start))
        if idx != -1 and (best is None or idx < best[0]):
            best = (idx, shape, start, end)

    if best is None:
        shape, start, _ = candidates[0]
        sc.advance(len(start))
        return shape, sc.advance(len(sc.rest_of_line())).strip()

    idx, shape, start, end = best
    sc.advance(len(start))
    label = sc.advance(idx - len(start))
    sc.advance(len(end))
    return shape, label.strip()


def _read_word(sc: Scanner, line: int, column: int) -> FlowchartToken:
    word = sc.read_while(is_identifier_char)
    if word in _KEYWORDS:
        return FlowchartToken(FlowchartTokenType.KEYWORD, word, line, column)
    if word == "subgraph":
        return FlowchartToken(FlowchartTokenType.SUBGRAPH, word, line, column)
    if word == "end":
        return FlowchartToken(FlowchartTokenType.END, word, line, column)
    if word in DIRECTION_NAMES:
        return FlowchartToken(FlowchartTokenType.DIRECTION, word, line, column)

    saved = (sc.pos, sc.line, sc.column)
    sc.skip_whitespace()
    shape = _try_read_shape(sc)
    if shape is not None:
        return FlowchartToken(
            FlowchartTokenType.NODE_TEXT,
            word,
            line,
            column,
            node_shape=shape[0],
            node_label=shape[1],
        )
    sc.pos, sc.line, sc.column = saved
    return FlowchartToken(FlowchartTokenType.IDENTIFIER, word, line, column)


def _next_token(sc: Scanner) -> FlowchartToken | None:
    line, column = sc.line, sc.column
    ch = sc.peek()
    if ch == "\n":
        return FlowchartToken(FlowchartTokenType.NEWLINE, sc.advance(), line, column)
    if ch == "%" and sc.peek(1) == "%":
        return FlowchartToken(FlowchartTokenType.COMMENT, sc.read_comment(), line, column)

    link = _try_read_link(sc, line, column)
    if link is not None:
        return link

    if is_identifier_start(ch):
        return _read_word(sc, line, column)

    # ';' separates statements; anything else unknown is dropped too.
    sc.advance()
    return None


def tokenize(src: str) -> list[FlowchartToken]:
    """Split flowchart text into tokens; unknown characters are skipped, never rejected."""
    sc = Scanner(src)
    tokens: list[FlowchartToken] = []
    while True:
        sc.skip_whitespace(" \t\r")
        if sc.eof():
            break
        token = _next_token(sc)
        if token is not None:
            tokens.append(token)
    tokens.append(FlowchartToken(FlowchartTokenType.EOF, "", sc.line, sc.column))
    return tokens


# ─── Parser ──────────────────────────────────────────────────────────────────

_NODE_TOKENS = (FlowchartTokenType.NODE_TEXT, FlowchartTokenType.IDENTIFIER)


@dataclass
class _FlowchartParser(TokenCursor):
    nodes: dict[str, Node] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)
    direction: Direction = field(default_factory=Direction.default)
    owners: dict[str, Subgraph] = field(default_factory=dict)

    skippable = (FlowchartTokenType.NEWLINE, FlowchartTokenType.COMMENT)
    eof_type = FlowchartTokenType.EOF

    def parse_document(self) -> None:
        self.skip_newlines()
        if self.check(FlowchartTokenType.KEYWORD) and self.current().value in ("flowchart", "graph"):
            self.advance()
            self.skip_newlines()
            if self.check(FlowchartTokenType.DIRECTION):
                self.direction = Direction(self.advance().value)
            self.skip_newlines()

        while not self.at_eof():
            self.skip_newlines()
            if self.at_eof():
                break
            self.parse_statement(None)

    def parse_statement(self, subgraph: Subgraph | None) -> None:
        if self.check(FlowchartTokenType.SUBGRAPH):
            self.parse_subgraph()
        elif self.check(*_NODE_TOKENS):
            self.parse_node_or_edge(subgraph)
        else:
            # stray 'end', direction keywords outside a subgraph, etc.
            skipped = self.advance()
            logger.debug("skipping %s %r at %d:%d", skipped.type.value, skipped.value, skipped.line, skipped.column)

    def parse_node_or_edge(self, subgraph: Subgraph | None) -> None:
        """``node (link node)*``; each link connects the previous node to the next."""
        prev = self.node(self.advance(), subgraph)
        self.skip_newlines()

        while self.check(FlowchartTokenType.LINK):
            link = self.advance()
            self.skip_newlines()
            if not self.check(*_NODE_TOKENS):
                self.error(link, "Expected node after link")
                return
            target = self.node(self.advance(), subgraph)
            self.edges.append(
                Edge(
                    source_node_id=prev.id,
                    target_node_id=target.id,
                    link_type=link.link_type or LinkType.Arrow,
                    label=link.link_label,
                )
            )
            prev = target
            self.skip_newlines()

    def parse_subgraph(self) -> None:
        keyword = self.advance()
        subgraph = Subgraph(label=self.parse_subgraph_title())
        self.subgraphs.append(subgraph)
        self.skip_newlines()

        if self.check(FlowchartTokenType.KEYWORD) and self.current().value == "direction":
            self.advance()
            self.skip_newlines()
            if self.check(FlowchartTokenType.DIRECTION):
                subgraph.direction = Direction(self.advance().value)

        while not self.check(FlowchartTokenType.END, FlowchartTokenType.EOF):
            self.skip_newlines()
            if self.check(FlowchartTokenType.END, FlowchartTokenType.EOF):
                break
            self.parse_statement(subgraph)

        if not self.match(FlowchartTokenType.END):
            logger.debug("subgraph opened at %d:%d closed by end of input", keyword.line, keyword.column)

    def parse_subgraph_title(self) -> str:
        """Title on the ``subgraph`` line: ``id[Title]`` or space-separated words."""
        if self.check(FlowchartTokenType.NODE_TEXT):
            return self.advance().node_label or ""
        words: list[str] = []
        while self.check(FlowchartTokenType.IDENTIFIER):
            words.append(self.advance().value)
        return " ".join(words)

    def node(self, token: FlowchartToken, subgraph: Subgraph | None) -> Node:
        """Get-or-create by bare identifier; a shaped mention overwrites label and shape."""
        node = self.nodes.get(token.value)
        if node is None:
            if token.type == FlowchartTokenType.NODE_TEXT:
                node = Node(label=token.node_label or "", shape=token.node_shape or NodeShape.Rectangle)
            else:
                node = Node(label=token.value)
            self.nodes[token.value] = node
        elif token.type == FlowchartTokenType.NODE_TEXT:
            node.label = token.node_label if token.node_label is not None else node.label
            node.shape = token.node_shape or node.shape

        if subgraph is not None and node.id not in self.owners:
            self.owners[node.id] = subgraph
            subgraph.node_ids.append(node.id)
        return node

    def build_diagram(self) -> FlowchartDiagram:
        nodes = list(self.nodes.values())
        assign_grid_positions(nodes, flowchart_grid(self.direction))
        return FlowchartDiagram(
            direction=self.direction,
            nodes=nodes,
            edges=self.edges,
            subgraphs=self.subgraphs,
        )


class FlowchartParser:
    """Flowchart/graph diagram parser."""

    def parse(self, src: str) -> ParseResult[FlowchartDiagram]:
        tokens = tokenize(src)
        logger.debug("flowchart: %d tokens", len(tokens))
        return _FlowchartParser(tokens=tokens).run()


def parse_flowchart(src: str) -> ParseResult[FlowchartDiagram]:
    """Parse Mermaid flowchart/graph text."""
    return FlowchartParser().parse(src)
