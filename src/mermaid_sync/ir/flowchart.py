"""Flowchart diagram model.

Enums (Direction, NodeShape, LinkType) and dataclasses (FlowchartDiagram, Node, Edge, Subgraph).
Subgraph membership is a flat list of node ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mermaid_sync.types import Position, new_id


class Direction(Enum):
    TB = "TB"
    TD = "TD"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @classmethod
    def default(cls) -> Direction:
        return cls.TD

    @property
    def is_top_down(self) -> bool:
        return self in (Direction.TB, Direction.TD)


class NodeShape(Enum):
    Rectangle = "rectangle"  # id[Label]
    Rounded = "rounded"  # id(Label)
    Stadium = "stadium"  # id([Label])
    Subroutine = "subroutine"  # id[[Label]]
    Cylinder = "cylinder"  # id[(Label)]
    Circle = "circle"  # id((Label))
    DoubleCircle = "double-circle"  # id(((Label)))
    Asymmetric = "asymmetric"  # id>Label]
    Rhombus = "rhombus"  # id{Label}
    Hexagon = "hexagon"  # id{{Label}}
    Parallelogram = "parallelogram"  # id[/Label/]
    ParallelogramAlt = "parallelogram-alt"  # id[\Label\]
    Trapezoid = "trapezoid"  # id[/Label\]
    TrapezoidAlt = "trapezoid-alt"  # id[\Label/]

    @classmethod
    def default(cls) -> NodeShape:
        return cls.Rectangle


class LinkType(Enum):
    Arrow = "arrow"  # -->
    Open = "open"  # ---
    Dotted = "dotted"  # -.-
    DottedArrow = "dotted-arrow"  # -.->
    Thick = "thick"  # ===
    ThickArrow = "thick-arrow"  # ==>
    Invisible = "invisible"  # ~~~

    @classmethod
    def default(cls) -> LinkType:
        return cls.Arrow


# Start/end bracket pairs; each shape owns a distinct pair.
SHAPE_BRACKETS: dict[NodeShape, tuple[str, str]] = {
    NodeShape.Rectangle: ("[", "]"),
    NodeShape.Rounded: ("(", ")"),
    NodeShape.Stadium: ("([", "])"),
    NodeShape.Subroutine: ("[[", "]]"),
    NodeShape.Cylinder: ("[(", ")]"),
    NodeShape.Circle: ("((", "))"),
    NodeShape.DoubleCircle: ("(((", ")))"),
    NodeShape.Asymmetric: (">", "]"),
    NodeShape.Rhombus: ("{", "}"),
    NodeShape.Hexagon: ("{{", "}}"),
    NodeShape.Parallelogram: ("[/", "/]"),
    NodeShape.ParallelogramAlt: ("[\\", "\\]"),
    NodeShape.Trapezoid: ("[/", "\\]"),
    NodeShape.TrapezoidAlt: ("[\\", "/]"),
}

LINK_SYMBOLS: dict[LinkType, str] = {
    LinkType.Arrow: "-->",
    LinkType.Open: "---",
    LinkType.Dotted: "-.-",
    LinkType.DottedArrow: "-.->",
    LinkType.Thick: "===",
    LinkType.ThickArrow: "==>",
    LinkType.Invisible: "~~~",
}


@dataclass
class Node:
    label: str
    shape: NodeShape = field(default_factory=NodeShape.default)
    position: Position = field(default_factory=Position)
    id: str = field(default_factory=new_id)


@dataclass
class Edge:
    source_node_id: str
    target_node_id: str
    link_type: LinkType = field(default_factory=LinkType.default)
    label: str | None = None
    id: str = field(default_factory=new_id)


@dataclass
class Subgraph:
    label: str
    node_ids: list[str] = field(default_factory=list)
    direction: Direction | None = None
    id: str = field(default_factory=new_id)


@dataclass
class FlowchartDiagram:
    direction: Direction = field(default_factory=Direction.default)
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)

    def node_by_id(self, node_id: str) -> Node | None:
        return next((n for n in self.nodes if n.id == node_id), None)


# Words the tokenizer reads as keywords; never usable as node ids.
RESERVED_WORDS: frozenset[str] = frozenset(
    {"flowchart", "graph", "direction", "subgraph", "end"} | {d.value for d in Direction}
)
