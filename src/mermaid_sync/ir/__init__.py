"""Diagram models for the three dialects, plus a networkx graph view."""

from mermaid_sync.ir.er import Attribute, Cardinality, Entity, ErDiagram, Relation
from mermaid_sync.ir.flowchart import Direction, Edge, FlowchartDiagram, LinkType, Node, NodeShape, Subgraph
from mermaid_sync.ir.graph import EdgeData, GraphIR, NodeData
from mermaid_sync.ir.sequence import (
    Activation,
    Alt,
    AltCondition,
    Loop,
    Message,
    MessageType,
    Note,
    NotePosition,
    Opt,
    Participant,
    ParticipantKind,
    SequenceDiagram,
)

__all__ = [
    "Activation",
    "Alt",
    "AltCondition",
    "Attribute",
    "Cardinality",
    "Direction",
    "Edge",
    "EdgeData",
    "Entity",
    "ErDiagram",
    "FlowchartDiagram",
    "GraphIR",
    "LinkType",
    "Loop",
    "Message",
    "MessageType",
    "Node",
    "NodeData",
    "NodeShape",
    "Note",
    "NotePosition",
    "Opt",
    "Participant",
    "ParticipantKind",
    "Relation",
    "SequenceDiagram",
    "Subgraph",
]
