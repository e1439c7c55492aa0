"""Graph IR — views any diagram as a networkx DiGraph for topology queries.

Flowchart nodes, ER entities and sequence participants become graph nodes keyed by
their model id; edges, relations and messages become graph edges. Dangling
references are skipped, mirroring what the generators emit.
"""

from __future__ import annotations

from dataclasses import dataclass

import networkx as nx

from mermaid_sync.ir.er import ErDiagram
from mermaid_sync.ir.flowchart import FlowchartDiagram
from mermaid_sync.ir.sequence import SequenceDiagram


@dataclass
class NodeData:
    id: str
    label: str
    group: str | None = None


@dataclass
class EdgeData:
    kind: str
    label: str | None


class GraphIR:
    """A networkx-backed view of a diagram.

    Parallel edges between the same pair of nodes (repeated messages, duplicate
    relations) collapse into one graph edge; ``edge_count`` counts graph edges.
    """

    def __init__(self, digraph: nx.DiGraph, kind: str) -> None:
        self.digraph = digraph
        self.kind = kind

    @classmethod
    def from_flowchart(cls, diagram: FlowchartDiagram) -> GraphIR:
        digraph: nx.DiGraph = nx.DiGraph()
        membership: dict[str, str] = {}
        for sg in diagram.subgraphs:
            for node_id in sg.node_ids:
                membership.setdefault(node_id, sg.label)
        for node in diagram.nodes:
            digraph.add_node(node.id, data=NodeData(node.id, node.label, membership.get(node.id)))
        for edge in diagram.edges:
            if edge.source_node_id in digraph and edge.target_node_id in digraph:
                digraph.add_edge(
                    edge.source_node_id,
                    edge.target_node_id,
                    data=EdgeData(edge.link_type.value, edge.label),
                )
        return cls(digraph, "flowchart")

    @classmethod
    def from_er(cls, diagram: ErDiagram) -> GraphIR:
        digraph: nx.DiGraph = nx.DiGraph()
        for entity in diagram.entities:
            digraph.add_node(entity.id, data=NodeData(entity.id, entity.name))
        for rel in diagram.relations:
            if rel.source_entity_id in digraph and rel.target_entity_id in digraph:
                kind = "identifying" if rel.identifying else "non-identifying"
                digraph.add_edge(rel.source_entity_id, rel.target_entity_id, data=EdgeData(kind, rel.label))
        return cls(digraph, "er")

    @classmethod
    def from_sequence(cls, diagram: SequenceDiagram) -> GraphIR:
        digraph: nx.DiGraph = nx.DiGraph()
        for p in sorted(diagram.participants, key=lambda p: p.order):
            digraph.add_node(p.id, data=NodeData(p.id, p.name, p.kind.value))
        for msg in sorted(diagram.messages, key=lambda m: m.order):
            if msg.source_participant_id in digraph and msg.target_participant_id in digraph:
                digraph.add_edge(
                    msg.source_participant_id,
                    msg.target_participant_id,
                    data=EdgeData(msg.type.value, msg.label),
                )
        return cls(digraph, "sequence")

    @classmethod
    def from_diagram(cls, diagram: object) -> GraphIR:
        if isinstance(diagram, ErDiagram):
            return cls.from_er(diagram)
        if isinstance(diagram, FlowchartDiagram):
            return cls.from_flowchart(diagram)
        if isinstance(diagram, SequenceDiagram):
            return cls.from_sequence(diagram)
        raise TypeError(f"Unsupported diagram type: {type(diagram).__name__}")

    def label(self, node_id: str) -> str:
        return self.digraph.nodes[node_id]["data"].label

    def is_dag(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    def topological_order(self) -> list[str] | None:
        """Node labels in topological order, or None when the graph has a cycle."""
        try:
            return [self.label(n) for n in nx.topological_sort(self.digraph)]
        except nx.NetworkXUnfeasible:
            return None

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def in_degree(self, node_id: str) -> int:
        if node_id not in self.digraph:
            return 0
        return self.digraph.in_degree(node_id)

    def out_degree(self, node_id: str) -> int:
        if node_id not in self.digraph:
            return 0
        return self.digraph.out_degree(node_id)

    def isolated(self) -> list[str]:
        """Labels of nodes with no incoming or outgoing edges, in insertion order."""
        return [self.label(n) for n in nx.isolates(self.digraph)]

    def adjacency_list(self) -> list[tuple[str, list[str]]]:
        result: list[tuple[str, list[str]]] = []
        for node_id in self.digraph.nodes:
            neighbors = sorted(self.label(n) for n in self.digraph.successors(node_id))
            result.append((self.label(node_id), neighbors))
        result.sort(key=lambda x: x[0])
        return result
