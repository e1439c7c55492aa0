"""Tests for mermaid_sync.ir.graph — GraphIR construction, cycle detection, and degree queries."""

import pytest

from mermaid_sync.ir.er import Entity, ErDiagram, Relation
from mermaid_sync.ir.flowchart import Edge, FlowchartDiagram, LinkType, Node, Subgraph
from mermaid_sync.ir.graph import EdgeData, GraphIR, NodeData
from mermaid_sync.ir.sequence import Message, Participant, SequenceDiagram
from mermaid_sync.parsers import parse_flowchart


def _flowchart(src: str) -> GraphIR:
    return GraphIR.from_flowchart(parse_flowchart(src).diagram)


class TestBasicConstruction:
    def test_empty_graph(self):
        g = GraphIR.from_flowchart(FlowchartDiagram())
        assert g.node_count() == 0
        assert g.edge_count() == 0
        assert g.kind == "flowchart"

    def test_nodes_and_edges(self):
        g = _flowchart("graph TD\nA --> B --> C")
        assert g.node_count() == 3
        assert g.edge_count() == 2

    def test_node_data(self):
        a = Node(label="Start")
        g = GraphIR.from_flowchart(FlowchartDiagram(nodes=[a]))
        data = g.digraph.nodes[a.id]["data"]
        assert isinstance(data, NodeData)
        assert data.label == "Start"
        assert data.group is None

    def test_edge_data(self):
        a, b = Node(label="a"), Node(label="b")
        g = GraphIR.from_flowchart(FlowchartDiagram(nodes=[a, b], edges=[Edge(a.id, b.id, LinkType.Dotted, "l")]))
        data = g.digraph.edges[a.id, b.id]["data"]
        assert data == EdgeData("dotted", "l")

    def test_subgraph_group(self):
        a = Node(label="a")
        g = GraphIR.from_flowchart(FlowchartDiagram(nodes=[a], subgraphs=[Subgraph(label="G", node_ids=[a.id])]))
        assert g.digraph.nodes[a.id]["data"].group == "G"

    def test_dangling_edge_skipped(self):
        a = Node(label="a")
        g = GraphIR.from_flowchart(FlowchartDiagram(nodes=[a], edges=[Edge(a.id, "ghost")]))
        assert g.edge_count() == 0
        assert g.node_count() == 1


class TestCycles:
    def test_dag(self):
        g = _flowchart("graph TD\nA --> B\nA --> C\nB --> D\nC --> D")
        assert g.is_dag()
        order = g.topological_order()
        assert order[0] == "A"
        assert order[-1] == "D"

    def test_cycle(self):
        g = _flowchart("graph TD\nA --> B --> C --> A")
        assert not g.is_dag()
        assert g.topological_order() is None

    def test_self_loop(self):
        assert not _flowchart("graph TD\nA --> A").is_dag()


class TestDegrees:
    def test_in_out_degree(self):
        diagram = parse_flowchart("graph TD\nA --> B\nA --> C\nB --> C").diagram
        g = GraphIR.from_flowchart(diagram)
        a, b, c = (n.id for n in diagram.nodes)
        assert (g.in_degree(a), g.out_degree(a)) == (0, 2)
        assert (g.in_degree(c), g.out_degree(c)) == (2, 0)
        assert g.in_degree("missing") == 0
        assert g.out_degree("missing") == 0

    def test_isolated(self):
        g = _flowchart("graph TD\nA --> B\nC\nD")
        assert g.isolated() == ["C", "D"]

    def test_adjacency_list(self):
        g = _flowchart("graph TD\nB --> C\nA --> C\nA --> B")
        assert g.adjacency_list() == [("A", ["B", "C"]), ("B", ["C"]), ("C", [])]


class TestOtherDialects:
    def test_er(self):
        a, b = Entity(name="A"), Entity(name="B")
        diagram = ErDiagram(entities=[a, b], relations=[Relation(a.id, b.id, identifying=False, label="has")])
        g = GraphIR.from_er(diagram)
        assert g.kind == "er"
        assert g.edge_count() == 1
        assert g.digraph.edges[a.id, b.id]["data"] == EdgeData("non-identifying", "has")

    def test_sequence_parallel_messages_collapse(self):
        a, b = Participant(name="A", order=0), Participant(name="B", order=1)
        diagram = SequenceDiagram(
            participants=[a, b],
            messages=[Message(a.id, b.id, order=0), Message(a.id, b.id, order=1), Message(b.id, a.id, order=2)],
        )
        g = GraphIR.from_sequence(diagram)
        assert g.node_count() == 2
        assert g.edge_count() == 2
        assert not g.is_dag()

    def test_from_diagram_dispatch(self):
        assert GraphIR.from_diagram(ErDiagram()).kind == "er"
        assert GraphIR.from_diagram(SequenceDiagram()).kind == "sequence"
        with pytest.raises(TypeError):
            GraphIR.from_diagram("not a diagram")
