"""parse -> generate -> parse keeps the diagram structure for every dialect."""

import pytest

from mermaid_sync.generators import generate_er, generate_flowchart, generate_sequence
from mermaid_sync.generators.sequence import _collect_events
from mermaid_sync.ir.er import (
    Attribute,
    Cardinality,
    cardinality_from_symbol,
    cardinality_symbol,
    decode_relation_symbol,
    encode_relation_symbol,
)
from mermaid_sync.parsers import parse_er, parse_flowchart, parse_sequence

ER_SOURCE = """erDiagram
    CUSTOMER ||--o{ ORDER : places
    ORDER ||--|{ LINE_ITEM : contains
    CUSTOMER }|..|{ DELIVERY_ADDRESS : "ships to"
    CUSTOMER {
        string name
        string custNumber PK "customer number"
        string email UK
    }
    ORDER {
        int orderNumber PK
        string deliveryAddress FK
    }
    PRODUCT
"""

FLOWCHART_SOURCE = """flowchart LR
    start([Begin]) --> check{Valid?}
    check -->|yes| db[(Store)]
    check -. no .-> err>Reject]
    subgraph Backend Services
        direction TB
        db --> cache[[Cache]]
    end
    err ~~~ start
"""

SEQUENCE_SOURCE = """sequenceDiagram
    participant A as Alice
    actor B as Bob
    A->>B: Hello
    activate B
    loop Every minute
        B-->>A: ping
        Note right of A: thinking
    end
    alt is sick
        B->>A: Not so good
    else is well
        B->>A: Fine
    end
    opt Extra
        A-)B: bye
    end
    deactivate B
    Note over A,B: done
"""


# ─── Structural views (ids and positions dropped) ────────────────────────────


def _er_shape(diagram):
    names = {e.id: e.name for e in diagram.entities}
    entities = {
        e.name: [(a.type, a.name, a.is_primary_key, a.is_foreign_key, a.is_unique, a.is_nullable, a.comment) for a in e.attributes]
        for e in diagram.entities
    }
    relations = [
        (
            names[r.source_entity_id],
            names[r.target_entity_id],
            r.source_cardinality,
            r.target_cardinality,
            r.identifying,
            r.label,
        )
        for r in diagram.relations
    ]
    return entities, relations


def _flowchart_shape(diagram):
    labels = {n.id: n.label for n in diagram.nodes}
    nodes = sorted((n.label, n.shape.value) for n in diagram.nodes)
    edges = sorted(
        (labels[e.source_node_id], labels[e.target_node_id], e.link_type.value, e.label or "") for e in diagram.edges
    )
    subgraphs = [
        (s.label, s.direction, sorted(labels[nid] for nid in s.node_ids)) for s in diagram.subgraphs
    ]
    return diagram.direction, nodes, edges, subgraphs


def _sequence_shape(diagram):
    names = {p.id: p.name for p in diagram.participants}
    return (
        [(p.name, p.kind, p.alias, p.order) for p in diagram.participants],
        [(names[m.source_participant_id], names[m.target_participant_id], m.type, m.label, m.order) for m in diagram.messages],
        [(n.text, n.position, [names[i] for i in n.participant_ids], n.order) for n in diagram.notes],
        [(names[a.participant_id], a.start_order, a.end_order) for a in diagram.activations],
        [(lp.label, lp.start_order, lp.end_order) for lp in diagram.loops],
        [[(c.label, c.start_order, c.end_order) for c in alt.conditions] for alt in diagram.alts],
        [(o.label, o.start_order, o.end_order) for o in diagram.opts],
    )


# ─── Round trips ─────────────────────────────────────────────────────────────


class TestRoundTrip:
    def test_er(self):
        first = parse_er(ER_SOURCE)
        assert first.success
        second = parse_er(generate_er(first.diagram))
        assert second.success
        assert _er_shape(second.diagram) == _er_shape(first.diagram)

    def test_flowchart(self):
        first = parse_flowchart(FLOWCHART_SOURCE)
        assert first.success
        second = parse_flowchart(generate_flowchart(first.diagram))
        assert second.success
        assert _flowchart_shape(second.diagram) == _flowchart_shape(first.diagram)

    def test_sequence(self):
        first = parse_sequence(SEQUENCE_SOURCE)
        assert first.success
        second = parse_sequence(generate_sequence(first.diagram))
        assert second.success
        assert _sequence_shape(second.diagram) == _sequence_shape(first.diagram)

    def test_sequence_quoted_participant_names(self):
        src = (
            "sequenceDiagram\n"
            'participant "Big Bob"\n'
            'actor "end"\n'
            '"Big Bob"->>A: hi\n'
            '"end"-->>"Big Bob": bye\n'
            'Note over "Big Bob",A: wave\n'
            'activate "Big Bob"\n'
            'deactivate "Big Bob"\n'
        )
        first = parse_sequence(src)
        assert [p.name for p in first.diagram.participants] == ["Big Bob", "end", "A"]
        text = generate_sequence(first.diagram)
        assert 'participant "Big Bob"' in text
        assert '"Big Bob"->>A: hi' in text
        assert '"end"-->>"Big Bob": bye' in text
        assert 'activate "Big Bob"' in text
        second = parse_sequence(text)
        assert second.success
        assert _sequence_shape(second.diagram) == _sequence_shape(first.diagram)

    def test_flowchart_inline_label_with_pipe(self):
        first = parse_flowchart("flowchart TD\nA -- a|b --> B\nB -. x|y .-> C\nC == p|q === A")
        assert [e.label for e in first.diagram.edges] == ["a|b", "x|y", "p|q"]
        text = generate_flowchart(first.diagram)
        assert "A -- a|b --> B" in text
        assert "B -. x|y .-> C" in text
        assert "C == p|q === A" in text
        second = parse_flowchart(text)
        assert sorted(n.label for n in second.diagram.nodes) == ["A", "B", "C"]
        assert _flowchart_shape(second.diagram) == _flowchart_shape(first.diagram)

    @pytest.mark.parametrize(
        "parse,generate,src",
        [
            (parse_er, generate_er, ER_SOURCE),
            (parse_flowchart, generate_flowchart, FLOWCHART_SOURCE),
            (parse_sequence, generate_sequence, SEQUENCE_SOURCE),
        ],
    )
    def test_generation_is_idempotent(self, parse, generate, src):
        once = generate(parse(src).diagram)
        twice = generate(parse(once).diagram)
        assert once == twice


class TestSequenceOrdering:
    def test_emitted_order_is_non_decreasing(self):
        diagram = parse_sequence(SEQUENCE_SOURCE).diagram
        keys = {p.id: p.key for p in diagram.participants}
        orders = [e.order for e in _collect_events(diagram, keys)]
        assert orders == sorted(orders)

    def test_parsed_orders_are_unique(self):
        diagram = parse_sequence(SEQUENCE_SOURCE).diagram
        keys = {p.id: p.key for p in diagram.participants}
        orders = [e.order for e in _collect_events(diagram, keys)]
        assert len(orders) == len(set(orders))


class TestCardinalitySymbols:
    @pytest.mark.parametrize("cardinality", list(Cardinality))
    @pytest.mark.parametrize("source", [True, False])
    def test_symbol_round_trip(self, cardinality, source):
        assert cardinality_from_symbol(cardinality_symbol(cardinality, source)) == cardinality

    @pytest.mark.parametrize("source", list(Cardinality))
    @pytest.mark.parametrize("target", list(Cardinality))
    @pytest.mark.parametrize("identifying", [True, False])
    def test_relation_symbol_round_trip(self, source, target, identifying):
        symbol = encode_relation_symbol(source, target, identifying)
        assert decode_relation_symbol(symbol) == (source, target, identifying)

    def test_side_specific_spelling(self):
        assert encode_relation_symbol(Cardinality.ZeroOrOne, Cardinality.ZeroOrMore, True) == "|o--o{"
        assert encode_relation_symbol(Cardinality.OneOrMore, Cardinality.ZeroOrOne, False) == "}|..o|"


class TestAttributeKeys:
    def test_primary_key_never_shows_unique(self):
        attribute = Attribute(name="id", type="int", is_primary_key=True, is_unique=True)
        assert attribute.key_markers() == ["PK"]

    def test_all_markers(self):
        attribute = Attribute(name="ref", type="int", is_foreign_key=True, is_unique=True)
        assert attribute.key_markers() == ["FK", "UK"]
