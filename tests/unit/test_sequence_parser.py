"""Tests for mermaid_sync.parsers.sequence: participants, messages, notes, blocks and ordering."""

import pytest

from mermaid_sync.ir.sequence import MessageType, NotePosition, ParticipantKind
from mermaid_sync.parsers.sequence import SequenceTokenType, parse_sequence, tokenize


def _parse(src: str):
    result = parse_sequence(src)
    assert result.success, result.errors
    return result.diagram


class TestTokenizer:
    def test_longest_arrow_wins(self):
        tokens = tokenize("A-->>B")
        assert tokens[1].type == SequenceTokenType.MESSAGE_ARROW
        assert tokens[1].value == "-->>"
        assert tokens[1].message_type == MessageType.DottedArrow

    def test_keywords(self):
        types = [t.type for t in tokenize("Note left of A")]
        assert types == [
            SequenceTokenType.NOTE,
            SequenceTokenType.LEFT_OF,
            SequenceTokenType.IDENTIFIER,
            SequenceTokenType.IDENTIFIER,
            SequenceTokenType.EOF,
        ]

    def test_cross_arrow_next_to_identifier(self):
        tokens = tokenize("B-xA")
        assert [t.value for t in tokens[:3]] == ["B", "-x", "A"]


class TestMessages:
    def test_two_messages(self):
        diagram = _parse("sequenceDiagram\nAlice->>Bob: Hi\nBob-->>Alice: Hi back")
        alice, bob = diagram.participants
        assert (alice.name, alice.order) == ("Alice", 0)
        assert (bob.name, bob.order) == ("Bob", 1)
        first, second = diagram.messages
        assert first.order == 0
        assert second.order == 1
        assert first.type.value == "solid-arrow"
        assert second.type.value == "dotted-arrow"
        assert first.label == "Hi"
        assert second.label == "Hi back"
        assert first.source_participant_id == alice.id
        assert first.target_participant_id == bob.id

    @pytest.mark.parametrize(
        "arrow,message_type",
        [
            ("->", MessageType.Solid),
            ("-->", MessageType.Dotted),
            ("->>", MessageType.SolidArrow),
            ("-->>", MessageType.DottedArrow),
            ("-x", MessageType.SolidCross),
            ("--x", MessageType.DottedCross),
            ("-)", MessageType.SolidOpen),
            ("--)", MessageType.DottedOpen),
        ],
    )
    def test_arrow_types(self, arrow, message_type):
        diagram = _parse(f"sequenceDiagram\nA{arrow}B: m")
        assert diagram.messages[0].type == message_type

    def test_label_keeps_raw_text(self):
        diagram = _parse("sequenceDiagram\nA->>B: time: 10:30, ok?")
        assert diagram.messages[0].label == "time: 10:30, ok?"

    def test_label_of_untokenized_characters(self):
        diagram = _parse("sequenceDiagram\nA--xB: 401 / 403")
        assert diagram.messages[0].label == "401 / 403"

    def test_message_without_label(self):
        diagram = _parse("sequenceDiagram\nA->>B")
        assert diagram.messages[0].label == ""

    def test_self_message(self):
        diagram = _parse("sequenceDiagram\nA->>A: think")
        assert len(diagram.participants) == 1

    def test_unknown_statement_skipped(self):
        diagram = _parse("sequenceDiagram\nautonumber\nA->>B: x")
        assert [p.name for p in diagram.participants] == ["A", "B"]
        assert len(diagram.messages) == 1


class TestParticipants:
    def test_alias_with_display_name(self):
        diagram = _parse("sequenceDiagram\nparticipant A as Alice Smith\nA->>B: hi")
        a, b = diagram.participants
        assert a.alias == "A"
        assert a.name == "Alice Smith"
        assert a.key == "A"
        assert diagram.messages[0].source_participant_id == a.id
        assert diagram.participant_by_id(diagram.messages[0].target_participant_id) is b
        assert b.order == 1

    def test_actor(self):
        diagram = _parse("sequenceDiagram\nactor User\nparticipant Server")
        user, server = diagram.participants
        assert user.kind == ParticipantKind.Actor
        assert server.kind == ParticipantKind.Participant

    def test_declaration_after_use_keeps_first_seen_order(self):
        diagram = _parse("sequenceDiagram\nA->>B: x\nactor B")
        assert [p.name for p in diagram.participants] == ["A", "B"]
        assert diagram.participants[1].kind == ParticipantKind.Actor
        assert diagram.participants[1].order == 1


class TestNotes:
    def test_note_positions(self):
        src = "sequenceDiagram\nNote left of A: one\nnote right of A: two\nNote over A,B: three"
        diagram = _parse(src)
        left, right, over = diagram.notes
        assert (left.position, left.text) == (NotePosition.LeftOf, "one")
        assert (right.position, right.text) == (NotePosition.RightOf, "two")
        assert over.position == NotePosition.Over
        assert len(over.participant_ids) == 2
        assert [n.order for n in diagram.notes] == [0, 1, 2]

    def test_notes_and_messages_share_counter(self):
        diagram = _parse("sequenceDiagram\nA->>B: hi\nNote over B: hmm\nB->>A: yo")
        assert [m.order for m in diagram.messages] == [0, 2]
        assert diagram.notes[0].order == 1


class TestBlocks:
    def test_loop_alt_orders(self):
        src = (
            "sequenceDiagram\n"
            "loop Every minute\n"
            "    A->>B: ping\n"
            "end\n"
            "alt ok\n"
            "    B->>A: pong\n"
            "else fail\n"
            "    B-xA: err\n"
            "end\n"
        )
        diagram = _parse(src)
        [loop] = diagram.loops
        assert loop.label == "Every minute"
        assert (loop.start_order, loop.end_order) == (0, 2)
        [alt] = diagram.alts
        ok, fail = alt.conditions
        assert (ok.label, ok.start_order, ok.end_order) == ("ok", 3, 5)
        assert (fail.label, fail.start_order, fail.end_order) == ("fail", 5, 7)
        assert [m.order for m in diagram.messages] == [1, 4, 6]

    def test_opt(self):
        diagram = _parse("sequenceDiagram\nopt maybe\nA->>B: x\nend")
        [opt] = diagram.opts
        assert opt.label == "maybe"
        assert opt.start_order < diagram.messages[0].order < opt.end_order

    def test_nested_blocks(self):
        src = "sequenceDiagram\nloop outer\nopt inner\nA->>B: x\nend\nend"
        diagram = _parse(src)
        loop, opt = diagram.loops[0], diagram.opts[0]
        assert loop.start_order < opt.start_order < opt.end_order < loop.end_order

    def test_unterminated_block_closed_at_eof(self):
        diagram = _parse("sequenceDiagram\nloop forever\nA->>B: x")
        loop = diagram.loops[0]
        assert loop.end_order > diagram.messages[0].order

    def test_stray_end_and_else_are_skipped(self):
        diagram = _parse("sequenceDiagram\nend\nelse nothing\nA->>B: x")
        assert diagram.loops == []
        assert len(diagram.messages) == 1


class TestActivations:
    def test_activate_deactivate(self):
        src = "sequenceDiagram\nA->>B: hi\nactivate B\nB-->>A: back\ndeactivate B"
        diagram = _parse(src)
        [activation] = diagram.activations
        assert activation.participant_id == diagram.participants[1].id
        assert (activation.start_order, activation.end_order) == (1, 3)
        assert not activation.is_open

    def test_open_activation_has_no_end(self):
        diagram = _parse("sequenceDiagram\nactivate A")
        assert diagram.activations[0].end_order is None
        assert diagram.activations[0].is_open

    def test_deactivate_closes_most_recent(self):
        diagram = _parse("sequenceDiagram\nactivate A\nactivate A\ndeactivate A")
        outer, inner = diagram.activations
        assert outer.is_open
        assert inner.end_order == 2


class TestErrors:
    def test_participant_without_name(self):
        result = parse_sequence("sequenceDiagram\nparticipant\n")
        assert not result.success
        assert result.errors[0].message == "Expected identifier after participant"
        assert result.errors[0].line == 2

    def test_arrow_without_target(self):
        result = parse_sequence("sequenceDiagram\nA->>\n")
        assert not result.success
        assert result.errors[0].message == "Expected target participant after arrow"
        assert (result.errors[0].line, result.errors[0].column) == (2, 2)

    def test_note_without_participant(self):
        result = parse_sequence("sequenceDiagram\nNote over: lonely")
        assert not result.success
        assert result.errors[0].message == "Expected participant after note position"

    def test_activate_without_participant(self):
        result = parse_sequence("sequenceDiagram\nactivate\n")
        assert not result.success
        assert result.errors[0].message == "Expected participant after activate"
