"""Sequence diagram parser — hand-rolled recursive descent.

Parses Mermaid ``sequenceDiagram`` text into the model types from ir.sequence.

One counter is threaded through the whole parse. Messages, notes, block
boundaries (``loop``/``alt``/``else``/``opt``/``end``) and activation markers
each take the next value, so the parsed diagram has a strict total order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

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


class SequenceTokenType(Enum):
    KEYWORD = "KEYWORD"  # sequenceDiagram
    PARTICIPANT = "PARTICIPANT"
    ACTOR = "ACTOR"
    MESSAGE_ARROW = "MESSAGE_ARROW"
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    COLON = "COLON"
    COMMA = "COMMA"
    NOTE = "NOTE"
    OVER = "OVER"
    LEFT_OF = "LEFT_OF"
    RIGHT_OF = "RIGHT_OF"
    LOOP = "LOOP"
    ALT = "ALT"
    ELSE = "ELSE"
    OPT = "OPT"
    END = "END"
    ACTIVATE = "ACTIVATE"
    DEACTIVATE = "DEACTIVATE"
    AS = "AS"
    NEWLINE = "NEWLINE"
    COMMENT = "COMMENT"
    EOF = "EOF"


@dataclass
class SequenceToken(Token):
    message_type: MessageType | None = None


# Longest first: '-->>' must win over '-->' and '->>'.
_ARROW_PATTERNS: list[tuple[str, MessageType]] = [
    ("-->>", MessageType.DottedArrow),
    ("--)", MessageType.DottedOpen),
    ("--x", MessageType.DottedCross),
    ("->>", MessageType.SolidArrow),
    ("-)", MessageType.SolidOpen),
    ("-x", MessageType.SolidCross),
    ("-->", MessageType.Dotted),
    ("->", MessageType.Solid),
]

# "of" stays an identifier; the note parser consumes it after left/right.
_KEYWORDS: dict[str, SequenceTokenType] = {
    "sequenceDiagram": SequenceTokenType.KEYWORD,
    "participant": SequenceTokenType.PARTICIPANT,
    "actor": SequenceTokenType.ACTOR,
    "Note": SequenceTokenType.NOTE,
    "note": SequenceTokenType.NOTE,
    "over": SequenceTokenType.OVER,
    "left": SequenceTokenType.LEFT_OF,
    "right": SequenceTokenType.RIGHT_OF,
    "loop": SequenceTokenType.LOOP,
    "alt": SequenceTokenType.ALT,
    "else": SequenceTokenType.ELSE,
    "opt": SequenceTokenType.OPT,
    "end": SequenceTokenType.END,
    "activate": SequenceTokenType.ACTIVATE,
    "deactivate": SequenceTokenType.DEACTIVATE,
    "as": SequenceTokenType.AS,
}

_SINGLE_CHAR_TOKENS: dict[str, SequenceTokenType] = {
    "\n": SequenceTokenType.NEWLINE,
    ":": SequenceTokenType.COLON,
    ",": SequenceTokenType.COMMA,
}


def _next_token(sc: Scanner) -> SequenceToken | None:
    line, column = sc.line, sc.column
    ch = sc.peek()
    if ch in _SINGLE_CHAR_TOKENS:
        return SequenceToken(_SINGLE_CHAR_TOKENS[ch], sc.advance(), line, column)
    if ch == "%" and sc.peek(1) == "%":
        return SequenceToken(SequenceTokenType.COMMENT, sc.read_comment(), line, column)

    for pattern, message_type in _ARROW_PATTERNS:
        if sc.startswith(pattern):
            sc.advance(len(pattern))
            return SequenceToken(SequenceTokenType.MESSAGE_ARROW, pattern, line, column, message_type=message_type)

    if ch == '"':
        return SequenceToken(SequenceTokenType.STRING, sc.read_string(), line, column)

    if is_identifier_start(ch):
        word = sc.read_while(is_identifier_char)
        return SequenceToken(_KEYWORDS.get(word, SequenceTokenType.IDENTIFIER), word, line, column)

    sc.advance()
    return None


def tokenize(src: str) -> list[SequenceToken]:
    """Split sequence text into tokens; unknown characters are skipped, never rejected."""
    sc = Scanner(src)
    tokens: list[SequenceToken] = []
    while True:
        sc.skip_whitespace(" \t\r")
        if sc.eof():
            break
        token = _next_token(sc)
        if token is not None:
            tokens.append(token)
    tokens.append(SequenceToken(SequenceTokenType.EOF, "", sc.line, sc.column))
    return tokens


# ─── Parser ──────────────────────────────────────────────────────────────────

_LINE_END = (SequenceTokenType.NEWLINE, SequenceTokenType.EOF)
_NAME_TOKENS = (SequenceTokenType.IDENTIFIER, SequenceTokenType.STRING)


@dataclass
class _SequenceParser(TokenCursor):
    lines: list[str] = field(default_factory=list)
    participants: dict[str, Participant] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    activations: list[Activation] = field(default_factory=list)
    loops: list[Loop] = field(default_factory=list)
    alts: list[Alt] = field(default_factory=list)
    opts: list[Opt] = field(default_factory=list)
    counter: int = 0

    skippable = (SequenceTokenType.NEWLINE, SequenceTokenType.COMMENT)
    eof_type = SequenceTokenType.EOF

    # ── Helpers ───────────────────────────────────────────────────────────────

    def next_order(self) -> int:
        # Block boundaries and activation markers consume a value too, so parsed orders never tie.
        order = self.counter
        self.counter += 1
        return order

    def peek_type(self, offset: int) -> SequenceTokenType:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx].type

    def skip_line(self) -> None:
        while not self.check(*_LINE_END):
            self.advance()

    def rest_of_line(self, anchor: Token) -> str:
        """Consume the rest of the line and return the raw source text after ``anchor``."""
        text = self.lines[anchor.line - 1]
        end = len(text)
        while not self.check(*_LINE_END):
            token = self.advance()
            if token.type == SequenceTokenType.COMMENT:
                end = min(end, token.column - 1)
        return text[anchor.column - 1 + len(anchor.value) : end].strip()

    def participant(self, key: str) -> Participant:
        """Get-or-create by the identifier used in text (alias when declared with one)."""
        participant = self.participants.get(key)
        if participant is None:
            participant = Participant(name=key, order=len(self.participants))
            self.participants[key] = participant
        return participant

    # ── Statements ────────────────────────────────────────────────────────────

    def parse_document(self) -> None:
        self.skip_newlines()
        if self.check(SequenceTokenType.KEYWORD) and self.current().value == "sequenceDiagram":
            self.advance()
        self.parse_body(())

    def parse_body(self, stop: tuple[SequenceTokenType, ...]) -> None:
        """Parse statements until one of ``stop`` (left unconsumed) or end of input."""
        self.skip_newlines()
        while not self.check(*stop, SequenceTokenType.EOF):
            self.parse_statement()
            self.skip_newlines()

    def parse_statement(self) -> None:
        token_type = self.current().type
        if token_type == SequenceTokenType.PARTICIPANT:
            self.parse_participant(ParticipantKind.Participant)
        elif token_type == SequenceTokenType.ACTOR:
            self.parse_participant(ParticipantKind.Actor)
        elif token_type == SequenceTokenType.NOTE:
            self.parse_note()
        elif token_type == SequenceTokenType.LOOP:
            self.parse_loop()
        elif token_type == SequenceTokenType.OPT:
            self.parse_opt()
        elif token_type == SequenceTokenType.ALT:
            self.parse_alt()
        elif token_type == SequenceTokenType.ACTIVATE:
            self.parse_activate()
        elif token_type == SequenceTokenType.DEACTIVATE:
            self.parse_deactivate()
        elif token_type in _NAME_TOKENS:
            self.parse_message()
        else:
            skipped = self.current()
            logger.debug("skipping line at %d:%d (%s)", skipped.line, skipped.column, skipped.type.value)
            self.skip_line()

    def parse_participant(self, kind: ParticipantKind) -> None:
        keyword = self.advance()
        if not self.check(*_NAME_TOKENS):
            self.error(self.current(), f"Expected identifier after {keyword.value}")
            return
        key = self.advance().value
        display = key
        alias: str | None = None

        if self.check(SequenceTokenType.AS):
            as_token = self.advance()
            if self.check(SequenceTokenType.STRING) and self.peek_type(1) in _LINE_END:
                named = self.advance().value
            else:
                named = self.rest_of_line(as_token)
            if named:
                alias, display = key, named

        participant = self.participant(key)
        participant.kind = kind
        participant.name = display
        participant.alias = alias

    def parse_message(self) -> None:
        if self.peek_type(1) != SequenceTokenType.MESSAGE_ARROW:
            skipped = self.current()
            logger.debug("no arrow after %r at %d:%d; skipping line", skipped.value, skipped.line, skipped.column)
            self.skip_line()
            return

        source_token = self.advance()
        arrow = self.advance()
        if not self.check(*_NAME_TOKENS):
            self.error(arrow, "Expected target participant after arrow")
            return
        target_token = self.advance()

        label = ""
        if self.check(SequenceTokenType.COLON):
            label = self.rest_of_line(self.advance())

        source = self.participant(source_token.value)
        target = self.participant(target_token.value)
        self.messages.append(
            Message(
                source_participant_id=source.id,
                target_participant_id=target.id,
                type=arrow.message_type or MessageType.Solid,
                label=label,
                order=self.next_order(),
            )
        )

    def parse_note(self) -> None:
        note_token = self.advance()
        position = NotePosition.Over
        if self.match(SequenceTokenType.LEFT_OF):
            position = NotePosition.LeftOf
        elif self.match(SequenceTokenType.RIGHT_OF):
            position = NotePosition.RightOf
        else:
            self.match(SequenceTokenType.OVER)
        if position != NotePosition.Over and self.check(SequenceTokenType.IDENTIFIER) and self.current().value == "of":
            self.advance()

        participant_ids: list[str] = []
        while self.check(*_NAME_TOKENS):
            participant_ids.append(self.participant(self.advance().value).id)
            if not self.match(SequenceTokenType.COMMA):
                break
        if not participant_ids:
            self.error(note_token, "Expected participant after note position")
            return

        text = ""
        if self.check(SequenceTokenType.COLON):
            text = self.rest_of_line(self.advance())

        self.notes.append(
            Note(
                text=text,
                position=position,
                participant_ids=participant_ids,
                order=self.next_order(),
            )
        )

    def close_block(self, opener: Token) -> int:
        if not self.match(SequenceTokenType.END):
            logger.debug("%s opened at %d:%d closed by end of input", opener.value, opener.line, opener.column)
        return self.next_order()

    def parse_loop(self) -> None:
        opener = self.advance()
        loop = Loop(label=self.rest_of_line(opener), start_order=self.next_order(), end_order=-1)
        self.loops.append(loop)
        self.parse_body((SequenceTokenType.END,))
        loop.end_order = self.close_block(opener)

    def parse_opt(self) -> None:
        opener = self.advance()
        opt = Opt(label=self.rest_of_line(opener), start_order=self.next_order(), end_order=-1)
        self.opts.append(opt)
        self.parse_body((SequenceTokenType.END,))
        opt.end_order = self.close_block(opener)

    def parse_alt(self) -> None:
        """``alt LABEL ... (else LABEL ...)* end``. Each branch ends where the next begins."""
        opener = self.advance()
        alt = Alt()
        self.alts.append(alt)
        branch = AltCondition(label=self.rest_of_line(opener), start_order=self.next_order(), end_order=-1)
        alt.conditions.append(branch)
        self.parse_body((SequenceTokenType.ELSE, SequenceTokenType.END))

        while self.check(SequenceTokenType.ELSE):
            label = self.rest_of_line(self.advance())
            boundary = self.next_order()
            branch.end_order = boundary
            branch = AltCondition(label=label, start_order=boundary, end_order=-1)
            alt.conditions.append(branch)
            self.parse_body((SequenceTokenType.ELSE, SequenceTokenType.END))

        branch.end_order = self.close_block(opener)

    def parse_activate(self) -> None:
        keyword = self.advance()
        if not self.check(*_NAME_TOKENS):
            self.error(keyword, "Expected participant after activate")
            return
        participant = self.participant(self.advance().value)
        self.activations.append(Activation(participant_id=participant.id, start_order=self.next_order()))

    def parse_deactivate(self) -> None:
        keyword = self.advance()
        if not self.check(*_NAME_TOKENS):
            self.error(keyword, "Expected participant after deactivate")
            return
        participant = self.participant(self.advance().value)
        for activation in reversed(self.activations):
            if activation.participant_id == participant.id and activation.is_open:
                activation.end_order = self.next_order()
                return
        logger.debug("deactivate %r without a matching activate", participant.name)

    def build_diagram(self) -> SequenceDiagram:
        return SequenceDiagram(
            participants=sorted(self.participants.values(), key=lambda p: p.order),
            messages=self.messages,
            notes=self.notes,
            activations=self.activations,
            loops=self.loops,
            alts=self.alts,
            opts=self.opts,
        )


class SequenceParser:
    """Sequence diagram parser."""

    def parse(self, src: str) -> ParseResult[SequenceDiagram]:
        tokens = tokenize(src)
        logger.debug("sequence: %d tokens", len(tokens))
        return _SequenceParser(tokens=tokens, lines=src.split("\n")).run()


def parse_sequence(src: str) -> ParseResult[SequenceDiagram]:
    """Parse Mermaid ``sequenceDiagram`` text."""
    return SequenceParser().parse(src)
