"""Sequence diagram model.

Every message, note, block boundary and activation marker carries an ``order`` drawn from
one shared counter; that counter is the only source of vertical sequencing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mermaid_sync.types import new_id


class ParticipantKind(Enum):
    Participant = "participant"
    Actor = "actor"


class MessageType(Enum):
    Solid = "solid"  # ->
    Dotted = "dotted"  # -->
    SolidArrow = "solid-arrow"  # ->>
    DottedArrow = "dotted-arrow"  # -->>
    SolidCross = "solid-cross"  # -x
    DottedCross = "dotted-cross"  # --x
    SolidOpen = "solid-open"  # -)
    DottedOpen = "dotted-open"  # --)

    @classmethod
    def default(cls) -> MessageType:
        return cls.SolidArrow


class NotePosition(Enum):
    LeftOf = "left of"
    RightOf = "right of"
    Over = "over"


ARROW_SYMBOLS: dict[MessageType, str] = {
    MessageType.Solid: "->",
    MessageType.Dotted: "-->",
    MessageType.SolidArrow: "->>",
    MessageType.DottedArrow: "-->>",
    MessageType.SolidCross: "-x",
    MessageType.DottedCross: "--x",
    MessageType.SolidOpen: "-)",
    MessageType.DottedOpen: "--)",
}

# Words the tokenizer reads as keywords; a participant key spelled like one must be quoted.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "sequenceDiagram", "participant", "actor", "Note", "note", "over", "left", "right",
        "loop", "alt", "else", "opt", "end", "activate", "deactivate", "as",
    }
)


@dataclass
class Participant:
    name: str
    kind: ParticipantKind = ParticipantKind.Participant
    alias: str | None = None
    order: int = 0
    id: str = field(default_factory=new_id)

    @property
    def key(self) -> str:
        """The identifier used to reference this participant in text."""
        return self.alias if self.alias else self.name


@dataclass
class Message:
    source_participant_id: str
    target_participant_id: str
    type: MessageType = field(default_factory=MessageType.default)
    label: str = ""
    order: int = 0
    id: str = field(default_factory=new_id)


@dataclass
class Note:
    text: str
    position: NotePosition = NotePosition.Over
    participant_ids: list[str] = field(default_factory=list)
    order: int = 0
    id: str = field(default_factory=new_id)


@dataclass
class Activation:
    participant_id: str
    start_order: int
    end_order: int | None = None
    id: str = field(default_factory=new_id)

    @property
    def is_open(self) -> bool:
        return self.end_order is None


@dataclass
class Loop:
    label: str
    start_order: int
    end_order: int
    id: str = field(default_factory=new_id)


@dataclass
class Opt:
    label: str
    start_order: int
    end_order: int
    id: str = field(default_factory=new_id)


@dataclass
class AltCondition:
    label: str
    start_order: int
    end_order: int


@dataclass
class Alt:
    conditions: list[AltCondition] = field(default_factory=list)
    id: str = field(default_factory=new_id)


@dataclass
class SequenceDiagram:
    participants: list[Participant] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    activations: list[Activation] = field(default_factory=list)
    loops: list[Loop] = field(default_factory=list)
    alts: list[Alt] = field(default_factory=list)
    opts: list[Opt] = field(default_factory=list)

    def participant_by_id(self, participant_id: str) -> Participant | None:
        return next((p for p in self.participants if p.id == participant_id), None)
