"""Sequence diagram generator.

Participants come first, sorted by ``order``. Every other element becomes one
or more events keyed by ``(order, priority)``; events are sorted on that key
and emitted with block bodies indented one level per nesting depth.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import IntEnum

from mermaid_sync.config import DEFAULT_OPTIONS, GeneratorOptions
from mermaid_sync.ir.sequence import (
    ARROW_SYMBOLS,
    RESERVED_WORDS,
    Message,
    Note,
    Participant,
    SequenceDiagram,
)

logger = logging.getLogger(__name__)

_BARE_KEY = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class _Priority(IntEnum):
    """Tie-break for events that share an order value."""

    BlockOpen = 0
    Branch = 1
    Marker = 2
    Leaf = 3
    BlockClose = 4


@dataclass
class _Event:
    order: int
    priority: _Priority
    text: str
    # opens: wider blocks first; closes: inner blocks first
    span: int = 0

    def sort_key(self) -> tuple[int, int, int]:
        return (self.order, self.priority, self.span)


def _format_key(key: str) -> str:
    """Participant reference as written in text; quoted unless it reads back as one identifier."""
    if _BARE_KEY.fullmatch(key) and key not in RESERVED_WORDS:
        return key
    return f'"{key}"'


def _participant_line(participant: Participant, options: GeneratorOptions) -> str:
    line = f"{options.indent()}{participant.kind.value} {_format_key(participant.key)}"
    if participant.alias and participant.alias != participant.name:
        line += f" as {participant.name}"
    return line


def _message_text(message: Message, keys: dict[str, str]) -> str | None:
    source = keys.get(message.source_participant_id)
    target = keys.get(message.target_participant_id)
    if source is None or target is None:
        logger.debug("dropping message %s with unresolved participant", message.id)
        return None
    text = f"{source}{ARROW_SYMBOLS[message.type]}{target}"
    if message.label:
        text += f": {message.label}"
    return text


def _note_text(note: Note, keys: dict[str, str]) -> str | None:
    names = [keys[pid] for pid in note.participant_ids if pid in keys]
    if not names:
        logger.debug("dropping note %s with no resolvable participant", note.id)
        return None
    text = f"Note {note.position.value} {','.join(names)}"
    if note.text:
        text += f": {note.text}"
    return text


def _block_events(keyword: str, label: str, start: int, end: int) -> list[_Event]:
    return [
        _Event(start, _Priority.BlockOpen, f"{keyword} {label}".rstrip(), span=start - end),
        _Event(end, _Priority.BlockClose, "end", span=-start),
    ]


def _collect_events(diagram: SequenceDiagram, keys: dict[str, str]) -> list[_Event]:
    events: list[_Event] = []

    for message in diagram.messages:
        text = _message_text(message, keys)
        if text is not None:
            events.append(_Event(message.order, _Priority.Leaf, text))

    for note in diagram.notes:
        text = _note_text(note, keys)
        if text is not None:
            events.append(_Event(note.order, _Priority.Leaf, text))

    for loop in diagram.loops:
        events.extend(_block_events("loop", loop.label, loop.start_order, loop.end_order))

    for opt in diagram.opts:
        events.extend(_block_events("opt", opt.label, opt.start_order, opt.end_order))

    for alt in diagram.alts:
        if not alt.conditions:
            continue
        first, last = alt.conditions[0], alt.conditions[-1]
        events.extend(_block_events("alt", first.label, first.start_order, last.end_order))
        for condition in alt.conditions[1:]:
            events.append(_Event(condition.start_order, _Priority.Branch, f"else {condition.label}".rstrip()))

    for activation in diagram.activations:
        key = keys.get(activation.participant_id)
        if key is None:
            logger.debug("dropping activation %s with unresolved participant", activation.id)
            continue
        events.append(_Event(activation.start_order, _Priority.Marker, f"activate {key}"))
        if activation.end_order is not None:
            events.append(_Event(activation.end_order, _Priority.Marker, f"deactivate {key}"))

    # sorted() is stable, so equal keys keep collection order
    return sorted(events, key=_Event.sort_key)


def generate_sequence(diagram: SequenceDiagram, options: GeneratorOptions | None = None) -> str:
    """Render a sequence diagram as Mermaid text."""
    options = options or DEFAULT_OPTIONS
    participants = sorted(diagram.participants, key=lambda p: p.order)
    keys = {p.id: _format_key(p.key) for p in participants}

    lines = ["sequenceDiagram"]
    lines.extend(_participant_line(p, options) for p in participants)

    depth = 1
    for event in _collect_events(diagram, keys):
        if event.priority == _Priority.BlockClose:
            depth = max(1, depth - 1)
            lines.append(options.indent(depth) + event.text)
        elif event.priority == _Priority.Branch:
            lines.append(options.indent(max(1, depth - 1)) + event.text)
        else:
            lines.append(options.indent(depth) + event.text)
            if event.priority == _Priority.BlockOpen:
                depth += 1

    return "\n".join(lines)


class SequenceGenerator:
    """Sequence diagram generator."""

    def generate(self, diagram: SequenceDiagram, options: GeneratorOptions | None = None) -> str:
        return generate_sequence(diagram, options)
