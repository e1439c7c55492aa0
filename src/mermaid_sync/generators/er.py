"""Canonical ``erDiagram`` text from an ER model.

Output layout: header, relation lines, then one block per entity that has
attributes (sorted by name). Attribute-less entities that no relation mentions
are emitted as bare names so they survive a re-parse.
"""

from __future__ import annotations

import logging
import re

from mermaid_sync.config import DEFAULT_OPTIONS, GeneratorOptions
from mermaid_sync.ir.er import Attribute, Entity, ErDiagram, Relation, encode_relation_symbol

logger = logging.getLogger(__name__)

_BARE_LABEL = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_TOKEN_WORDS = frozenset({"ERDIAGRAM", "PK", "FK", "UK"})


def _format_label(label: str) -> str:
    if _BARE_LABEL.fullmatch(label) and label.upper() not in _TOKEN_WORDS:
        return label
    return f'"{label}"'


def _relation_line(relation: Relation, entities: dict[str, Entity], options: GeneratorOptions) -> str | None:
    source = entities.get(relation.source_entity_id)
    target = entities.get(relation.target_entity_id)
    if source is None or target is None:
        logger.debug("dropping relation %s with unresolved endpoint", relation.id)
        return None

    symbol = encode_relation_symbol(relation.source_cardinality, relation.target_cardinality, relation.identifying)
    line = f"{options.indent()}{source.name} {symbol} {target.name}"
    if relation.label:
        line += f" : {_format_label(relation.label)}"
    return line


def _attribute_line(attribute: Attribute, options: GeneratorOptions) -> str:
    parts = [attribute.type, attribute.name, *attribute.key_markers()]
    if attribute.comment:
        parts.append(f'"{attribute.comment}"')
    return options.indent(2) + " ".join(parts)


def _entity_block(entity: Entity, options: GeneratorOptions) -> list[str]:
    return [
        f"{options.indent()}{entity.name} {{",
        *(_attribute_line(a, options) for a in entity.attributes),
        f"{options.indent()}}}",
    ]


def generate_er(diagram: ErDiagram, options: GeneratorOptions | None = None) -> str:
    """Render an ER diagram as Mermaid text."""
    options = options or DEFAULT_OPTIONS
    entities: dict[str, Entity] = {}
    for entity in diagram.entities:
        entities.setdefault(entity.id, entity)

    lines = ["erDiagram"]
    related: set[str] = set()
    for relation in diagram.relations:
        line = _relation_line(relation, entities, options)
        if line is not None:
            lines.append(line)
            related.update((relation.source_entity_id, relation.target_entity_id))

    for entity in sorted(diagram.entities, key=lambda e: e.name):
        if entity.attributes:
            lines.extend(_entity_block(entity, options))
        elif entity.id not in related:
            lines.append(f"{options.indent()}{entity.name}")

    return "\n".join(lines)


class ErGenerator:
    """ER diagram generator."""

    def generate(self, diagram: ErDiagram, options: GeneratorOptions | None = None) -> str:
        return generate_er(diagram, options)
