"""ER diagram parser — hand-rolled recursive descent.

Parses Mermaid ``erDiagram`` text into the model types from ir.er.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from mermaid_sync.ir.er import (
    CARDINALITY_SYMBOLS,
    LINE_STYLES,
    Attribute,
    Entity,
    ErDiagram,
    Relation,
    decode_relation_symbol,
)
from mermaid_sync.layout import ER_GRID, assign_grid_positions
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


class ErTokenType(Enum):
    KEYWORD = "KEYWORD"  # erDiagram
    IDENTIFIER = "IDENTIFIER"  # entity, type and attribute names
    OPEN_BRACE = "OPEN_BRACE"
    CLOSE_BRACE = "CLOSE_BRACE"
    RELATION = "RELATION"  # ||--o{, }|..|{, ...
    COLON = "COLON"
    STRING = "STRING"
    ATTRIBUTE_KEY = "ATTRIBUTE_KEY"  # PK, FK, UK
    NEWLINE = "NEWLINE"
    COMMENT = "COMMENT"
    EOF = "EOF"


# All 7 x 2 x 7 relation spellings, tried in order at each position.
RELATION_PATTERNS: tuple[str, ...] = tuple(
    left + line + right for left in CARDINALITY_SYMBOLS for line in LINE_STYLES for right in CARDINALITY_SYMBOLS
)

_ATTRIBUTE_KEYS = frozenset({"PK", "FK", "UK"})


def _try_read_relation(sc: Scanner) -> str | None:
    for pattern in RELATION_PATTERNS:
        if sc.startswith(pattern):
            return sc.advance(len(pattern))
    return None


def _next_token(sc: Scanner) -> Token | None:
    line, column = sc.line, sc.column

    def tok(type_: ErTokenType, value: str) -> Token:
        return Token(type_, value, line, column)

    ch = sc.peek()
    if ch == "%" and sc.peek(1) == "%":
        return tok(ErTokenType.COMMENT, sc.read_comment())
    if ch == "\n":
        return tok(ErTokenType.NEWLINE, sc.advance())
    if ch == "{":
        return tok(ErTokenType.OPEN_BRACE, sc.advance())
    if ch == "}":
        relation = _try_read_relation(sc)
        if relation:
            return tok(ErTokenType.RELATION, relation)
        return tok(ErTokenType.CLOSE_BRACE, sc.advance())
    if ch == ":":
        return tok(ErTokenType.COLON, sc.advance())
    if ch == '"':
        return tok(ErTokenType.STRING, sc.read_string())

    relation = _try_read_relation(sc)
    if relation:
        return tok(ErTokenType.RELATION, relation)

    if is_identifier_start(ch):
        word = sc.read_while(is_identifier_char)
        if word == "erDiagram":
            return tok(ErTokenType.KEYWORD, word)
        if word.upper() in _ATTRIBUTE_KEYS:
            return tok(ErTokenType.ATTRIBUTE_KEY, word)
        return tok(ErTokenType.IDENTIFIER, word)

    sc.advance()
    return None


def tokenize(src: str) -> list[Token]:
    """Split ER text into tokens; unknown characters are skipped, never rejected."""
    sc = Scanner(src)
    tokens: list[Token] = []
    while True:
        sc.skip_whitespace(" \t\r")
        if sc.eof():
            break
        token = _next_token(sc)
        if token is not None:
            tokens.append(token)
    tokens.append(Token(ErTokenType.EOF, "", sc.line, sc.column))
    return tokens


# ─── Parser ──────────────────────────────────────────────────────────────────


@dataclass
class _ErParser(TokenCursor):
    """Per-call parse state: cursor, errors, and the name-keyed entity table."""

    entities: dict[str, Entity] = field(default_factory=dict)
    relations: list[Relation] = field(default_factory=list)

    skippable = (ErTokenType.NEWLINE, ErTokenType.COMMENT)
    eof_type = ErTokenType.EOF

    def parse_document(self) -> None:
        self.skip_newlines()
        if self.check(ErTokenType.KEYWORD) and self.current().value == "erDiagram":
            self.advance()
            self.skip_newlines()

        while not self.at_eof():
            self.skip_newlines()
            if self.at_eof():
                break
            self.parse_statement()

    def parse_statement(self) -> None:
        if not self.check(ErTokenType.IDENTIFIER):
            skipped = self.advance()
            logger.debug("skipping %s at %d:%d", skipped.type.value, skipped.line, skipped.column)
            return

        name = self.advance()
        self.skip_newlines()
        if self.check(ErTokenType.OPEN_BRACE):
            self.parse_entity_block(name.value)
        elif self.check(ErTokenType.RELATION):
            self.parse_relation(name.value)
        else:
            self.entity(name.value)

    def parse_entity_block(self, name: str) -> None:
        entity = self.entity(name)
        self.expect(ErTokenType.OPEN_BRACE, "Expected '{' after entity name")
        self.skip_newlines()

        while not self.check(ErTokenType.CLOSE_BRACE, ErTokenType.EOF):
            self.skip_newlines()
            if self.check(ErTokenType.CLOSE_BRACE, ErTokenType.EOF):
                break
            attribute = self.parse_attribute()
            if attribute is not None:
                entity.attributes.append(attribute)
            self.skip_newlines()

        self.expect(ErTokenType.CLOSE_BRACE, "Expected '}' at end of entity definition")

    def parse_attribute(self) -> Attribute | None:
        """``type name [PK|FK|UK]* ["comment"]``"""
        if not self.check(ErTokenType.IDENTIFIER):
            self.advance()
            return None

        type_token = self.advance()
        if not self.check(ErTokenType.IDENTIFIER):
            self.error(type_token, f"Expected attribute name after type '{type_token.value}'")
            return None

        attribute = Attribute(name=self.advance().value, type=type_token.value)
        while self.check(ErTokenType.ATTRIBUTE_KEY):
            key = self.advance().value.upper()
            if key == "PK":
                attribute.is_primary_key = True
                attribute.is_nullable = False
            elif key == "FK":
                attribute.is_foreign_key = True
            else:
                attribute.is_unique = True

        if self.check(ErTokenType.STRING):
            attribute.comment = self.advance().value
        return attribute

    def parse_relation(self, source_name: str) -> None:
        relation_token = self.expect(ErTokenType.RELATION, "Expected relation symbol")
        source_card, target_card, identifying = decode_relation_symbol(relation_token.value)

        self.skip_newlines()
        if not self.check(ErTokenType.IDENTIFIER):
            self.error(relation_token, "Expected target entity name after relation")
            return
        target_name = self.advance().value

        label: str | None = None
        self.skip_newlines()
        if self.match(ErTokenType.COLON):
            self.skip_newlines()
            if self.check(ErTokenType.IDENTIFIER, ErTokenType.STRING):
                label = self.advance().value

        source = self.entity(source_name)
        target = self.entity(target_name)
        self.relations.append(
            Relation(
                source_entity_id=source.id,
                target_entity_id=target.id,
                source_cardinality=source_card,
                target_cardinality=target_card,
                identifying=identifying,
                label=label,
            )
        )

    def entity(self, name: str) -> Entity:
        """Get-or-create by name; later mentions merge into the first record."""
        entity = self.entities.get(name)
        if entity is None:
            entity = Entity(name=name)
            self.entities[name] = entity
            logger.debug("created entity %r", name)
        return entity

    def build_diagram(self) -> ErDiagram:
        entities = list(self.entities.values())
        assign_grid_positions(entities, ER_GRID)
        return ErDiagram(entities=entities, relations=self.relations)


class ErParser:
    """ER diagram parser."""

    def parse(self, src: str) -> ParseResult[ErDiagram]:
        tokens = tokenize(src)
        logger.debug("er: %d tokens", len(tokens))
        return _ErParser(tokens=tokens).run()


def parse_er(src: str) -> ParseResult[ErDiagram]:
    """Parse Mermaid ``erDiagram`` text."""
    return ErParser().parse(src)
