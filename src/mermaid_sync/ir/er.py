"""Entity-relationship diagram model.

Entities own their attributes; relations reference entities by id and carry
a cardinality for each end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mermaid_sync.types import Position, new_id


class Cardinality(Enum):
    ExactlyOne = "EXACTLY_ONE"  # ||
    ZeroOrOne = "ZERO_OR_ONE"  # |o  o|
    OneOrMore = "ONE_OR_MORE"  # }|  |{
    ZeroOrMore = "ZERO_OR_MORE"  # }o  o{

    @classmethod
    def default(cls) -> Cardinality:
        return cls.ExactlyOne


@dataclass
class Attribute:
    name: str
    type: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    is_nullable: bool = True
    comment: str | None = None
    id: str = field(default_factory=new_id)

    def key_markers(self) -> list[str]:
        """Key markers in canonical order; UK is implied by PK and never repeated."""
        keys: list[str] = []
        if self.is_primary_key:
            keys.append("PK")
        if self.is_foreign_key:
            keys.append("FK")
        if self.is_unique and not self.is_primary_key:
            keys.append("UK")
        return keys


@dataclass
class Entity:
    name: str
    attributes: list[Attribute] = field(default_factory=list)
    position: Position = field(default_factory=Position)
    id: str = field(default_factory=new_id)


@dataclass
class Relation:
    source_entity_id: str
    target_entity_id: str
    source_cardinality: Cardinality = field(default_factory=Cardinality.default)
    target_cardinality: Cardinality = field(default_factory=Cardinality.default)
    identifying: bool = True
    label: str | None = None
    id: str = field(default_factory=new_id)


@dataclass
class ErDiagram:
    entities: list[Entity] = field(default_factory=list)
    relations: list[Relation] = field(default_factory=list)

    def entity_by_id(self, entity_id: str) -> Entity | None:
        return next((e for e in self.entities if e.id == entity_id), None)

    def entity_by_name(self, name: str) -> Entity | None:
        """First entity with this name, in insertion order."""
        return next((e for e in self.entities if e.name == name), None)


# ─── Cardinality symbols ─────────────────────────────────────────────────────

# Every symbol the tokenizer accepts on either side of a relation line.
CARDINALITY_SYMBOLS: tuple[str, ...] = ("||", "|o", "o|", "}|", "|{", "}o", "o{")
LINE_STYLES: tuple[str, ...] = ("--", "..")

_SYMBOL_CARDINALITY: dict[str, Cardinality] = {
    "||": Cardinality.ExactlyOne,
    "|o": Cardinality.ZeroOrOne,
    "o|": Cardinality.ZeroOrOne,
    "}|": Cardinality.OneOrMore,
    "|{": Cardinality.OneOrMore,
    "}o": Cardinality.ZeroOrMore,
    "o{": Cardinality.ZeroOrMore,
}

_SOURCE_SYMBOLS: dict[Cardinality, str] = {
    Cardinality.ExactlyOne: "||",
    Cardinality.ZeroOrOne: "|o",
    Cardinality.OneOrMore: "}|",
    Cardinality.ZeroOrMore: "}o",
}

_TARGET_SYMBOLS: dict[Cardinality, str] = {
    Cardinality.ExactlyOne: "||",
    Cardinality.ZeroOrOne: "o|",
    Cardinality.OneOrMore: "|{",
    Cardinality.ZeroOrMore: "o{",
}


def cardinality_from_symbol(symbol: str) -> Cardinality:
    return _SYMBOL_CARDINALITY.get(symbol, Cardinality.ExactlyOne)


def cardinality_symbol(cardinality: Cardinality, source: bool) -> str:
    """Symbol for one end of a relation; the source end sits left of the line."""
    table = _SOURCE_SYMBOLS if source else _TARGET_SYMBOLS
    return table[cardinality]


def decode_relation_symbol(symbol: str) -> tuple[Cardinality, Cardinality, bool]:
    """Split ``<card><line><card>`` into (source, target, identifying)."""
    for style in LINE_STYLES:
        idx = symbol.find(style)
        if idx != -1:
            return (
                cardinality_from_symbol(symbol[:idx]),
                cardinality_from_symbol(symbol[idx + len(style) :]),
                style == "--",
            )
    return (Cardinality.ExactlyOne, Cardinality.ExactlyOne, True)


def encode_relation_symbol(source: Cardinality, target: Cardinality, identifying: bool) -> str:
    line = "--" if identifying else ".."
    return f"{cardinality_symbol(source, True)}{line}{cardinality_symbol(target, False)}"
