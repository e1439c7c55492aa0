"""Deterministic grid layout for freshly parsed diagrams.

Positions depend only on first-appearance order, never on prior UI state;
callers that want to keep user positions merge them afterwards (see sync.py).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from mermaid_sync.ir.flowchart import Direction
from mermaid_sync.types import Position


class _Placeable(Protocol):
    position: Position


@dataclass(frozen=True)
class GridSpec:
    columns: int
    x_spacing: int
    y_spacing: int
    x_offset: int = 50
    y_offset: int = 50

    def position_at(self, index: int) -> Position:
        col = index % self.columns
        row = index // self.columns
        return Position(
            x=self.x_offset + col * self.x_spacing,
            y=self.y_offset + row * self.y_spacing,
        )


ER_GRID = GridSpec(columns=3, x_spacing=300, y_spacing=250)
FLOWCHART_VERTICAL_GRID = GridSpec(columns=3, x_spacing=200, y_spacing=120)
FLOWCHART_HORIZONTAL_GRID = GridSpec(columns=5, x_spacing=180, y_spacing=150)


def flowchart_grid(direction: Direction) -> GridSpec:
    return FLOWCHART_VERTICAL_GRID if direction.is_top_down else FLOWCHART_HORIZONTAL_GRID


def assign_grid_positions(items: Iterable[_Placeable], grid: GridSpec) -> None:
    """Place items on the grid in iteration order, row by row."""
    for index, item in enumerate(items):
        item.position = grid.position_at(index)
