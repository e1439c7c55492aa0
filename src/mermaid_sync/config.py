"""Centralized configuration for mermaid-sync."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class GeneratorOptions:
    """Configuration for the text generators."""

    indent_size: int = 4

    def indent(self, depth: int = 1) -> str:
        return " " * (self.indent_size * depth)


DEFAULT_OPTIONS = GeneratorOptions()
