"""Base generator protocol."""

from __future__ import annotations

from typing import Any, Protocol

from mermaid_sync.config import GeneratorOptions


class Generator(Protocol):
    """Protocol that all text generators must implement."""

    def generate(self, diagram: Any, options: GeneratorOptions | None = None) -> str:
        """Serialize a diagram model to Mermaid text."""
        ...
