"""Embedding space contracts.

Defines the abstract interface for a pretrained term → vector lookup table.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingSpace(ABC):
    """Abstract base class for fixed-dimension embedding lookups."""

    @abstractmethod
    def lookup(self, term: str) -> list[float] | None:
        """Return the vector for *term*, or ``None`` if it is not in the space."""
        ...

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Width shared by every vector in the space."""
        ...
