"""Model backend contracts.

Local (Ollama) and remote (OpenAI-compatible) backends implement the same
interface and receive structurally identical tool descriptors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from contracts.api import Message


class ModelAdapter(ABC):
    """Abstract base class for chat model backends."""

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        model: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> Message:
        """Send *messages* and return the assistant reply."""
        ...
