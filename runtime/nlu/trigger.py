"""Trigger evaluator — decides whether a user message warrants a tool."""

from __future__ import annotations

import math
from collections.abc import Sequence

from contracts.tool_ids import ToolId
from runtime.nlu.embedding import EmbeddingEngine
from runtime.nlu.exemplars import ExemplarStore

DEFAULT_THRESHOLD = 0.82


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Normalized dot product; 0.0 if either vector has zero magnitude."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class TriggerEvaluator:
    """Embedding-similarity gate in front of the model's tool list.

    Never raises on unembeddable input; such messages simply don't trigger.
    """

    def __init__(
        self,
        engine: EmbeddingEngine,
        store: ExemplarStore,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self._engine = engine
        self._store = store
        self.threshold = threshold

    def should_trigger(
        self,
        message: str,
        prototype: Sequence[float],
        threshold: float | None = None,
    ) -> bool:
        vector = self._engine.vector(message)
        if vector is None:
            return False
        limit = self.threshold if threshold is None else threshold
        return cosine_similarity(vector, prototype) >= limit

    def should_use_tool(self, message: str, tool_id: ToolId) -> bool:
        prototype = self._store.prototype(tool_id)
        if prototype is None:
            return False
        return self.should_trigger(message, prototype)

    def should_use_any_tool(self, message: str) -> bool:
        # Embed once; the per-tool comparisons are cheap.
        vector = self._engine.vector(message)
        if vector is None:
            return False
        for tool_id in self._store.tool_ids():
            prototype = self._store.prototype(tool_id)
            if prototype is not None and cosine_similarity(vector, prototype) >= self.threshold:
                return True
        return False

    def scores(self, message: str) -> dict[ToolId, float]:
        """Similarity of *message* to every tool prototype (empty if it doesn't embed)."""
        vector = self._engine.vector(message)
        if vector is None:
            return {}
        result: dict[ToolId, float] = {}
        for tool_id in self._store.tool_ids():
            prototype = self._store.prototype(tool_id)
            if prototype is not None:
                result[tool_id] = cosine_similarity(vector, prototype)
        return result

    def best_match(self, message: str) -> ToolId | None:
        best: ToolId | None = None
        best_score = self.threshold
        for tool_id, score in self.scores(message).items():
            # ties keep the earlier-declared tool
            if score >= best_score and (best is None or score > best_score):
                best, best_score = tool_id, score
        return best
