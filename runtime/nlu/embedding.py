"""Embedding similarity engine — text to a fixed-width vector."""

from __future__ import annotations

from contracts.embedding import EmbeddingSpace


class EmbeddingEngine:
    """Embeds whole strings, falling back to the mean of their token vectors.

    Stateless apart from the (read-only) space; callers cache if they need to.
    """

    def __init__(self, space: EmbeddingSpace) -> None:
        self._space = space

    @property
    def dimension(self) -> int:
        return self._space.dimension

    def vector(self, text: str) -> list[float] | None:
        lowered = text.lower()
        whole = self._space.lookup(lowered)
        if whole is not None:
            return whole

        total: list[float] = []
        resolved = 0
        for token in lowered.split():
            token_vector = self._space.lookup(token)
            if token_vector is None:
                continue
            if not total:
                total = list(token_vector)
            else:
                for i, value in enumerate(token_vector):
                    total[i] += value
            resolved += 1

        if resolved == 0:
            return None
        return [value / resolved for value in total]
