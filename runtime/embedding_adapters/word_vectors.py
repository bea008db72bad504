"""Word-vector embedding space.

Loads a pretrained GloVe / word2vec text table (``word v1 v2 ...``) or wraps
an in-memory mapping.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path

from contracts.embedding import EmbeddingSpace

logger = logging.getLogger(__name__)


class WordVectorSpace(EmbeddingSpace):
    """Static term → vector table with one fixed dimensionality."""

    def __init__(self, vectors: Mapping[str, Sequence[float]]) -> None:
        self._vectors: dict[str, list[float]] = {}
        self._dimension = 0
        for term, vector in vectors.items():
            row = [float(v) for v in vector]
            if not self._dimension:
                self._dimension = len(row)
            elif len(row) != self._dimension:
                raise ValueError(
                    f"Vector for '{term}' has {len(row)} dimensions, "
                    f"expected {self._dimension}"
                )
            self._vectors[term.lower()] = row

    @classmethod
    def from_file(cls, path: str | Path, limit: int | None = None) -> WordVectorSpace:
        """Read a whitespace-separated vector file.

        A word2vec-style ``<count> <dim>`` header line is skipped.  *limit*
        caps the number of rows read (files are usually frequency-sorted).
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Embedding file not found: {path}")

        vectors: dict[str, list[float]] = {}
        with p.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f):
                parts = line.rstrip().split(" ")
                if lineno == 0 and len(parts) == 2 and all(x.isdigit() for x in parts):
                    continue
                if len(parts) < 2:
                    continue
                try:
                    vectors[parts[0]] = [float(x) for x in parts[1:]]
                except ValueError:
                    logger.warning("Skipping unparsable row %d in %s", lineno + 1, p)
                    continue
                if limit is not None and len(vectors) >= limit:
                    break

        logger.info("Loaded %d vectors from %s", len(vectors), p)
        return cls(vectors)

    def lookup(self, term: str) -> list[float] | None:
        vector = self._vectors.get(term)
        if vector is None and " " in term:
            # word2vec stores phrases with underscores
            vector = self._vectors.get(term.replace(" ", "_"))
        return list(vector) if vector is not None else None

    @property
    def dimension(self) -> int:
        return self._dimension

    def items(self) -> Iterator[tuple[str, list[float]]]:
        for term, vector in self._vectors.items():
            yield term, list(vector)

    def __len__(self) -> int:
        return len(self._vectors)
