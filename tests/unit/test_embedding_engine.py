"""Unit tests for the word-vector space and the embedding engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from runtime.embedding_adapters.word_vectors import WordVectorSpace
from runtime.nlu.embedding import EmbeddingEngine


def _space() -> WordVectorSpace:
    return WordVectorSpace(
        {
            "canvas": [1.0, 0.0, 0.0],
            "courses": [0.0, 1.0, 0.0],
            "new_york": [0.0, 0.0, 1.0],
            "show me my grades": [0.5, 0.5, 0.5],
        }
    )


# ── word vector space ───────────────────────────────────────────────


class TestWordVectorSpace:
    def test_dimension_is_fixed(self) -> None:
        assert _space().dimension == 3

    def test_mismatched_dimension_rejected(self) -> None:
        with pytest.raises(ValueError, match="dimensions"):
            WordVectorSpace({"a": [1.0, 2.0], "b": [1.0, 2.0, 3.0]})

    def test_keys_are_lowercased(self) -> None:
        space = WordVectorSpace({"Canvas": [1.0, 0.0]})
        assert space.lookup("canvas") == [1.0, 0.0]

    def test_phrase_falls_back_to_underscored_key(self) -> None:
        assert _space().lookup("new york") == [0.0, 0.0, 1.0]

    def test_missing_term(self) -> None:
        assert _space().lookup("zebra") is None

    def test_lookup_returns_copy(self) -> None:
        space = _space()
        space.lookup("canvas")[0] = 99.0
        assert space.lookup("canvas") == [1.0, 0.0, 0.0]

    def test_from_file_skips_word2vec_header(self, tmp_path: Path) -> None:
        f = tmp_path / "vectors.txt"
        f.write_text("2 3\ncanvas 1 0 0\ncourses 0 1 0\n")
        space = WordVectorSpace.from_file(f)
        assert len(space) == 2
        assert space.lookup("courses") == [0.0, 1.0, 0.0]

    def test_from_file_glove_format_with_limit(self, tmp_path: Path) -> None:
        f = tmp_path / "glove.txt"
        f.write_text("the 0.1 0.2\nof 0.3 0.4\nand 0.5 0.6\n")
        space = WordVectorSpace.from_file(f, limit=2)
        assert len(space) == 2
        assert space.lookup("and") is None

    def test_from_file_skips_unparsable_rows(self, tmp_path: Path) -> None:
        f = tmp_path / "glove.txt"
        f.write_text("good 1 2\nbad x y\n")
        space = WordVectorSpace.from_file(f)
        assert len(space) == 1

    def test_from_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            WordVectorSpace.from_file(tmp_path / "nope.txt")


# ── embedding engine ────────────────────────────────────────────────


class TestEmbeddingEngine:
    def test_whole_string_lookup_wins(self) -> None:
        engine = EmbeddingEngine(_space())
        assert engine.vector("Show me my grades") == [0.5, 0.5, 0.5]

    def test_token_mean_over_resolved_tokens(self) -> None:
        engine = EmbeddingEngine(_space())
        # "show", "me", "my" don't resolve; mean of canvas + courses
        assert engine.vector("Show me my Canvas courses") == [0.5, 0.5, 0.0]

    def test_single_token(self) -> None:
        engine = EmbeddingEngine(_space())
        assert engine.vector("CANVAS") == [1.0, 0.0, 0.0]

    def test_nothing_resolves(self) -> None:
        engine = EmbeddingEngine(_space())
        assert engine.vector("what is the weather") is None

    def test_empty_string(self) -> None:
        engine = EmbeddingEngine(_space())
        assert engine.vector("") is None

    def test_pure_and_deterministic(self) -> None:
        engine = EmbeddingEngine(_space())
        assert engine.vector("canvas courses") == engine.vector("canvas courses")

    def test_dimension_passthrough(self) -> None:
        assert EmbeddingEngine(_space()).dimension == 3
