"""Unit tests for the chunker module."""

from __future__ import annotations

import csv
import re

import pytest

from dataset_ingest.errors import InvalidConfig
from dataset_ingest.ingestion.chunker import (
    ChunkRecord,
    SplitterMode,
    TextSplitConfig,
    default_overlap,
    parse_backup_table,
    raw_text_to_chunks,
    split,
)


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text)


# ──────────────────────────────────────────────────────────────────────
# Free-text mode
# ──────────────────────────────────────────────────────────────────────


class TestFreeText:
    def test_splits_long_text(self) -> None:
        """Text longer than chunk_size should be split."""
        long_text = "word " * 500  # ~2500 chars
        chunks = raw_text_to_chunks(long_text, chunk_size=256, overlap=32)
        assert len(chunks) > 1

    def test_chunks_respect_size(self) -> None:
        text = "The quick brown fox jumps over the lazy dog. " * 40
        chunks = raw_text_to_chunks(text, chunk_size=120, overlap=20)
        assert chunks
        assert all(len(c.q) <= 120 for c in chunks)
        assert all(c.a == "" and c.indexes == () for c in chunks)

    def test_empty_input(self) -> None:
        assert raw_text_to_chunks("") == []
        assert raw_text_to_chunks("   \n\n  ") == []

    def test_deterministic(self) -> None:
        text = "Paragraph one has some words.\n\nParagraph two has more words. " * 20
        first = raw_text_to_chunks(text, chunk_size=100, overlap=10)
        second = raw_text_to_chunks(text, chunk_size=100, overlap=10)
        assert first == second

    def test_zero_overlap_preserves_order_and_content(self) -> None:
        """Concatenating chunks reproduces the text modulo whitespace."""
        text = (
            "Alpha beta gamma. Delta epsilon zeta.\n\n"
            "Eta theta iota, kappa lambda mu.\nNu xi omicron pi rho.\n\n"
        ) * 6
        chunks = raw_text_to_chunks(text, chunk_size=60, overlap=0)
        assert len(chunks) > 1
        assert _squash("".join(c.q for c in chunks)) == _squash(text)

    def test_overlap_repeats_tail(self) -> None:
        text = " ".join(f"w{i:03d}" for i in range(200))
        chunks = raw_text_to_chunks(text, chunk_size=100, overlap=30)
        assert len(chunks) > 2
        for prev, nxt in zip(chunks, chunks[1:]):
            first_word = nxt.q.split()[0]
            assert first_word in prev.q.split()

    def test_oversize_token_emitted_whole(self) -> None:
        token = "x" * 100
        text = f"short words {token} more words"
        chunks = raw_text_to_chunks(text, chunk_size=20, overlap=0)
        holders = [c for c in chunks if token in c.q]
        assert len(holders) == 1
        assert holders[0].q == token

    def test_cjk_sentence_boundaries(self) -> None:
        text = "今天天气很好。我们去公园散步。" * 10
        chunks = raw_text_to_chunks(text, chunk_size=30, overlap=0)
        assert len(chunks) > 1
        assert all(c.q.endswith("。") for c in chunks)

    def test_markdown_mode_starts_chunk_at_heading(self) -> None:
        text = "# Intro\n\n" + "alpha " * 10 + "\n\n# Usage\n\n" + "beta " * 10
        chunks = raw_text_to_chunks(text, chunk_size=80, overlap=0, splitter_mode="markdown")
        assert len(chunks) == 2
        assert chunks[0].q.startswith("# Intro")
        assert chunks[1].q.startswith("# Usage")

    def test_separator_mode_prefers_custom_separator(self) -> None:
        text = "part one body###part two body###part three body"
        chunks = raw_text_to_chunks(
            text,
            chunk_size=20,
            overlap=0,
            splitter_mode=SplitterMode.SEPARATOR,
            custom_separators=["###"],
        )
        assert [c.q for c in chunks] == ["part one body###", "part two body###", "part three body"]


# ──────────────────────────────────────────────────────────────────────
# Backup parse mode
# ──────────────────────────────────────────────────────────────────────


class TestBackupParse:
    def test_header_skipped_and_empty_row_dropped(self) -> None:
        result = parse_backup_table("q,a,tag1\nhi,hello,x\n,,\n")
        assert result.chunks == [ChunkRecord(q="hi", a="hello", indexes=("x",))]
        assert result.dropped_rows == 1

    def test_short_row_padded(self) -> None:
        result = parse_backup_table("q,a\nonly question\n")
        assert result.chunks == [ChunkRecord(q="only question", a="", indexes=())]

    def test_answer_only_row_kept(self) -> None:
        result = parse_backup_table("q,a\n,just an answer\n")
        assert result.chunks == [ChunkRecord(q="", a="just an answer")]

    def test_quoted_fields(self) -> None:
        raw = 'q,a,i1,i2\n"Hello, world","line1\nline2",k1,k2\n'
        result = parse_backup_table(raw)
        assert result.chunks == [
            ChunkRecord(q="Hello, world", a="line1\nline2", indexes=("k1", "k2")),
        ]

    def test_header_only(self) -> None:
        result = parse_backup_table("q,a,indexes\n")
        assert result.chunks == []
        assert result.dropped_rows == 0

    def test_empty_input(self) -> None:
        result = parse_backup_table("")
        assert result.chunks == []
        assert result.dropped_rows == 0

    def test_blank_lines_ignored(self) -> None:
        result = parse_backup_table("q,a\n\nfirst,1\n\nsecond,2\n")
        assert [c.q for c in result.chunks] == ["first", "second"]
        assert result.dropped_rows == 0

    def test_unreadable_row_dropped(self) -> None:
        """A row the CSV reader rejects is counted and the rest still parse."""
        raw = "q,a\nshort,ok\n" + "x" * 50 + ",y\nlast,one\n"
        old_limit = csv.field_size_limit(10)
        try:
            result = parse_backup_table(raw)
        finally:
            csv.field_size_limit(old_limit)
        assert [(c.q, c.a) for c in result.chunks] == [("short", "ok"), ("last", "one")]
        assert result.dropped_rows == 1

    def test_split_dispatches_on_backup_flag(self) -> None:
        config = TextSplitConfig(chunk_size=10, overlap=0, backup_parse=True)
        result = split("q,a\n" + "long question text,long answer text\n", config)
        # Rows are never size-split in backup mode.
        assert result.chunks == [ChunkRecord(q="long question text", a="long answer text")]

    def test_wrapper_returns_records(self) -> None:
        chunks = raw_text_to_chunks("q,a\nhi,hello\n", backup_parse=True)
        assert chunks == [ChunkRecord(q="hi", a="hello")]


# ──────────────────────────────────────────────────────────────────────
# Config validation
# ──────────────────────────────────────────────────────────────────────


class TestTextSplitConfig:
    @pytest.mark.parametrize(
        ("chunk_size", "overlap"),
        [(0, 0), (-5, 0), (100, 100), (100, 150), (100, -1)],
    )
    def test_rejects_bad_sizes(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(InvalidConfig):
            TextSplitConfig(chunk_size=chunk_size, overlap=overlap)

    def test_invalid_config_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            raw_text_to_chunks("some text", chunk_size=0)

    def test_invalid_config_checked_before_text(self) -> None:
        with pytest.raises(InvalidConfig):
            raw_text_to_chunks("", chunk_size=10, overlap=10)

    def test_unknown_mode(self) -> None:
        with pytest.raises(InvalidConfig, match="splitter_mode"):
            TextSplitConfig(chunk_size=100, overlap=0, splitter_mode="sentences")

    def test_separator_mode_needs_separators(self) -> None:
        with pytest.raises(InvalidConfig):
            TextSplitConfig(chunk_size=100, overlap=0, splitter_mode="separator")

    def test_empty_custom_separator_rejected(self) -> None:
        with pytest.raises(InvalidConfig):
            TextSplitConfig(chunk_size=100, overlap=0, splitter_mode="separator", custom_separators=("",))

    def test_overlap_defaults_to_fraction_of_chunk_size(self) -> None:
        chunks = raw_text_to_chunks("alpha beta gamma delta " * 10, chunk_size=50)
        assert len(chunks) > 1
        assert all(len(c.q) <= 50 for c in chunks)

    @pytest.mark.parametrize(("chunk_size", "expected"), [(50, 6), (7, 0), (512, 64), (4096, 64)])
    def test_default_overlap(self, chunk_size: int, expected: int) -> None:
        assert default_overlap(chunk_size) == expected
        assert TextSplitConfig(chunk_size=chunk_size).overlap == expected

    def test_explicit_overlap_still_validated(self) -> None:
        with pytest.raises(InvalidConfig, match="overlap"):
            raw_text_to_chunks("alpha beta", chunk_size=50, overlap=64)

    def test_mode_string_coerced(self) -> None:
        config = TextSplitConfig(chunk_size=100, overlap=0, splitter_mode="markdown")
        assert config.splitter_mode is SplitterMode.MARKDOWN
