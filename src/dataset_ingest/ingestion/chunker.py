"""Text chunking strategies.

Two mutually exclusive modes:

* **free text** — boundary-aware windows of at most ``chunk_size``
  characters with ``overlap`` characters carried across boundaries;
* **backup parse** — the text is a CSV export of a Q/A dataset; every
  data row becomes one :class:`ChunkRecord`.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from enum import Enum

from langchain_text_splitters import Language, RecursiveCharacterTextSplitter
from pydantic import BaseModel, ConfigDict

from dataset_ingest.config import settings
from dataset_ingest.errors import InvalidConfig

logger = logging.getLogger(__name__)

# Paragraph → line → sentence (CJK and Latin) → clause → word.  No ""
# separator, so a token longer than chunk_size is emitted whole.
PARAGRAPH_SEPARATORS = ["\n\n", "\n", "。", "！", "？", ". ", "! ", "? ", "；", "; ", "，", ", ", " "]


class SplitterMode(str, Enum):
    RECURSIVE = "recursive"
    MARKDOWN = "markdown"
    SEPARATOR = "separator"


class ChunkRecord(BaseModel):
    """One retrieval unit handed to the indexer.

    Attributes
    ----------
    q:
        Chunk body (free text) or question column (backup parse).
    a:
        Answer column in backup parse; empty in free-text mode.
    indexes:
        Extra index strings, in column order.
    """

    model_config = ConfigDict(frozen=True)

    q: str
    a: str = ""
    indexes: tuple[str, ...] = ()


def default_overlap(chunk_size: int) -> int:
    """Overlap used when the caller gives none: an eighth of the window, capped."""
    return min(settings.default_chunk_overlap, chunk_size // 8)


@dataclass(frozen=True)
class TextSplitConfig:
    """Per-request split settings, validated on construction.

    Raises
    ------
    InvalidConfig
        ``chunk_size <= 0``, ``overlap < 0``, ``overlap >= chunk_size``,
        an unknown ``splitter_mode``, or separator mode without usable
        separators.
    """

    chunk_size: int = settings.default_chunk_size
    overlap: int | None = None
    splitter_mode: SplitterMode = SplitterMode.RECURSIVE
    backup_parse: bool = False
    custom_separators: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise InvalidConfig(f"chunk_size must be a positive integer, got {self.chunk_size!r}")
        if self.overlap is None:
            object.__setattr__(self, "overlap", default_overlap(self.chunk_size))
        if isinstance(self.overlap, bool) or not isinstance(self.overlap, int) or self.overlap < 0:
            raise InvalidConfig(f"overlap must be a non-negative integer, got {self.overlap!r}")
        if self.overlap >= self.chunk_size:
            raise InvalidConfig(f"overlap ({self.overlap}) must be < chunk_size ({self.chunk_size})")
        try:
            mode = SplitterMode(self.splitter_mode)
        except ValueError:
            raise InvalidConfig(f"unknown splitter_mode {self.splitter_mode!r}") from None
        object.__setattr__(self, "splitter_mode", mode)
        object.__setattr__(self, "custom_separators", tuple(self.custom_separators))
        if mode is SplitterMode.SEPARATOR and not self.custom_separators:
            raise InvalidConfig("splitter_mode 'separator' needs at least one custom separator")
        if "" in self.custom_separators:
            raise InvalidConfig("custom separators must be non-empty strings")


@dataclass
class SplitResult:
    """Chunks plus diagnostics.

    ``dropped_rows`` counts backup-parse rows discarded for being empty or
    unreadable; it is always 0 in free-text mode.
    """

    chunks: list[ChunkRecord] = field(default_factory=list)
    dropped_rows: int = 0


# ---------------------------------------------------------------------------
# Free-text split
# ---------------------------------------------------------------------------


def _markdown_separators() -> list[str]:
    seps = RecursiveCharacterTextSplitter.get_separators_for_language(Language.MARKDOWN)
    return [s for s in seps if s != ""]


def _build_splitter(config: TextSplitConfig) -> RecursiveCharacterTextSplitter:
    if config.splitter_mode is SplitterMode.MARKDOWN:
        # Keep headings / fences at the start of the section they open.
        return RecursiveCharacterTextSplitter(
            chunk_size=config.chunk_size,
            chunk_overlap=config.overlap,
            length_function=len,
            separators=_markdown_separators(),
            is_separator_regex=True,
            keep_separator="start",
        )

    separators = PARAGRAPH_SEPARATORS
    if config.splitter_mode is SplitterMode.SEPARATOR:
        separators = list(config.custom_separators) + [
            s for s in PARAGRAPH_SEPARATORS if s not in config.custom_separators
        ]
    return RecursiveCharacterTextSplitter(
        chunk_size=config.chunk_size,
        chunk_overlap=config.overlap,
        length_function=len,
        separators=separators,
        keep_separator="end",
    )


def split_free_text(raw_text: str, config: TextSplitConfig) -> list[ChunkRecord]:
    """Split *raw_text* into ordered, boundary-aligned windows."""
    if not raw_text.strip():
        return []
    pieces = _build_splitter(config).split_text(raw_text)
    return [ChunkRecord(q=piece.strip()) for piece in pieces if piece.strip()]


# ---------------------------------------------------------------------------
# Backup parse
# ---------------------------------------------------------------------------


def parse_backup_table(raw_text: str) -> SplitResult:
    """Turn a ``q,a,index…`` CSV export into chunk records.

    The header row is skipped.  Short rows are padded with empty strings,
    rows with neither ``q`` nor ``a`` are dropped, and a row the CSV
    reader cannot parse is dropped without aborting the rest.
    """
    result = SplitResult()
    if not raw_text.strip():
        return result

    reader = csv.reader(io.StringIO(raw_text))
    header_seen = False
    lineno = 0
    while True:
        lineno += 1
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            if header_seen:
                result.dropped_rows += 1
                logger.warning("Skipping unreadable row %d: %s", lineno, exc)
            header_seen = True
            continue

        if not header_seen:
            header_seen = True
            continue
        if not row:
            continue  # blank line

        q = row[0]
        a = row[1] if len(row) > 1 else ""
        if not q and not a:
            result.dropped_rows += 1
            continue
        result.chunks.append(ChunkRecord(q=q, a=a, indexes=tuple(row[2:])))

    if result.dropped_rows:
        logger.info(
            "Backup parse kept %d rows, dropped %d",
            len(result.chunks),
            result.dropped_rows,
        )
    return result


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def split(raw_text: str, config: TextSplitConfig) -> SplitResult:
    """Split *raw_text* according to *config*.

    The config has already been validated, so no text is touched when it
    is invalid.  Empty input yields an empty result in both modes.
    """
    if config.backup_parse:
        return parse_backup_table(raw_text)
    return SplitResult(chunks=split_free_text(raw_text, config))


def raw_text_to_chunks(
    raw_text: str,
    *,
    backup_parse: bool = False,
    chunk_size: int = settings.default_chunk_size,
    overlap: int | None = None,
    splitter_mode: SplitterMode | str = SplitterMode.RECURSIVE,
    custom_separators: list[str] | tuple[str, ...] = (),
) -> list[ChunkRecord]:
    """Split *raw_text* into chunks for indexing.

    Parameters
    ----------
    raw_text:
        Normalised document text.
    backup_parse:
        Treat *raw_text* as a ``q,a,index…`` CSV table instead of prose.
    chunk_size:
        Maximum number of characters per chunk.
    overlap:
        Number of overlapping characters between consecutive chunks.
        Derived from *chunk_size* when omitted, see :func:`default_overlap`.
    splitter_mode:
        ``recursive``, ``markdown`` or ``separator``.
    custom_separators:
        Highest-priority boundaries for ``separator`` mode.

    Returns
    -------
    list[ChunkRecord]
        Chunks in document order.
    """
    config = TextSplitConfig(
        chunk_size=chunk_size,
        overlap=overlap,
        splitter_mode=splitter_mode,
        backup_parse=backup_parse,
        custom_separators=tuple(custom_separators),
    )
    return split(raw_text, config).chunks
