"""
Ingestion — read a dataset source and split it into retrieval chunks.

- :func:`read_dataset_source_raw_text` — source → ``{title?, rawText}``.
- :func:`raw_text_to_chunks` — ``rawText`` → ordered :class:`ChunkRecord` list.
"""

from dataset_ingest.ingestion.chunker import (
    ChunkRecord,
    SplitResult,
    SplitterMode,
    TextSplitConfig,
    raw_text_to_chunks,
    split,
)
from dataset_ingest.ingestion.loader import read_dataset_source_raw_text

__all__ = [
    "ChunkRecord",
    "SplitResult",
    "SplitterMode",
    "TextSplitConfig",
    "raw_text_to_chunks",
    "read_dataset_source_raw_text",
    "split",
]
