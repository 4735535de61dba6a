"""
Decoding — turn fetched bytes into normalised text.

:func:`decode` dispatches on the file extension to an extractor from a
:class:`ParserRegistry` and falls back to a plain text read when no
extractor matches.
"""

from dataset_ingest.decoding.decoder import decode, normalize_extension
from dataset_ingest.decoding.parsers import ParserRegistry, build_default_registry, default_registry

__all__ = [
    "ParserRegistry",
    "build_default_registry",
    "decode",
    "default_registry",
    "normalize_extension",
]
