"""Format decoder — raw bytes + extension hint → :class:`NormalizedText`."""

from __future__ import annotations

import logging

from dataset_ingest.decoding.parsers import (
    ParseOptions,
    ParserRegistry,
    decode_bytes,
    default_registry,
)
from dataset_ingest.decoding.text import clean_text
from dataset_ingest.errors import SourceReadError, UnsupportedFormat
from dataset_ingest.sources.models import NormalizedText

logger = logging.getLogger(__name__)

# Formats whose bytes are never meaningful as text.  Without a registered
# parser these fail instead of falling back to a UTF-8 read.
BINARY_EXTENSIONS = frozenset(
    {
        "doc", "xls", "ppt", "odt", "ods", "odp", "rtf", "epub",
        "zip", "gz", "tar", "rar", "7z",
        "png", "jpg", "jpeg", "gif", "bmp", "webp", "tiff",
        "mp3", "wav", "mp4", "mov", "avi",
    }
)  # fmt: skip


def normalize_extension(extension: str | None) -> str:
    """Lower-case, dot-free extension from a bare ext, filename, or URL.

    >>> normalize_extension(".PDF?download=1")
    'pdf'
    """
    if not extension:
        return ""
    ext = extension.split("?", 1)[0].split("#", 1)[0].strip().lower()
    ext = ext.rsplit("/", 1)[-1]
    if "." in ext:
        ext = ext.rsplit(".", 1)[-1]
    return ext


def decode(
    data: bytes,
    extension: str | None,
    encoding: str | None = None,
    *,
    custom_pdf_parse: bool = False,
    get_format_text: bool = False,
    registry: ParserRegistry | None = None,
) -> NormalizedText:
    """Extract text from *data*.

    Parameters
    ----------
    data:
        Undecoded file content.
    extension:
        Extension hint (``"pdf"``, ``".PDF"``, ``"a/b/report.pdf?x=1"`` …).
    encoding:
        Explicit character set for text payloads; UTF-8 when omitted.
    custom_pdf_parse / get_format_text:
        Forwarded to the extractors, see :class:`ParseOptions`.
    registry:
        Parser table; defaults to the built-in registry.

    Raises
    ------
    UnsupportedFormat
        No parser and no safe text fallback, or the parser rejected the
        bytes.
    """
    registry = registry or default_registry
    ext = normalize_extension(extension)
    options = ParseOptions(
        encoding=encoding,
        custom_pdf_parse=custom_pdf_parse,
        get_format_text=get_format_text,
    )

    extractor = registry.get(ext)
    if extractor is not None:
        try:
            extracted = extractor(data, options)
        except SourceReadError:
            raise
        except Exception as exc:
            raise UnsupportedFormat(f"failed to parse .{ext} content: {exc}") from exc
        return NormalizedText(title=extracted.title, raw_text=clean_text(extracted.text))

    if ext in BINARY_EXTENSIONS:
        try:
            text = decode_bytes(data, encoding)
        except UnsupportedFormat as exc:
            raise UnsupportedFormat(f"no parser registered for binary format .{ext}") from exc
    else:
        if ext:
            logger.debug("No parser for .%s; reading as text", ext)
        text = decode_bytes(data, encoding)
    return NormalizedText(raw_text=clean_text(text))
