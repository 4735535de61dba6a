"""External-file fetcher — download a file by URL and tag its extension."""

from __future__ import annotations

import logging
from urllib.parse import unquote, urlsplit

import requests

from dataset_ingest.config import settings
from dataset_ingest.decoding.decoder import decode
from dataset_ingest.errors import FetchFailed, NotFound
from dataset_ingest.retry import raise_for_status, translate_transport_errors
from dataset_ingest.sources.base import ContentFetcher
from dataset_ingest.sources.models import RawDocument, SourceDescriptor

logger = logging.getLogger(__name__)

_STREAM_CHUNK_BYTES = 64 * 1024


def parse_file_extension_from_url(url: str) -> str:
    """Return the lower-cased extension of the URL *path*, or ``""``.

    Query strings and fragments are ignored, so
    ``https://x/report.PDF?sig=abc`` yields ``"pdf"``.
    """
    path = unquote(urlsplit(url).path)
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def download_file(
    url: str,
    *,
    byte_range: tuple[int, int | None] | None = None,
    timeout: float | None = None,
) -> bytes:
    """GET *url* and return its body, buffered up to ``settings.max_file_bytes``.

    Parameters
    ----------
    url:
        Any HTTP(S) URL, typically a signed link.
    byte_range:
        Optional ``(start, end)`` sent as a ``Range`` header; *end* may
        be ``None`` for an open range.  A ``206`` answer is accepted.
    timeout:
        Per-request timeout; defaults to ``settings.request_timeout``.
    """
    headers = {"User-Agent": settings.user_agent}
    if byte_range is not None:
        start, end = byte_range
        headers["Range"] = f"bytes={start}-{'' if end is None else end}"

    with translate_transport_errors(url):
        resp = requests.get(url, headers=headers, timeout=timeout or settings.request_timeout, stream=True)
    try:
        raise_for_status(resp, url)
        return _read_capped(resp, url, settings.max_file_bytes)
    finally:
        resp.close()


def _read_capped(resp: requests.Response, url: str, limit: int) -> bytes:
    """Buffer a streamed body, aborting as soon as it grows past *limit*."""
    buf = bytearray()
    with translate_transport_errors(url):
        for piece in resp.iter_content(chunk_size=_STREAM_CHUNK_BYTES):
            buf.extend(piece)
            if len(buf) > limit:
                raise FetchFailed(
                    f"{url}: body exceeds max_file_bytes={limit}",
                    status=resp.status_code,
                )
    return bytes(buf)


class ExternalFileFetcher(ContentFetcher):
    """Fetch a file hosted outside the platform."""

    def fetch(self, locator: str, descriptor: SourceDescriptor) -> RawDocument:
        if not descriptor.external_file_id:
            raise NotFound("FileId not found")
        data = download_file(locator)
        extension = parse_file_extension_from_url(locator)
        logger.info(
            "Downloaded external file %s (%d bytes, ext=%r)",
            descriptor.external_file_id,
            len(data),
            extension,
        )
        return RawDocument(data=data, extension=extension or None)


def read_file_raw_text_by_url(
    url: str,
    *,
    custom_pdf_parse: bool = False,
    get_format_text: bool = False,
    encoding: str | None = None,
) -> str:
    """Download *url* and decode it using the extension of its path."""
    data = download_file(url)
    normalized = decode(
        data,
        parse_file_extension_from_url(url),
        encoding,
        custom_pdf_parse=custom_pdf_parse,
        get_format_text=get_format_text,
    )
    return normalized.raw_text
