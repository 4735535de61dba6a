"""Source router — descriptor → fetcher → (decoder) → :class:`NormalizedText`.

Usage::

    from dataset_ingest.sources.router import resolve
    from dataset_ingest.sources.models import SourceDescriptor, SourceKind

    text = resolve(SourceDescriptor(kind=SourceKind.WEB_LINK, locator="https://example.com"))
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from dataset_ingest.config import settings
from dataset_ingest.decoding.decoder import decode
from dataset_ingest.errors import SourceUnsupported
from dataset_ingest.retry import RetryPolicy, call_with_retry
from dataset_ingest.sources.api_dataset import ApiDatasetFetcher
from dataset_ingest.sources.base import ContentFetcher, ObjectStoreBase
from dataset_ingest.sources.external_file import ExternalFileFetcher
from dataset_ingest.sources.local_store import DirectoryObjectStore, LocalStoreFetcher
from dataset_ingest.sources.models import NormalizedText, SourceDescriptor, SourceKind
from dataset_ingest.sources.web_link import WebLinkFetcher

logger = logging.getLogger(__name__)

# Source-type names used by the dataset service, accepted as aliases.
_KIND_ALIASES: dict[str, SourceKind] = {
    "fileLocal": SourceKind.LOCAL_STORE,
    "link": SourceKind.WEB_LINK,
    "externalFile": SourceKind.EXTERNAL_FILE,
    "apiFile": SourceKind.API_DATASET,
}


def parse_source_kind(value: str | SourceKind) -> SourceKind:
    """Map a caller-supplied source type to a :class:`SourceKind`.

    Raises
    ------
    SourceUnsupported
        For any value that names no known kind.
    """
    if isinstance(value, SourceKind):
        return value
    if value in _KIND_ALIASES:
        return _KIND_ALIASES[value]
    try:
        return SourceKind(value)
    except ValueError:
        raise SourceUnsupported(f"unknown source type {value!r}") from None


def _fetcher_table(object_store: ObjectStoreBase | None) -> dict[SourceKind, Callable[[], ContentFetcher]]:
    # Factories, so the object store is only touched for local reads.
    return {
        SourceKind.LOCAL_STORE: lambda: LocalStoreFetcher(
            object_store or DirectoryObjectStore(settings.object_store_root)
        ),
        SourceKind.WEB_LINK: WebLinkFetcher,
        SourceKind.EXTERNAL_FILE: ExternalFileFetcher,
        SourceKind.API_DATASET: ApiDatasetFetcher,
    }


def resolve(
    descriptor: SourceDescriptor,
    *,
    object_store: ObjectStoreBase | None = None,
    retry_policy: RetryPolicy | None = None,
) -> NormalizedText:
    """Fetch and normalise the document named by *descriptor*.

    Parameters
    ----------
    descriptor:
        What to read.
    object_store:
        Store for ``local-store`` reads; defaults to a
        :class:`DirectoryObjectStore` at ``settings.object_store_root``.
    retry_policy:
        Retry budget for the fetch step.  Decoding is never retried.

    Raises
    ------
    SourceUnsupported
        *descriptor.kind* has no fetcher.
    SourceReadError
        Whatever the fetcher or decoder raised, unchanged.
    """
    factory = _fetcher_table(object_store).get(descriptor.kind)
    if factory is None:
        raise SourceUnsupported(f"no fetcher for source kind {descriptor.kind!r}")

    fetcher = factory()
    raw = call_with_retry(fetcher.fetch, descriptor.locator, descriptor, policy=retry_policy)

    if raw.is_binary:
        decoded = decode(
            raw.data,
            raw.extension,
            descriptor.encoding,
            custom_pdf_parse=descriptor.custom_pdf_parse,
            get_format_text=descriptor.get_format_text,
        )
        title = raw.title or decoded.title
        result = NormalizedText(title=title, raw_text=decoded.raw_text)
    else:
        result = NormalizedText(title=raw.title, raw_text=raw.text or "")

    logger.info(
        "Resolved %s source %s (%d chars)",
        descriptor.kind.value,
        descriptor.locator,
        len(result.raw_text),
    )
    return result
