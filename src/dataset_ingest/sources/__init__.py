"""
Sources — fetch documents from every supported source kind.

Public surface
--------------
- :func:`resolve` — descriptor → :class:`NormalizedText` (the router).
- :class:`ContentFetcher` / :class:`ObjectStoreBase` — extension points.
- :class:`SourceDescriptor`, :class:`SourceKind`, :class:`RawDocument`,
  :class:`NormalizedText` and the provider configs — data models.
"""

from dataset_ingest.sources.base import ContentFetcher, ObjectStoreBase
from dataset_ingest.sources.models import (
    APIFileItem,
    APIFileServer,
    FeishuServer,
    NormalizedText,
    RawDocument,
    SourceDescriptor,
    SourceKind,
    StoredObject,
    YuqueServer,
)

__all__ = [
    "APIFileItem",
    "APIFileServer",
    "ContentFetcher",
    "FeishuServer",
    "NormalizedText",
    "ObjectStoreBase",
    "RawDocument",
    "SourceDescriptor",
    "SourceKind",
    "StoredObject",
    "YuqueServer",
    "parse_source_kind",
    "resolve",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the router so the models stay importable on their own."""
    if name in ("resolve", "parse_source_kind"):
        from dataset_ingest.sources import router

        return getattr(router, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
