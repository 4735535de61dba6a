"""Local-store fetcher and a directory-backed object store."""

from __future__ import annotations

import logging
from pathlib import Path

from dataset_ingest.errors import NotFound
from dataset_ingest.sources.base import ContentFetcher, ObjectStoreBase
from dataset_ingest.sources.models import RawDocument, SourceDescriptor, StoredObject

logger = logging.getLogger(__name__)


class DirectoryObjectStore(ObjectStoreBase):
    """Object store rooted at a local directory.

    Object ids are paths relative to *root*; ids that resolve outside the
    root are treated as absent.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def get(self, object_id: str) -> StoredObject | None:
        path = (self.root / object_id).resolve()
        if not path.is_relative_to(self.root) or not path.is_file():
            return None
        return StoredObject(filename=path.name, data=path.read_bytes())


class LocalStoreFetcher(ContentFetcher):
    """Read a previously uploaded file by its object id."""

    def __init__(self, store: ObjectStoreBase) -> None:
        self._store = store

    def fetch(self, locator: str, descriptor: SourceDescriptor) -> RawDocument:
        obj = self._store.get(locator)
        if obj is None:
            raise NotFound(f"object {locator!r} not found in store")
        logger.info("Read %s from object store (%d bytes)", obj.filename, len(obj.data))
        suffix = Path(obj.filename).suffix.lstrip(".")
        return RawDocument(title=obj.filename, data=obj.data, extension=suffix or None)
