"""Abstract base classes for fetchers and the object-store collaborator.

Adding a new source kind only requires subclassing :class:`ContentFetcher`
and registering it in the router's dispatch table.  Object stores
(GridFS, S3, a local directory …) subclass :class:`ObjectStoreBase`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from dataset_ingest.sources.models import RawDocument, SourceDescriptor, StoredObject


class ContentFetcher(ABC):
    """One fetcher per source kind.

    Implementations hold only immutable configuration, so a single
    instance may serve concurrent requests for different descriptors.
    """

    @abstractmethod
    def fetch(self, locator: str, descriptor: SourceDescriptor) -> RawDocument:
        """Retrieve the document at *locator*.

        Parameters
        ----------
        locator:
            Storage id, URL, or provider file id.
        descriptor:
            The full descriptor, for kind-specific auxiliary config.

        Returns
        -------
        RawDocument
            Either undecoded bytes plus an extension hint, or ready text.
        """
        ...


class ObjectStoreBase(ABC):
    """Read-only, id-keyed blob store owned by the caller."""

    @abstractmethod
    def get(self, object_id: str) -> StoredObject | None:
        """Return the stored object, or ``None`` when *object_id* is absent."""
        ...
