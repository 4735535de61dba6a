"""Failure taxonomy shared by every ingestion stage.

Callers only ever see subclasses of :class:`SourceReadError`.  The
``kind`` attribute is a stable, machine-readable tag that job runners and
the HTTP layer use to decide between "retry the whole document" and
"mark it permanently failed".
"""

from __future__ import annotations


class SourceReadError(Exception):
    """Base class for all ingestion failures."""

    kind = "SourceReadError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:  # noqa: D105
        return f"{self.kind}: {self.message}" if self.message else self.kind


class SourceUnsupported(SourceReadError):
    """The descriptor kind (or a provider flavor) has no reader."""

    kind = "SourceUnsupported"


class AmbiguousProvider(SourceReadError):
    """Zero or several API-provider configs were supplied."""

    kind = "AmbiguousProvider"


class NotFound(SourceReadError):
    """A local object id or remote file does not exist."""

    kind = "NotFound"


class FetchFailed(SourceReadError):
    """Transport error or non-2xx response.

    Attributes
    ----------
    status:
        HTTP status code when the failure came from a response, else ``None``.
    transient:
        ``True`` for failures worth retrying (timeouts, connection
        resets, 5xx, 429).
    """

    kind = "FetchFailed"

    def __init__(self, message: str = "", *, status: int | None = None, transient: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.transient = transient

    @classmethod
    def from_status(cls, status: int, message: str) -> FetchFailed:
        """Build the right subclass for an HTTP error status."""
        if status == 404:
            return RemoteNotFound(message, status=status)
        if status in (401, 403):
            return AuthFailed(message, status=status)
        return cls(message, status=status, transient=status >= 500 or status == 429)


class RemoteNotFound(NotFound, FetchFailed):
    """Remote 404 — both a missing document and a failed fetch."""

    kind = "NotFound"

    def __init__(self, message: str = "", *, status: int | None = 404) -> None:
        FetchFailed.__init__(self, message, status=status, transient=False)


class AuthFailed(FetchFailed):
    """The provider rejected our credentials (401 / 403)."""

    kind = "FetchFailed"


class UnsupportedFormat(SourceReadError):
    """No decoder for the extension and no safe text fallback."""

    kind = "UnsupportedFormat"


class InvalidConfig(SourceReadError, ValueError):
    """Caller passed an unusable split configuration."""

    kind = "InvalidConfig"
