"""Error & retry shell wrapped around every fetch.

Two jobs:

1. :func:`translate_transport_errors` turns ``requests`` exceptions into
   :class:`~dataset_ingest.errors.FetchFailed` so transport types never
   leak past a fetcher.
2. :func:`call_with_retry` re-runs a fetch while it fails with a
   *transient* ``FetchFailed``.  Auth, not-found, decode and config
   errors are surfaced on the first occurrence.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from dataset_ingest.config import settings
from dataset_ingest.errors import FetchFailed, SourceReadError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one ingestion request.

    Attributes
    ----------
    max_attempts:
        Total attempts including the first one.
    wait_min / wait_max:
        Bounds (seconds) of the exponential back-off between attempts.
    """

    max_attempts: int = settings.max_retries
    wait_min: float = settings.retry_wait_min
    wait_max: float = settings.retry_wait_max

    @classmethod
    def no_retry(cls) -> RetryPolicy:
        return cls(max_attempts=1, wait_min=0, wait_max=0)


def is_transient(exc: BaseException) -> bool:
    """Return ``True`` when *exc* is worth another attempt."""
    return isinstance(exc, FetchFailed) and exc.transient


def transport_error(exc: requests.RequestException, url: str = "") -> FetchFailed:
    """Convert a ``requests`` exception into the matching ``FetchFailed``."""
    url = url or getattr(exc.request, "url", "") or ""
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return FetchFailed.from_status(exc.response.status_code, f"{url}: {exc}")
    if isinstance(exc, (requests.Timeout, requests.ConnectionError)):
        return FetchFailed(f"{url}: {exc}", transient=True)
    return FetchFailed(f"{url}: {exc}")


@contextmanager
def translate_transport_errors(url: str) -> Iterator[None]:
    """Map ``requests`` failures raised inside the block to ``FetchFailed``."""
    try:
        yield
    except requests.RequestException as exc:
        raise transport_error(exc, url) from exc


def raise_for_status(resp: requests.Response, url: str) -> None:
    """Raise the taxonomy error matching a non-2xx *resp*."""
    if 200 <= resp.status_code < 300:
        return
    reason = getattr(resp, "reason", "") or ""
    raise FetchFailed.from_status(
        resp.status_code,
        f"{url}: HTTP {resp.status_code} {reason}".rstrip(),
    )


def call_with_retry(
    fn: Callable[..., T],
    *args: Any,
    policy: RetryPolicy | None = None,
    **kwargs: Any,
) -> T:
    """Invoke ``fn(*args, **kwargs)`` under *policy*.

    Exceptions outside the taxonomy (a misbehaving object store, an
    unexpected ``OSError`` …) are wrapped as non-transient
    ``FetchFailed`` so callers only ever handle :class:`SourceReadError`.
    """
    policy = policy or RetryPolicy()

    def _guarded() -> T:
        try:
            return fn(*args, **kwargs)
        except SourceReadError:
            raise
        except requests.RequestException as exc:
            raise transport_error(exc) from exc
        except OSError as exc:
            raise FetchFailed(str(exc)) from exc

    retrying = Retrying(
        retry=retry_if_exception(is_transient),
        stop=stop_after_attempt(max(1, policy.max_attempts)),
        wait=wait_exponential(multiplier=1, min=policy.wait_min, max=policy.wait_max),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(_guarded)
