"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from dataset_ingest.retry import RetryPolicy


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


def _make_response(
    status_code: int = 200,
    *,
    content: bytes = b"",
    json_body: Any = None,
    reason: str = "",
) -> MagicMock:
    """Minimal stand-in for ``requests.Response``."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.iter_content.side_effect = lambda chunk_size=1, decode_unicode=False: iter(
        [content[i : i + chunk_size] for i in range(0, len(content), chunk_size)]
    )
    resp.reason = reason
    resp.json.return_value = json_body
    return resp


@pytest.fixture()
def make_response() -> Callable[..., MagicMock]:
    """Factory fixture: ``make_response(404, content=b"...")``."""
    return _make_response


@pytest.fixture()
def fast_retry() -> RetryPolicy:
    """Three attempts with no back-off, so retry tests don't sleep."""
    return RetryPolicy(max_attempts=3, wait_min=0, wait_max=0)
