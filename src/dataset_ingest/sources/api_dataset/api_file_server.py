"""Generic API file server connector.

The server implements three endpoints under ``{base_url}/v1/file``::

    POST /list     {parentId, searchKey} → [APIFileItem, …]
    GET  /content  ?id=…                 → {title?, content?, previewUrl?}
    GET  /read     ?id=…                 → {url}

Every response is wrapped in ``{code, success, message, data}``.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from dataset_ingest.config import settings
from dataset_ingest.errors import FetchFailed, UnsupportedFormat
from dataset_ingest.retry import raise_for_status, translate_transport_errors
from dataset_ingest.sources.api_dataset.base import (
    ApiDatasetConnector,
    expect_dict,
    optional_str,
    parse_file_items,
    unwrap_response,
)
from dataset_ingest.sources.external_file import read_file_raw_text_by_url
from dataset_ingest.sources.models import APIFileItem, APIFileServer, NormalizedText

logger = logging.getLogger(__name__)

# Guard against a server that keeps handing out page tokens.
_MAX_LIST_PAGES = 1000


class APIFileServerConnector(ApiDatasetConnector):
    """Connector for a self-hosted API file server."""

    flavor = "api"

    def __init__(self, server: APIFileServer, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.server = server

    # -- plumbing -------------------------------------------------------------

    def _url(self, path: str) -> str:
        return self.server.base_url.rstrip("/") + path

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": settings.user_agent}
        if self.server.authorization:
            headers["Authorization"] = f"Bearer {self.server.authorization}"
        return headers

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        url = self._url(path)
        with translate_transport_errors(url):
            resp = requests.get(url, params=params, headers=self._headers(), timeout=settings.request_timeout)
        raise_for_status(resp, url)
        with translate_transport_errors(url):
            payload = resp.json()
        return unwrap_response(payload, url)

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        url = self._url(path)
        with translate_transport_errors(url):
            resp = requests.post(url, json=body, headers=self._headers(), timeout=settings.request_timeout)
        raise_for_status(resp, url)
        with translate_transport_errors(url):
            payload = resp.json()
        return unwrap_response(payload, url)

    # -- ApiDatasetConnector --------------------------------------------------

    def get_file_content(self, file_id: str) -> NormalizedText:
        url = self._url("/v1/file/content")
        data = expect_dict(self._get("/v1/file/content", {"id": file_id}), url)
        title = optional_str(data.get("title"))
        content = data.get("content")
        preview_url = data.get("previewUrl")

        if content:
            return NormalizedText(title=title, raw_text=str(content))
        if preview_url:
            logger.info("API file %s has no inline content; reading preview URL", file_id)
            raw_text = read_file_raw_text_by_url(str(preview_url), custom_pdf_parse=self.custom_pdf_parse)
            return NormalizedText(title=title, raw_text=raw_text)
        raise UnsupportedFormat(f"API file {file_id!r}: response has neither content nor previewUrl")

    def list_files(self, parent_id: str | None = None, search_key: str = "") -> list[APIFileItem]:
        """List files, following ``nextPageToken`` when the server paginates."""
        url = self._url("/v1/file/list")
        items: list[APIFileItem] = []
        body: dict[str, Any] = {"parentId": parent_id, "searchKey": search_key}
        for _ in range(_MAX_LIST_PAGES):
            data = self._post("/v1/file/list", body)
            if isinstance(data, dict):
                page, token = data.get("list") or [], data.get("nextPageToken")
            else:
                page, token = data or [], None
            items.extend(parse_file_items(page, url))
            if not token:
                return items
            body = {**body, "pageToken": token}
        raise FetchFailed(f"{url}: gave up after {_MAX_LIST_PAGES} pages")

    def get_file_preview_url(self, file_id: str) -> str:
        url = self._url("/v1/file/read")
        data = expect_dict(self._get("/v1/file/read", {"id": file_id}), url)
        preview_url = data.get("url")
        if not preview_url or not isinstance(preview_url, str):
            raise FetchFailed(f"API file {file_id!r}: read endpoint returned no url")
        return preview_url
