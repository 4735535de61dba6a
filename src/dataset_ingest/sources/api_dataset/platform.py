"""Feishu / Yuque connectors.

Both platforms are reached through the platform gateway service, which
owns the OAuth dance and token caching for each vendor.  We send one
``POST {pro_api_base_url}/core/dataset/systemApiDataset`` per operation
with ``type`` set to ``content``, ``list`` or ``read``.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

import requests
from pydantic import BaseModel

from dataset_ingest.config import settings
from dataset_ingest.errors import FetchFailed, SourceUnsupported
from dataset_ingest.retry import raise_for_status, translate_transport_errors
from dataset_ingest.sources.api_dataset.base import (
    ApiDatasetConnector,
    expect_dict,
    optional_str,
    parse_file_items,
    unwrap_response,
)
from dataset_ingest.sources.models import APIFileItem, FeishuServer, NormalizedText, YuqueServer

logger = logging.getLogger(__name__)


class PlatformConnector(ApiDatasetConnector):
    """Shared gateway plumbing; subclasses only name their config field.

    Raises
    ------
    SourceUnsupported
        When no gateway URL is configured.  Raised at construction, so
        before any network call.
    """

    server_field: ClassVar[str]

    def __init__(
        self,
        server: BaseModel,
        *,
        base_url: str | None = None,
        root_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.server = server
        self.base_url = (base_url if base_url is not None else settings.pro_api_base_url).rstrip("/")
        self.root_key = root_key if root_key is not None else settings.pro_api_root_key
        if not self.base_url:
            raise SourceUnsupported(f"{self.flavor} datasets require pro_api_base_url to be configured")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/core/dataset/systemApiDataset"

    def _call(self, operation: str, **fields: Any) -> Any:
        url = self.endpoint
        body = {
            "type": operation,
            self.server_field: self.server.model_dump(by_alias=True),
            "teamId": self.team_id,
            "tmbId": self.tmb_id,
            **fields,
        }
        headers = {"rootkey": self.root_key} if self.root_key else {}
        with translate_transport_errors(url):
            resp = requests.post(url, json=body, headers=headers, timeout=settings.request_timeout)
        raise_for_status(resp, url)
        with translate_transport_errors(url):
            payload = resp.json()
        return unwrap_response(payload, url)

    def get_file_content(self, file_id: str) -> NormalizedText:
        data = expect_dict(
            self._call("content", apiFileId=file_id, customPdfParse=self.custom_pdf_parse),
            self.endpoint,
        )
        raw_text = optional_str(data.get("rawText")) or ""
        logger.info("%s file %s: %d chars", self.flavor, file_id, len(raw_text))
        return NormalizedText(title=optional_str(data.get("title")), raw_text=raw_text)

    def list_files(self, parent_id: str | None = None, search_key: str = "") -> list[APIFileItem]:
        data = self._call("list", parentId=parent_id, searchKey=search_key)
        return parse_file_items(data if data is not None else [], self.endpoint)

    def get_file_preview_url(self, file_id: str) -> str:
        url = self._call("read", apiFileId=file_id)
        if not url or not isinstance(url, str):
            raise FetchFailed(f"{self.flavor} file {file_id!r}: gateway returned no preview url")
        return url


class FeishuConnector(PlatformConnector):
    flavor = "feishu"
    server_field = "feishuServer"

    def __init__(self, server: FeishuServer, **kwargs: Any) -> None:
        super().__init__(server, **kwargs)


class YuqueConnector(PlatformConnector):
    flavor = "yuque"
    server_field = "yuqueServer"

    def __init__(self, server: YuqueServer, **kwargs: Any) -> None:
        super().__init__(server, **kwargs)
