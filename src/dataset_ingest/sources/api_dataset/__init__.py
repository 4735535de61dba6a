"""API-dataset connectors and the provider-flavor dispatch.

Exactly one provider config (``api_server``, ``feishu_server`` or
``yuque_server``) selects the connector; anything else is an
:class:`~dataset_ingest.errors.AmbiguousProvider` error raised before
any request is made.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from dataset_ingest.errors import AmbiguousProvider
from dataset_ingest.sources.api_dataset.api_file_server import APIFileServerConnector
from dataset_ingest.sources.api_dataset.base import ApiDatasetConnector
from dataset_ingest.sources.api_dataset.platform import FeishuConnector, YuqueConnector
from dataset_ingest.sources.base import ContentFetcher
from dataset_ingest.sources.models import RawDocument, SourceDescriptor

__all__ = [
    "APIFileServerConnector",
    "ApiDatasetConnector",
    "ApiDatasetFetcher",
    "FeishuConnector",
    "YuqueConnector",
    "get_api_dataset_connector",
]

_CONNECTORS: dict[str, type[ApiDatasetConnector]] = {
    "api_server": APIFileServerConnector,
    "feishu_server": FeishuConnector,
    "yuque_server": YuqueConnector,
}


def get_api_dataset_connector(
    *,
    api_server: BaseModel | None = None,
    feishu_server: BaseModel | None = None,
    yuque_server: BaseModel | None = None,
    **connector_kwargs: Any,
) -> ApiDatasetConnector:
    """Build the connector for whichever provider config is set.

    Parameters
    ----------
    api_server / feishu_server / yuque_server:
        Provider configs; exactly one must be non-``None``.
    connector_kwargs:
        ``team_id``, ``tmb_id``, ``custom_pdf_parse`` …, forwarded.
    """
    given = {
        "api_server": api_server,
        "feishu_server": feishu_server,
        "yuque_server": yuque_server,
    }
    configured = [name for name, cfg in given.items() if cfg is not None]
    if len(configured) != 1:
        found = ", ".join(configured) or "none"
        raise AmbiguousProvider(f"expected exactly one API provider config, got: {found}")

    name = configured[0]
    return _CONNECTORS[name](given[name], **connector_kwargs)


class ApiDatasetFetcher(ContentFetcher):
    """Read one provider file through the selected connector."""

    def fetch(self, locator: str, descriptor: SourceDescriptor) -> RawDocument:
        connector = get_api_dataset_connector(
            api_server=descriptor.api_server,
            feishu_server=descriptor.feishu_server,
            yuque_server=descriptor.yuque_server,
            team_id=descriptor.team_id,
            tmb_id=descriptor.tmb_id,
            custom_pdf_parse=descriptor.custom_pdf_parse,
        )
        content = connector.get_file_content(locator)
        return RawDocument(title=content.title, text=content.raw_text)
