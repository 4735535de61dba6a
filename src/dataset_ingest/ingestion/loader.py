"""Caller-facing read entry point for dataset sources."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from dataset_ingest.errors import SourceUnsupported
from dataset_ingest.retry import RetryPolicy
from dataset_ingest.sources.base import ObjectStoreBase
from dataset_ingest.sources.models import (
    APIFileServer,
    FeishuServer,
    NormalizedText,
    SourceDescriptor,
    SourceKind,
    YuqueServer,
)
from dataset_ingest.sources.router import parse_source_kind, resolve

logger = logging.getLogger(__name__)

# Error locations may use either the field name or its camelCase alias.
_PROVIDER_FIELDS = frozenset(
    {"api_server", "feishu_server", "yuque_server", "apiServer", "feishuServer", "yuqueServer"}
)


def _descriptor_error(exc: ValidationError) -> SourceUnsupported:
    """Summarise descriptor validation errors as one ``SourceUnsupported``."""
    problems = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        problems.append(f"{loc}: {error['msg']}")
    fields = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
    what = "provider config" if fields and fields <= _PROVIDER_FIELDS else "source descriptor"
    return SourceUnsupported(f"invalid {what}: " + "; ".join(problems))


def read_dataset_source_raw_text(
    *,
    team_id: str,
    tmb_id: str,
    source_type: str | SourceKind,
    source_id: str,
    selector: str | None = None,
    external_file_id: str | None = None,
    api_server: APIFileServer | dict[str, Any] | None = None,
    feishu_server: FeishuServer | dict[str, Any] | None = None,
    yuque_server: YuqueServer | dict[str, Any] | None = None,
    custom_pdf_parse: bool = False,
    get_format_text: bool = False,
    encoding: str | None = None,
    object_store: ObjectStoreBase | None = None,
    retry_policy: RetryPolicy | None = None,
) -> NormalizedText:
    """Read one dataset source and return its title and plain text.

    Parameters
    ----------
    team_id / tmb_id:
        Tenancy ids, forwarded to collaborators untouched.
    source_type:
        ``local-store``, ``web-link``, ``external-file`` or ``api-dataset``
        (``fileLocal`` / ``link`` / ``externalFile`` / ``apiFile`` are
        accepted too).
    source_id:
        Object id, URL, or provider file id.
    selector:
        CSS selector for ``web-link`` sources.
    external_file_id:
        Required for ``external-file`` sources.
    api_server / feishu_server / yuque_server:
        Provider config for ``api-dataset``; exactly one must be given.
    custom_pdf_parse / get_format_text / encoding:
        Decoder options.
    object_store:
        Store backing ``local-store`` reads.
    retry_policy:
        Retry budget for transient fetch failures.

    Raises
    ------
    SourceReadError
        One of the taxonomy errors; nothing is returned on failure.
    """
    kind = parse_source_kind(source_type)
    try:
        descriptor = SourceDescriptor(
            kind=kind,
            locator=source_id,
            team_id=team_id,
            tmb_id=tmb_id,
            selector=selector,
            external_file_id=external_file_id,
            api_server=api_server,
            feishu_server=feishu_server,
            yuque_server=yuque_server,
            encoding=encoding,
            custom_pdf_parse=custom_pdf_parse,
            get_format_text=get_format_text,
        )
    except ValidationError as exc:
        raise _descriptor_error(exc) from exc
    logger.debug("Reading %s source %s for team %s", kind.value, source_id, team_id)
    return resolve(descriptor, object_store=object_store, retry_policy=retry_policy)
