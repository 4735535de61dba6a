"""Abstract connector shared by every API-dataset provider flavor."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from dataset_ingest.errors import FetchFailed
from dataset_ingest.sources.models import APIFileItem, NormalizedText


class ApiDatasetConnector(ABC):
    """Narrow contract every document provider implements.

    Parameters
    ----------
    team_id / tmb_id:
        Opaque tenancy ids forwarded to the provider for authorization
        and quota accounting.
    custom_pdf_parse:
        Forwarded when a provider hands back a file that we decode.
    """

    flavor: str = "api"

    def __init__(self, *, team_id: str = "", tmb_id: str = "", custom_pdf_parse: bool = False) -> None:
        self.team_id = team_id
        self.tmb_id = tmb_id
        self.custom_pdf_parse = custom_pdf_parse

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def get_file_content(self, file_id: str) -> NormalizedText:
        """Return the title and plain text of *file_id*."""
        ...

    @abstractmethod
    def list_files(self, parent_id: str | None = None, search_key: str = "") -> list[APIFileItem]:
        """List the children of *parent_id* (root when ``None``)."""
        ...

    @abstractmethod
    def get_file_preview_url(self, file_id: str) -> str:
        """Return a browser-viewable URL for *file_id*."""
        ...


def unwrap_response(payload: Any, url: str) -> Any:
    """Validate a ``{code, success, message, data}`` envelope and return ``data``."""
    if not isinstance(payload, dict):
        raise FetchFailed(f"{url}: provider returned an empty or non-JSON body")

    code = payload.get("code", 200)
    try:
        code = int(code)
    except (TypeError, ValueError):
        code = 500
    message = payload.get("message") or payload.get("msg") or "request failed"

    if payload.get("success") is False or not 200 <= code < 400:
        if 400 <= code < 600:
            raise FetchFailed.from_status(code, f"{url}: {message}")
        raise FetchFailed(f"{url}: {message} (code={code})")
    return payload.get("data")


def expect_dict(data: Any, url: str) -> dict[str, Any]:
    """Return *data* when it is a JSON object, else raise ``FetchFailed``."""
    if not isinstance(data, dict):
        raise FetchFailed(f"{url}: malformed payload, expected an object but got {type(data).__name__}")
    return data


def parse_file_items(raw: Any, url: str) -> list[APIFileItem]:
    """Validate a list of file entries returned by a provider."""
    if not isinstance(raw, list):
        raise FetchFailed(f"{url}: malformed payload, expected a list but got {type(raw).__name__}")
    try:
        return [APIFileItem.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise FetchFailed(f"{url}: malformed file entry: {exc.error_count()} validation error(s)") from exc


def optional_str(value: Any) -> str | None:
    """Coerce a provider-supplied scalar (title, url …) to ``str``."""
    if value is None or value == "":
        return None
    return str(value)
