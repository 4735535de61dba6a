"""Domain models for source descriptors and fetch results."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Wire models accept both snake_case and the camelCase keys that the
# dataset service sends.
_WIRE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class SourceKind(str, Enum):
    """Closed set of source kinds the router knows how to read."""

    LOCAL_STORE = "local-store"
    WEB_LINK = "web-link"
    EXTERNAL_FILE = "external-file"
    API_DATASET = "api-dataset"


# -- provider configs ---------------------------------------------------------


class APIFileServer(BaseModel):
    """Generic API file server (``/v1/file/*`` protocol)."""

    model_config = _WIRE_CONFIG

    base_url: str
    authorization: str = ""


class FeishuServer(BaseModel):
    """Feishu (Lark) document space credentials."""

    model_config = _WIRE_CONFIG

    app_id: str
    app_secret: str
    folder_token: str = ""


class YuqueServer(BaseModel):
    """Yuque knowledge base credentials."""

    model_config = _WIRE_CONFIG

    user_id: str
    token: str
    base_path: str = ""


class APIFileItem(BaseModel):
    """One entry returned by a connector's ``list_files``."""

    model_config = _WIRE_CONFIG

    id: str
    parent_id: str | None = None
    name: str
    type: Literal["file", "folder"] = "file"
    has_child: bool = False
    update_time: str | None = None
    create_time: str | None = None


# -- descriptor / results -----------------------------------------------------


class SourceDescriptor(BaseModel):
    """What to fetch and how.

    Attributes
    ----------
    kind:
        Which fetcher runs.
    locator:
        Object-store id, URL, or provider file id depending on *kind*.
    team_id / tmb_id:
        Opaque tenancy ids forwarded to collaborators; never interpreted.
    selector:
        CSS selector restricting a scraped page to a sub-region.
    external_file_id:
        Caller-side id of an external file (required for external files).
    api_server / feishu_server / yuque_server:
        Provider config for ``api-dataset``; exactly one must be set.
    encoding:
        Character-set hint for plain-text payloads.
    custom_pdf_parse:
        Route PDFs to the remote PDF parse service when configured.
    get_format_text:
        Prefer formatted text (e.g. Markdown tables for CSV/XLSX).
    """

    model_config = _WIRE_CONFIG

    kind: SourceKind
    locator: str
    team_id: str = ""
    tmb_id: str = ""
    selector: str | None = None
    external_file_id: str | None = None
    api_server: APIFileServer | None = None
    feishu_server: FeishuServer | None = None
    yuque_server: YuqueServer | None = None
    encoding: str | None = None
    custom_pdf_parse: bool = False
    get_format_text: bool = False


class RawDocument(BaseModel):
    """A fetcher's output — either undecoded bytes or ready text."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    data: bytes | None = None
    text: str | None = None
    extension: str | None = None

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> RawDocument:
        if (self.data is None) == (self.text is None):
            raise ValueError("RawDocument needs exactly one of 'data' or 'text'")
        return self

    @property
    def is_binary(self) -> bool:
        return self.data is not None


class NormalizedText(BaseModel):
    """The canonical ``{title?, rawText}`` shape every source converges to."""

    model_config = _WIRE_CONFIG

    title: str | None = None
    raw_text: str = Field(default="")


class StoredObject(BaseModel):
    """A blob returned by an object store."""

    model_config = ConfigDict(frozen=True)

    filename: str
    data: bytes
