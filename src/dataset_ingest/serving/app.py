"""FastAPI application exposing source reading and chunking as a REST API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dataset_ingest.config import settings
from dataset_ingest.errors import (
    AmbiguousProvider,
    FetchFailed,
    InvalidConfig,
    NotFound,
    SourceReadError,
    SourceUnsupported,
    UnsupportedFormat,
)
from dataset_ingest.ingestion.chunker import ChunkRecord, SplitterMode, TextSplitConfig, split
from dataset_ingest.ingestion.loader import read_dataset_source_raw_text
from dataset_ingest.sources.models import APIFileServer, FeishuServer, YuqueServer

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Dataset Ingest API",
    version="0.1.0",
    description="Read dataset sources into plain text and split them into chunks.",
)

# Most specific first: RemoteNotFound is both NotFound and FetchFailed.
_STATUS_BY_ERROR: list[tuple[type[SourceReadError], int]] = [
    (NotFound, 404),
    (InvalidConfig, 422),
    (SourceUnsupported, 400),
    (AmbiguousProvider, 400),
    (UnsupportedFormat, 415),
    (FetchFailed, 502),
]


# ── Request / Response schemas ────────────────────────────────────────
class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ReadSourceRequest(_CamelModel):
    """Which source to read."""

    team_id: str
    tmb_id: str
    source_type: str
    source_id: str
    selector: str | None = None
    external_file_id: str | None = None
    api_server: APIFileServer | None = None
    feishu_server: FeishuServer | None = None
    yuque_server: YuqueServer | None = None
    custom_pdf_parse: bool = False
    get_format_text: bool = False
    encoding: str | None = None


class ReadSourceResponse(_CamelModel):
    title: str | None = None
    raw_text: str


class ChunkRequest(_CamelModel):
    """Text plus split settings."""

    raw_text: str
    backup_parse: bool = False
    chunk_size: int = settings.default_chunk_size
    overlap: int | None = None
    splitter_mode: SplitterMode = SplitterMode.RECURSIVE
    custom_separators: list[str] = Field(default_factory=list)


class ChunkResponse(_CamelModel):
    chunks: list[ChunkRecord]
    dropped_rows: int = 0


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(SourceReadError)
async def source_read_error_handler(request: Request, exc: SourceReadError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    body: dict[str, object] = {"error": exc.kind, "message": exc.message}
    if isinstance(exc, FetchFailed) and exc.status is not None:
        body["upstreamStatus"] = exc.status
    return JSONResponse(status_code=status, content=body)


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


@app.post("/v1/dataset/read", response_model=ReadSourceResponse, response_model_by_alias=True)
def read_source(request: ReadSourceRequest) -> ReadSourceResponse:
    """Fetch a source and return its normalised text."""
    result = read_dataset_source_raw_text(**request.model_dump())
    return ReadSourceResponse(title=result.title, raw_text=result.raw_text)


@app.post("/v1/dataset/chunks", response_model=ChunkResponse, response_model_by_alias=True)
def chunk_text(request: ChunkRequest) -> ChunkResponse:
    """Split text into retrieval chunks."""
    config = TextSplitConfig(
        chunk_size=request.chunk_size,
        overlap=request.overlap,
        splitter_mode=request.splitter_mode,
        backup_parse=request.backup_parse,
        custom_separators=tuple(request.custom_separators),
    )
    result = split(request.raw_text, config)
    return ChunkResponse(chunks=result.chunks, dropped_rows=result.dropped_rows)
