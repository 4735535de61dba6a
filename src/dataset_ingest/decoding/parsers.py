"""Format-specific text extractors and the registry that dispatches to them.

Each extractor takes the raw bytes plus :class:`ParseOptions` and returns
an :class:`Extracted` value.  Third-party format libraries are imported
inside the extractor so a missing optional parser only affects its own
format.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup

from dataset_ingest.config import settings
from dataset_ingest.decoding.text import (
    BOILERPLATE_TAGS,
    extract_title,
    html_to_markdown,
    strip_tags,
)
from dataset_ingest.errors import FetchFailed, UnsupportedFormat
from dataset_ingest.retry import raise_for_status, translate_transport_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseOptions:
    """Per-call knobs forwarded to every extractor."""

    encoding: str | None = None
    custom_pdf_parse: bool = False
    get_format_text: bool = False


@dataclass(frozen=True)
class Extracted:
    text: str
    title: str | None = None


Extractor = Callable[[bytes, ParseOptions], Extracted]


class ParserRegistry:
    """Mapping of normalised extension → extractor."""

    def __init__(self) -> None:
        self._parsers: dict[str, Extractor] = {}

    def register(self, extensions: str | Iterable[str], extractor: Extractor) -> None:
        if isinstance(extensions, str):
            extensions = [extensions]
        for ext in extensions:
            self._parsers[ext.lower().lstrip(".")] = extractor

    def get(self, extension: str) -> Extractor | None:
        return self._parsers.get(extension)

    def supports(self, extension: str) -> bool:
        return extension in self._parsers

    def extensions(self) -> list[str]:
        return sorted(self._parsers)


# -- text helpers ------------------------------------------------------------


def decode_bytes(data: bytes, encoding: str | None = None) -> str:
    """Decode *data* with *encoding* (default UTF-8, BOM tolerated).

    Raises
    ------
    UnsupportedFormat
        Unknown codec name, or bytes that are not valid in that codec.
    """
    codec = (encoding or "utf-8").strip().lower()
    if codec in ("utf-8", "utf8"):
        codec = "utf-8-sig"
    try:
        return data.decode(codec)
    except LookupError as exc:
        raise UnsupportedFormat(f"unknown text encoding {encoding!r}") from exc
    except UnicodeDecodeError as exc:
        raise UnsupportedFormat(f"bytes are not valid {codec} text: {exc.reason}") from exc


def rows_to_markdown_table(rows: list[list[str]]) -> str:
    """Render *rows* (first row = header) as a GitHub-flavoured table."""
    rows = [r for r in rows if any(cell.strip() for cell in r)]
    if not rows:
        return ""
    width = max(len(r) for r in rows)

    def _line(cells: list[str]) -> str:
        padded = list(cells) + [""] * (width - len(cells))
        escaped = [c.replace("|", "\\|").replace("\n", "<br>").strip() for c in padded]
        return "| " + " | ".join(escaped) + " |"

    lines = [_line(rows[0]), "| " + " | ".join(["---"] * width) + " |"]
    lines.extend(_line(r) for r in rows[1:])
    return "\n".join(lines)


# -- extractors --------------------------------------------------------------


def extract_text(data: bytes, options: ParseOptions) -> Extracted:
    return Extracted(text=decode_bytes(data, options.encoding))


def extract_csv(data: bytes, options: ParseOptions) -> Extracted:
    text = decode_bytes(data, options.encoding)
    if options.get_format_text:
        rows = list(csv.reader(io.StringIO(text)))
        return Extracted(text=rows_to_markdown_table(rows))
    return Extracted(text=text)


def extract_html(data: bytes, options: ParseOptions) -> Extracted:
    if options.encoding:
        soup = BeautifulSoup(decode_bytes(data, options.encoding), "html.parser")
    else:
        soup = BeautifulSoup(data, "html.parser")
    title = extract_title(soup) or None
    strip_tags(soup, BOILERPLATE_TAGS)
    return Extracted(text=html_to_markdown(soup.body or soup), title=title)


def _parse_pdf_remote(data: bytes) -> Extracted:
    """Send the PDF to the configured parse service; expects ``{markdown, error?}``."""
    url = settings.custom_pdf_parse_url
    headers = {}
    if settings.custom_pdf_parse_key:
        headers["Authorization"] = f"Bearer {settings.custom_pdf_parse_key}"

    with translate_transport_errors(url):
        resp = requests.post(
            url,
            files={"file": ("file.pdf", data, "application/pdf")},
            headers=headers,
            timeout=settings.request_timeout,
        )
    raise_for_status(resp, url)
    with translate_transport_errors(url):
        payload = resp.json()
    if not isinstance(payload, dict):
        raise FetchFailed(f"{url}: malformed payload from PDF parse service", status=resp.status_code)
    if payload.get("error"):
        raise FetchFailed(f"{url}: PDF parse service error: {payload['error']}", status=resp.status_code)
    logger.info("Remote PDF parse returned %s pages", payload.get("pages", "?"))
    return Extracted(text=str(payload.get("markdown") or ""))


def extract_pdf(data: bytes, options: ParseOptions) -> Extracted:
    if options.custom_pdf_parse:
        if settings.custom_pdf_parse_url:
            return _parse_pdf_remote(data)
        logger.warning("custom_pdf_parse requested but custom_pdf_parse_url is unset; using pypdf")

    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(data))
    pages = [(page.extract_text() or "").strip() for page in reader.pages]
    title = None
    if reader.metadata is not None and reader.metadata.title:
        title = str(reader.metadata.title)
    return Extracted(text="\n\n".join(p for p in pages if p), title=title)


def extract_docx(data: bytes, options: ParseOptions) -> Extracted:
    from docx import Document as DocxDocument

    doc = DocxDocument(io.BytesIO(data))
    blocks = [para.text for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        rows = [[cell.text for cell in row.cells] for row in table.rows]
        rendered = rows_to_markdown_table(rows)
        if rendered:
            blocks.append(rendered)
    return Extracted(text="\n\n".join(blocks), title=doc.core_properties.title or None)


def extract_pptx(data: bytes, options: ParseOptions) -> Extracted:
    from pptx import Presentation

    prs = Presentation(io.BytesIO(data))
    slides: list[str] = []
    for slide in prs.slides:
        parts = [
            shape.text_frame.text.strip()
            for shape in slide.shapes
            if shape.has_text_frame and shape.text_frame.text.strip()
        ]
        if parts:
            slides.append("\n".join(parts))
    return Extracted(text="\n\n".join(slides))


def extract_xlsx(data: bytes, options: ParseOptions) -> Extracted:
    from openpyxl import load_workbook

    wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    sheets: list[str] = []
    try:
        for ws in wb.worksheets:
            rows = [
                ["" if cell is None else str(cell) for cell in row]
                for row in ws.iter_rows(values_only=True)
            ]
            if options.get_format_text:
                rendered = rows_to_markdown_table(rows)
            else:
                buf = io.StringIO()
                csv.writer(buf, lineterminator="\n").writerows(rows)
                rendered = buf.getvalue().strip()
            if rendered:
                sheets.append(rendered)
    finally:
        wb.close()
    return Extracted(text="\n\n".join(sheets))


def build_default_registry() -> ParserRegistry:
    """Registry with every extractor shipped in this module."""
    registry = ParserRegistry()
    registry.register(["txt", "md", "markdown", "json", "xml", "yaml", "yml", "log"], extract_text)
    registry.register("csv", extract_csv)
    registry.register(["html", "htm"], extract_html)
    registry.register("pdf", extract_pdf)
    registry.register("docx", extract_docx)
    registry.register("pptx", extract_pptx)
    registry.register("xlsx", extract_xlsx)
    return registry


default_registry = build_default_registry()
