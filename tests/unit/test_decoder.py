"""Unit tests for the format decoder and its parser registry."""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest

from dataset_ingest.config import settings
from dataset_ingest.decoding import ParserRegistry, decode, default_registry, normalize_extension
from dataset_ingest.decoding.parsers import Extracted, rows_to_markdown_table
from dataset_ingest.errors import FetchFailed, UnsupportedFormat


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("pdf", "pdf"),
        (".PDF", "pdf"),
        ("report.Docx", "docx"),
        ("archive.tar.gz", "gz"),
        ("https://cdn.example.com/a/b/report.pdf?sig=1#page=2", "pdf"),
        (".PDF?download=1", "pdf"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_extension(raw: str | None, expected: str) -> None:
    assert normalize_extension(raw) == expected


# ──────────────────────────────────────────────────────────────────────
# Plain text
# ──────────────────────────────────────────────────────────────────────


class TestTextDecoding:
    def test_utf8_with_crlf(self) -> None:
        result = decode("héllo\r\nworld".encode(), "txt")
        assert result.raw_text == "héllo\nworld"
        assert result.title is None

    def test_utf8_bom_stripped(self) -> None:
        assert decode(b"\xef\xbb\xbfhello", "md").raw_text == "hello"

    def test_encoding_hint(self) -> None:
        data = "中文内容".encode("gbk")
        assert decode(data, "txt", "gbk").raw_text == "中文内容"

    def test_invalid_utf8_rejected(self) -> None:
        with pytest.raises(UnsupportedFormat):
            decode(b"\xff\xfe\xfa", "txt")

    def test_unknown_codec_rejected(self) -> None:
        with pytest.raises(UnsupportedFormat, match="encoding"):
            decode(b"hello", "txt", "no-such-codec")

    def test_control_chars_removed(self) -> None:
        assert decode(b"a\x00b\x07c", "txt").raw_text == "abc"

    def test_unknown_extension_falls_back_to_text(self) -> None:
        assert decode(b"key = value", "toml").raw_text == "key = value"

    def test_missing_extension_falls_back_to_text(self) -> None:
        assert decode(b"plain", None).raw_text == "plain"

    def test_binary_extension_without_parser(self) -> None:
        with pytest.raises(UnsupportedFormat, match="binary"):
            decode(b"\x89PNG\r\n\x1a\n\x00\x00", "png")


# ──────────────────────────────────────────────────────────────────────
# Structured formats
# ──────────────────────────────────────────────────────────────────────


class TestStructuredFormats:
    def test_csv_as_is(self) -> None:
        assert decode(b"name,age\nann,30\n", "csv").raw_text == "name,age\nann,30\n"

    def test_csv_as_markdown_table(self) -> None:
        result = decode(b"name,age\nann,30\n", "csv", get_format_text=True)
        assert result.raw_text == "| name | age |\n| --- | --- |\n| ann | 30 |"

    def test_markdown_table_escapes_pipes(self) -> None:
        table = rows_to_markdown_table([["h"], ["a|b"]])
        assert "a\\|b" in table

    def test_html(self) -> None:
        html = (
            b"<html><head><title>Doc</title></head><body>"
            b"<nav>menu</nav><h1>Heading</h1><p>Para <b>bold</b></p>"
            b"<script>track()</script></body></html>"
        )
        result = decode(html, "html")
        assert result.title == "Doc"
        assert "# Heading" in result.raw_text
        assert "**bold**" in result.raw_text
        assert "menu" not in result.raw_text
        assert "track()" not in result.raw_text

    def test_docx(self) -> None:
        from docx import Document

        doc = Document()
        doc.core_properties.title = "My Doc"
        doc.add_paragraph("Hello docx")
        table = doc.add_table(rows=2, cols=2)
        table.cell(0, 0).text = "a"
        table.cell(0, 1).text = "b"
        table.cell(1, 0).text = "1"
        table.cell(1, 1).text = "2"
        buf = io.BytesIO()
        doc.save(buf)

        result = decode(buf.getvalue(), "docx")
        assert result.title == "My Doc"
        assert "Hello docx" in result.raw_text
        assert "| a | b |" in result.raw_text

    def test_pptx(self) -> None:
        from pptx import Presentation
        from pptx.util import Inches

        prs = Presentation()
        slide = prs.slides.add_slide(prs.slide_layouts[5])
        slide.shapes.title.text = "Slide Title"
        box = slide.shapes.add_textbox(Inches(1), Inches(2), Inches(4), Inches(1))
        box.text_frame.text = "Body text"
        buf = io.BytesIO()
        prs.save(buf)

        result = decode(buf.getvalue(), "pptx")
        assert "Slide Title" in result.raw_text
        assert "Body text" in result.raw_text

    @pytest.mark.parametrize(
        ("get_format_text", "expected"),
        [
            (False, "q,a\nhi,hello"),
            (True, "| q | a |\n| --- | --- |\n| hi | hello |"),
        ],
    )
    def test_xlsx(self, get_format_text: bool, expected: str) -> None:
        from openpyxl import Workbook

        wb = Workbook()
        ws = wb.active
        ws.append(["q", "a"])
        ws.append(["hi", "hello"])
        buf = io.BytesIO()
        wb.save(buf)

        result = decode(buf.getvalue(), "xlsx", get_format_text=get_format_text)
        assert result.raw_text == expected

    def test_empty_pdf_rejected(self) -> None:
        with pytest.raises(UnsupportedFormat) as exc_info:
            decode(b"", "pdf")
        assert exc_info.value.__cause__ is not None

    def test_remote_pdf_parse(self, monkeypatch: pytest.MonkeyPatch, make_response) -> None:
        monkeypatch.setattr(settings, "custom_pdf_parse_url", "http://parser.local/parse")
        monkeypatch.setattr(settings, "custom_pdf_parse_key", "secret")
        resp = make_response(json_body={"markdown": "# Parsed", "pages": 2})

        with patch("requests.post", return_value=resp) as mock_post:
            result = decode(b"%PDF-1.7", "pdf", custom_pdf_parse=True)

        assert result.raw_text == "# Parsed"
        assert mock_post.call_args.args[0] == "http://parser.local/parse"
        assert mock_post.call_args.kwargs["headers"] == {"Authorization": "Bearer secret"}

    def test_remote_pdf_parse_error(self, monkeypatch: pytest.MonkeyPatch, make_response) -> None:
        monkeypatch.setattr(settings, "custom_pdf_parse_url", "http://parser.local/parse")
        resp = make_response(json_body={"error": "encrypted document"})

        with patch("requests.post", return_value=resp):
            with pytest.raises(FetchFailed, match="encrypted"):
                decode(b"%PDF-1.7", "pdf", custom_pdf_parse=True)

    def test_remote_pdf_parse_malformed_payload(self, monkeypatch: pytest.MonkeyPatch, make_response) -> None:
        monkeypatch.setattr(settings, "custom_pdf_parse_url", "http://parser.local/parse")
        resp = make_response(json_body=["not", "an", "object"])

        with patch("requests.post", return_value=resp):
            with pytest.raises(FetchFailed, match="malformed payload"):
                decode(b"%PDF-1.7", "pdf", custom_pdf_parse=True)


# ──────────────────────────────────────────────────────────────────────
# Registry
# ──────────────────────────────────────────────────────────────────────


class TestRegistry:
    def test_default_registry_extensions(self) -> None:
        for ext in ("txt", "md", "csv", "html", "pdf", "docx", "pptx", "xlsx"):
            assert default_registry.supports(ext)

    def test_custom_registry(self) -> None:
        registry = ParserRegistry()
        registry.register(".FOO", lambda data, options: Extracted(text=data.decode().upper(), title="T"))

        result = decode(b"abc", "file.foo", registry=registry)
        assert result.raw_text == "ABC"
        assert result.title == "T"
        assert registry.extensions() == ["foo"]

    def test_extractor_error_wrapped(self) -> None:
        def _boom(data: bytes, options) -> Extracted:
            raise ValueError("bad header")

        registry = ParserRegistry()
        registry.register("bad", _boom)
        with pytest.raises(UnsupportedFormat, match="bad header") as exc_info:
            decode(b"...", "bad", registry=registry)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_taxonomy_errors_pass_through(self) -> None:
        def _fetch_fails(data: bytes, options) -> Extracted:
            raise FetchFailed("parse service down", status=503, transient=True)

        registry = ParserRegistry()
        registry.register("pdf", _fetch_fails)
        with pytest.raises(FetchFailed) as exc_info:
            decode(b"...", "pdf", registry=registry)
        assert exc_info.value.status == 503
