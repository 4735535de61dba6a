"""Text clean-up and HTML → Markdown helpers shared by fetchers and parsers."""

from __future__ import annotations

import re
import unicodedata

from bs4 import BeautifulSoup, Tag
from markdownify import markdownify

# Stripped from full-page scrapes; a caller-supplied selector keeps
# structural tags such as <header> and only loses the non-content ones.
BOILERPLATE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "noscript", "iframe"]
NON_CONTENT_TAGS = ["script", "style", "noscript", "iframe", "template"]

_CTRL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def clean_text(text: str) -> str:
    """Unicode NFC, unify newlines, drop control chars.  Keeps layout."""
    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _CTRL_CHARS.sub("", text)


def normalize_whitespace(text: str) -> str:
    """:func:`clean_text` plus collapsed spaces and at most one blank line."""
    text = clean_text(text)
    text = re.sub(r"[^\S\n]+", " ", text)       # collapse spaces (keep \n)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)       # max two consecutive newlines
    return text.strip()


def extract_title(soup: BeautifulSoup) -> str:
    """Best-effort title from HTML."""
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    h1 = soup.find("h1")
    if h1:
        return h1.get_text(strip=True)
    return ""


def strip_tags(root: BeautifulSoup | Tag, names: list[str]) -> None:
    for tag in root(names):
        tag.decompose()


def html_to_markdown(fragment: BeautifulSoup | Tag | str) -> str:
    """Render an HTML fragment as normalised Markdown."""
    rendered = markdownify(str(fragment), heading_style="ATX", bullets="-")
    return normalize_whitespace(rendered)
