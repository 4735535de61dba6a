"""Web-link fetcher — scrape a page and convert its content to Markdown."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup

from dataset_ingest.config import settings
from dataset_ingest.decoding.text import (
    BOILERPLATE_TAGS,
    NON_CONTENT_TAGS,
    extract_title,
    html_to_markdown,
    strip_tags,
)
from dataset_ingest.retry import raise_for_status, translate_transport_errors
from dataset_ingest.sources.base import ContentFetcher
from dataset_ingest.sources.models import RawDocument, SourceDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedPage:
    """Result of scraping one URL.

    Attributes
    ----------
    url:
        The requested URL.
    title:
        ``<title>`` text, else the first ``<h1>``, else empty.
    content:
        Markdown rendering of the selected region.
    selected:
        ``False`` when a selector was given but matched nothing and the
        whole body was used instead.
    """

    url: str
    title: str
    content: str
    selected: bool = True


def fetch_page(url: str, selector: str | None = None, *, timeout: float | None = None) -> FetchedPage:
    """Download *url* and extract its readable content."""
    with translate_transport_errors(url):
        resp = requests.get(
            url,
            headers={"User-Agent": settings.user_agent},
            timeout=timeout or settings.request_timeout,
        )
    raise_for_status(resp, url)

    # Parse from bytes so BeautifulSoup sniffs the charset from <meta>.
    soup = BeautifulSoup(resp.content, "html.parser")
    title = extract_title(soup)

    selected = True
    if selector:
        strip_tags(soup, NON_CONTENT_TAGS)
        matches = soup.select(selector)
        if matches:
            content = "\n\n".join(html_to_markdown(m) for m in matches)
        else:
            logger.warning("Selector %r matched nothing on %s; using full page", selector, url)
            selected = False
            strip_tags(soup, BOILERPLATE_TAGS)
            content = html_to_markdown(soup.body or soup)
    else:
        strip_tags(soup, BOILERPLATE_TAGS)
        content = html_to_markdown(soup.body or soup)

    return FetchedPage(url=url, title=title, content=content, selected=selected)


def urls_fetch(url_list: list[str], selector: str | None = None) -> list[FetchedPage]:
    """Scrape every URL in *url_list*, preserving order.

    The first failing URL aborts the batch with its ``FetchFailed``.
    """
    pages: list[FetchedPage] = []
    for url in url_list:
        page = fetch_page(url, selector)
        logger.info("✓ %s (%d chars)", url, len(page.content))
        pages.append(page)
    return pages


class WebLinkFetcher(ContentFetcher):
    """Fetch a single link, applying the descriptor's selector."""

    def fetch(self, locator: str, descriptor: SourceDescriptor) -> RawDocument:
        pages = urls_fetch([locator], selector=descriptor.selector)
        page = pages[0]
        return RawDocument(title=page.title, text=page.content)
