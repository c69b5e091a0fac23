"""Article fetching and readability extraction."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from .config import ConvertConfig
from .models import Article

logger = logging.getLogger("web2epub")

_BYLINE_META = (
    {"name": "author"},
    {"property": "article:author"},
)


def _extract_byline(soup: BeautifulSoup) -> Optional[str]:
    for attrs in _BYLINE_META:
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content") and tag["content"].strip():
            return tag["content"].strip()
    return None


def extract_article(
    html: str,
    source_url: str,
    default_author: Optional[str] = None,
) -> Optional[Article]:
    """Run the readability heuristic over ``html``; ``None`` when nothing is readable."""
    document = Document(html, url=source_url)
    content_html = document.summary(html_partial=True)
    summary = BeautifulSoup(content_html, "html.parser")
    if not summary.get_text(strip=True):
        return None

    soup_full = BeautifulSoup(html, "html.parser")
    title = document.short_title()
    if not title and soup_full.title and soup_full.title.string:
        title = soup_full.title.string.strip()

    article = Article(title=title or "", content=content_html, source_url=source_url)
    byline = _extract_byline(soup_full) or default_author
    if byline:
        article.byline = byline
    return article


def _download_page(
    session: requests.Session, url: str, config: ConvertConfig
) -> requests.Response:
    response = session.get(
        url,
        headers={"User-Agent": config.user_agent},
        timeout=config.request_timeout,
        allow_redirects=True,
    )
    response.raise_for_status()
    return response


async def fetch_article(
    url: str,
    config: ConvertConfig,
    session: Optional[requests.Session] = None,
) -> Optional[Article]:
    """Fetch ``url`` and extract its article.

    Transport and parse failures are logged and reported as ``None`` so the
    caller only has to handle a missing article.
    """
    if session is None:
        with requests.Session() as own_session:
            return await fetch_article(url, config, own_session)
    try:
        response = await asyncio.to_thread(_download_page, session, url, config)
    except requests.RequestException as exc:
        logger.error("Error fetching article from %s: %s", url, exc)
        return None

    final_url = response.url or url
    try:
        article = extract_article(response.text, final_url, config.default_author)
    except (Unparseable, ValueError) as exc:
        logger.error("Error parsing article from %s: %s", final_url, exc)
        return None

    if article is None:
        logger.error("No readable content found at %s", final_url)
    return article
