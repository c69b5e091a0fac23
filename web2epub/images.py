"""Image downloading and reference rewriting."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup, Tag

from .config import ConvertConfig
from .models import Article, ImageReference
from .utils import image_filename

logger = logging.getLogger("web2epub")

_DOWNLOADABLE_SCHEMES = {"http", "https"}


def resolve_image_url(src: str, base_url: str) -> Optional[str]:
    """Resolve ``src`` against ``base_url``; ``None`` when it is not fetchable."""
    try:
        absolute = urljoin(base_url, src.strip())
        parsed = urlparse(absolute)
    except ValueError:
        return None
    if parsed.scheme not in _DOWNLOADABLE_SCHEMES or not parsed.netloc:
        return None
    return absolute


def collect_image_references(soup: BeautifulSoup, base_url: str) -> Dict[str, List[Tag]]:
    """Group ``<img>`` elements by resolved URL, in document order.

    Elements without a ``src`` and inline ``data:`` images are skipped.
    """
    groups: Dict[str, List[Tag]] = {}
    for img in soup.find_all("img"):
        src = img.get("src")
        if not src or not src.strip():
            continue
        if src.strip().startswith("data:"):
            logger.debug("Keeping inline image data as is")
            continue
        absolute_url = resolve_image_url(src, base_url)
        if absolute_url is None:
            logger.warning("- Invalid image URL: %s", src)
            continue
        groups.setdefault(absolute_url, []).append(img)
    return groups


def _download_image(
    session: requests.Session,
    reference: ImageReference,
    destination: Path,
    config: ConvertConfig,
) -> None:
    response = session.get(
        reference.original_url,
        headers={"User-Agent": config.user_agent},
        timeout=config.request_timeout,
    )
    response.raise_for_status()
    destination.write_bytes(response.content)


async def _localize_one(
    session: requests.Session,
    reference: ImageReference,
    elements: List[Tag],
    workspace: Path,
    config: ConvertConfig,
) -> bool:
    destination = workspace / reference.local_filename
    try:
        await asyncio.to_thread(_download_image, session, reference, destination, config)
    except (requests.RequestException, OSError) as exc:
        logger.warning("- Failed to download %s: %s", reference.original_url, exc)
        for img in elements:
            img["src"] = reference.original_url
        return False

    for img in elements:
        img["src"] = reference.local_filename
    logger.info("- Downloaded %s", reference.original_url)
    return True


async def _download_all(
    session: requests.Session,
    groups: Dict[str, List[Tag]],
    workspace: Path,
    config: ConvertConfig,
) -> List[bool]:
    tasks = [
        _localize_one(
            session,
            ImageReference(url, image_filename(url, config.default_image_extension)),
            elements,
            workspace,
            config,
        )
        for url, elements in groups.items()
    ]
    return await asyncio.gather(*tasks)


async def localize_images(
    article: Article,
    workspace: Path,
    config: ConvertConfig,
    session: Optional[requests.Session] = None,
) -> str:
    """Download the article's images into ``workspace`` and return the rewritten body.

    Every distinct image URL is fetched once and all downloads run
    concurrently. Images that fail to download point at their absolute remote
    URL instead.
    """
    soup = BeautifulSoup(article.content, "html.parser")
    if not soup.find("img"):
        logger.info("No images found in the article.")
        return article.content

    groups = collect_image_references(soup, article.source_url)
    logger.info(
        "Found %d images (%d distinct). Downloading...",
        sum(len(elements) for elements in groups.values()),
        len(groups),
    )

    if session is None:
        with requests.Session() as own_session:
            outcomes = await _download_all(own_session, groups, workspace, config)
    else:
        outcomes = await _download_all(session, groups, workspace, config)
    logger.debug("Localized %d/%d images", sum(outcomes), len(outcomes))
    return soup.decode()
