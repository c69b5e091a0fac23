"""High-level orchestration: fetch, localize images, build the EPUB."""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import requests

from .config import ConvertConfig
from .content import fetch_article
from .epub import ConversionError, Converter, PandocConverter, build_epub
from .images import localize_images
from .models import RunResult

logger = logging.getLogger("web2epub")

WORKSPACE_PREFIX = "article-"


@asynccontextmanager
async def workspace(root: Optional[Path] = None) -> AsyncIterator[Path]:
    """Temporary directory removed on every exit path."""
    if root is not None:
        root.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=root))
    logger.info("Created temporary directory: %s", path)
    try:
        yield path
    finally:
        await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)
        logger.info("Cleaned up temporary directory: %s", path)


def _failure(message: str) -> RunResult:
    return RunResult(success=False, message=message, exit_code=1)


async def run_pipeline(
    url: str,
    config: ConvertConfig,
    converter: Optional[Converter] = None,
    session: Optional[requests.Session] = None,
) -> RunResult:
    """Convert the article at ``url`` into an EPUB under ``config.output_root``."""
    if session is None:
        with requests.Session() as own_session:
            return await run_pipeline(url, config, converter, own_session)
    converter = converter or PandocConverter(config.pandoc_path)

    logger.info("Attempting to extract article from: %s", url)
    article = await fetch_article(url, config, session)
    if article is None or not article.content:
        return _failure("Could not extract article content.")
    logger.info("Article extracted: %s", article.title)

    try:
        async with workspace(config.workspace_root) as workdir:
            html = await localize_images(article, workdir, config, session)
            logger.info("Creating EPUB file")
            output_path = await asyncio.to_thread(
                build_epub,
                html,
                article.title,
                article.byline or config.default_author,
                workdir,
                config.output_root,
                converter,
            )
    except (ConversionError, OSError) as exc:
        return _failure(str(exc))

    message = f"EPUB file created at: {output_path}"
    logger.info("Success! %s", message)
    return RunResult(success=True, message=message, exit_code=0, output_path=output_path)


def convert_url(
    url: str,
    config: ConvertConfig,
    converter: Optional[Converter] = None,
) -> RunResult:
    """Synchronous entry point around :func:`run_pipeline`."""
    return asyncio.run(run_pipeline(url, config, converter))
