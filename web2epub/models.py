"""Data models used throughout the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import DEFAULT_AUTHOR


@dataclass
class Article:
    """Readable article extracted from a web page."""

    title: str
    content: str
    source_url: str
    byline: str = DEFAULT_AUTHOR


@dataclass
class ImageReference:
    """Image discovered in the article body and its workspace filename."""

    original_url: str
    local_filename: str


@dataclass
class ConversionResult:
    """Outcome of a single converter invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""


@dataclass
class RunResult:
    """Overall outcome of one pipeline run."""

    success: bool
    message: str
    exit_code: int
    output_path: Optional[Path] = None
