"""Configuration objects and constants for the converter."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

VERSION = "1.0.0"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.36"
)
DEFAULT_AUTHOR = "Unknown Author"
DEFAULT_IMAGE_EXTENSION = ".jpg"


@dataclass
class ConvertConfig:
    """Top-level settings that control fetching and EPUB generation."""

    output_root: Path
    workspace_root: Optional[Path] = None
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 30.0
    pandoc_path: str = "pandoc"
    default_author: str = DEFAULT_AUTHOR
    default_image_extension: str = DEFAULT_IMAGE_EXTENSION
