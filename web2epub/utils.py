"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import hashlib
import posixpath
import re
from urllib.parse import urlparse

SANITIZE_PATTERN = re.compile(r"[^A-Za-z0-9]")


def sanitize_title(value: str, fallback: str = "article") -> str:
    """Replace every non-alphanumeric ASCII character with ``_`` and lowercase."""
    normalized = SANITIZE_PATTERN.sub("_", value or "").lower()
    return normalized or fallback


def url_extension(url: str) -> str:
    """Return the file extension of the URL path, including the dot."""
    return posixpath.splitext(urlparse(url).path)[1]


def image_filename(absolute_url: str, default_extension: str = ".jpg") -> str:
    """Derive a stable local filename from an absolute image URL."""
    digest = hashlib.sha1(absolute_url.encode("utf-8")).hexdigest()
    return f"{digest}{url_extension(absolute_url) or default_extension}"
