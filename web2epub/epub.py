"""EPUB assembly through an external document converter."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Protocol

from .models import ConversionResult
from .utils import sanitize_title

logger = logging.getLogger("web2epub")

ARTICLE_HTML_NAME = "article.html"
EPUB_SUFFIX = ".epub"


class ConversionError(RuntimeError):
    """Raised when the converter fails to produce the e-book."""


class Converter(Protocol):
    def convert(
        self,
        input_path: Path,
        output_path: Path,
        metadata: Dict[str, str],
        cwd: Path,
    ) -> ConversionResult:
        ...


class PandocConverter:
    """Runs ``pandoc`` to turn the workspace HTML into an EPUB."""

    def __init__(self, executable: str = "pandoc") -> None:
        self.executable = executable

    def build_command(
        self, input_path: Path, output_path: Path, metadata: Dict[str, str]
    ) -> List[str]:
        command = [self.executable, input_path.name, "-o", str(output_path)]
        for key, value in metadata.items():
            command.extend(["--metadata", f"{key}={value}"])
        # Images were written next to the HTML under bare filenames.
        command.append("--resource-path=.")
        return command

    def convert(
        self,
        input_path: Path,
        output_path: Path,
        metadata: Dict[str, str],
        cwd: Path,
    ) -> ConversionResult:
        command = self.build_command(input_path, output_path, metadata)
        logger.info("Executing command in directory: %s", cwd)
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ConversionError(f"Could not run {self.executable}: {exc}") from exc
        return ConversionResult(completed.returncode, completed.stdout, completed.stderr)


def epub_output_path(title: str, output_dir: Path) -> Path:
    """Absolute path of the EPUB produced for ``title``."""
    return (output_dir / f"{sanitize_title(title)}{EPUB_SUFFIX}").resolve()


def build_epub(
    html_content: str,
    title: str,
    author: str,
    workspace: Path,
    output_dir: Path,
    converter: Converter,
) -> Path:
    """Write ``html_content`` into the workspace and convert it to an EPUB."""
    input_path = workspace / ARTICLE_HTML_NAME
    output_path = epub_output_path(title, output_dir)
    input_path.write_text(html_content, encoding="utf-8")
    output_dir.mkdir(parents=True, exist_ok=True)

    result = converter.convert(
        input_path,
        output_path,
        {"title": title, "author": author},
        workspace,
    )
    if result.returncode != 0:
        diagnostic = (result.stderr or result.stdout or "").strip()
        logger.error("Pandoc Error: %s", diagnostic)
        raise ConversionError(
            diagnostic or f"Converter exited with status {result.returncode}"
        )
    if result.stdout.strip():
        logger.debug("Pandoc output: %s", result.stdout.strip())
    return output_path
