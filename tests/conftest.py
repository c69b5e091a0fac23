"""
Shared fixtures for the web2epub test suite.
"""

from pathlib import Path

import pytest

from tests.fixtures.pages import ARTICLE_URL, FakeConverter
from web2epub.config import ConvertConfig
from web2epub.models import Article


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Directory that receives the per-run temporary workspaces."""
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, workspace_root: Path) -> ConvertConfig:
    """Configuration writing into the test's temporary directory."""
    return ConvertConfig(
        output_root=tmp_path / "books",
        workspace_root=workspace_root,
        request_timeout=5.0,
    )


@pytest.fixture
def fake_converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def sample_article() -> Article:
    """Article whose body references a relative, an absolute and a repeated image."""
    return Article(
        title="Hello, World! 2024",
        byline="Jane Doe",
        source_url=ARTICLE_URL,
        content=(
            "<div><p>Intro paragraph.</p>"
            '<img src="/images/cover.png" alt="Cover"/>'
            '<p>Middle.</p><img src="https://cdn.example.com/photo"/>'
            '<img src="../posts/../images/cover.png"/>'
            "</div>"
        ),
    )
