"""
Tests for image localization.
"""

import pytest
import requests
import responses
from bs4 import BeautifulSoup

from tests.fixtures.pages import ARTICLE_URL, PNG_BYTES, SlowImageSession
from web2epub.images import collect_image_references, localize_images, resolve_image_url
from web2epub.models import Article
from web2epub.utils import image_filename

COVER_URL = "https://example.com/images/cover.png"
PHOTO_URL = "https://cdn.example.com/photo"


def _sources(html):
    return [img.get("src") for img in BeautifulSoup(html, "html.parser").find_all("img")]


@pytest.fixture
def workdir(tmp_path):
    """Empty workspace kept apart from the configured workspace root."""
    path = tmp_path / "ws"
    path.mkdir()
    return path


def test_resolve_image_url_handles_relative_and_invalid_sources():
    assert resolve_image_url("/images/cover.png", ARTICLE_URL) == COVER_URL
    assert resolve_image_url("cover.png", ARTICLE_URL) == "https://example.com/posts/cover.png"
    assert resolve_image_url("//cdn.example.com/photo", ARTICLE_URL) == PHOTO_URL
    assert resolve_image_url("javascript:void(0)", ARTICLE_URL) is None
    assert resolve_image_url("http://[::1", ARTICLE_URL) is None


def test_collect_image_references_groups_identical_urls(sample_article):
    soup = BeautifulSoup(sample_article.content, "html.parser")
    groups = collect_image_references(soup, sample_article.source_url)

    assert list(groups) == [COVER_URL, PHOTO_URL]
    assert len(groups[COVER_URL]) == 2
    assert len(groups[PHOTO_URL]) == 1


def test_collect_image_references_skips_empty_and_inline_sources():
    soup = BeautifulSoup(
        '<img><img src=""><img src="data:image/png;base64,AAAA"><img src="a.png">',
        "html.parser",
    )
    groups = collect_image_references(soup, ARTICLE_URL)

    assert list(groups) == ["https://example.com/posts/a.png"]


@pytest.mark.asyncio
async def test_localize_images_without_images_returns_body_unchanged(workdir, config):
    content = "<div><p>No pictures  here.</p></div>"
    article = Article(title="Plain", content=content, source_url=ARTICLE_URL)

    with responses.RequestsMock() as rsps:
        result = await localize_images(article, workdir, config)
        assert len(rsps.calls) == 0

    assert result == content
    assert list(workdir.iterdir()) == []


@pytest.mark.asyncio
async def test_localize_images_downloads_each_url_once(workdir, config, sample_article):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, COVER_URL, body=PNG_BYTES, content_type="image/png")
        rsps.add(responses.GET, PHOTO_URL, body=b"jpeg-bytes", content_type="image/jpeg")

        result = await localize_images(sample_article, workdir, config)

        requested = sorted(call.request.url for call in rsps.calls)
        assert requested == sorted([COVER_URL, PHOTO_URL])

    cover_name = image_filename(COVER_URL)
    photo_name = image_filename(PHOTO_URL)
    assert photo_name.endswith(".jpg")
    assert _sources(result) == [cover_name, photo_name, cover_name]
    assert (workdir / cover_name).read_bytes() == PNG_BYTES
    assert (workdir / photo_name).read_bytes() == b"jpeg-bytes"
    assert sorted(p.name for p in workdir.iterdir()) == sorted([cover_name, photo_name])


@pytest.mark.asyncio
async def test_localize_images_keeps_remote_url_on_failure(workdir, config, sample_article):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, COVER_URL, body=PNG_BYTES, content_type="image/png")
        rsps.add(
            responses.GET,
            PHOTO_URL,
            body=requests.exceptions.ConnectionError("connection reset"),
        )

        result = await localize_images(sample_article, workdir, config)

    cover_name = image_filename(COVER_URL)
    assert _sources(result) == [cover_name, PHOTO_URL, cover_name]
    assert [p.name for p in workdir.iterdir()] == [cover_name]


@pytest.mark.asyncio
async def test_localize_images_treats_http_errors_as_failures(workdir, config):
    article = Article(
        title="Broken",
        content='<p>Text</p><img src="/missing.gif">',
        source_url=ARTICLE_URL,
    )
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "https://example.com/missing.gif", status=404)

        result = await localize_images(article, workdir, config)

    assert _sources(result) == ["https://example.com/missing.gif"]
    assert list(workdir.iterdir()) == []


@pytest.mark.asyncio
async def test_localize_images_failed_relative_source_points_at_absolute_url(workdir, config):
    article = Article(
        title="Gallery",
        content="".join(f'<img src="/{n}.png">' for n in range(1, 6)),
        source_url="https://e.com/gallery",
    )
    session = SlowImageSession(delay=0.01, failing=["https://e.com/3.png"])

    result = await localize_images(article, workdir, config, session)

    sources = _sources(result)
    assert sources[2] == "https://e.com/3.png"
    assert "/3.png" not in sources


@pytest.mark.asyncio
async def test_localize_images_downloads_run_concurrently(workdir, config):
    urls = [f"https://e.com/{n}.png" for n in range(1, 6)]
    article = Article(
        title="Gallery",
        content="".join(f'<img src="{url}">' for url in urls),
        source_url="https://e.com/gallery",
    )
    session = SlowImageSession(delay=0.2, failing=[urls[2]])

    result = await localize_images(article, workdir, config, session)

    assert sorted(session.requested) == sorted(urls)
    assert session.peak_in_flight > 1
    assert session.in_flight == 0

    succeeded = [url for url in urls if url != urls[2]]
    assert sorted(p.name for p in workdir.iterdir()) == sorted(
        image_filename(url) for url in succeeded
    )
    for url in succeeded:
        assert (workdir / image_filename(url)).read_bytes() == url.encode("utf-8")
    assert _sources(result) == [
        urls[2] if url == urls[2] else image_filename(url) for url in urls
    ]
