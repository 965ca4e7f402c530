"""Unit tests for HttpPageFetcher and LocalImageStore."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from src.providers.image.local_image_store import LocalImageStore
from src.providers.page.http_page_fetcher import HttpPageFetcher
from src.utils.errors import TransientNetworkError, ValidationError


def _fetcher(handler) -> HttpPageFetcher:  # noqa: ANN001
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return HttpPageFetcher(http_client=client)


class TestHttpPageFetcher:
    async def test_follows_redirect_and_reports_final_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://news.example/new"})
            return httpx.Response(200, text="<html>ok</html>")

        page = await _fetcher(handler).fetch("https://news.example/old")

        assert page.url == "https://news.example/old"
        assert page.final_url == "https://news.example/new"
        assert page.status_code == 200
        assert page.body == "<html>ok</html>"

    async def test_error_status_is_returned_not_raised(self) -> None:
        page = await _fetcher(lambda request: httpx.Response(403, text="Access denied")).fetch(
            "https://news.example/a"
        )
        assert page.status_code == 403
        assert page.body == "Access denied"

    async def test_connection_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransientNetworkError):
            await _fetcher(handler).fetch("https://news.example/a")

    @pytest.mark.parametrize("url", ["https://news.example:abc/story", "http://ex\u00e4mple\u200b.com/story"])
    async def test_unrequestable_url_is_validation_error(self, url: str) -> None:
        with pytest.raises(ValidationError):
            await _fetcher(lambda request: httpx.Response(200)).fetch(url)


class TestLocalImageStore:
    async def test_writes_file_in_sub_directory(self, tmp_path: Path) -> None:
        store = LocalImageStore(tmp_path)

        ref = await store.put("article-images/https___x.example_a-1700000000000.png", b"img")

        path = Path(ref)
        assert path.read_bytes() == b"img"
        assert path.parent == tmp_path / "article-images"

    async def test_sanitises_unsafe_names(self, tmp_path: Path) -> None:
        store = LocalImageStore(tmp_path)

        ref = await store.put("../../etc/pa ss?wd.png", b"x")

        path = Path(ref)
        assert path.is_relative_to(tmp_path)
        assert path.name == "pa_ss_wd.png"

    async def test_empty_name_falls_back(self, tmp_path: Path) -> None:
        ref = await LocalImageStore(tmp_path).put("///", b"x")
        assert Path(ref) == tmp_path / "image"
