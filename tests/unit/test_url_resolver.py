"""Unit tests for UrlResolver using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from src.services.ingestion.url_resolver import DEFAULT_SHORTENER_HOSTS, UrlResolver


class Recorder:
    """MockTransport handler that records requests and delegates to *routes*."""

    def __init__(self, route) -> None:  # noqa: ANN001
        self._route = route
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._route(request)


def _resolver(handler: Recorder, hosts: list[str] | None = None) -> UrlResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return UrlResolver(http_client=client, shortener_hosts=hosts, timeout_seconds=2.0)


def _redirect(location: str) -> httpx.Response:
    return httpx.Response(301, headers={"Location": location})


class TestIsShortened:
    @pytest.mark.parametrize(
        "url",
        [
            "https://bit.ly/3abc",
            "https://share.google/xyz",
            "https://t.co/abc",
            "https://www.google.com/share/abc",
            "https://google.com/url?q=https://example.org",
            "https://go.bit.ly/abc",
        ],
    )
    def test_recognised(self, url: str) -> None:
        assert UrlResolver(http_client=httpx.AsyncClient()).is_shortened(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.nature.com/articles/123",
            "https://reddit.co/r/science",
            "https://www.google.com/search?q=plastics",
            "not a url",
        ],
    )
    def test_not_recognised(self, url: str) -> None:
        assert not UrlResolver(http_client=httpx.AsyncClient()).is_shortened(url)

    def test_default_host_list(self) -> None:
        assert "share.google" in DEFAULT_SHORTENER_HOSTS
        assert len(DEFAULT_SHORTENER_HOSTS) == 10


class TestResolve:
    async def test_non_shortener_returns_unchanged_without_network(self) -> None:
        handler = Recorder(lambda request: httpx.Response(200))
        resolver = _resolver(handler)

        url = "https://www.nature.com/articles/plastics"
        assert await resolver.resolve(url) == url
        assert handler.requests == []

    async def test_follows_head_redirect_to_other_host(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            if request.url.host == "share.example":
                return _redirect("https://nature.com/article123")
            return httpx.Response(200)

        handler = Recorder(route)
        resolver = _resolver(handler, hosts=["share.example"])

        assert await resolver.resolve("https://share.example/abc") == "https://nature.com/article123"
        assert all(r.method == "HEAD" for r in handler.requests)

    async def test_falls_back_to_get_when_head_stays_on_host(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            if request.method == "HEAD":
                return httpx.Response(405)
            if request.url.host == "bit.ly":
                return _redirect("https://www.sciencedaily.com/releases/2024/plastic.htm")
            return httpx.Response(200, text="<html></html>")

        handler = Recorder(route)
        resolver = _resolver(handler)

        resolved = await resolver.resolve("https://bit.ly/3xyz")

        assert resolved == "https://www.sciencedaily.com/releases/2024/plastic.htm"
        assert [r.method for r in handler.requests] == ["HEAD", "GET", "GET"]

    async def test_non_2xx_final_response_still_counts(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            if request.url.host == "t.co":
                return _redirect("https://paywalled.example.com/story")
            return httpx.Response(403)

        resolver = _resolver(Recorder(route))
        assert await resolver.resolve("https://t.co/abc") == "https://paywalled.example.com/story"

    async def test_network_failure_returns_input(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        resolver = _resolver(Recorder(route))
        assert await resolver.resolve("https://bit.ly/broken") == "https://bit.ly/broken"

    async def test_same_host_result_returns_input(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/abc":
                return _redirect("https://bit.ly/landing")
            return httpx.Response(200)

        resolver = _resolver(Recorder(route))
        assert await resolver.resolve("https://bit.ly/abc") == "https://bit.ly/abc"

    async def test_google_url_param_is_decoded_without_network(self) -> None:
        handler = Recorder(lambda request: httpx.Response(200))
        resolver = _resolver(handler)

        url = "https://www.google.com/url?sa=t&url=https%3A%2F%2Fwww.theguardian.com%2Fplastics&usg=x"
        assert await resolver.resolve(url) == "https://www.theguardian.com/plastics"
        assert handler.requests == []

    async def test_redirect_loop_returns_input(self) -> None:
        def route(request: httpx.Request) -> httpx.Response:
            return _redirect(str(request.url))

        resolver = _resolver(Recorder(route))
        assert await resolver.resolve("https://ow.ly/loop") == "https://ow.ly/loop"

    @pytest.mark.parametrize(
        "url",
        ["http://[::1/story", "https://bit.ly:abc/x", "https://[bit.ly/x"],
    )
    async def test_malformed_url_returns_input(self, url: str) -> None:
        resolver = _resolver(Recorder(lambda request: httpx.Response(200)))
        assert resolver.is_shortened("http://[::1/story") is False
        assert await resolver.resolve(url) == url

    async def test_google_param_with_malformed_target_is_not_decoded(self) -> None:
        handler = Recorder(lambda request: httpx.Response(200))
        resolver = _resolver(handler)

        url = "https://www.google.com/url?q=http%3A%2F%2F%5B%3A%3A1%2Fstory"
        assert await resolver.resolve(url) == url
