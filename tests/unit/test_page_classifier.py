"""Unit tests for the bot-protection page classifier."""

from __future__ import annotations

import pytest

from src.utils.page_classifier import PageCategory, classify_page, find_block_marker, is_blocked

_REAL_PAGE = "<html><body>" + "<p>Actual article text about plastics.</p>" * 20 + "</body></html>"


class TestClassifyPage:
    def test_normal_page_is_content(self) -> None:
        assert classify_page(_REAL_PAGE, 200) is PageCategory.CONTENT

    def test_cloudflare_challenge_is_blocked(self, challenge_html: str) -> None:
        assert classify_page(challenge_html, 503) is PageCategory.BLOCKED

    def test_marker_blocks_even_with_200(self, challenge_html: str) -> None:
        assert classify_page(challenge_html, 200) is PageCategory.BLOCKED

    def test_marker_match_is_case_insensitive(self) -> None:
        assert classify_page("<h1>ACCESS DENIED</h1>", 200) is PageCategory.BLOCKED

    @pytest.mark.parametrize("status", [401, 403, 429, 503])
    def test_bare_block_status_is_blocked(self, status: int) -> None:
        assert classify_page("Forbidden", status) is PageCategory.BLOCKED

    def test_block_status_with_long_body_is_error(self) -> None:
        assert classify_page(_REAL_PAGE, 403) is PageCategory.ERROR

    def test_not_found_is_error(self) -> None:
        assert classify_page("Not here", 404) is PageCategory.ERROR

    @pytest.mark.parametrize("body", [None, "", "   \n "])
    def test_blank_body_is_empty(self, body: str | None) -> None:
        assert classify_page(body, 200) is PageCategory.EMPTY


class TestHelpers:
    def test_find_block_marker_returns_marker(self, challenge_html: str) -> None:
        assert find_block_marker(challenge_html) == "cf-browser-verification"

    def test_find_block_marker_none_for_content(self) -> None:
        assert find_block_marker(_REAL_PAGE) is None

    def test_marker_beyond_scan_window_is_ignored(self) -> None:
        body = "x" * 25_000 + "captcha-delivery"
        assert find_block_marker(body) is None

    def test_is_blocked(self, challenge_html: str) -> None:
        assert is_blocked(challenge_html, 200)
        assert not is_blocked(_REAL_PAGE, 200)
