# tests/test_junk_titles.py
"""
Unit tests for the shared noise predicate (newsharvest/junk_titles.py).
"""
from __future__ import annotations

import pytest

from newsharvest.junk_titles import (
    JUNK_TITLES_EXACT,
    MIN_TITLE_LENGTH,
    is_junk_link,
    is_junk_row,
    is_junk_title,
)


class TestJunkTitle:
    @pytest.mark.parametrize("title", [None, "", "   ", "\t\n"])
    def test_empty_is_junk(self, title):
        assert is_junk_title(title) is True

    def test_short_title_is_junk(self):
        assert is_junk_title("x" * (MIN_TITLE_LENGTH - 1)) is True
        assert is_junk_title("Flood") is False

    @pytest.mark.parametrize("title", sorted(JUNK_TITLES_EXACT))
    def test_navigation_words_are_junk(self, title):
        assert is_junk_title(title.upper()) is True

    @pytest.mark.parametrize("title", ["2026-01-15", "12345", "--- | ---"])
    def test_structural_only_is_junk(self, title):
        assert is_junk_title(title) is True

    @pytest.mark.parametrize("title", [
        "Water main break on King Street",
        "Read more about the new library hours",
        "Home heating assistance program opens",
    ])
    def test_headlines_pass(self, title):
        assert is_junk_title(title) is False


class TestJunkLink:
    @pytest.mark.parametrize("link", [
        None,
        "",
        "#",
        "#main",
        "javascript:void(0)",
        "mailto:news@example.ca",
        "tel:+15065551234",
        "https://www.facebook.com/cityofsaintjohn",
        "https://x.com/somebody/status/1",
        "https://m.youtube.com/watch?v=abc",
        "https://example.ca/search?q=flood",
        "https://example.ca/?s=flood",
        "https://example.ca/?S=flood&paged=2",
        "https://example.ca/",
        "https://example.ca",
    ])
    def test_junk_links(self, link):
        assert is_junk_link(link) is True

    @pytest.mark.parametrize("link", [
        "https://example.ca/news/water-main-break",
        "https://example.ca/?p=123",
        "https://a.ca/news/view?id=5&s=2",
        "https://example.ca/news?s=2",
        "https://example.ca/?p=7&source=rss",
        "https://www2.gnb.ca/content/gnb/en/news/news_release.2026.01.0012.html",
    ])
    def test_article_links_pass(self, link):
        assert is_junk_link(link) is False


def test_row_is_junk_if_either_part_is():
    assert is_junk_row("Water main break on King Street", "mailto:a@b.ca") is True
    assert is_junk_row("Home", "https://example.ca/news/a") is True
    assert is_junk_row("Water main break on King Street", "https://example.ca/news/a") is False
