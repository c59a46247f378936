"""Tests for page content parsing."""

from parser import PageContentParser


def test_non_web_page_ignored():
    assert PageContentParser().parse("chrome://extensions", "Extensions", "text") is None


def test_whitespace_collapsed():
    page = PageContentParser().parse("https://a.com", "  A   title ", "line one\n\n  line\ttwo ")
    assert page.title == "A title"
    assert page.text == "line one line two"


def test_text_capped():
    page = PageContentParser(max_text=10).parse("https://a.com", "", "x" * 50)
    assert len(page.text) == 10


def test_default_cap_is_2000():
    page = PageContentParser().parse("https://a.com", "", "word " * 1000)
    assert len(page.text) == 2000


def test_display_title_drops_site_suffix():
    page = PageContentParser().parse("https://a.com", "Issue 12 - Project - GitHub", "")
    assert page.display_title == "Issue 12 - Project"


def test_display_title_falls_back_to_url():
    page = PageContentParser().parse("https://a.com/x", None, None)
    assert page.display_title == "https://a.com/x"
    assert page.text == ""
