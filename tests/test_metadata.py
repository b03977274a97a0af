"""Tests for per-field metadata resolution and rendering detection."""

from __future__ import annotations

from bs4 import BeautifulSoup

from sitecrawl.crawler import ContentExtractor
from sitecrawl.crawler.parsers.metadata import (
    detect_rendering_signals,
    first_in_band,
    reading_time_minutes,
    resolve_author,
    resolve_canonical_url,
    resolve_content_type,
    resolve_description,
    resolve_keywords,
    resolve_language,
    resolve_publish_date,
    resolve_title,
    word_count,
)

_META_HTML = """\
<html lang="en-US">
<head>
  <title>Fallback Title</title>
  <meta property="og:title" content="  Social   Title ">
  <meta name="Description" content="A page about configuring the example tool.">
  <meta property="article:author" content="https://example.com/people/jane">
  <meta name="author" content="Jane Writer">
  <meta name="keywords" content="setup, Install, setup,  cli ">
  <meta property="article:tag" content="tooling">
  <meta property="article:published_time" content="2024-03-01T10:00:00Z">
  <meta name="generator" content="Docusaurus v3">
  <link rel="canonical" href="/docs/start">
</head>
<body><h1>Heading Title</h1><p>Body</p></body>
</html>
"""


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestFields:
    def test_title_prefers_social_tags(self):
        assert resolve_title(_soup(_META_HTML)) == "Social Title"

    def test_title_falls_back_to_title_then_h1(self):
        assert resolve_title(_soup("<title>Plain</title><h1>Head</h1>")) == "Plain"
        assert resolve_title(_soup("<h1> Head  Line </h1>")) == "Head Line"
        assert resolve_title(_soup("<p>nothing</p>")) is None

    def test_description_band(self):
        assert resolve_description(_soup(_META_HTML)) == "A page about configuring the example tool."
        assert resolve_description(_soup('<meta name="description" content="short">')) is None

    def test_author_skips_profile_urls(self):
        assert resolve_author(_soup(_META_HTML)) == "Jane Writer"
        assert resolve_author(_soup("<span class='byline'>Sam Lee</span>")) == "Sam Lee"
        assert resolve_author(_soup('<meta property="article:author" content="https://example.com/jane">')) is None

    def test_keywords_deduped_in_order(self):
        assert resolve_keywords(_soup(_META_HTML)) == ("setup", "Install", "cli", "tooling")

    def test_publish_date(self):
        assert resolve_publish_date(_soup(_META_HTML)) == "2024-03-01T10:00:00Z"
        assert resolve_publish_date(_soup('<time datetime="2023-05-02">May 2</time>')) == "2023-05-02"
        assert resolve_publish_date(_soup("<span class='date'>yesterday</span>")) is None

    def test_language(self):
        assert resolve_language(_soup(_META_HTML)) == "en-us"
        assert resolve_language(_soup("<p>no lang</p>")) == "unknown"
        assert resolve_language(_soup('<html lang="not a language"><p>x</p></html>')) == "unknown"

    def test_canonical_is_absolute(self):
        soup = _soup(_META_HTML)
        assert resolve_canonical_url(soup, "https://example.com/docs/start?ref=nav") == "https://example.com/docs/start"

    def test_content_type(self):
        assert resolve_content_type(_soup(_META_HTML), "https://example.com/x") == "documentation"
        assert resolve_content_type(_soup("<p>x</p>"), "https://example.com/blog/post") == "blog"
        assert resolve_content_type(_soup("<article>x</article>"), "https://example.com/x") == "article"
        assert resolve_content_type(_soup("<p>x</p>"), "https://example.com/x") == "webpage"

    def test_first_in_band(self):
        assert first_in_band([None, "", "a", "abcd"], 2, 10) == "abcd"
        assert first_in_band(["x" * 20], 2, 10) is None


class TestCounts:
    def test_word_count_and_reading_time(self):
        assert word_count("one two, three!") == 3
        assert reading_time_minutes(0) == 0
        assert reading_time_minutes(1) == 1
        assert reading_time_minutes(200) == 1
        assert reading_time_minutes(201) == 2


class TestRendering:
    def test_framework_root_is_suspected(self):
        soup = _soup('<body><div id="root"></div><script src="/bundle.js"></script></body>')
        assert detect_rendering_signals(soup).suspected(0)

    def test_static_article_is_not_suspected(self):
        text = "<p>" + "word " * 300 + "</p>"
        soup = _soup(f"<body><article>{text}</article></body>")
        assert not detect_rendering_signals(soup).suspected(1500)

    def test_many_scripts(self):
        scripts = "<script></script>" * 9
        soup = _soup(f"<body><article><p>{'word ' * 300}</p></article>{scripts}</body>")
        assert detect_rendering_signals(soup).suspected(1500)

    def test_indicators_explain_the_flag(self):
        soup = _soup('<body><div id="root"></div><script src="/bundle.js"></script></body>')
        signals = detect_rendering_signals(soup)

        assert signals.indicators(0) == [
            "framework root markers present",
            "short body with scripts: 0 chars",
        ]
        assert signals.confidence(0) == 70

    def test_static_article_has_no_indicators(self):
        soup = _soup(f"<body><article><p>{'word ' * 300}</p></article></body>")
        signals = detect_rendering_signals(soup)

        assert signals.indicators(1500) == []
        assert signals.confidence(1500) == 0

    def test_confidence_is_capped(self):
        scripts = "<script></script>" * 12
        soup = _soup(f'<body><div id="app"><main></main></div>{scripts}</body>')

        assert detect_rendering_signals(soup).confidence(0) == 100


def test_extracted_metadata_is_populated():
    html = _META_HTML.replace(
        "<body><h1>Heading Title</h1><p>Body</p></body>",
        "<body><main><article><h1>Heading Title</h1><p>" + "content word " * 150 + "</p></article></main></body>",
    )

    content = ContentExtractor().extract(html, url="https://example.com/docs/start")

    assert content.title == "Social Title"
    assert content.description == "A page about configuring the example tool."
    assert content.metadata.author == "Jane Writer"
    assert content.metadata.language == "en-us"
    assert content.metadata.content_type == "documentation"
    assert content.metadata.canonical_url == "https://example.com/docs/start"
    assert content.metadata.word_count == 302
    assert content.metadata.reading_time == 2
    assert not content.metadata.rendering_suspected
    assert content.metadata.rendering_indicators == ()
    assert content.metadata.rendering_confidence == 0
