"""Page metadata resolution from markup.

Each field is a pure function over the parsed document: it walks an ordered
list of sources (social/structured tags first, then headings and page
elements, then class-name fallbacks) and returns the first candidate that
fits the field's length/validity band, or None.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from bs4 import BeautifulSoup, Tag

from ..types import PageMetadata
from ..url import is_valid_http_url, resolve_url, url_path

_YEAR_RE = re.compile(r"\b(1[89]|20|21)\d{2}\b")
_WORD_RE = re.compile(r"\b\w+\b")
_SPACE_RE = re.compile(r"\s+")
_LANGUAGE_RE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{2,8})*$")

MAX_KEYWORDS = 20
WORDS_PER_MINUTE = 200

DOC_PATH_MARKERS = ("/docs", "/doc/", "/guide", "/tutorial", "/reference", "/manual", "/handbook", "/learn")
DOC_CLASS_SELECTORS = ".docs-content, .documentation, .markdown-body, .theme-doc-markdown, .rst-content, .md-content"
DOC_GENERATORS = ("docusaurus", "mkdocs", "sphinx", "gitbook", "vuepress", "docsify", "hugo-book", "nextra")
BLOG_PATH_MARKERS = ("/blog/", "/posts/", "/post/", "/news/")

FRAMEWORK_SELECTORS = "[data-reactroot], #root, #app, [ng-app], app-root, #__next, #__nuxt"
MAIN_CONTAINER_SELECTORS = "main, #main, .main, #content, .content"
MAX_PLAIN_SCRIPT_TAGS = 8
SHORT_BODY_CHARS = 800
EMPTY_CONTAINER_CHARS = 100
# (threshold, weight) pairs; only the first matching band counts.
BODY_LENGTH_WEIGHTS = ((500, 40), (1500, 20))
SCRIPT_COUNT_WEIGHTS = ((10, 25), (5, 15))
FRAMEWORK_WEIGHT = 30
EMPTY_CONTAINER_WEIGHT = 25


def collapse_whitespace(text: str | None) -> str:
    return _SPACE_RE.sub(" ", text or "").strip()


def first_in_band(candidates: Iterable[str | None], min_len: int, max_len: int) -> str | None:
    """First non-empty candidate whose collapsed length is within [min_len, max_len]."""

    for candidate in candidates:
        text = collapse_whitespace(candidate)
        if text and min_len <= len(text) <= max_len:
            return text
    return None


def _attr_regex(value: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)


def meta_contents(soup: BeautifulSoup | Tag, key: str) -> Iterator[str]:
    """`content` of every <meta> whose name/property/itemprop equals key (case-insensitive)."""

    pattern = _attr_regex(key)
    for attr in ("property", "name", "itemprop"):
        for tag in soup.find_all("meta", attrs={attr: pattern}):
            content = tag.get("content")
            if isinstance(content, str) and content.strip():
                yield content


def _meta(soup: BeautifulSoup, *keys: str) -> Iterator[str]:
    for key in keys:
        yield from meta_contents(soup, key)


def _texts(soup: BeautifulSoup, selector: str) -> Iterator[str]:
    for tag in soup.select(selector):
        yield tag.get_text(" ", strip=True)


def resolve_title(soup: BeautifulSoup) -> str | None:
    def candidates() -> Iterator[str | None]:
        yield from _meta(soup, "og:title", "twitter:title")
        if soup.title is not None:
            yield soup.title.get_text(" ", strip=True)
        yield from _texts(soup, "h1")
        yield from _texts(soup, ".title, .post-title, .entry-title, .page-title")

    return first_in_band(candidates(), 1, 300)


def resolve_description(soup: BeautifulSoup) -> str | None:
    def candidates() -> Iterator[str | None]:
        yield from _meta(soup, "og:description", "twitter:description", "description")
        yield from _texts(soup, ".description, .summary, .excerpt, .lead")

    return first_in_band(candidates(), 10, 1000)


def resolve_author(soup: BeautifulSoup) -> str | None:
    def candidates() -> Iterator[str | None]:
        yield from _meta(soup, "author", "article:author", "twitter:creator", "dc.creator")
        yield from _texts(soup, "[rel~=author], [itemprop=author]")
        yield from _texts(soup, ".author, .byline, .author-name, .post-author")

    # article:author is often a profile URL rather than a name.
    names = (value for value in candidates() if value and not is_valid_http_url(value.strip()))
    return first_in_band(names, 2, 100)


def resolve_keywords(soup: BeautifulSoup) -> tuple[str, ...]:
    raw: list[str] = []
    for content in meta_contents(soup, "keywords"):
        raw.extend(content.split(","))
    raw.extend(meta_contents(soup, "article:tag"))

    keywords: list[str] = []
    seen: set[str] = set()
    for item in raw:
        keyword = collapse_whitespace(item)
        key = keyword.lower()
        if not keyword or len(keyword) > 50 or key in seen:
            continue
        seen.add(key)
        keywords.append(keyword)
        if len(keywords) >= MAX_KEYWORDS:
            break
    return tuple(keywords)


def resolve_publish_date(soup: BeautifulSoup) -> str | None:
    def candidates() -> Iterator[str | None]:
        yield from _meta(
            soup,
            "article:published_time",
            "datePublished",
            "date",
            "pubdate",
            "publishdate",
            "publish-date",
            "dc.date",
            "dcterms.created",
        )
        for tag in soup.find_all("time"):
            yield tag.get("datetime") or tag.get_text(" ", strip=True)
        yield from _texts(soup, ".date, .published, .post-date, .entry-date")

    dated = (value for value in candidates() if value and _YEAR_RE.search(value))
    return first_in_band(dated, 4, 64)


def resolve_language(soup: BeautifulSoup) -> str:
    def candidates() -> Iterator[str | None]:
        html = soup.find("html")
        if isinstance(html, Tag):
            lang = html.get("lang") or html.get("xml:lang")
            if isinstance(lang, str):
                yield lang
        for tag in soup.find_all("meta", attrs={"http-equiv": _attr_regex("content-language")}):
            yield tag.get("content")
        yield from _meta(soup, "og:locale", "language")

    for candidate in candidates():
        if not candidate:
            continue
        language = candidate.split(",")[0].strip().lower().replace("_", "-")
        if _LANGUAGE_RE.match(language):
            return language
    return "unknown"


def resolve_canonical_url(soup: BeautifulSoup, page_url: str | None) -> str | None:
    def candidates() -> Iterator[str | None]:
        for tag in soup.find_all("link", rel=True):
            rel = tag.get("rel") or []
            if "canonical" in [value.lower() for value in rel]:
                yield tag.get("href")
        yield from _meta(soup, "og:url")

    for href in candidates():
        resolved = resolve_url(page_url, href)
        if resolved:
            return resolved
    return None


def resolve_content_type(soup: BeautifulSoup, page_url: str | None) -> str:
    path = url_path(page_url) if page_url else "/"
    generator = " ".join(meta_contents(soup, "generator")).lower()

    if (
        any(marker in path for marker in DOC_PATH_MARKERS)
        or any(name in generator for name in DOC_GENERATORS)
        or soup.select_one(DOC_CLASS_SELECTORS) is not None
    ):
        return "documentation"
    if any(marker in path for marker in BLOG_PATH_MARKERS):
        return "blog"
    og_type = " ".join(meta_contents(soup, "og:type")).lower()
    if "article" in og_type or soup.find("article") is not None:
        return "article"
    return "webpage"


def word_count(text: str) -> int:
    return len(_WORD_RE.findall(text))


def reading_time_minutes(words: int, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    if words <= 0:
        return 0
    return max(1, math.ceil(words / words_per_minute))


@dataclass(frozen=True, slots=True)
class RenderingSignals:
    """Hints that a page's content is generated client-side at view time."""

    framework_markers: bool
    script_count: int
    empty_main_container: bool

    def indicators(self, body_length: int) -> list[str]:
        """Reasons the page looks client-side rendered; empty when it does not."""

        found: list[str] = []
        if self.framework_markers:
            found.append("framework root markers present")
        if self.empty_main_container:
            found.append("main container nearly empty")
        if self.script_count > MAX_PLAIN_SCRIPT_TAGS:
            found.append(f"many script tags: {self.script_count}")
        if body_length < SHORT_BODY_CHARS and self.script_count > 0:
            found.append(f"short body with scripts: {body_length} chars")
        return found

    def suspected(self, body_length: int) -> bool:
        return bool(self.indicators(body_length))

    def confidence(self, body_length: int) -> int:
        """Weighted 0-100 likelihood; higher means more of the page is missing."""

        score = 0
        for limit, weight in BODY_LENGTH_WEIGHTS:
            if body_length < limit:
                score += weight
                break
        for limit, weight in SCRIPT_COUNT_WEIGHTS:
            if self.script_count > limit:
                score += weight
                break
        if self.framework_markers:
            score += FRAMEWORK_WEIGHT
        if self.empty_main_container:
            score += EMPTY_CONTAINER_WEIGHT
        return min(score, 100)


def detect_rendering_signals(soup: BeautifulSoup) -> RenderingSignals:
    """Inspect the unstripped document; must run before noise removal."""

    markers = soup.select_one(FRAMEWORK_SELECTORS) is not None
    if not markers:
        markers = soup.find(id="__NEXT_DATA__") is not None
    if not markers:
        markers = (
            soup.find(lambda tag: any(str(attr).startswith("data-v-") for attr in tag.attrs)) is not None
        )

    containers = soup.select(MAIN_CONTAINER_SELECTORS)
    empty = any(len(tag.get_text().strip()) < EMPTY_CONTAINER_CHARS for tag in containers)

    return RenderingSignals(
        framework_markers=markers,
        script_count=len(soup.find_all("script")),
        empty_main_container=empty,
    )


@dataclass(frozen=True, slots=True)
class PageFields:
    """Metadata that only depends on the untouched document."""

    title: str
    description: str
    metadata: PageMetadata


def resolve_page_fields(soup: BeautifulSoup, page_url: str | None = None) -> PageFields:
    """Resolve title, description, and metadata; absent fields get defaults."""

    return PageFields(
        title=resolve_title(soup) or "",
        description=resolve_description(soup) or "",
        metadata=PageMetadata(
            author=resolve_author(soup),
            keywords=resolve_keywords(soup),
            publish_date=resolve_publish_date(soup),
            language=resolve_language(soup),
            content_type=resolve_content_type(soup, page_url),
            canonical_url=resolve_canonical_url(soup, page_url),
        ),
    )


__all__ = [
    "PageFields",
    "RenderingSignals",
    "collapse_whitespace",
    "detect_rendering_signals",
    "first_in_band",
    "meta_contents",
    "reading_time_minutes",
    "resolve_author",
    "resolve_canonical_url",
    "resolve_content_type",
    "resolve_description",
    "resolve_keywords",
    "resolve_language",
    "resolve_page_fields",
    "resolve_publish_date",
    "resolve_title",
    "word_count",
]
