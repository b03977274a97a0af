"""Heuristic main-content extraction for arbitrary HTML.

Phases, applied to a private copy of the document:

1. strip noise (scripts, navigation chrome, ads, social blocks);
2. semantic cascade: the first likely main-content container with enough text;
3. scoring fallback over every block container;
4. the whole body.

The chosen subtree is cleaned of sidebars, widgets, link clusters, and tiny
UI blocks, then rebuilt as plain text that keeps headings, paragraphs, and list items.
"""

from __future__ import annotations

import copy
import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import Callable

from bs4 import BeautifulSoup, Tag

from ..types import ExtractedContent
from .metadata import (
    collapse_whitespace,
    detect_rendering_signals,
    reading_time_minutes,
    resolve_page_fields,
    word_count,
)

LOGGER = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
NOISE_TAGS = ("script", "style", "noscript", "template", "iframe", "nav", "header", "footer", "aside")
NOISE_SELECTORS = (
    ".ad, .ads, .advertisement, #ads, .social, .social-share, .share-buttons, "
    ".breadcrumb, .breadcrumbs, .pagination, .related-posts, .cookie-banner, .gdpr-banner, "
    ".sidebar, #sidebar, .widget, .widget-area"
)
# Substring class matches; only applied to descendants of the chosen container.
SUBTREE_NOISE_SELECTORS = "[class*='sidebar'], [class*='widget']"
PROTECTED_TAGS = ("html", "body")
SEMANTIC_SELECTORS = (
    "main article",
    "article",
    "main",
    "[role='main']",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".content-area",
    ".docs-content",
    ".documentation",
    ".markdown-body",
)
SCORING_CANDIDATE_TAGS = ("div", "section", "article", "main")
CLEANABLE_BLOCK_TAGS = ("div", "section")

CLASS_BONUSES = (("content", 30), ("main", 25), ("article", 25), ("post", 20))
CLASS_PENALTIES = (("sidebar", 50), ("nav", 40), ("footer", 40), ("header", 30))

_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")

Locator = Callable[[BeautifulSoup], Tag | None]


@dataclass(slots=True)
class ExtractorConfig:
    """Thresholds for content location and cleaning."""

    semantic_min_chars: int = 200
    scoring_min_text_chars: int = 50
    scoring_min_score: float = 50.0
    link_density_penalty: float = 200.0
    boilerplate_link_density: float = 0.7
    boilerplate_max_chars: int = 200
    ui_chrome_max_chars: int = 30
    structured_min_chars: int = 100
    semantic_selectors: tuple[str, ...] = field(default_factory=lambda: SEMANTIC_SELECTORS)


@dataclass(frozen=True, slots=True)
class ContentStrategy:
    """One way of locating the main-content region; first success wins."""

    name: str
    locate: Locator


def _text_length(tag: Tag) -> int:
    return len(tag.get_text().strip())


def _link_text_length(tag: Tag) -> int:
    return sum(len(anchor.get_text()) for anchor in tag.find_all("a"))


def _is_decomposed(tag: Tag) -> bool:
    return bool(getattr(tag, "decomposed", False))


def _class_name(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        return classes.lower()
    return " ".join(classes).lower()


class ContentExtractor:
    """Locate, clean, and structure the main content of an HTML page.

    `extract` is total: it never raises and never mutates a caller's soup.
    """

    def __init__(self, config: ExtractorConfig | None = None) -> None:
        self.config = config or ExtractorConfig()
        self.strategies: list[ContentStrategy] = [
            *(self._semantic_strategy(selector) for selector in self.config.semantic_selectors),
            ContentStrategy("content-scoring", self._best_scored_container),
            ContentStrategy("body", lambda soup: soup.body or soup),
        ]

    def extract(self, document: str | bytes | BeautifulSoup | None, url: str | None = None) -> ExtractedContent:
        try:
            return self._extract(document, url)
        except Exception:
            LOGGER.warning("Content extraction failed for %s, returning empty content", url, exc_info=True)
            return ExtractedContent()

    def _extract(self, document: str | bytes | BeautifulSoup | None, url: str | None) -> ExtractedContent:
        soup = self._working_copy(document)
        if soup is None:
            return ExtractedContent()

        fields = resolve_page_fields(soup, url)
        signals = detect_rendering_signals(soup)

        self.strip_noise(soup)
        container, strategy = self.locate_content(soup)
        body_text = ""
        if container is not None:
            LOGGER.debug("Content for %s located by strategy %r", url, strategy)
            self.clean_container(container)
            body_text = self.structure_text(container)

        words = word_count(body_text)
        indicators = tuple(signals.indicators(len(body_text)))
        metadata = replace(
            fields.metadata,
            word_count=words,
            reading_time=reading_time_minutes(words),
            rendering_suspected=bool(indicators),
            rendering_indicators=indicators,
            rendering_confidence=signals.confidence(len(body_text)),
        )
        if metadata.rendering_suspected:
            LOGGER.info(
                "Page %s looks client-side rendered (%s); content may be incomplete",
                url,
                ", ".join(indicators),
            )

        return ExtractedContent(
            title=fields.title,
            description=fields.description,
            body_text=body_text,
            metadata=metadata,
        )

    @staticmethod
    def _working_copy(document: str | bytes | BeautifulSoup | None) -> BeautifulSoup | None:
        if document is None:
            return None
        if isinstance(document, BeautifulSoup):
            return copy.copy(document)
        if isinstance(document, bytes):
            if not document.strip():
                return None
        elif not str(document).strip():
            return None
        return BeautifulSoup(document, "lxml")

    @staticmethod
    def strip_noise(soup: BeautifulSoup) -> None:
        """Phase 1: drop script/chrome subtrees and ad/social blocks.

        `<html>` and `<body>` are never removed, whatever their classes.
        """

        for tag in soup.find_all(list(NOISE_TAGS)):
            if not _is_decomposed(tag):
                tag.decompose()
        for tag in soup.select(NOISE_SELECTORS):
            if not _is_decomposed(tag) and tag.name not in PROTECTED_TAGS:
                tag.decompose()

    def locate_content(self, soup: BeautifulSoup) -> tuple[Tag | None, str | None]:
        """Run the strategy cascade; returns the container and the strategy name."""

        for strategy in self.strategies:
            container = strategy.locate(soup)
            if container is not None:
                return container, strategy.name
        return None, None

    def _semantic_strategy(self, selector: str) -> ContentStrategy:
        def locate(soup: BeautifulSoup) -> Tag | None:
            for candidate in soup.select(selector):
                if _text_length(candidate) > self.config.semantic_min_chars:
                    return candidate
            return None

        return ContentStrategy(f"semantic:{selector}", locate)

    def score_container(self, tag: Tag) -> float:
        """Content score of one block; higher means more likely main content."""

        text_length = _text_length(tag)
        if text_length < self.config.scoring_min_text_chars:
            return 0.0

        link_density = _link_text_length(tag) / max(text_length, 1)
        score = math.sqrt(text_length)
        score -= link_density * self.config.link_density_penalty
        score -= len(tag.find_all(["script", "style"])) * 50
        score -= len(tag.select(".ad, .advertisement, .social")) * 30
        score += len(tag.find_all("p")) * 15
        score += len(tag.find_all(list(HEADING_TAGS))) * 10
        score += len(tag.find_all(["ul", "ol"])) * 5

        class_name = _class_name(tag)
        score += sum(bonus for marker, bonus in CLASS_BONUSES if marker in class_name)
        score -= sum(penalty for marker, penalty in CLASS_PENALTIES if marker in class_name)

        return max(0.0, score)

    def _best_scored_container(self, soup: BeautifulSoup) -> Tag | None:
        best: Tag | None = None
        best_score = 0.0
        for tag in soup.find_all(list(SCORING_CANDIDATE_TAGS)):
            score = self.score_container(tag)
            if score > best_score and score > self.config.scoring_min_score:
                best, best_score = tag, score
        if best is not None:
            LOGGER.debug("Best scored container <%s class=%r> score=%.1f", best.name, _class_name(best), best_score)
        return best

    def clean_container(self, container: Tag) -> None:
        """Remove nested sidebars/widgets, link clusters, and tiny heading-less UI blocks.

        A sidebar or widget match that holds most of the container's text is a
        page-builder wrapper around the content itself and is kept.
        """

        container_length = _text_length(container)
        for tag in container.select(SUBTREE_NOISE_SELECTORS):
            if _is_decomposed(tag):
                continue
            if _text_length(tag) * 2 > container_length:
                continue
            tag.decompose()

        for block in container.find_all(list(CLEANABLE_BLOCK_TAGS)):
            if _is_decomposed(block):
                continue

            text_length = _text_length(block)
            link_density = _link_text_length(block) / max(text_length, 1)
            if link_density > self.config.boilerplate_link_density and text_length < self.config.boilerplate_max_chars:
                block.decompose()
                continue

            if text_length < self.config.ui_chrome_max_chars and block.find(list(HEADING_TAGS)) is None:
                block.decompose()

    def structure_text(self, container: Tag) -> str:
        """Plain text with `#` heading markers, paragraph breaks, and `•` list items."""

        parts: list[str] = []
        previous_kind: str | None = None

        for element in container.find_all([*HEADING_TAGS, "p", "li", "pre"]):
            if element.name != "pre" and element.find_parent("li") is not None:
                continue
            if element.find_parent("pre") is not None:
                continue

            if element.name == "pre":
                text = element.get_text().strip("\n")
                kind = "pre"
            else:
                text = collapse_whitespace(element.get_text(" ", strip=True))
                kind = element.name

            if not text.strip():
                continue

            if kind in HEADING_TAGS:
                text = "#" * int(kind[1]) + " " + text
                kind = "heading"
            elif kind == "li":
                text = "• " + text

            if parts:
                parts.append("\n" if kind == "li" and previous_kind == "li" else "\n\n")
            parts.append(text)
            previous_kind = kind

        structured = self._normalize("".join(parts))
        if len(structured) < self.config.structured_min_chars:
            return collapse_whitespace(container.get_text(" ", strip=True))
        return structured

    @staticmethod
    def _normalize(text: str) -> str:
        text = _TRAILING_SPACE_RE.sub("\n", text)
        return _BLANK_LINES_RE.sub("\n\n", text).strip()


__all__ = [
    "ContentExtractor",
    "ContentStrategy",
    "ExtractorConfig",
]
