"""Deterministic priority scoring and top-N selection of filtered URLs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence
from urllib.parse import urlsplit

from .profiles import Profile
from .types import JSONDict, ScoredUrl
from .url import path_segments

LOGGER = logging.getLogger(__name__)

BASE_SCORE = 100
DEPTH_PENALTY = 3
HIGH_KEYWORD_BONUS = 25
MEDIUM_KEYWORD_BONUS = 15
LOW_KEYWORD_BONUS = 5
SECTION_ROOT_BONUS = 30
SECTION_CHILD_BONUS = 20
INDEX_BONUS = 10
README_BONUS = 15
DATA_EXTENSION_PENALTY = 20
DATA_EXTENSIONS = (".xml", ".json", ".pdf")
POSITION_BONUS_WINDOW = 50


@dataclass(slots=True)
class PriorityAnalysis:
    """Score distribution over a URL list (high >= 80, medium >= 50)."""

    total: int
    priorities: list[ScoredUrl] = field(default_factory=list)
    distribution: dict[str, int] = field(default_factory=lambda: {"high": 0, "medium": 0, "low": 0})

    def to_json(self) -> JSONDict:
        return {
            "total": self.total,
            "priorities": [item.to_json() for item in self.priorities],
            "distribution": dict(self.distribution),
        }


class PriorityRanker:
    """Score URLs by path shape, profile keywords, and discovery position."""

    def score(self, url: str, original_index: int, profile: Profile) -> int:
        try:
            path = (urlsplit(url).path or "/").lower()
        except ValueError:
            return 0

        segments = path_segments(path)
        score = BASE_SCORE - DEPTH_PENALTY * len(segments)

        if any(keyword in path for keyword in profile.high_keywords):
            score += HIGH_KEYWORD_BONUS
        if any(keyword in path for keyword in profile.medium_keywords):
            score += MEDIUM_KEYWORD_BONUS
        if any(keyword in path for keyword in profile.low_keywords):
            score += LOW_KEYWORD_BONUS

        root_paths = {"/"} | {f"/{root}" for root in profile.section_roots} | {
            f"/{root}/" for root in profile.section_roots
        }
        if path in root_paths:
            score += SECTION_ROOT_BONUS
        if len(segments) == 2 and segments[0] in profile.section_roots:
            score += SECTION_CHILD_BONUS

        if path.endswith(DATA_EXTENSIONS):
            score -= DATA_EXTENSION_PENALTY

        if "index" in path and "api" not in path:
            score += INDEX_BONUS
        if "readme" in path:
            score += README_BONUS

        score += max(0, POSITION_BONUS_WINDOW - original_index)
        return max(0, score)

    def score_all(self, urls: Sequence[str], profile: Profile) -> list[ScoredUrl]:
        """Score every URL and sort by score desc, then discovery order."""

        scored = [
            ScoredUrl(url=url, score=self.score(url, index, profile), original_index=index)
            for index, url in enumerate(urls)
        ]
        scored.sort(key=lambda item: (-item.score, item.original_index))
        return scored

    def rank(self, urls: Sequence[str], profile: Profile, max_pages: int) -> list[str]:
        """Return the `max_pages` highest-priority URLs."""

        if max_pages <= 0:
            return []

        scored = self.score_all(urls, profile)
        for position, item in enumerate(scored[:5], start=1):
            LOGGER.debug("%d. [%d] %s", position, item.score, item.url)

        selected = [item.url for item in scored[:max_pages]]
        LOGGER.info("Selected %d of %d URLs for scraping", len(selected), len(urls))
        return selected

    def analyze(self, urls: Sequence[str], profile: Profile) -> PriorityAnalysis:
        analysis = PriorityAnalysis(total=len(urls))
        analysis.priorities = self.score_all(urls, profile)
        for item in analysis.priorities:
            if item.score >= 80:
                analysis.distribution["high"] += 1
            elif item.score >= 50:
                analysis.distribution["medium"] += 1
            else:
                analysis.distribution["low"] += 1
        return analysis


__all__ = [
    "PriorityAnalysis",
    "PriorityRanker",
]
