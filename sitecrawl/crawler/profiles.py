"""Content-type profiles: path patterns and keyword tiers for filtering/ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Profile:
    """Named include/exclude patterns and keyword tiers for one content category."""

    name: str
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    high_keywords: tuple[str, ...] = ()
    medium_keywords: tuple[str, ...] = ()
    low_keywords: tuple[str, ...] = ()
    section_roots: tuple[str, ...] = ("docs",)

    @classmethod
    def from_dict(cls, name: str, payload: Mapping[str, Any]) -> "Profile":
        """Build a profile from config, inheriting unset keyword tiers from `general`."""

        base = BUILTIN_PROFILES["general"]
        keywords = dict(payload.get("keywords") or {})

        def _normalize(key: str, value: Any) -> tuple[str, ...]:
            if isinstance(value, str):
                raise ValueError(f"Profile '{name}' field '{key}' must be a list")
            return tuple(str(item).strip().lower() for item in value if str(item).strip())

        def _tuple(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
            value = payload.get(key)
            if value is None:
                return default
            return _normalize(key, value)

        def _tier(tier: str, default: tuple[str, ...]) -> tuple[str, ...]:
            explicit = _tuple(f"{tier}_keywords", ())
            if explicit:
                return explicit
            if keywords.get(tier) is None:
                return default
            return _normalize(f"keywords.{tier}", keywords[tier])

        return cls(
            name=name,
            include=_tuple("include", ()),
            exclude=_tuple("exclude", ()),
            high_keywords=_tier("high", base.high_keywords),
            medium_keywords=_tier("medium", base.medium_keywords),
            low_keywords=_tier("low", base.low_keywords),
            section_roots=_tuple("section_roots", base.section_roots),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "include": list(self.include),
            "exclude": list(self.exclude),
            "high_keywords": list(self.high_keywords),
            "medium_keywords": list(self.medium_keywords),
            "low_keywords": list(self.low_keywords),
            "section_roots": list(self.section_roots),
        }


_DOC_HIGH = ("intro", "introduction", "getting-started", "quickstart", "overview", "guide", "tutorial", "setup")
_DOC_MEDIUM = ("example", "usage", "configuration", "installation", "concepts", "basics")
_DOC_LOW = ("advanced", "troubleshooting", "faq", "migration", "changelog")

DOCUMENTATION = Profile(
    name="documentation",
    include=(
        "/docs/", "/doc/", "/guide/", "/guides/", "/tutorial/", "/tutorials/",
        "/getting-started/", "/quickstart/", "/setup/", "/installation/",
        "/manual/", "/handbook/", "/reference/", "/intro/", "/introduction/",
        "/overview/", "/help/", "/support/", "/learn/", "/examples/",
    ),
    exclude=(
        "/blog/", "/blogs/", "/news/", "/press/", "/changelog/", "/releases/",
        "/download/", "/downloads/", "/pricing/", "/contact/", "/about/",
        "/legal/", "/privacy/", "/terms/", "/careers/", "/jobs/",
        "/api-reference/", "/api/", "/swagger/", "/openapi/",
    ),
    high_keywords=_DOC_HIGH,
    medium_keywords=_DOC_MEDIUM,
    low_keywords=_DOC_LOW,
)

# No include patterns: everything not excluded passes. Ranking reuses the
# documentation keyword tiers.
GENERAL = Profile(
    name="general",
    include=(),
    exclude=(
        "/admin/", "/login/", "/register/", "/account/", "/dashboard/",
        "/search/", "/404/", "/error/", "/maintenance/",
    ),
    high_keywords=_DOC_HIGH,
    medium_keywords=_DOC_MEDIUM,
    low_keywords=_DOC_LOW,
)

BUILTIN_PROFILES: Mapping[str, Profile] = MappingProxyType(
    {
        DOCUMENTATION.name: DOCUMENTATION,
        GENERAL.name: GENERAL,
    }
)


def resolve_profile(
    profile: Profile | str | None,
    extra_profiles: Mapping[str, Profile] | None = None,
) -> Profile:
    """Return a Profile for a name, falling back to `general` for unknown names."""

    if isinstance(profile, Profile):
        return profile

    name = (profile or "general").strip().lower()
    if extra_profiles and name in extra_profiles:
        return extra_profiles[name]
    if name in BUILTIN_PROFILES:
        return BUILTIN_PROFILES[name]

    LOGGER.warning("Unknown profile %r, using 'general'", name)
    return GENERAL


__all__ = [
    "BUILTIN_PROFILES",
    "DOCUMENTATION",
    "GENERAL",
    "Profile",
    "resolve_profile",
]
