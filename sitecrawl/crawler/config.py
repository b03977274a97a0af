"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_CLASSIFY_MULTIPLIER,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MIN_CONSOLIDATED_LENGTH,
    DEFAULT_PROFILE,
    DEFAULT_RATE_LIMIT_MS,
    DEFAULT_RATE_LIMIT_STRATEGY,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_SITEMAP_MAX_DEPTH,
    DEFAULT_SITEMAP_TIMEOUT_SECONDS,
    DEFAULT_SITEMAP_USER_AGENT,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    RATE_LIMIT_STRATEGIES,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .profiles import Profile, resolve_profile
from .types import JSONDict, JSONValue


def _as_float(value: Any, key: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _coerce_profiles(value: Any) -> dict[str, Profile]:
    if not value:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'profiles' must be a mapping of name -> profile, got {type(value)!r}")

    profiles: dict[str, Profile] = {}
    for raw_name, payload in value.items():
        name = str(raw_name).strip().lower()
        if not name:
            raise ValueError("Profile name cannot be empty")
        if isinstance(payload, Profile):
            profiles[name] = payload
            continue
        if not isinstance(payload, Mapping):
            raise ValueError(f"Profile '{name}' must be a mapping")
        profiles[name] = Profile.from_dict(name, payload)
    return profiles


@dataclass(slots=True)
class CrawlConfig:
    """Top-level crawler configuration used by pipeline/resolver/fetcher."""

    max_pages: int = DEFAULT_MAX_PAGES
    profile: str = DEFAULT_PROFILE
    rate_limit_ms: int = DEFAULT_RATE_LIMIT_MS
    rate_limit_strategy: str = DEFAULT_RATE_LIMIT_STRATEGY

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS

    sitemap_timeout_seconds: float = DEFAULT_SITEMAP_TIMEOUT_SECONDS
    sitemap_max_depth: int = DEFAULT_SITEMAP_MAX_DEPTH
    classify_multiplier: int = DEFAULT_CLASSIFY_MULTIPLIER
    min_consolidated_length: int = DEFAULT_MIN_CONSOLIDATED_LENGTH

    user_agent: str = DEFAULT_USER_AGENT
    sitemap_user_agent: str = DEFAULT_SITEMAP_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))

    profiles: dict[str, Profile] = field(default_factory=dict)
    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_pages <= 0:
            raise ValueError("max_pages must be > 0")
        if self.rate_limit_ms < 0:
            raise ValueError("rate_limit_ms must be >= 0")
        self.rate_limit_strategy = self.rate_limit_strategy.strip().lower()
        if self.rate_limit_strategy not in RATE_LIMIT_STRATEGIES:
            raise ValueError(
                f"rate_limit_strategy must be one of {RATE_LIMIT_STRATEGIES}, got {self.rate_limit_strategy!r}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.sitemap_timeout_seconds <= 0:
            raise ValueError("sitemap_timeout_seconds must be > 0")
        if self.sitemap_max_depth < 0:
            raise ValueError("sitemap_max_depth must be >= 0")
        if self.classify_multiplier <= 0:
            raise ValueError("classify_multiplier must be > 0")
        if self.min_consolidated_length < 0:
            raise ValueError("min_consolidated_length must be >= 0")

        self.profile = (self.profile or DEFAULT_PROFILE).strip().lower()
        self.profiles = _coerce_profiles(self.profiles)

    @property
    def rate_limit_seconds(self) -> float:
        return self.rate_limit_ms / 1000.0

    def resolve_profile(self, name: str | Profile | None = None) -> Profile:
        """Return the named (or configured) profile, custom profiles first."""

        return resolve_profile(self.profile if name is None else name, self.profiles)

    def headers_for(self, url: str | None = None, *, sitemap: bool = False) -> dict[str, str]:
        """Return request headers merged from defaults and the configured user agent."""

        merged: dict[str, str] = dict(self.default_headers)
        merged["User-Agent"] = self.sitemap_user_agent if sitemap else self.user_agent
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "max_pages": self.max_pages,
            "profile": self.profile,
            "rate_limit_ms": self.rate_limit_ms,
            "rate_limit_strategy": self.rate_limit_strategy,
            "timeout_seconds": self.timeout_seconds,
            "max_redirects": self.max_redirects,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "sitemap_timeout_seconds": self.sitemap_timeout_seconds,
            "sitemap_max_depth": self.sitemap_max_depth,
            "classify_multiplier": self.classify_multiplier,
            "min_consolidated_length": self.min_consolidated_length,
            "user_agent": self.user_agent,
            "sitemap_user_agent": self.sitemap_user_agent,
            "default_headers": self.default_headers,
            "profiles": {name: profile.to_json() for name, profile in self.profiles.items()},
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        return cls(
            max_pages=_as_int(payload.get("max_pages", DEFAULT_MAX_PAGES), "max_pages"),
            profile=str(payload.get("profile", DEFAULT_PROFILE)),
            rate_limit_ms=_as_int(payload.get("rate_limit_ms", DEFAULT_RATE_LIMIT_MS), "rate_limit_ms"),
            rate_limit_strategy=str(payload.get("rate_limit_strategy", DEFAULT_RATE_LIMIT_STRATEGY)),
            timeout_seconds=_as_float(payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS), "timeout_seconds"),
            max_redirects=_as_int(payload.get("max_redirects", DEFAULT_MAX_REDIRECTS), "max_redirects"),
            retries=_as_int(payload.get("retries", DEFAULT_RETRIES), "retries"),
            retry_backoff_seconds=_as_float(payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS), "retry_backoff_seconds"),
            sitemap_timeout_seconds=_as_float(payload.get("sitemap_timeout_seconds", DEFAULT_SITEMAP_TIMEOUT_SECONDS), "sitemap_timeout_seconds"),
            sitemap_max_depth=_as_int(payload.get("sitemap_max_depth", DEFAULT_SITEMAP_MAX_DEPTH), "sitemap_max_depth"),
            classify_multiplier=_as_int(payload.get("classify_multiplier", DEFAULT_CLASSIFY_MULTIPLIER), "classify_multiplier"),
            min_consolidated_length=_as_int(payload.get("min_consolidated_length", DEFAULT_MIN_CONSOLIDATED_LENGTH), "min_consolidated_length"),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            sitemap_user_agent=str(payload.get("sitemap_user_agent", DEFAULT_SITEMAP_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            profiles=_coerce_profiles(payload.get("profiles")),
            metadata=dict(payload.get("metadata", {})),
        )

    def with_overrides(self, **overrides: Any) -> "CrawlConfig":
        """Return a copy with non-None overrides applied (CLI/run arguments)."""

        payload = self.to_dict()
        payload["profiles"] = dict(self.profiles)
        for key, value in overrides.items():
            if value is not None:
                payload[key] = value
        return CrawlConfig.from_dict(payload)


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "save_config",
]
