"""Sitemap XML parsing: `urlset` leaf pages vs `sitemapindex` child sitemaps."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from lxml import etree

from ..constants import SITEMAP_ROOT_MARKERS
from ..errors import SitemapParseError

_ROBOTS_SITEMAP_RE = re.compile(r"^\s*Sitemap:\s*(https?://\S+)", re.IGNORECASE | re.MULTILINE)


class SitemapKind(str, Enum):
    URLSET = "urlset"
    SITEMAP_INDEX = "sitemapindex"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class SitemapDocument:
    """Parsed sitemap: its root kind and the `loc` values in document order."""

    kind: SitemapKind
    locations: list[str] = field(default_factory=list)


def _xml_parser() -> etree.XMLParser:
    return etree.XMLParser(
        recover=True,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        huge_tree=False,
    )


def _local_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname.lower()


def has_sitemap_marker(body: str | bytes | None) -> bool:
    """Cheap check for a `urlset` / `sitemapindex` root before parsing."""

    if not body:
        return False
    text = body.decode("utf-8", errors="ignore") if isinstance(body, bytes) else body
    return any(marker in text for marker in SITEMAP_ROOT_MARKERS)


def parse_sitemap(body: str | bytes) -> SitemapDocument:
    """Parse sitemap XML.

    Entries of a `urlset` are read from `url/loc`, entries of a `sitemapindex`
    from `sitemap/loc`; namespaces are ignored. Raises `SitemapParseError`
    when the body is not XML at all.
    """

    raw = body.encode("utf-8") if isinstance(body, str) else body
    raw = raw.strip()
    if not raw:
        raise SitemapParseError("Empty sitemap body")

    try:
        root = etree.fromstring(raw, parser=_xml_parser())
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise SitemapParseError(f"Invalid sitemap XML: {exc}") from exc

    if root is None:
        raise SitemapParseError("Sitemap XML has no root element")

    root_name = _local_name(root)
    if root_name == "urlset":
        kind, entry_name = SitemapKind.URLSET, "url"
    elif root_name == "sitemapindex":
        kind, entry_name = SitemapKind.SITEMAP_INDEX, "sitemap"
    else:
        return SitemapDocument(kind=SitemapKind.UNKNOWN)

    locations: list[str] = []
    for entry in root:
        if _local_name(entry) != entry_name:
            continue
        for child in entry:
            if _local_name(child) != "loc":
                continue
            text = (child.text or "").strip()
            if text:
                locations.append(text)
            break

    return SitemapDocument(kind=kind, locations=locations)


def parse_robots_sitemaps(robots_text: str) -> list[str]:
    """Return every `Sitemap:` directive URL in robots.txt order."""

    return [match.group(1).strip() for match in _ROBOTS_SITEMAP_RE.finditer(robots_text or "")]


__all__ = [
    "SitemapDocument",
    "SitemapKind",
    "has_sitemap_marker",
    "parse_robots_sitemaps",
    "parse_sitemap",
]
