"""
Sitemap and robots.txt for search engines.

Both are derived from the same collections the public pages use, so a page
is listed exactly when it can be resolved.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from content.types import Project, Series, Venture
from portfolio.view_models import detail_path

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

# (path, priority, change frequency)
STATIC_PAGES = (
    ("/", "1.0", "weekly"),
    ("/resume", "0.9", "monthly"),
    ("/design-work", "0.9", "weekly"),
    ("/ventures", "0.8", "monthly"),
)

PROJECT_PRIORITY = "0.8"
SERIES_PRIORITY = "0.8"
VENTURE_PRIORITY = "0.7"


@dataclass(frozen=True)
class SitemapEntry:
    path: str
    priority: str
    changefreq: str
    lastmod: Optional[str] = None


def _day(timestamp: Optional[str]) -> Optional[str]:
    return timestamp[:10] if timestamp else None


def sitemap_entries(
    projects: Iterable[Project],
    series: Iterable[Series],
    ventures: Iterable[Venture],
) -> List[SitemapEntry]:
    """Static pages first, then one entry per visible detail page."""
    entries = [SitemapEntry(path, priority, freq) for path, priority, freq in STATIC_PAGES]
    seen = {entry.path for entry in entries}
    for items, priority in (
        (projects, PROJECT_PRIORITY),
        (series, SERIES_PRIORITY),
        (ventures, VENTURE_PRIORITY),
    ):
        for item in items:
            if not item.is_visible:
                continue
            path = detail_path(item)
            if path in seen:
                continue
            seen.add(path)
            entries.append(SitemapEntry(path, priority, "monthly", _day(item.updated_at)))
    return entries


def render_sitemap(
    entries: Iterable[SitemapEntry], site_url: str, today: Optional[date] = None
) -> bytes:
    fallback = (today or date.today()).isoformat()
    base = site_url.rstrip("/")
    urlset = ET.Element("urlset", xmlns=SITEMAP_NAMESPACE)
    for entry in entries:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = f"{base}{entry.path}"
        ET.SubElement(url, "lastmod").text = entry.lastmod or fallback
        ET.SubElement(url, "changefreq").text = entry.changefreq
        ET.SubElement(url, "priority").text = entry.priority
    return ET.tostring(urlset, encoding="UTF-8", xml_declaration=True)


def robots_txt(site_url: str) -> str:
    return "\n".join(
        (
            "User-agent: *",
            "Allow: /",
            "Disallow: /admin",
            "Disallow: /admin/*",
            "Crawl-delay: 1",
            "",
            f"Sitemap: {site_url.rstrip('/')}/sitemap.xml",
            "",
        )
    )
