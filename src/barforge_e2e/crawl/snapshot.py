"""Extracts links and element counts from a rendered page's HTML."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from bs4 import BeautifulSoup

from ..core.config import CrawlPolicy
from ..core.models import PageMetrics
from .routes import is_external_href, is_internal_route_candidate, strip_fragment

INPUT_TAGS = ("input", "textarea", "select")
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


@dataclass
class PageSnapshot:
    internal_links: List[str] = field(default_factory=list)
    external_links: List[str] = field(default_factory=list)
    metrics: PageMetrics = field(default_factory=PageMetrics)


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def collect_hrefs(soup: BeautifulSoup) -> List[str]:
    """Anchor hrefs with the fragment removed, empty results dropped."""

    hrefs: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = strip_fragment(anchor.get("href") or "")
        if href:
            hrefs.append(href)
    return hrefs


def count_elements(soup: BeautifulSoup) -> PageMetrics:
    return PageMetrics(
        buttons=len(soup.find_all("button")),
        inputs=len(soup.find_all(INPUT_TAGS)),
        links=len(soup.find_all("a", href=True)),
        images=len(soup.find_all("img")),
        headings=len(soup.find_all(HEADING_TAGS)),
    )


def take_snapshot(html: str, policy: CrawlPolicy) -> PageSnapshot:
    if not html:
        return PageSnapshot()

    soup = BeautifulSoup(html, "html.parser")
    hrefs = collect_hrefs(soup)

    return PageSnapshot(
        internal_links=_unique([href for href in hrefs if is_internal_route_candidate(href, policy)]),
        external_links=_unique([href for href in hrefs if is_external_href(href)]),
        metrics=count_elements(soup),
    )
