"""Breadth-first site crawl with per-route diagnostics."""

from .crawler import RouteCrawler, crawl_site
from .prober import PageProber, PlaywrightPageProber
from .session import CrawlSession

__all__ = ["CrawlSession", "PageProber", "PlaywrightPageProber", "RouteCrawler", "crawl_site"]
