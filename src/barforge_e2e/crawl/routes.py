"""Route classification helpers used by the crawl session and the prober."""

from __future__ import annotations

import re

from ..core.config import CrawlPolicy

MODULE_DETAIL_PATTERN = re.compile(r"^/modules/[^/]+@")


def base_path(route: str) -> str:
    """Strip the query string from ``route``."""

    path, _, _ = route.partition("?")
    return path


def has_query(route: str) -> bool:
    return "?" in route


def strip_fragment(href: str) -> str:
    return href.split("#", 1)[0]


def route_category(route: str) -> str:
    """Classify ``route`` into one of the fairness buckets."""

    base = base_path(route)
    if base.startswith("/modules/search"):
        return "search"
    if MODULE_DETAIL_PATTERN.match(base):
        return "module-detail"
    if base.startswith("/users/"):
        return "user-profile"
    if base.startswith("/collections/"):
        return "collection"
    if base.startswith("/settings/"):
        return "settings"
    if base.startswith("/login"):
        return "auth"
    return "other"


def is_internal_route_candidate(href: str, policy: CrawlPolicy) -> bool:
    """Return ``True`` if ``href`` is a site-internal page worth visiting."""

    if not href.startswith("/") or href.startswith("//"):
        return False
    if any(href.startswith(prefix) for prefix in policy.ignored_prefixes):
        return False
    if policy.static_asset_pattern.search(href):
        return False
    if href.startswith(policy.api_prefix):
        return False
    return True


def is_external_href(href: str) -> bool:
    return href.startswith("http://") or href.startswith("https://")
