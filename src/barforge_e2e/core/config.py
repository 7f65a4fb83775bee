"""Crawl policy and harness configuration loading."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Pattern

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://127.0.0.1:8080"
DEFAULT_SERVER_COMMAND = ("dx", "serve", "--web", "-p", "barforge-web", "--open=false")
SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

DEFAULT_SEED_ROUTES = (
    "/",
    "/modules",
    "/modules/search",
    "/modules/search?q=clock",
    "/modules/search?sort=popular",
    "/modules/search?sort=recent",
    "/modules/search?sort=trending",
    "/modules/search?sort=downloads",
    "/modules/search?sort=alpha",
    "/modules/search?category=weather",
    "/modules/search?page=2",
    "/modules/weather-wttr@barforge",
    "/modules/clock-time@barforge",
    "/modules/cpu-monitor@barforge",
    "/users/barforge",
    "/login",
    "/dashboard",
    "/stars",
    "/collections/ops-essentials",
    "/upload",
    "/admin",
    "/barforge",
    "/terms",
    "/privacy",
    "/settings",
    "/settings/profile",
    "/settings/notifications",
    "/settings/security",
)

DEFAULT_CATEGORY_CAPS = MappingProxyType(
    {
        "search": 8,
        "module-detail": 20,
        "user-profile": 10,
        "collection": 10,
        "settings": 10,
        "auth": 8,
        "other": 100,
    }
)

STATIC_ASSET_PATTERN = re.compile(
    r"\.(png|jpe?g|gif|svg|webp|avif|ico|css|js|map|json|woff2?|ttf)$", re.IGNORECASE
)
IGNORED_PREFIXES = ("/assets/", "/static/", "/build/", "/favicon")
SUPPRESSED_CONSOLE_SUBSTRINGS = (
    "net::ERR_FAILED",
    "net::ERR_ABORTED",
    "fonts.gstatic.com",
    "downloadable font",
)

# Requests matching these are aborted by the crawl context.
BLOCKED_MEDIA_PATTERN = re.compile(r"\.(png|jpe?g|gif|svg|webp|avif|ico|woff2?|ttf|eot)$", re.IGNORECASE)
BLOCKED_STYLE_PATTERN = re.compile(r"\.(css)$", re.IGNORECASE)


@dataclass(frozen=True)
class CrawlPolicy:
    """Immutable limits and filters for one crawl run."""

    seed_routes: tuple[str, ...] = DEFAULT_SEED_ROUTES
    max_routes: int = 200
    concurrency: int = 8
    max_variants_per_path: int = 3
    category_caps: Mapping[str, int] = field(default_factory=lambda: DEFAULT_CATEGORY_CAPS)
    default_category_cap: int = 20
    static_asset_pattern: Pattern[str] = STATIC_ASSET_PATTERN
    ignored_prefixes: tuple[str, ...] = IGNORED_PREFIXES
    api_prefix: str = "/api/"
    suppressed_console_substrings: tuple[str, ...] = SUPPRESSED_CONSOLE_SUBSTRINGS
    navigation_timeout_ms: int = 5000
    action_timeout_ms: int = 3000
    route_timeout: float = 30.0
    run_timeout: float = 45 * 60.0
    max_buttons: int = 5
    max_inputs: int = 3

    def __post_init__(self) -> None:
        if self.max_routes < 1:
            raise ValueError("max_routes must be at least 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.max_variants_per_path < 0:
            raise ValueError("max_variants_per_path cannot be negative")
        # Freeze caller-supplied dicts so a policy can be shared across runs.
        if not isinstance(self.category_caps, MappingProxyType):
            object.__setattr__(self, "category_caps", MappingProxyType(dict(self.category_caps)))
        object.__setattr__(self, "seed_routes", tuple(self.seed_routes))

    def category_cap(self, category: str) -> int:
        return self.category_caps.get(category, self.default_category_cap)

    def with_overrides(self, **changes) -> "CrawlPolicy":
        """Return a copy with the non-``None`` values in ``changes`` applied."""

        filtered = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **filtered) if filtered else self


@dataclass(slots=True)
class HarnessConfig:
    """Runtime options for driving the site under test."""

    base_url: str = DEFAULT_BASE_URL
    start_server: bool = True
    ci: bool = False
    debug: bool = False
    server_command: tuple[str, ...] = DEFAULT_SERVER_COMMAND
    server_cwd: Optional[str] = None
    server_timeout: float = 120.0
    policy: CrawlPolicy = field(default_factory=CrawlPolicy)

    @property
    def retries(self) -> int:
        return 2 if self.ci else 0

    @property
    def workers(self) -> Optional[int]:
        """Concurrent browser runs; ``None`` means one per requested browser."""

        return 1 if self.ci else None

    @property
    def headless(self) -> bool:
        return not self.debug

    @property
    def slow_mo(self) -> int:
        return 50 if self.debug else 0

    @property
    def reuse_existing_server(self) -> bool:
        return not self.ci


def _read_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_configuration(base_url: Optional[str] = None) -> HarnessConfig:
    """Builds a ``HarnessConfig`` from CLI input and environment variables."""

    load_dotenv()  # Loads .env values if present

    resolved_url = base_url or os.getenv("PLAYWRIGHT_BASE_URL") or DEFAULT_BASE_URL
    policy = CrawlPolicy().with_overrides(
        max_routes=_read_int("CRAWL_MAX_ROUTES"),
        concurrency=_read_int("CRAWL_CONCURRENCY"),
    )

    return HarnessConfig(
        base_url=resolved_url.rstrip("/"),
        start_server=os.getenv("PLAYWRIGHT_SKIP_WEB_SERVER") != "1",
        ci=bool(os.getenv("CI")),
        debug=bool(os.getenv("PWDEBUG")),
        server_cwd=os.getenv("BARFORGE_ROOT") or None,
        policy=policy,
    )
