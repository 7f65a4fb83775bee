"""Breadth-first route crawler driving batches of concurrent page probes."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from playwright.async_api import Browser, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..core.config import CrawlPolicy, HarnessConfig
from ..core.models import NO_RESPONSE, RouteResult
from ..core.report import CrawlReport
from .prober import PageProber, PlaywrightPageProber, block_heavy_resources
from .session import CrawlSession
from .targeting import SiteOrigin

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50


@dataclass
class RouteCrawler:
    """Explores the site breadth-first and aggregates per-route diagnostics."""

    policy: CrawlPolicy
    prober: PageProber
    base_url: str = ""
    browser: str = "chromium"
    clock: Callable[[], float] = field(default=time.monotonic)
    session: Optional[CrawlSession] = field(default=None, init=False)

    def _log(self, started: float, message: str, *args) -> None:
        logger.info("[%.1fs] " + message, self.clock() - started, *args)

    async def _probe(self, route: str) -> RouteResult:
        try:
            return await asyncio.wait_for(self.prober.probe(route), timeout=self.policy.route_timeout)
        except asyncio.TimeoutError:
            return RouteResult(
                route=route,
                status=NO_RESPONSE,
                errors=[f"timeout: route exceeded {self.policy.route_timeout:g}s"],
            )
        except PlaywrightError as exc:
            logger.debug("Probe for %s failed", route, exc_info=True)
            return RouteResult(route=route, status=NO_RESPONSE, errors=[f"probe: {exc.message}"])
        except Exception as exc:
            logger.warning("Unexpected error while probing %s", route, exc_info=True)
            return RouteResult(route=route, status=NO_RESPONSE, errors=[f"probe: {exc}"])

    async def run(self, seeds: Optional[Iterable[str]] = None) -> CrawlReport:
        session = CrawlSession.start(self.policy, seeds)
        self.session = session
        started = self.clock()
        timed_out = False

        self._log(started, "Starting crawl (%d seeds)", len(session.queue))
        while not session.exhausted:
            if self.clock() - started >= self.policy.run_timeout:
                logger.warning(
                    "Crawl stopped after %.0fs run timeout with %d routes queued",
                    self.policy.run_timeout,
                    len(session.queue),
                )
                timed_out = True
                break

            batch = session.next_batch()
            if not batch:
                break

            self._log(
                started,
                "Batch: %d routes (visited=%d, queued=%d)",
                len(batch),
                len(session.visited),
                len(session.queue),
            )
            batch_started = self.clock()
            results: List[RouteResult] = await asyncio.gather(*(self._probe(route) for route in batch))
            self._log(started, "Batch done in %.1fs", self.clock() - batch_started)

            session.absorb(results)

            if len(session.visited) % PROGRESS_EVERY == 0:
                logger.info(
                    "crawl progress: visited=%d queued=%d discovered=%d",
                    len(session.visited),
                    len(session.queue),
                    len(session.discovered),
                )

        report = CrawlReport(
            base_url=self.base_url,
            browser=self.browser,
            visited=len(session.visited),
            discovered=len(session.discovered),
            categories=dict(session.category_count),
            metrics=session.metrics,
            failures=list(session.failures),
            external_links=dict(session.external_links),
            timed_out=timed_out,
            duration=self.clock() - started,
        )
        self._log(started, "Crawl complete: %s", " | ".join(report.summary_lines()))
        return report


async def _launch(playwright, browser_name: str, config: HarnessConfig) -> Browser:
    launcher = getattr(playwright, browser_name)
    return await launcher.launch(headless=config.headless, slow_mo=config.slow_mo)


async def crawl_site(config: HarnessConfig, browser_name: str = "chromium") -> CrawlReport:
    """Launch ``browser_name``, crawl ``config.base_url`` and return the verdict."""

    origin = SiteOrigin.from_url(config.base_url)

    async with async_playwright() as playwright:
        browser = await _launch(playwright, browser_name, config)
        try:
            logger.info("Creating %s browser context with resource blocking", browser_name)
            context = await browser.new_context()
            try:
                await block_heavy_resources(context)
                prober = PlaywrightPageProber(context=context, origin=origin, policy=config.policy)
                crawler = RouteCrawler(
                    policy=config.policy,
                    prober=prober,
                    base_url=config.base_url,
                    browser=browser_name,
                )
                report = await crawler.run()
            finally:
                await context.close()
        finally:
            await browser.close()

    return report
