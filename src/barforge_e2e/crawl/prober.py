"""Playwright-backed page prober: one navigation and diagnostics pass per route."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from playwright.async_api import BrowserContext, ConsoleMessage, Locator, Page, Route
from playwright.async_api import Error as PlaywrightError

from ..core.config import BLOCKED_MEDIA_PATTERN, BLOCKED_STYLE_PATTERN, CrawlPolicy
from ..core.models import NO_RESPONSE, RouteResult, RouteStatus
from .snapshot import take_snapshot
from .targeting import SiteOrigin

logger = logging.getLogger(__name__)

TOAST_CSS = "#__dx-toast { pointer-events: none !important; }"
INPUT_SELECTOR = 'input:not([type="hidden"]):not([type="submit"]):not([type="button"]), textarea'
VISIBILITY_TIMEOUT_MS = 100
INTERACTION_TIMEOUT_MS = 200


class PageProber(Protocol):
    async def probe(self, route: str) -> RouteResult:
        ...


def is_suppressed_console_text(text: str, suppressed: Sequence[str]) -> bool:
    return any(fragment in text for fragment in suppressed)


async def _abort_request(route: Route) -> None:
    await route.abort()


async def block_heavy_resources(context: BrowserContext) -> None:
    """Abort image, font and stylesheet requests to speed up crawling."""

    await context.route(BLOCKED_MEDIA_PATTERN, _abort_request)
    await context.route(BLOCKED_STYLE_PATTERN, _abort_request)


@dataclass
class PlaywrightPageProber:
    """Visits routes in a shared browsing context and reports what broke."""

    context: BrowserContext
    origin: SiteOrigin
    policy: CrawlPolicy

    async def probe(self, route: str) -> RouteResult:
        page = await self.context.new_page()
        try:
            return await self._probe_page(page, route)
        finally:
            try:
                await page.close()
            except PlaywrightError:
                logger.debug("Closing page for %s failed", route, exc_info=True)

    async def _probe_page(self, page: Page, route: str) -> RouteResult:
        errors: List[str] = []
        console_errors: List[str] = []

        page.set_default_navigation_timeout(self.policy.navigation_timeout_ms)
        page.set_default_timeout(self.policy.action_timeout_ms)

        def on_page_error(error: PlaywrightError) -> None:
            errors.append(f"pageerror: {error.message}")

        def on_console(message: ConsoleMessage) -> None:
            if message.type != "error":
                return
            text = message.text
            if is_suppressed_console_text(text, self.policy.suppressed_console_substrings):
                return
            console_errors.append(f"console.error: {text}")

        page.on("pageerror", on_page_error)
        page.on("console", on_console)

        status: RouteStatus = NO_RESPONSE
        try:
            response = await page.goto(
                self.origin.resolve(route),
                wait_until="domcontentloaded",
                timeout=self.policy.navigation_timeout_ms,
            )
        except PlaywrightError as exc:
            errors.append(f"navigation: {exc.message}")
            return RouteResult(route=route, status=status, errors=errors, console_errors=console_errors)

        if response is not None:
            status = response.status

        current_url = page.url
        if not self.origin.contains(current_url):
            return RouteResult(route=route, status=status, external_links=[current_url])

        try:
            await page.add_style_tag(content=TOAST_CSS)
        except PlaywrightError as exc:
            errors.append(f"style-inject: {exc.message}")

        try:
            html = await page.content()
        except PlaywrightError as exc:
            errors.append(f"content: {exc.message}")
            html = ""

        snapshot = take_snapshot(html, self.policy)

        await self._poke_buttons(page)
        await self._focus_inputs(page)

        return RouteResult(
            route=route,
            status=status,
            errors=errors,
            console_errors=console_errors,
            internal_links=snapshot.internal_links,
            external_links=snapshot.external_links,
            metrics=snapshot.metrics,
        )

    # ------------------------------------------------------------------
    # Best-effort interactions; failures here are never reported
    # ------------------------------------------------------------------
    @staticmethod
    async def _is_interactive(element: Locator) -> bool:
        try:
            if not await element.is_visible():
                return False
            return await element.is_enabled(timeout=VISIBILITY_TIMEOUT_MS)
        except PlaywrightError:
            return False

    async def _poke_buttons(self, page: Page) -> int:
        buttons = page.locator("button")
        try:
            count = await buttons.count()
        except PlaywrightError:
            return 0

        clicked = 0
        for index in range(min(count, self.policy.max_buttons * 2)):
            if clicked >= self.policy.max_buttons:
                break
            button = buttons.nth(index)
            if not await self._is_interactive(button):
                continue
            try:
                await button.click(timeout=INTERACTION_TIMEOUT_MS, trial=True, force=True)
            except PlaywrightError:
                continue
            clicked += 1
        return clicked

    async def _focus_inputs(self, page: Page) -> int:
        inputs = page.locator(INPUT_SELECTOR)
        try:
            count = await inputs.count()
        except PlaywrightError:
            return 0

        focused = 0
        for index in range(min(count, self.policy.max_inputs * 2)):
            if focused >= self.policy.max_inputs:
                break
            field = inputs.nth(index)
            if not await self._is_interactive(field):
                continue
            try:
                await field.focus(timeout=INTERACTION_TIMEOUT_MS)
            except PlaywrightError:
                continue
            focused += 1
        return focused
