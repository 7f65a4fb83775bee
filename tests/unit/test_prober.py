import asyncio
from types import SimpleNamespace

from playwright.async_api import Error as PlaywrightError

from barforge_e2e.crawl.prober import (  # type: ignore[import]
    PlaywrightPageProber,
    is_suppressed_console_text,
)
from barforge_e2e.crawl.targeting import SiteOrigin  # type: ignore[import]

from tests.helpers.barforge_imports import NO_RESPONSE, CrawlPolicy

BASE_URL = "http://127.0.0.1:8080"
PAGE_HTML = """
<main>
  <h1>Modules</h1>
  <a href="/modules/clock-time@barforge">Clock</a>
  <a href="https://github.com/barforge">GitHub</a>
  <button>Open</button>
</main>
"""


class FakeElement:
    def __init__(self, visible=True, fails=False):
        self.visible = visible
        self.fails = fails
        self.clicks = 0
        self.focused = False

    async def is_visible(self):
        return self.visible

    async def is_enabled(self, timeout=None):  # noqa: ARG002
        return True

    async def click(self, **_kwargs):
        if self.fails:
            raise PlaywrightError("element detached")
        self.clicks += 1

    async def focus(self, **_kwargs):
        self.focused = True


class FakeLocator:
    def __init__(self, elements):
        self.elements = elements

    async def count(self):
        return len(self.elements)

    def nth(self, index):
        return self.elements[index]


class FakePage:
    def __init__(self, *, final_url=None, status=200, events=(), goto_error=None, buttons=()):
        self.final_url = final_url
        self.status = status
        self.events = events
        self.goto_error = goto_error
        self.buttons = list(buttons)
        self.handlers = {}
        self.url = "about:blank"
        self.closed = False

    def set_default_navigation_timeout(self, _timeout):
        pass

    def set_default_timeout(self, _timeout):
        pass

    def on(self, event, handler):
        self.handlers[event] = handler

    async def goto(self, url, **_kwargs):
        for event, payload in self.events:
            self.handlers[event](payload)
        if self.goto_error:
            raise PlaywrightError(self.goto_error)
        self.url = self.final_url or url
        return SimpleNamespace(status=self.status)

    async def add_style_tag(self, content):  # noqa: ARG002
        return None

    async def content(self):
        return PAGE_HTML

    def locator(self, selector):
        return FakeLocator(self.buttons if selector == "button" else [])

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, page):
        self.page = page

    async def new_page(self):
        return self.page


def console(text, kind="error"):
    return ("console", SimpleNamespace(type=kind, text=text))


def probe(page, route="/modules"):
    prober = PlaywrightPageProber(
        context=FakeContext(page),
        origin=SiteOrigin.from_url(BASE_URL),
        policy=CrawlPolicy(),
    )
    return asyncio.run(prober.probe(route))


def test_console_noise_is_suppressed():
    suppressed = CrawlPolicy().suppressed_console_substrings

    assert is_suppressed_console_text("GET /x net::ERR_ABORTED 404", suppressed)
    assert is_suppressed_console_text("downloadable font: rejected by sanitizer", suppressed)
    assert not is_suppressed_console_text("Uncaught TypeError: x is undefined", suppressed)


def test_successful_probe_collects_links_and_metrics():
    page = FakePage(buttons=[FakeElement(), FakeElement(visible=False), FakeElement(fails=True)])

    result = probe(page)

    assert result.status == 200
    assert result.errors == []
    assert result.console_errors == []
    assert result.internal_links == ["/modules/clock-time@barforge"]
    assert result.external_links == ["https://github.com/barforge"]
    assert result.metrics.buttons == 1
    assert result.metrics.headings == 1
    assert page.buttons[0].clicks == 1
    assert page.buttons[1].clicks == 0
    assert page.closed
    assert not result.is_failure


def test_suppressed_console_text_produces_no_entries():
    page = FakePage(
        events=[
            console("Failed to load resource: net::ERR_FAILED"),
            console("https://fonts.gstatic.com/s/inter.woff2 blocked"),
            console("just a warning", kind="warning"),
        ]
    )

    result = probe(page)

    assert result.console_errors == []


def test_console_and_page_errors_are_recorded():
    page = FakePage(
        events=[
            console("hydration mismatch"),
            ("pageerror", PlaywrightError("x is undefined")),
        ]
    )

    result = probe(page)

    assert result.console_errors == ["console.error: hydration mismatch"]
    assert result.errors == ["pageerror: x is undefined"]
    assert result.is_failure


def test_navigation_failure_is_no_response():
    page = FakePage(goto_error="net::ERR_CONNECTION_REFUSED")

    result = probe(page)

    assert result.status == NO_RESPONSE
    assert result.errors == ["navigation: net::ERR_CONNECTION_REFUSED"]
    assert result.internal_links == []
    assert page.closed


def test_offsite_redirect_is_external_link_without_errors():
    page = FakePage(
        final_url="https://github.com/barforge",
        events=[console("something broke")],
    )

    result = probe(page, "/barforge")

    assert result.status == 200
    assert result.external_links == ["https://github.com/barforge"]
    assert result.errors == []
    assert result.console_errors == []
    assert result.metrics.links == 0
    assert not result.is_failure


def test_http_error_status_is_a_failure():
    result = probe(FakePage(status=404))

    assert result.status == 404
    assert result.is_failure


def test_site_origin_compares_scheme_and_host():
    origin = SiteOrigin.from_url(BASE_URL)

    assert origin.contains("http://127.0.0.1:8080/modules?q=x")
    assert not origin.contains("https://127.0.0.1:8080/modules")
    assert not origin.contains("http://127.0.0.1:9090/")
    assert not origin.contains("https://github.com/barforge")
    assert origin.resolve("/login") == "http://127.0.0.1:8080/login"


def test_site_origin_keeps_base_path_prefix():
    origin = SiteOrigin.from_url("http://127.0.0.1:8080/barforge/")

    assert origin.resolve("/login") == "http://127.0.0.1:8080/barforge/login"
    assert origin.resolve("/") == "http://127.0.0.1:8080/barforge/"
    assert origin.contains("http://127.0.0.1:8080/barforge")
    assert origin.contains("http://127.0.0.1:8080/barforge/modules?q=x")
    assert not origin.contains("http://127.0.0.1:8080/login")
    assert not origin.contains("http://127.0.0.1:8080/barforge-admin/")


def test_probe_navigates_under_base_path_prefix():
    page = FakePage()
    prober = PlaywrightPageProber(
        context=FakeContext(page),
        origin=SiteOrigin.from_url("http://127.0.0.1:8080/barforge"),
        policy=CrawlPolicy(),
    )

    result = asyncio.run(prober.probe("/modules"))

    assert page.url == "http://127.0.0.1:8080/barforge/modules"
    assert result.external_links == ["https://github.com/barforge"]
    assert not result.is_failure
