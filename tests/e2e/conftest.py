"""Browser fixtures for the end-to-end suite.

The suite only runs with ``BARFORGE_E2E=1``; it then starts the dev server
unless ``PLAYWRIGHT_SKIP_WEB_SERVER=1`` and drives a real browser.
"""

import os

import pytest
from playwright.sync_api import sync_playwright

from barforge_e2e.core.config import load_configuration  # type: ignore[import]
from barforge_e2e.server.dev_server import DevServer  # type: ignore[import]

E2E_ENABLED = os.getenv("BARFORGE_E2E") == "1"


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    skip = pytest.mark.skip(reason="set BARFORGE_E2E=1 to run browser tests")
    for item in items:
        if "e2e" in item.nodeid.split("/"):
            item.add_marker(pytest.mark.e2e)
            if not E2E_ENABLED:
                item.add_marker(skip)


@pytest.fixture(scope="session")
def harness_config():
    return load_configuration()


@pytest.fixture(scope="session")
def base_url(harness_config):
    if not harness_config.start_server:
        yield harness_config.base_url
        return

    with DevServer.from_config(harness_config):
        yield harness_config.base_url


@pytest.fixture(scope="session")
def browser_name():
    return os.getenv("BARFORGE_BROWSER", "chromium")


@pytest.fixture(scope="session")
def browser(harness_config, browser_name):
    with sync_playwright() as playwright:
        launcher = getattr(playwright, browser_name)
        browser = launcher.launch(headless=harness_config.headless, slow_mo=harness_config.slow_mo)
        yield browser
        browser.close()


@pytest.fixture
def context(browser, base_url):
    context = browser.new_context(base_url=base_url)
    context.set_default_timeout(5000)
    yield context
    context.close()


@pytest.fixture
def page(context):
    page = context.new_page()
    yield page
    page.close()
