"""Shared fixtures for Browserbase MCP tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from browserbase_mcp.api.automation import BrowserbaseAutomation
from browserbase_mcp.api.config import ServiceConfig
from browserbase_mcp.api.sessions import BrowserPool


def make_page():
    """Fake Playwright page; every locator() returns the same locator."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"png-bytes")
    page.evaluate = AsyncMock(return_value=None)

    locator = MagicMock()
    locator.click = AsyncMock()
    locator.fill = AsyncMock()
    locator.text_content = AsyncMock(return_value="text")
    page.locator = MagicMock(return_value=locator)
    return page


@pytest.fixture
def page():
    return make_page()


@pytest.fixture
def browser_context(page):
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    return context


@pytest.fixture
def browser(browser_context):
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=browser_context)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def playwright(browser):
    """Fake Playwright driver whose engines all connect to the same browser."""
    driver = MagicMock()
    for engine in ("chromium", "firefox", "webkit"):
        getattr(driver, engine).connect = AsyncMock(return_value=browser)
    driver.stop = AsyncMock()
    return driver


@pytest.fixture
def agent():
    """Fake Stagehand client."""
    stagehand = MagicMock()
    stagehand.init = AsyncMock()
    stagehand.close = AsyncMock()
    stagehand.page.goto = AsyncMock()
    stagehand.page.act = AsyncMock(return_value={"success": True, "message": "clicked"})
    return stagehand


@pytest.fixture
def config():
    return ServiceConfig(
        browserbase_api_key="bb-test-key",
        browserbase_project_id="bb-test-project",
    )


@pytest.fixture
def automation(config, playwright, agent):
    return BrowserbaseAutomation(
        config,
        pool=BrowserPool(config.ws_endpoint, playwright=playwright),
        agent_factory=MagicMock(return_value=agent),
    )
