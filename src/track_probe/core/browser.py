"""Playwright browser session used by the scan command."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Page, async_playwright

logger = logging.getLogger(__name__)

# Audio probes need an AudioContext that starts without a click.
CHROMIUM_ARGS = ("--autoplay-policy=no-user-gesture-required",)

BLANK_PAGE = "about:blank"


@asynccontextmanager
async def open_page(headless: bool = True, url: str = BLANK_PAGE) -> AsyncIterator[Page]:
    """Launch Chromium and yield a page navigated to *url*. Always closes the browser."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless, args=list(CHROMIUM_ARGS))
        try:
            page = await browser.new_page()
            if url != BLANK_PAGE:
                await page.goto(url)
            logger.debug("Chromium %s ready (headless=%s)", browser.version, headless)
            yield page
        finally:
            await browser.close()
