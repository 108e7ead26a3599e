import asyncio
import os
import subprocess
from typing import Optional
from urllib.parse import quote

from playwright.async_api import (
    Browser,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)
from playwright_stealth import Stealth

from src.utils.config import (
    LIGA_BASE_URL,
    LIGA_HEADLESS,
    LIGA_MAX_LOAD_ATTEMPTS,
    LIGA_NAVIGATION_TIMEOUT_SECONDS,
    LIGA_PAGE_CONCURRENCY,
    is_production,
)
from src.utils.logger import log_scrape_progress, scraper_logger

logger = scraper_logger

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EXTRA_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
}
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]

CARD_SELECTOR = ".box.p25, .mtg-single, .card-item"
LOAD_MORE_SELECTORS = [
    "input.exibir-mais",
    "#exibir_mais_cards input",
    'button:has-text("Exibir mais")',
    ".btn-more",
    ".load-more",
    'a[href*="viewmore"]',
    "button.pagination-next",
    ".pagination button:last-child",
    '[data-action="load-more"]',
]
# ms to wait after a click/scroll so new cards can render
SETTLE_MS = 2000
INITIAL_RENDER_MS = 3000


class ScraperError(RuntimeError):
    """The storefront could not be scraped."""


def is_playwright_installed() -> bool:
    try:
        from playwright.sync_api import sync_playwright

        with sync_playwright() as p:
            path = getattr(p.chromium, "executable_path", None)
            return bool(path and os.path.exists(path))
    except Exception:
        return False


def ensure_playwright_browsers():
    if is_production():
        logger.info("Skipping Playwright browser install in production")
        return
    if not is_playwright_installed():
        logger.info("🔧 Installing Playwright browsers (first run)...")
        subprocess.run(["playwright", "install", "chromium"], check=True)
    else:
        logger.info("Playwright browsers already installed.")


def build_search_url(query: str, base_url: str = LIGA_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/?view=cards%2Fsearch&card={quote(query)}&tipo=1"


class LigaScraper:
    """
    Owns the Chromium process used to scrape the Liga One Piece storefront.

    Create one per process and call ``close()`` on shutdown (or use it as an
    async context manager). The browser is launched on first use and relaunched
    after ``reset()``. Every search gets its own browser context.
    """

    def __init__(
        self,
        *,
        headless: bool = LIGA_HEADLESS,
        base_url: str = LIGA_BASE_URL,
        max_load_attempts: int = LIGA_MAX_LOAD_ATTEMPTS,
        navigation_timeout: float = LIGA_NAVIGATION_TIMEOUT_SECONDS,
        page_concurrency: int = LIGA_PAGE_CONCURRENCY,
    ):
        self.headless = headless
        self.base_url = base_url
        self.max_load_attempts = max_load_attempts
        self.navigation_timeout = navigation_timeout
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._pages = asyncio.Semaphore(page_concurrency)

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def __aenter__(self) -> "LigaScraper":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self.is_running:
                return self._browser
            # a disconnected browser is discarded before relaunching
            await self._shutdown()
            logger.info("🔧 Launching headless browser...")
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=LAUNCH_ARGS
            )
            logger.info("✅ Browser launched")
            return self._browser

    async def fetch_search_html(self, query: str) -> str:
        """Open the storefront search for a query, load every result and return the HTML."""
        browser = await self._ensure_browser()
        url = build_search_url(query, self.base_url)

        async with self._pages:
            context = await browser.new_context(
                user_agent=USER_AGENT,
                viewport={"width": 1920, "height": 1080},
                extra_http_headers=EXTRA_HEADERS,
            )
            try:
                try:
                    await Stealth().apply_stealth_async(context)
                except Exception:
                    # stealth may fail sometimes; the page still loads without it
                    logger.debug("stealth setup failed or skipped")

                page = await context.new_page()
                logger.info(f"🌐 Navigating to {url}")
                await page.goto(
                    url, wait_until="load", timeout=int(self.navigation_timeout * 1000)
                )
                await page.wait_for_timeout(INITIAL_RENDER_MS)
                await self._load_all(page, query)
                logger.info(f"📄 Page loaded: {await page.title()}")
                return await page.content()
            except PlaywrightTimeoutError as e:
                raise ScraperError(f"Timed out loading {url}: {e}") from e
            finally:
                await context.close()

    async def _click_load_more(self, page: Page) -> bool:
        for selector in LOAD_MORE_SELECTORS:
            try:
                button = await page.query_selector(selector)
                if button:
                    await button.click()
                    await page.wait_for_timeout(SETTLE_MS)
                    return True
            except PlaywrightTimeoutError:
                continue
        return False

    async def _scroll(self, page: Page) -> bool:
        height_before = await page.evaluate("() => document.body.scrollHeight")
        await page.evaluate("() => window.scrollBy(0, window.innerHeight * 3)")
        await page.wait_for_timeout(SETTLE_MS)
        height_after = await page.evaluate("() => document.body.scrollHeight")
        return height_after > height_before

    async def _load_all(self, page: Page, query: str):
        """Click "show more" / scroll until the number of cards stops growing."""
        previous = 0
        for attempt in range(1, self.max_load_attempts + 1):
            current = await page.locator(CARD_SELECTOR).count()
            log_scrape_progress(logger, attempt, self.max_load_attempts, query)
            if current == previous:
                logger.info(f"✅ No new cards after {attempt} attempts ({current} loaded)")
                return
            previous = current

            if await self._click_load_more(page):
                continue
            if await self._scroll(page):
                continue

            logger.info("No load-more control and no scroll growth; done loading")
            return

    async def reset(self):
        """Drop the browser after a failure; the next search relaunches it."""
        async with self._lock:
            await self._shutdown()

    async def close(self):
        """Gracefully close browser and playwright. Call this on app shutdown."""
        async with self._lock:
            await self._shutdown()
        logger.info("🔒 Scraper closed")

    async def _shutdown(self):
        try:
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except Exception as e:
            logger.warning(f"⚠️ Error while closing browser: {e}")
        finally:
            self._browser = None
            self._playwright = None
