"""
Chart Source - the remote page that renders the growth chart.

ChartSource is the interface the pipeline talks to. PlaywrightChartSource
drives one headless Chromium process and one page per request; tests
substitute a fake.

Usage:
    async with PlaywrightChartSource(config) as source:
        await source.navigate(url, timeout_ms=10000)
        handle = await source.locate("#chart", timeout_ms=10000)
        png = await source.capture_region(handle)
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import ChartConfig
from .errors import FETCH_FAILED, CaptureError, FetchError, NavigationTimeout, SelectorTimeout
from .logging_config import get_logger
from .models import CaptureRequest

logger = get_logger("bmichart.chart_source")


DETACH_SCRIPT = "el => { if (el.parentNode) { el.parentNode.removeChild(el); } }"


class NavigationState(Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    LOADED = "loaded"
    FAILED = "failed"


def build_chart_url(base_url: str, request: CaptureRequest) -> str:
    """
    Substitutes the request into the chart source query template.

    The base URL is used verbatim and is expected to end with '?' or '&'.
    Height and weight are percent-encoded so each stays a single query value.
    """
    system = request.system
    return (
        f"{base_url}method={system.value}&gender={request.gender.value}"
        f"&age_y=0&age_m={request.age_months}"
        f"&{system.height_param}={quote(request.height, safe='')}"
        f"&{system.weight_param}={quote(request.weight, safe='')}"
    )


# ============================================================
# INTERFACE
# ============================================================

class ChartSource(ABC):
    """
    One render session against the chart provider.

    Implementations are async context managers: entering starts the
    renderer, leaving always tears it down.
    """

    state: NavigationState = NavigationState.IDLE

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @abstractmethod
    async def start(self):
        """Starts the renderer. Raises FetchError on failure."""

    @abstractmethod
    async def close(self):
        """Releases the renderer. Must be safe to call more than once."""

    @abstractmethod
    async def navigate(self, url: str, timeout_ms: int):
        """Loads url until DOM content is loaded. Raises NavigationTimeout or FetchError."""

    @abstractmethod
    async def locate(self, selector: str, timeout_ms: int) -> Any:
        """Waits for selector to be visible. Raises SelectorTimeout or FetchError."""

    @abstractmethod
    async def query(self, selector: str) -> Optional[Any]:
        """Current handle for selector, or None."""

    @abstractmethod
    async def detach(self, handle: Any):
        """Removes the element from its parent. Raises CaptureError."""

    @abstractmethod
    async def capture_region(self, handle: Any) -> bytes:
        """PNG bytes of the element's bounding box. Raises CaptureError."""


# ============================================================
# PLAYWRIGHT IMPLEMENTATION
# ============================================================

class PlaywrightChartSource(ChartSource):
    """Headless Chromium session, one per request."""

    def __init__(self, config: ChartConfig):
        self.config = config
        self.state = NavigationState.IDLE

        self._playwright = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Browser not started. Call start() first.")
        return self._page

    async def start(self):
        launch_options = {
            "headless": True,
            "args": list(self.config.launch_args),
        }
        if self.config.executable_path:
            launch_options["executable_path"] = self.config.executable_path

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(**launch_options)
            self._page = await self._browser.new_page(viewport=dict(self.config.viewport))
        except Exception as e:
            await self.close()
            raise FetchError(f"Could not start browser: {e}") from e

        logger.debug("Browser started", stage="launch")

    async def close(self):
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        self._page = None

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning("Failed to close browser", error=e, stage="teardown")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning("Failed to stop playwright", error=e, stage="teardown")

    async def navigate(self, url: str, timeout_ms: int):
        self.state = NavigationState.NAVIGATING
        try:
            await self.page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")
        except PlaywrightTimeoutError as e:
            self.state = NavigationState.FAILED
            raise NavigationTimeout(f"Page not loaded within {timeout_ms}ms") from e
        except PlaywrightError as e:
            self.state = NavigationState.FAILED
            raise FetchError(f"Navigation failed: {e}", public_message=FETCH_FAILED) from e
        self.state = NavigationState.LOADED

    async def locate(self, selector: str, timeout_ms: int):
        try:
            handle = await self.page.wait_for_selector(selector, timeout=timeout_ms, state="visible")
        except PlaywrightTimeoutError as e:
            raise SelectorTimeout(f"Selector {selector!r} not visible within {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise FetchError(f"Waiting for {selector!r} failed: {e}", public_message=FETCH_FAILED) from e
        if handle is None:
            raise SelectorTimeout(f"Selector {selector!r} resolved to nothing")
        return handle

    async def query(self, selector: str):
        try:
            return await self.page.query_selector(selector)
        except PlaywrightError as e:
            raise FetchError(f"Query for {selector!r} failed: {e}", public_message=FETCH_FAILED) from e

    async def detach(self, handle):
        try:
            await handle.evaluate(DETACH_SCRIPT)
        except PlaywrightError as e:
            raise CaptureError(f"Could not remove obstruction: {e}") from e

    async def capture_region(self, handle) -> bytes:
        try:
            return await handle.screenshot(type="png")
        except PlaywrightError as e:
            raise CaptureError(f"Element screenshot failed: {e}") from e
