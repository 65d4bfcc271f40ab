"""
Fake chart source.

Replaces the Playwright session in tests. Every instance records the calls
it received so tests can assert on ordering and teardown.

Usage:
    sources = []
    factory = FakeChartSource.factory(sources, missing_selectors={"#chart"})
    pipeline = ChartPipeline(config, factory)
"""

import io
from dataclasses import dataclass, field
from typing import List, Optional, Set

from PIL import Image

from bmichart.chart_source import ChartSource, NavigationState
from bmichart.errors import CaptureError, FetchError, NavigationTimeout, SelectorTimeout


def make_png(width: int = 300, height: int = 200, color=(30, 120, 200)) -> bytes:
    """Solid color PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@dataclass
class FakeHandle:
    selector: str
    detached: bool = False


@dataclass
class FakeChartSource(ChartSource):
    config: object = None
    png: bytes = field(default_factory=make_png)

    # Failure switches
    fail_start: bool = False
    navigation_timeouts: int = 0
    missing_selectors: Set[str] = field(default_factory=set)
    target_gone: bool = False
    fail_capture: bool = False

    # Recorded state
    calls: List[str] = field(default_factory=list)
    started: bool = False
    closed: bool = False
    close_count: int = 0
    visited_url: Optional[str] = None
    state: NavigationState = NavigationState.IDLE

    @classmethod
    def factory(cls, registry: list, **options):
        """Source factory for ChartPipeline; keeps every created source in registry."""
        def build(config):
            source = cls(config=config, **options)
            registry.append(source)
            return source
        return build

    async def start(self):
        self.calls.append("start")
        if self.fail_start:
            raise FetchError("browser did not start")
        self.started = True

    async def close(self):
        self.calls.append("close")
        self.close_count += 1
        self.closed = True

    async def navigate(self, url: str, timeout_ms: int):
        self.calls.append("navigate")
        self.state = NavigationState.NAVIGATING
        if self.navigation_timeouts > 0:
            self.navigation_timeouts -= 1
            self.state = NavigationState.FAILED
            raise NavigationTimeout(f"timeout after {timeout_ms}ms")
        self.visited_url = url
        self.state = NavigationState.LOADED

    async def locate(self, selector: str, timeout_ms: int):
        self.calls.append(f"locate:{selector}")
        if selector in self.missing_selectors:
            raise SelectorTimeout(f"{selector} not visible")
        return FakeHandle(selector)

    async def query(self, selector: str):
        self.calls.append(f"query:{selector}")
        if self.target_gone:
            return None
        return FakeHandle(selector)

    async def detach(self, handle):
        self.calls.append(f"detach:{handle.selector}")
        handle.detached = True

    async def capture_region(self, handle) -> bytes:
        self.calls.append(f"capture:{handle.selector}")
        if self.fail_capture:
            raise CaptureError("screenshot failed")
        return self.png
