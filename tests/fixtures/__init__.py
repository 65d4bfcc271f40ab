"""
Test fixtures for the chart pipeline.

Contains:
- FakeChartSource: in-memory ChartSource with scriptable failures
- make_png: small PNG bytes for composer tests
"""

from .fake_chart_source import FakeChartSource, FakeHandle, make_png

__all__ = ["FakeChartSource", "FakeHandle", "make_png"]
