"""
DOM element isolation: find the chart, remove what covers it, capture it.
"""

import asyncio

from .chart_source import ChartSource
from .config import ChartConfig
from .errors import ElementNotFound
from .logging_config import get_logger, log_execution

logger = get_logger("bmichart.isolator")


@log_execution(logger, stage="capture")
async def isolate_chart(source: ChartSource, config: ChartConfig, request_id: str = None) -> bytes:
    """
    Captures the target element of an already loaded page as PNG bytes.

    Raises:
        SelectorTimeout: target or obstruction never became visible
        ElementNotFound: target disappeared before capture
        CaptureError: the screenshot failed
    """
    await source.locate(config.target_selector, config.selector_timeout_ms)
    logger.info("Found selector.", stage="locate", request_id=request_id)

    obstruction = await source.locate(config.obstruction_selector, config.selector_timeout_ms)
    await source.detach(obstruction)
    logger.debug("Obstruction detached", stage="detach", request_id=request_id)

    # Absorbs layout/paint still running after the removal; see ChartConfig.settle_delay_ms
    await asyncio.sleep(config.settle_delay_ms / 1000)

    target = await source.query(config.target_selector)
    if target is None:
        raise ElementNotFound(f"Element not found: {config.target_selector!r}")

    logger.info("Capturing BMI chart...", stage="capture", request_id=request_id)
    return await source.capture_region(target)
