"""
BMI Chart - Render, capture, compose.

Steps run strictly in order for one request:

    navigate -> isolate chart -> write artifact -> compose PDF -> delete artifact

The renderer is closed before the composer starts and on every failure
path. The artifact is deleted whether or not composition succeeds.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Callable, Optional

from . import document
from .artifacts import TemporaryArtifact
from .chart_source import ChartSource, PlaywrightChartSource, build_chart_url
from .config import ChartConfig
from .errors import NavigationTimeout
from .isolator import isolate_chart
from .logging_config import get_logger, log_execution
from .models import CaptureRequest
from .utils.retry import RetryConfig, retry_with_backoff

logger = get_logger("bmichart.pipeline")

SourceFactory = Callable[[ChartConfig], ChartSource]


def new_request_id() -> str:
    return uuid.uuid4().hex


class ChartPipeline:
    """
    Runs one capture per call to ``generate``.

    Args:
        config: Service configuration
        source_factory: Builds a fresh ChartSource per request
            (PlaywrightChartSource by default)
    """

    def __init__(self, config: ChartConfig, source_factory: Optional[SourceFactory] = None):
        self.config = config
        self.source_factory = source_factory or PlaywrightChartSource
        self.navigation_retry = RetryConfig(
            max_attempts=config.navigation_attempts,
            retry_on=(NavigationTimeout,),
        )

    @log_execution(logger, stage="fetch")
    async def fetch_chart(self, request: CaptureRequest, request_id: str = None) -> bytes:
        """Opens a session, loads the chart page and returns the captured PNG."""
        url = build_chart_url(self.config.base_url, request)

        async with self.source_factory(self.config) as source:
            logger.info("Connecting to BMI chart image source...", stage="navigate",
                        request_id=request_id, url=url)
            await retry_with_backoff(
                source.navigate, self.navigation_retry, url, self.config.navigation_timeout_ms
            )
            logger.info("Connected to source.", stage="navigate", request_id=request_id)

            return await isolate_chart(source, self.config, request_id=request_id)

    async def generate(
        self,
        request: CaptureRequest,
        request_id: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> bytes:
        """
        Full pipeline for one validated request.

        Returns:
            Finished PDF bytes

        Raises:
            ChartServiceError subclasses; the renderer is closed and no
            artifact remains on disk when this returns or raises.
        """
        request_id = request_id or new_request_id()
        logger.info("Chart requested", stage="request", request_id=request_id,
                    **request.to_log_context())

        png = await self.fetch_chart(request, request_id=request_id)
        logger.info("Captured BMI chart", stage="capture", request_id=request_id)

        async with TemporaryArtifact(self.config.artifact_dir, request_id=request_id) as artifact:
            await artifact.write(png)
            return await self.compose(request, artifact, generated_at, request_id=request_id)

    @log_execution(logger, stage="compose")
    async def compose(self, request, artifact, generated_at=None, request_id: str = None) -> bytes:
        logger.info("Generating PDF...", stage="compose", request_id=request_id)
        return await asyncio.to_thread(
            document.compose_document, request, artifact.path, generated_at
        )
