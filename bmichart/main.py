"""
BMI Chart - API

Returns a PDF with a screenshot of a BMI growth chart for the Easy BMI app.

Endpoints:
- GET /          usage message
- GET /bmichart  chart PDF for system, gender, age (months), height, weight

Run:
    python -m bmichart.main
    uvicorn bmichart.main:app --port 3000
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import PlainTextResponse, Response

from .config import ChartConfig
from .errors import ChartServiceError
from .logging_config import get_logger, setup_logging
from .models import validate_params
from .pipeline import ChartPipeline, SourceFactory, new_request_id

logger = get_logger("bmichart.api")

USAGE = "Example usage: /bmichart?system=english&gender=m&age=184&height=67&weight=160"
INTERNAL_ERROR = "Internal server error"


def create_app(
    config: Optional[ChartConfig] = None,
    source_factory: Optional[SourceFactory] = None,
) -> FastAPI:
    """
    Builds the FastAPI app.

    Args:
        config: Settings; read from the environment at startup when None
        source_factory: ChartSource builder passed to the pipeline
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.pipeline is None:
            settings = ChartConfig.from_env()
            setup_logging(level=settings.log_level, log_dir=settings.log_dir,
                          json_format=settings.log_json)
            app.state.config = settings
            app.state.pipeline = ChartPipeline(settings, source_factory)
        yield

    app = FastAPI(
        title="BMI Chart",
        description="Growth chart screenshots rendered into a one-page PDF",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = ChartPipeline(config, source_factory) if config else None

    @app.get("/", response_class=PlainTextResponse)
    async def usage():
        return USAGE

    @app.get("/bmichart")
    async def bmi_chart(
        request: Request,
        system: Optional[str] = Query(None, description="english or metric"),
        gender: Optional[str] = Query(None, description="m or f"),
        age: Optional[str] = Query(None, description="Age in months"),
        height: Optional[str] = Query(None, description="Inches or centimeters"),
        weight: Optional[str] = Query(None, description="Pounds or kilograms"),
    ):
        """Captures the chart for the given parameters and returns it as a PDF."""
        request_id = new_request_id()

        try:
            capture_request = validate_params(system, gender, age, height, weight)
        except ChartServiceError as e:
            logger.warning(str(e), stage="validate", request_id=request_id)
            return PlainTextResponse(e.public_message, status_code=500)

        pipeline: ChartPipeline = request.app.state.pipeline
        try:
            pdf_bytes = await pipeline.generate(capture_request, request_id=request_id)
        except ChartServiceError as e:
            logger.error(f"Chart request failed: {e}", error=e, request_id=request_id,
                         error_type=type(e).__name__)
            return PlainTextResponse(e.public_message, status_code=500)
        except Exception as e:
            logger.error(f"Unexpected error: {e}", error=e, request_id=request_id,
                         error_type=type(e).__name__)
            return PlainTextResponse(INTERNAL_ERROR, status_code=500)

        logger.info("Generated PDF.", stage="respond", request_id=request_id)
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": 'inline; filename="bmichart.pdf"'},
        )

    return app


app = create_app()


def run():
    """Console entry point: configures logging and serves with uvicorn."""
    import uvicorn

    config = ChartConfig.from_env()
    setup_logging(level=config.log_level, log_dir=config.log_dir, json_format=config.log_json)
    logger.info(f"Listening on port {config.port}")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
