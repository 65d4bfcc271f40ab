"""
Error hierarchy for the chart capture pipeline.

Every error carries a ``public_message``: the only text that ever reaches
the caller. Details (tracebacks, provider markup) stay in the logs.
"""


FETCH_FAILED = "Error fetching chart"


class ChartServiceError(Exception):
    """Base class for all pipeline errors."""

    public_message = "Internal server error"

    def __init__(self, message: str = "", public_message: str = None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class InvalidArguments(ChartServiceError):
    """A request parameter is missing, empty or out of range."""

    public_message = "Invalid arguments"


class FetchError(ChartServiceError):
    """The browser could not be started or the page could not be fetched."""

    public_message = "Internal server error"


class NavigationTimeout(ChartServiceError):
    """The page did not reach DOM content loaded in time."""

    public_message = FETCH_FAILED


class SelectorTimeout(ChartServiceError):
    """The target or obstruction locator never resolved."""

    public_message = FETCH_FAILED


class ElementNotFound(ChartServiceError):
    """The target handle was gone at capture time."""

    public_message = FETCH_FAILED


class CaptureError(ChartServiceError):
    """The raster could not be captured or written."""

    public_message = FETCH_FAILED


class CompositionError(ChartServiceError):
    """The PDF could not be assembled."""

    public_message = "Error generating PDF"


class CleanupWarning(ChartServiceError):
    """A temporary artifact could not be deleted. Logged, never raised to callers."""


class ConfigError(ChartServiceError):
    """A required setting is missing from the environment."""
