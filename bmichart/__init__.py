"""
BMI Chart
Captures a growth chart from a remote page and returns it as a one-page PDF.
"""

from .config import ChartConfig
from .errors import (
    CaptureError,
    ChartServiceError,
    CleanupWarning,
    CompositionError,
    ConfigError,
    ElementNotFound,
    FetchError,
    InvalidArguments,
    NavigationTimeout,
    SelectorTimeout,
)
from .models import CaptureRequest, Gender, MeasurementSystem, validate_params

__all__ = [
    "ChartConfig",
    "CaptureRequest",
    "Gender",
    "MeasurementSystem",
    "validate_params",
    "ChartServiceError",
    "InvalidArguments",
    "FetchError",
    "NavigationTimeout",
    "SelectorTimeout",
    "ElementNotFound",
    "CaptureError",
    "CompositionError",
    "CleanupWarning",
    "ConfigError",
]

__version__ = "1.0.0"
