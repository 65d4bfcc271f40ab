"""
Shared fixtures for the BMI chart tests.
"""

import sys
from pathlib import Path

# Make `tests.fixtures` importable regardless of how pytest is invoked
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest

from bmichart.config import ChartConfig
from bmichart.models import CaptureRequest, Gender, MeasurementSystem
from tests.fixtures import make_png


# ============================================================
# CONFIG
# ============================================================

@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def chart_config(artifact_dir: Path) -> ChartConfig:
    """Config pointing at a fake source, with no settle delay."""
    return ChartConfig(
        base_url="https://charts.example.org/calculator?",
        target_selector="#chart",
        obstruction_selector="#chart .banner",
        navigation_timeout_ms=1000,
        selector_timeout_ms=1000,
        settle_delay_ms=0,
        artifact_dir=artifact_dir,
    )


# ============================================================
# REQUESTS
# ============================================================

@pytest.fixture
def english_request() -> CaptureRequest:
    return CaptureRequest(
        system=MeasurementSystem.ENGLISH,
        gender=Gender.MALE,
        age_months=184,
        height="67",
        weight="160",
    )


@pytest.fixture
def metric_request() -> CaptureRequest:
    return CaptureRequest(
        system=MeasurementSystem.METRIC,
        gender=Gender.FEMALE,
        age_months=30,
        height="92.5",
        weight="13.4",
    )


# ============================================================
# IMAGES
# ============================================================

@pytest.fixture
def chart_png_path(tmp_path: Path) -> Path:
    path = tmp_path / "chart.png"
    path.write_bytes(make_png(300, 200))
    return path
