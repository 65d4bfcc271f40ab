"""
BMI Chart - Request models and parameter validation.

A CaptureRequest is built once per inbound request by validate_params()
and never mutated afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .errors import InvalidArguments


# Literal values produced when a missing query parameter gets stringified
PLACEHOLDER_VALUES = {"undefined", "null"}


# ============================================================
# ENUMS
# ============================================================

class MeasurementSystem(Enum):
    """Unit convention for height and weight."""

    ENGLISH = "english"   # imperial: inches / pounds
    METRIC = "metric"     # centimeters / kilograms

    @property
    def is_metric(self) -> bool:
        return self is MeasurementSystem.METRIC

    @property
    def weight_label(self) -> str:
        return "kg" if self.is_metric else "lbs"

    @property
    def height_label(self) -> str:
        return "cm" if self.is_metric else "in"

    @property
    def height_param(self) -> str:
        """Query key for height on the chart source."""
        return "hcm" if self.is_metric else "hinches"

    @property
    def weight_param(self) -> str:
        """Query key for weight on the chart source."""
        return "wkg" if self.is_metric else "twp"


class Gender(Enum):
    MALE = "m"
    FEMALE = "f"


# ============================================================
# CAPTURE REQUEST
# ============================================================

@dataclass(frozen=True)
class CaptureRequest:
    """Validated parameters for one chart capture."""

    system: MeasurementSystem
    gender: Gender
    age_months: int
    height: str
    weight: str

    @property
    def age_years_months(self) -> Tuple[int, int]:
        """Age split into whole years and remaining months."""
        return split_age(self.age_months)

    @property
    def unit_labels(self) -> Tuple[str, str]:
        """(weight label, height label) for the measurement system."""
        return unit_labels(self.system)

    def to_log_context(self) -> dict:
        return {
            "system": self.system.value,
            "gender": self.gender.value,
            "age_months": self.age_months,
        }


def split_age(age_months: int) -> Tuple[int, int]:
    return age_months // 12, age_months % 12


def unit_labels(system: MeasurementSystem) -> Tuple[str, str]:
    return system.weight_label, system.height_label


# ============================================================
# VALIDATION
# ============================================================

def _is_blank(value: Optional[str]) -> bool:
    if value is None:
        return True
    stripped = str(value).strip()
    return stripped == "" or stripped.lower() in PLACEHOLDER_VALUES


def validate_params(
    system: Optional[str],
    gender: Optional[str],
    age: Optional[str],
    height: Optional[str],
    weight: Optional[str],
) -> CaptureRequest:
    """
    Validates the raw query values and builds a CaptureRequest.

    Raises:
        InvalidArguments: if any field is missing, empty or a placeholder,
            or if system/gender/age are outside their accepted values.
    """
    raw = {
        "system": system,
        "gender": gender,
        "age": age,
        "height": height,
        "weight": weight,
    }
    missing = [name for name, value in raw.items() if _is_blank(value)]
    if missing:
        raise InvalidArguments(f"Missing or empty parameters: {', '.join(missing)}")

    try:
        measurement = MeasurementSystem(system.strip().lower())
    except ValueError:
        raise InvalidArguments(f"Unknown measurement system: {system!r}")

    try:
        parsed_gender = Gender(gender.strip().lower())
    except ValueError:
        raise InvalidArguments(f"Unknown gender: {gender!r}")

    age_text = age.strip()
    if not (age_text.isascii() and age_text.isdigit()):
        raise InvalidArguments(f"Age must be a whole number of months: {age!r}")

    return CaptureRequest(
        system=measurement,
        gender=parsed_gender,
        age_months=int(age_text),
        height=height.strip(),
        weight=weight.strip(),
    )
