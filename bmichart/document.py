"""
BMI Chart - PDF composition.

One letter-size page: a header line with date, age, weight and height,
and the captured chart scaled into a fixed box, centered both ways.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from .errors import CompositionError
from .models import CaptureRequest


PAGE_WIDTH, PAGE_HEIGHT = letter

MARGIN = 72
HEADER_FONT = "Times-Roman"
HEADER_FONT_SIZE = 14
HEADER_LEADING = 17


@dataclass(frozen=True)
class Box:
    """Rectangle in top-left page coordinates (points)."""
    x: float
    y: float
    width: float
    height: float


# Where the chart goes: 10pt from the left, 100pt from the top, 600x650
IMAGE_BOX = Box(x=10, y=100, width=600, height=650)


def build_header(request: CaptureRequest, generated_at: Optional[datetime] = None) -> str:
    """Summary line printed above the chart."""
    generated_at = generated_at or datetime.now()
    years, months = request.age_years_months
    weight_label, height_label = request.unit_labels
    return (
        f"Date: {generated_at.strftime('%m/%d/%Y')} | "
        f"Age: {years} yrs {months} mos | "
        f"Weight: {request.weight} {weight_label} | "
        f"Height: {request.height} {height_label}"
    )


def fit_image(image_width: float, image_height: float, box: Box = IMAGE_BOX) -> Tuple[float, float, float, float]:
    """
    Scales an image into box keeping its aspect ratio and centers it.

    Returns:
        (x, y, width, height) in reportlab coordinates (origin bottom-left)
    """
    if image_width <= 0 or image_height <= 0:
        raise CompositionError(f"Invalid image size {image_width}x{image_height}")

    scale = min(box.width / image_width, box.height / image_height)
    width = image_width * scale
    height = image_height * scale

    x = box.x + (box.width - width) / 2
    top = box.y + (box.height - height) / 2
    y = PAGE_HEIGHT - top - height
    return x, y, width, height


def _header_lines(text: str) -> List[str]:
    return simpleSplit(text, HEADER_FONT, HEADER_FONT_SIZE, PAGE_WIDTH - 2 * MARGIN)


def compose_document(
    request: CaptureRequest,
    image_path: Path,
    generated_at: Optional[datetime] = None,
    compress: bool = True,
) -> bytes:
    """
    Builds the PDF and returns its finished bytes.

    Args:
        request: Validated capture parameters
        image_path: Captured chart raster
        generated_at: Date printed in the header (now when omitted)
        compress: Compress page streams

    Raises:
        CompositionError: if the image cannot be read or the PDF cannot be built
    """
    try:
        image = ImageReader(str(image_path))
        image_width, image_height = image.getSize()
    except Exception as e:
        raise CompositionError(f"Could not read image {image_path}: {e}") from e

    buffer = io.BytesIO()
    try:
        pdf = canvas.Canvas(buffer, pagesize=letter, pageCompression=1 if compress else 0)
        pdf.setTitle("BMI Chart")

        pdf.setFont(HEADER_FONT, HEADER_FONT_SIZE)
        baseline = PAGE_HEIGHT - MARGIN - HEADER_FONT_SIZE
        for line in _header_lines(build_header(request, generated_at)):
            pdf.drawString(MARGIN, baseline, line)
            baseline -= HEADER_LEADING

        x, y, width, height = fit_image(image_width, image_height)
        pdf.drawImage(image, x, y, width=width, height=height, mask="auto")

        pdf.showPage()
        pdf.save()
    except CompositionError:
        raise
    except Exception as e:
        raise CompositionError(f"PDF generation failed: {e}") from e

    return buffer.getvalue()
