"""Page Geometry Utilities

Pure functions converting paper format, orientation and margins into the
page configuration shared by every component, plus the unit conversions
between page-length units (millimeters), PDF points and device pixels.

All functions are side-effect free; the same inputs always produce the same
PageConfig, so it is derived once per generation request.
"""
import math
from dataclasses import dataclass
from typing import Sequence, Union

from reportlab.lib.units import mm

from .config import MM_TO_PX, PAPER_FORMATS
from .exceptions import EmptyContentError, InvalidConfigurationError, InvalidGeometryError
from .generation_options import Margins

# Slack for float noise when dividing lengths into pages
RATIO_EPSILON = 1e-9


@dataclass(frozen=True)
class PageConfig:
    """Page dimensions for one generation request.

    Attributes:
        page_width, page_height: Full page size in mm
        usable_width, usable_height: Page size minus margins in mm
        pixel_width, pixel_height: Usable area in layout pixels (96 DPI)
        margins: Margins the usable area was derived from
    """

    page_width: float
    page_height: float
    usable_width: float
    usable_height: float
    pixel_width: float
    pixel_height: float
    margins: Margins

    @property
    def page_size_points(self):
        """(width, height) of the full page in PDF points."""
        return (self.page_width * mm, self.page_height * mm)


def calculate_page_config(
    paper_format: str = "a4",
    orientation: str = "portrait",
    margins: Union[Margins, Sequence[float]] = Margins(),
) -> PageConfig:
    """
    Derive the page configuration for a paper format.

    Args:
        paper_format: Key from PAPER_FORMATS
        orientation: "portrait" or "landscape" (landscape swaps width/height)
        margins: Margins or [top, right, bottom, left] in mm

    Returns:
        PageConfig with usable area in mm and pixels

    Raises:
        InvalidConfigurationError: If the format or orientation is unknown
        InvalidGeometryError: If either usable dimension is <= 0

    Examples:
        >>> config = calculate_page_config("a4", "portrait", [10, 10, 10, 10])
        >>> config.usable_width, config.usable_height
        (190.0, 277.0)
    """
    try:
        width, height = PAPER_FORMATS[paper_format.lower()]
    except KeyError:
        raise InvalidConfigurationError(f"Unknown paper format: {paper_format!r}")

    if orientation == "landscape":
        width, height = height, width
    elif orientation != "portrait":
        raise InvalidConfigurationError(f"Unknown orientation: {orientation!r}")

    if not isinstance(margins, Margins):
        margins = Margins.from_sequence(margins)

    usable_width = width - margins.left - margins.right
    usable_height = height - margins.top - margins.bottom

    if usable_width <= 0 or usable_height <= 0:
        raise InvalidGeometryError(usable_width, usable_height)

    return PageConfig(
        page_width=width,
        page_height=height,
        usable_width=usable_width,
        usable_height=usable_height,
        pixel_width=mm_to_pixels(usable_width),
        pixel_height=mm_to_pixels(usable_height),
        margins=margins,
    )


def mm_to_pixels(length_mm: float) -> float:
    """
    Convert millimeters to layout pixels.

    Examples:
        >>> round(mm_to_pixels(10), 3)
        37.795
    """
    return length_mm * MM_TO_PX


def pixels_to_mm(pixels: float) -> float:
    """Convert layout pixels to millimeters (inverse of mm_to_pixels)."""
    return pixels / MM_TO_PX


def mm_to_points(length_mm: float) -> float:
    """Convert millimeters to PDF points (1 point = 1/72 inch)."""
    return length_mm * mm


def content_length(bitmap_height: float, bitmap_width: float, usable_width: float) -> float:
    """
    Length of a bitmap in page units when drawn across the usable width.

    Args:
        bitmap_height: Bitmap height in pixels
        bitmap_width: Bitmap width in pixels
        usable_width: Usable page width in mm

    Returns:
        bitmap_height * usable_width / bitmap_width

    Examples:
        >>> content_length(1200, 380, 190)
        600.0
    """
    if bitmap_width <= 0:
        raise EmptyContentError(int(bitmap_width), int(bitmap_height))
    return bitmap_height * usable_width / bitmap_width


def page_count(content_height: float, page_height: float) -> int:
    """
    Number of pages needed for content_height at page_height per page.

    Values that are within float noise of an exact multiple do not spill onto
    an extra page.

    Examples:
        >>> page_count(600, 277)
        3
        >>> page_count(554, 277)
        2
    """
    if page_height <= 0:
        raise InvalidGeometryError(0.0, page_height)
    if content_height <= 0:
        return 0
    return max(1, math.ceil(content_height / page_height - RATIO_EPSILON))
