"""Bitmap Slicing

Pure functions that split one full-height bitmap into page-sized windows.
Both the single-document paginator and the batch composer call
compute_page_slices with explicit parameters; a batch item simply passes its
scale factor, which shrinks (scale > 1) or grows (scale < 1) the source
window taken from the bitmap for each page.

Slice boundaries are whole pixel rows, contiguous and non-overlapping, and
their heights always sum to the bitmap height. A bitmap with fewer rows
than pages ends in zero-height slices, drawn as blank pages.
"""
import math
from typing import List, Tuple

from .exceptions import EmptyContentError, InvalidScaleError
from .generation_result import PageSlice
from .geometry import PageConfig, content_length, page_count

# Slack added before flooring a boundary so exact multiples land on the row
BOUNDARY_EPSILON = 1e-6


def page_window_pixels(
    bitmap_width: int,
    usable_width: float,
    usable_height: float,
    scale_factor: float = 1.0,
) -> float:
    """
    Bitmap rows that fill one page at the given scale.

    Examples:
        >>> page_window_pixels(190, 190.0, 277.0)
        277.0
        >>> page_window_pixels(190, 190.0, 277.0, scale_factor=2.0)
        138.5
    """
    return usable_height * bitmap_width / usable_width / scale_factor


def compute_page_slices(
    bitmap_height: int,
    bitmap_width: int,
    usable_width: float,
    usable_height: float,
    scale_factor: float = 1.0,
) -> List[PageSlice]:
    """
    Compute the page slices for a bitmap.

    Args:
        bitmap_height: Bitmap height in pixels
        bitmap_width: Bitmap width in pixels
        usable_width: Usable page width in mm
        usable_height: Usable page height in mm
        scale_factor: Ratio applied to the content length (1.0 for single documents)

    Returns:
        List of PageSlice, one per page

    Raises:
        EmptyContentError: If the bitmap has no rows or columns
        InvalidScaleError: If scale_factor is not a positive finite number

    Examples:
        >>> [s.source_height for s in compute_page_slices(600, 190, 190.0, 277.0)]
        [277, 277, 46]
    """
    if bitmap_height <= 0 or bitmap_width <= 0:
        raise EmptyContentError(bitmap_width, bitmap_height)
    if not (scale_factor > 0 and math.isfinite(scale_factor)):
        raise InvalidScaleError(scale_factor)

    # Expanded content is drawn at natural size, never wider than the page
    mm_per_pixel = usable_width / bitmap_width * min(scale_factor, 1.0)
    scaled_length = content_length(bitmap_height, bitmap_width, usable_width) * scale_factor

    pages = page_count(scaled_length, usable_height)
    if pages <= 1:
        return [PageSlice(0, bitmap_height, bitmap_height * mm_per_pixel)]

    window = page_window_pixels(bitmap_width, usable_width, usable_height, scale_factor)
    # A window thinner than one row still advances by a row; pages past the
    # last row are left blank
    boundaries = [0]
    for index in range(1, pages):
        boundary = max(math.floor(index * window + BOUNDARY_EPSILON), boundaries[-1] + 1)
        boundaries.append(min(boundary, bitmap_height))
    boundaries.append(bitmap_height)

    slices = []
    for start, end in zip(boundaries, boundaries[1:]):
        height = end - start
        slices.append(PageSlice(start, height, height * mm_per_pixel))
    return slices


def slice_placement(
    page_slice: PageSlice,
    page_config: PageConfig,
    bitmap_width: int,
    scale_factor: float = 1.0,
) -> Tuple[float, float, float, float]:
    """
    Position of a slice image on its page.

    Content is never drawn wider than the usable width: a compressed item
    (scale < 1) is drawn narrower and centered, an expanded item (scale > 1)
    is drawn at its natural size and the remaining page height stays blank.

    Returns:
        (x, y, width, height) in mm, origin at the top-left page corner
    """
    draw_scale = min(scale_factor, 1.0)
    width = page_config.usable_width * draw_scale
    height = page_slice.dest_height
    x = page_config.margins.left + (page_config.usable_width - width) / 2
    y = page_config.margins.top
    return x, y, width, height
