"""Generation Options Dataclasses

Configuration options for single-document and batch PDF generation.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from .config import (
    DEFAULT_AVOID_BREAK_INSIDE,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_BREAK_AFTER,
    DEFAULT_BREAK_BEFORE,
    DEFAULT_FORMAT,
    DEFAULT_IMAGE_FORMAT,
    DEFAULT_IMAGE_QUALITY,
    DEFAULT_MARGINS,
    DEFAULT_ORIENTATION,
    DEFAULT_RENDER_SCALE,
    DEFAULT_WATERMARK_COLOR,
    DEFAULT_WATERMARK_FONT_SIZE,
    DEFAULT_WATERMARK_IMAGE_OPACITY,
    DEFAULT_WATERMARK_ROTATION,
    DEFAULT_WATERMARK_TEXT_OPACITY,
    ORIENTATIONS,
    PAPER_FORMATS,
    SUPPORTED_IMAGE_FORMATS,
    WATERMARK_POSITIONS,
)
from .exceptions import InvalidConfigurationError, InvalidContentItemError

TEMPLATE_PLACEHOLDER = re.compile(r"\{(page_number|total_pages|title|date)\}")


@dataclass(frozen=True)
class Margins:
    """Four-sided page margin in millimeters."""

    top: float = DEFAULT_MARGINS[0]
    right: float = DEFAULT_MARGINS[1]
    bottom: float = DEFAULT_MARGINS[2]
    left: float = DEFAULT_MARGINS[3]

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Margins":
        """Build margins from a [top, right, bottom, left] sequence."""
        if len(values) != 4:
            raise InvalidConfigurationError(
                f"margins must have 4 values (top, right, bottom, left), got {len(values)}"
            )
        return cls(*(float(v) for v in values))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.top, self.right, self.bottom, self.left)


@dataclass
class HeaderFooterTemplate:
    """Text template drawn in the page header or footer.

    Attributes:
        template: Text with {page_number}, {total_pages}, {title} and {date} placeholders;
            any other text, braces included, is drawn as written
        first_page: If False, the template is not drawn on the first page
    """

    template: str
    first_page: bool = True

    def render(self, page_number: int, total_pages: int, title: str = "", date: str = "") -> str:
        values = {
            "page_number": str(page_number),
            "total_pages": str(total_pages),
            "title": title or "",
            "date": date or "",
        }
        return TEMPLATE_PLACEHOLDER.sub(lambda match: values[match.group(1)], self.template)


@dataclass
class WatermarkOptions:
    """Watermark drawn on top of every page.

    Either text or image (encoded image bytes) must be set. Opacity defaults
    to 0.1 for text and 0.15 for images.
    """

    text: Optional[str] = None
    image: Optional[bytes] = None
    opacity: Optional[float] = None
    position: str = "diagonal"
    font_size: float = DEFAULT_WATERMARK_FONT_SIZE
    color: str = DEFAULT_WATERMARK_COLOR
    rotation: Optional[float] = None

    def __post_init__(self):
        if self.position not in WATERMARK_POSITIONS:
            raise InvalidConfigurationError(
                f"watermark position must be one of {WATERMARK_POSITIONS}, got {self.position!r}"
            )
        if self.opacity is not None and not (0.0 <= self.opacity <= 1.0):
            raise InvalidConfigurationError(
                f"watermark opacity must be between 0.0-1.0, got {self.opacity}"
            )

    @property
    def enabled(self) -> bool:
        return bool(self.text or self.image)

    @property
    def text_opacity(self) -> float:
        return DEFAULT_WATERMARK_TEXT_OPACITY if self.opacity is None else self.opacity

    @property
    def image_opacity(self) -> float:
        return DEFAULT_WATERMARK_IMAGE_OPACITY if self.opacity is None else self.opacity

    @property
    def effective_rotation(self) -> float:
        if self.rotation is not None:
            return self.rotation
        return DEFAULT_WATERMARK_ROTATION if self.position == "diagonal" else 0.0


@dataclass
class DocumentMetadata:
    """Document information dictionary entries."""

    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    creator: Optional[str] = None
    producer: Optional[str] = None

    @property
    def keywords_text(self) -> str:
        return ", ".join(self.keywords)


@dataclass
class GenerationOptions:
    """Configuration options for PDF generation.

    This dataclass replaces a loosely typed options bag: every field is named,
    has a documented default and is validated once at construction time.

    Attributes:
        format: Paper format key from PAPER_FORMATS ("a4", "letter", "a3", "legal")
        orientation: "portrait" or "landscape" (landscape swaps width and height)
        margins: Page margins in mm, Margins or [top, right, bottom, left]

        # Capture / Encoding
        render_scale: Device pixels per layout pixel requested from the renderer
        image_quality: JPEG quality for page images (0.0-1.0)
        image_format: "JPEG" or "PNG"
        background_color: Fill color painted under every page slice

        # Decorations
        show_page_numbers: If True, draw "n / total" on every page
        page_number_position: "header" or "footer"
        header_template / footer_template: Optional text templates
        watermark: Optional watermark drawn on every page
        metadata: Document information entries

        # Break Hints
        respect_css_page_breaks: Honor break-before/after/inside styles in the layout tree
        prevent_orphaned_headings: Keep headings together with their next sibling
        avoid_break_inside / break_before / break_after: Tag lists for break hints

        # Merge
        strict_merge: If True, a document that cannot be merged aborts the batch
    """

    format: str = DEFAULT_FORMAT
    orientation: str = DEFAULT_ORIENTATION
    margins: Any = field(default_factory=Margins)

    # Capture / Encoding
    render_scale: float = DEFAULT_RENDER_SCALE
    image_quality: float = DEFAULT_IMAGE_QUALITY
    image_format: str = DEFAULT_IMAGE_FORMAT
    background_color: str = DEFAULT_BACKGROUND_COLOR

    # Decorations
    show_page_numbers: bool = False
    page_number_position: str = "footer"
    header_template: Optional[HeaderFooterTemplate] = None
    footer_template: Optional[HeaderFooterTemplate] = None
    watermark: Optional[WatermarkOptions] = None
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    # Break Hints
    respect_css_page_breaks: bool = True
    prevent_orphaned_headings: bool = True
    avoid_break_inside: Tuple[str, ...] = DEFAULT_AVOID_BREAK_INSIDE
    break_before: Tuple[str, ...] = DEFAULT_BREAK_BEFORE
    break_after: Tuple[str, ...] = DEFAULT_BREAK_AFTER

    # Merge
    strict_merge: bool = False

    def __post_init__(self):
        """Validate configuration options after initialization."""
        self.format = self.format.lower()
        if self.format not in PAPER_FORMATS:
            raise InvalidConfigurationError(
                f"format must be one of {tuple(PAPER_FORMATS)}, got {self.format!r}"
            )

        if self.orientation not in ORIENTATIONS:
            raise InvalidConfigurationError(
                f"orientation must be one of {ORIENTATIONS}, got {self.orientation!r}"
            )

        if not isinstance(self.margins, Margins):
            self.margins = Margins.from_sequence(self.margins)
        if any(m < 0 for m in self.margins.as_tuple()):
            raise InvalidConfigurationError(
                f"margins must be non-negative, got {self.margins.as_tuple()}"
            )

        if not (self.render_scale > 0 and math.isfinite(self.render_scale)):
            raise InvalidConfigurationError(
                f"render_scale must be a positive number, got {self.render_scale}"
            )

        if not (0.0 < self.image_quality <= 1.0):
            raise InvalidConfigurationError(
                f"image_quality must be between 0.0-1.0, got {self.image_quality}"
            )

        self.image_format = self.image_format.upper()
        if self.image_format not in SUPPORTED_IMAGE_FORMATS:
            raise InvalidConfigurationError(
                f"image_format must be one of {SUPPORTED_IMAGE_FORMATS}, got {self.image_format!r}"
            )

        if self.page_number_position not in ("header", "footer"):
            raise InvalidConfigurationError(
                f"page_number_position must be 'header' or 'footer', got {self.page_number_position!r}"
            )

        self.avoid_break_inside = tuple(t.lower() for t in self.avoid_break_inside)
        self.break_before = tuple(t.lower() for t in self.break_before)
        self.break_after = tuple(t.lower() for t in self.break_after)


@dataclass
class ContentItem:
    """One block of content in a batch request.

    Attributes:
        content: Anything the rendering collaborator can capture
        target_page_count: Number of pages the item should occupy (>= 1)
        title: Optional section title reported back in the result
        force_new_page: True, False or None (unset); selects the batch composition mode
    """

    content: Any
    target_page_count: int = 1
    title: Optional[str] = None
    force_new_page: Optional[bool] = None

    def __post_init__(self):
        if isinstance(self.target_page_count, bool) or not isinstance(self.target_page_count, int):
            raise InvalidContentItemError(
                f"target_page_count must be an integer, got {self.target_page_count!r}"
            )
        if self.target_page_count < 1:
            raise InvalidContentItemError(
                f"target_page_count must be >= 1, got {self.target_page_count}"
            )
