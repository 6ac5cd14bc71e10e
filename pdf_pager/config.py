"""Configuration Constants

Constants for page geometry, rendering defaults and break-hint analysis.
"""

# Paper formats in millimeters (portrait width, height)
PAPER_FORMATS = {
    "a4": (210.0, 297.0),
    "letter": (215.9, 279.4),
    "a3": (297.0, 420.0),
    "legal": (215.9, 355.6),
}

ORIENTATIONS = ("portrait", "landscape")

# Length-to-pixel conversion (96 DPI: 1mm = 3.7795px)
MM_TO_PX = 3.7795

# Page Defaults
DEFAULT_FORMAT = "a4"
DEFAULT_ORIENTATION = "portrait"
DEFAULT_MARGINS = (10.0, 10.0, 10.0, 10.0)  # top, right, bottom, left in mm

# Capture / Encoding Defaults
DEFAULT_RENDER_SCALE = 2.0  # Device pixels per layout pixel
DEFAULT_IMAGE_QUALITY = 0.85  # JPEG quality (0.0-1.0)
DEFAULT_IMAGE_FORMAT = "JPEG"
SUPPORTED_IMAGE_FORMATS = ("JPEG", "PNG")
DEFAULT_BACKGROUND_COLOR = "#ffffff"

# Page Decorations
PAGE_NUMBER_FONT_SIZE = 10
PAGE_NUMBER_OFFSET_MM = 5.0  # Distance of page numbers from the page edge
HEADER_FOOTER_OFFSET_MM = 7.0  # Distance of header/footer text from the page edge
DECORATION_FONT = "Helvetica"

# Watermark Defaults
DEFAULT_WATERMARK_FONT_SIZE = 48
DEFAULT_WATERMARK_TEXT_OPACITY = 0.1
DEFAULT_WATERMARK_IMAGE_OPACITY = 0.15
DEFAULT_WATERMARK_COLOR = "#cccccc"
DEFAULT_WATERMARK_ROTATION = 45.0  # Only for diagonal position
WATERMARK_IMAGE_SIZE_MM = 50.0
WATERMARK_EDGE_OFFSET_MM = 10.0
WATERMARK_POSITIONS = (
    "center",
    "diagonal",
    "top-left",
    "top-right",
    "bottom-left",
    "bottom-right",
)

# Break Point Analysis (layout units)
BREAK_TOLERANCE = 100.0  # Search window around a candidate break
HEADING_GAP_THRESHOLD = 50.0  # Heading closer than this to its next sibling stays with it

DEFAULT_AVOID_BREAK_INSIDE = (
    "table",
    "figure",
    "img",
    "svg",
    "pre",
    "code",
    "blockquote",
    "ul",
    "ol",
    "dl",
)
DEFAULT_BREAK_BEFORE = ("h1", "h2")
DEFAULT_BREAK_AFTER = ()

# Break priorities (higher = more important)
PRIORITY_CSS_FORCED = 100
PRIORITY_TAG_FORCED = 90
PRIORITY_HEADING_AVOID = 85
PRIORITY_CSS_AVOID = 80
PRIORITY_TAG_AVOID = 70

# Progress Steps (fractions reported on the progress channel)
PROGRESS_STEPS = {
    "START": 0.0,
    "PREPARE": 0.10,
    "CAPTURE": 0.40,
    "PAGINATE": 0.80,
    "SERIALIZE": 0.90,
    "ITEMS": 0.90,  # Batch: share of progress spent on items before merging
    "MERGE": 0.95,
    "COMPLETE": 1.0,
}
