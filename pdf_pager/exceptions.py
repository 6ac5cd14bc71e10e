"""Custom Exception Hierarchy

Exception hierarchy for pdf-pager providing granular exception types for
the validation, capture, assembly and merge stages of PDF generation.
"""


class PdfPagerError(Exception):
    """Base exception for all pdf-pager errors.

    Catching this exception will catch all custom exceptions raised while
    generating or composing documents.
    """
    pass


# Validation Errors
class ValidationError(PdfPagerError):
    """Raised when input validation fails."""
    pass


class InvalidGeometryError(ValidationError):
    """Raised when page geometry leaves no usable area."""

    def __init__(self, usable_width: float, usable_height: float):
        self.usable_width = usable_width
        self.usable_height = usable_height
        super().__init__(
            f"Margins leave no usable page area "
            f"(usable width {usable_width:.1f} mm, usable height {usable_height:.1f} mm)"
        )


class InvalidScaleError(ValidationError):
    """Raised when a batch item's scale factor is not a positive finite number."""

    def __init__(self, scale_factor: float, title: str = None):
        self.scale_factor = scale_factor
        self.title = title
        label = f" for item '{title}'" if title else ""
        super().__init__(f"Invalid scale factor {scale_factor!r}{label}; must be > 0")


class InvalidConfigurationError(ValidationError):
    """Raised when configuration parameters are invalid."""
    pass


class InvalidContentItemError(ValidationError):
    """Raised when batch content items are missing or malformed."""
    pass


# Rendering Errors
class RenderingError(PdfPagerError):
    """Base class for errors raised while producing a bitmap."""
    pass


class CaptureFailure(RenderingError):
    """Raised when the rendering collaborator could not produce a bitmap."""

    def __init__(self, stage: str, reason: str):
        self.stage = stage
        self.reason = reason
        super().__init__(f"Capture failed during {stage}: {reason}")


class EmptyContentError(RenderingError):
    """Raised when a captured bitmap has zero height."""

    def __init__(self, width: int = 0, height: int = 0):
        self.width = width
        self.height = height
        super().__init__(f"Captured content is empty ({width}x{height} px)")


# Assembly Errors
class AssemblyError(PdfPagerError):
    """Base class for document assembly errors."""
    pass


class SliceAllocationError(AssemblyError):
    """Raised when a page-sized working surface cannot be created."""

    def __init__(self, page_number: int, reason: str):
        self.page_number = page_number
        super().__init__(f"Could not allocate surface for page {page_number}: {reason}")


class MergeFailure(AssemblyError):
    """Raised when a per-item document cannot be loaded during merge."""

    def __init__(self, item_index: int, reason: str):
        self.item_index = item_index
        self.reason = reason
        super().__init__(f"Failed to merge document for item {item_index}: {reason}")


# Control Flow
class GenerationCancelledError(PdfPagerError):
    """Raised when a cancellation token is triggered mid-generation."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Generation cancelled during {stage}")
