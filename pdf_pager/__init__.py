"""pdf-pager

Turns a captured bitmap of rendered content into a paginated PDF, and
composes several content items with requested page counts into one document.

Core Classes:
- PDFGenerator: Main orchestrator (generate, generate_batch)
- SingleDocumentPaginator: Slices one bitmap into pages
- BatchComposer: Per-item scaling and composition modes
- DocumentMerger: Concatenates per-item documents with exact page accounting
- BreakPointAnalyzer: Forced/avoid/natural break hints before capture

Collaborators:
- BitmapRenderer: Rendering engine for pre-rendered bitmaps (Pillow)
- ReportLabAssembler: Document assembly (ReportLab, pypdf)

Helper Functions:
- generate_pdf: Generate a single document
- generate_batch_pdf: Generate a batch document
- calculate_page_config: Page geometry for a paper format
"""

from .batch_composer import BatchComposer, composition_mode, item_scale_factor
from .break_points import BreakKind, BreakPoint, BreakPointAnalyzer, LayoutNode
from .exceptions import (
    AssemblyError,
    CaptureFailure,
    EmptyContentError,
    GenerationCancelledError,
    InvalidConfigurationError,
    InvalidContentItemError,
    InvalidGeometryError,
    InvalidScaleError,
    MergeFailure,
    PdfPagerError,
    RenderingError,
    SliceAllocationError,
    ValidationError,
)
from .generation_options import (
    ContentItem,
    DocumentMetadata,
    GenerationOptions,
    HeaderFooterTemplate,
    Margins,
    WatermarkOptions,
)
from .generation_result import (
    BatchGenerationResult,
    BatchItemResult,
    GenerationResult,
    PageSlice,
)
from .geometry import PageConfig, calculate_page_config, page_count
from .merger import DocumentMerger, ItemDocument
from .paginator import SingleDocumentPaginator
from .pipeline import PDFGenerator, generate_batch_pdf, generate_pdf
from .progress import CancellationToken, ProgressChannel, ProgressEvent
from .rendering import BitmapRenderer, RenderedContent, RenderingEngine, RenderOptions
from .slicing import compute_page_slices

__version__ = "0.1.0"

# Expose public API
__all__ = [
    # Main generator
    'PDFGenerator',
    'generate_pdf',
    'generate_batch_pdf',

    # Core components
    'SingleDocumentPaginator',
    'BatchComposer',
    'DocumentMerger',
    'BreakPointAnalyzer',
    'composition_mode',
    'item_scale_factor',
    'compute_page_slices',
    'calculate_page_config',
    'page_count',

    # Collaborators
    'BitmapRenderer',
    'RenderingEngine',
    'RenderOptions',
    'RenderedContent',

    # Options and results
    'GenerationOptions',
    'Margins',
    'HeaderFooterTemplate',
    'WatermarkOptions',
    'DocumentMetadata',
    'ContentItem',
    'PageConfig',
    'PageSlice',
    'BreakKind',
    'BreakPoint',
    'LayoutNode',
    'ItemDocument',
    'GenerationResult',
    'BatchGenerationResult',
    'BatchItemResult',

    # Progress
    'ProgressChannel',
    'ProgressEvent',
    'CancellationToken',

    # Exceptions
    'PdfPagerError',
    'ValidationError',
    'InvalidGeometryError',
    'InvalidScaleError',
    'InvalidConfigurationError',
    'InvalidContentItemError',
    'RenderingError',
    'CaptureFailure',
    'EmptyContentError',
    'AssemblyError',
    'SliceAllocationError',
    'MergeFailure',
    'GenerationCancelledError',
]
