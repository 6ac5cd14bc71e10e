"""PDF Generation Pipeline

Main orchestration logic for single-document and batch PDF generation.
"""
import logging
import time
from typing import Any, Optional, Sequence

from .assembly import ReportLabAssembler
from .batch_composer import COMBINED_MODE, BatchComposer, composition_mode
from .break_points import BreakPointAnalyzer, prepare_break_hints
from .config import PROGRESS_STEPS
from .exceptions import EmptyContentError, InvalidContentItemError
from .generation_options import ContentItem, GenerationOptions
from .generation_result import BatchGenerationResult, GenerationResult
from .geometry import calculate_page_config
from .merger import DocumentMerger
from .paginator import SingleDocumentPaginator
from .progress import CancellationToken, ProgressChannel
from .rendering import BitmapRenderer, RenderingEngine, RenderOptions, capture_content
from .utils import clean_filename, format_file_size

logger = logging.getLogger(__name__)


class PDFGenerator:
    """PDF generation orchestrator.

    This class runs the complete generation workflow:
    1. Geometry - derive the page configuration from the options (once)
    2. Break analysis - measure content and hand break hints to the renderer
    3. Capture - render content to a full-height bitmap
    4. Pagination - slice the bitmap into pages and assemble the document
    5. Merge (batch, separate mode) - concatenate per-item documents

    Errors propagate to the caller; batch runs report per-item failures in
    the result instead of aborting.

    Attributes:
        renderer: Rendering engine collaborator
        options: Generation options
        assembler: Document assembly collaborator
        progress: Progress channel callers can subscribe to
        page_config: Page geometry derived from the options
    """

    def __init__(
        self,
        renderer: Optional[RenderingEngine] = None,
        options: Optional[GenerationOptions] = None,
        assembler: Optional[ReportLabAssembler] = None,
        progress: Optional[ProgressChannel] = None,
    ):
        self.renderer = renderer or BitmapRenderer()
        self.options = options or GenerationOptions()
        self.assembler = assembler or ReportLabAssembler()
        self.progress = progress or ProgressChannel()

        # Raises InvalidGeometryError before any work is done
        self.page_config = calculate_page_config(
            self.options.format,
            self.options.orientation,
            self.options.margins,
        )
        self.analyzer = BreakPointAnalyzer.from_options(self.options)
        self.paginator = SingleDocumentPaginator(self.page_config, self.options, self.assembler)
        self.render_options = RenderOptions(
            layout_width=self.page_config.pixel_width,
            render_scale=self.options.render_scale,
            background_color=self.options.background_color,
        )

    def generate(self, content: Any, cancel_token: Optional[CancellationToken] = None) -> GenerationResult:
        """Generate a paginated PDF from one piece of content.

        Args:
            content: Anything the renderer can capture
            cancel_token: Optional token checked before capture and between pages

        Returns:
            GenerationResult; status is "partial" if the slice loop stopped early

        Raises:
            EmptyContentError: If the capture has zero height
            CaptureFailure: If the renderer could not produce a bitmap
            GenerationCancelledError: If the token was cancelled
        """
        started = time.perf_counter()
        self.progress.emit("START", PROGRESS_STEPS["START"], "Starting PDF generation...")

        with self.renderer.open_context(self.render_options) as context:
            self.progress.emit("PREPARE", PROGRESS_STEPS["PREPARE"], "Analyzing page breaks...")
            break_positions = prepare_break_hints(
                context, content, self.analyzer, self.page_config.pixel_height
            )

            if cancel_token is not None:
                cancel_token.raise_if_cancelled("capture")
            self.progress.emit("CAPTURE", PROGRESS_STEPS["CAPTURE"], "Capturing content...")
            bitmap = capture_content(context, content, self.render_options.capture_width)
            if bitmap.height == 0:
                raise EmptyContentError(bitmap.width, bitmap.height)

            self.progress.emit("PAGINATE", PROGRESS_STEPS["PAGINATE"], "Creating pages...")
            paginated = self.paginator.paginate(bitmap, 1.0, cancel_token=cancel_token)

        self.progress.emit("SERIALIZE", PROGRESS_STEPS["SERIALIZE"], "Document serialized")
        elapsed = time.perf_counter() - started

        status = "completed" if paginated.complete else "partial"
        logger.info(
            "Generated %d page(s), %s in %.2fs (%s)",
            paginated.page_count, format_file_size(len(paginated.data)), elapsed, status,
        )
        self.progress.emit("COMPLETE", PROGRESS_STEPS["COMPLETE"], "Complete!")

        return GenerationResult(
            data=paginated.data,
            page_count=paginated.page_count,
            byte_size=len(paginated.data),
            elapsed_time=elapsed,
            status=status,
            slices=paginated.slices,
            break_positions=break_positions,
            filename=clean_filename(self.options.metadata.title or "document"),
        )

    def generate_batch(
        self,
        items: Sequence[ContentItem],
        cancel_token: Optional[CancellationToken] = None,
    ) -> BatchGenerationResult:
        """Generate one PDF from several content items.

        Every item set to force_new_page=False selects combined mode (one
        shared capture); otherwise each item is paginated separately and the
        documents are merged.

        Args:
            items: Content items in output order
            cancel_token: Optional token checked between items and pages

        Returns:
            BatchGenerationResult; status is "partial" if any item failed

        Raises:
            InvalidContentItemError: If items is empty or holds non-ContentItem values
            InvalidScaleError: If an item's scale factor is not positive
            MergeFailure: If strict_merge is set and a document cannot be merged
            GenerationCancelledError: If the token was cancelled
        """
        if not items:
            raise InvalidContentItemError("At least one content item is required")
        for index, item in enumerate(items):
            if not isinstance(item, ContentItem):
                raise InvalidContentItemError(
                    f"Item {index + 1} must be a ContentItem, got {type(item).__name__}"
                )

        started = time.perf_counter()
        mode = composition_mode(items)
        self.progress.emit("START", PROGRESS_STEPS["START"], f"Starting batch of {len(items)} item(s) ({mode} mode)...")

        composer = BatchComposer(
            self.page_config,
            self.options,
            self.renderer,
            paginator=self.paginator,
            analyzer=self.analyzer,
            progress=self.progress,
        )

        if mode == COMBINED_MODE:
            combined = composer.compose_combined(items, cancel_token)
            data = combined.data
            total_pages = combined.total_pages
            rendered_pages = combined.rendered_pages
            results = combined.items
        else:
            documents = composer.compose_separate(items, cancel_token)
            if cancel_token is not None:
                cancel_token.raise_if_cancelled("merge")

            self.progress.emit("MERGE", PROGRESS_STEPS["MERGE"], "Merging documents...")
            merger = DocumentMerger(self.assembler, strict=self.options.strict_merge)
            merged = merger.merge(documents, self.options.metadata)
            data = merged.data
            total_pages = merged.total_pages
            rendered_pages = merged.total_pages
            results = merged.items

        elapsed = time.perf_counter() - started
        failed = [item for item in results if item.failed]
        status = "partial" if failed else "completed"

        logger.info(
            "Generated batch: %d item(s), %d page(s), %s in %.2fs (%d failed)",
            len(results), total_pages, format_file_size(len(data)), elapsed, len(failed),
        )
        self.progress.emit("COMPLETE", PROGRESS_STEPS["COMPLETE"], "Complete!")

        return BatchGenerationResult(
            data=data,
            total_pages=total_pages,
            byte_size=len(data),
            elapsed_time=elapsed,
            items=results,
            mode=mode,
            rendered_pages=rendered_pages,
            status=status,
            filename=clean_filename(self.options.metadata.title or "document"),
        )


def generate_pdf(
    content: Any,
    options: Optional[GenerationOptions] = None,
    renderer: Optional[RenderingEngine] = None,
    progress: Optional[ProgressChannel] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> GenerationResult:
    """Generate a paginated PDF from one piece of content (convenience wrapper)."""
    generator = PDFGenerator(renderer=renderer, options=options, progress=progress)
    return generator.generate(content, cancel_token=cancel_token)


def generate_batch_pdf(
    items: Sequence[ContentItem],
    options: Optional[GenerationOptions] = None,
    renderer: Optional[RenderingEngine] = None,
    progress: Optional[ProgressChannel] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> BatchGenerationResult:
    """Generate one PDF from several content items (convenience wrapper)."""
    generator = PDFGenerator(renderer=renderer, options=options, progress=progress)
    return generator.generate_batch(items, cancel_token=cancel_token)
