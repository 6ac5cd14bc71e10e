"""Batch Composer

Composes several content items, each with a requested page count, into
per-item documents (separate mode) or one shared document (combined mode).

Separate mode captures and paginates every item on its own, scaled so the
item fills its requested number of pages; the resulting documents are then
handed to DocumentMerger. Combined mode concatenates every item into one
content tree, captures it once and estimates the page ranges from the
requested page counts.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .break_points import BreakPointAnalyzer, prepare_break_hints
from .config import PROGRESS_STEPS
from .exceptions import (
    CaptureFailure,
    EmptyContentError,
    InvalidScaleError,
    SliceAllocationError,
)
from .generation_options import ContentItem, GenerationOptions
from .generation_result import BatchItemResult
from .geometry import PageConfig, content_length, page_count
from .merger import ItemDocument
from .paginator import SingleDocumentPaginator
from .progress import CancellationToken, ProgressChannel
from .rendering import RenderingEngine, RenderOptions, capture_content

logger = logging.getLogger(__name__)

SEPARATE_MODE = "separate"
COMBINED_MODE = "combined"


def composition_mode(items: Sequence[ContentItem]) -> str:
    """
    Pick the composition mode for a batch.

    Combined mode only when every item sets force_new_page=False; any True
    or unset flag selects separate mode.
    """
    if items and all(item.force_new_page is False for item in items):
        return COMBINED_MODE
    return SEPARATE_MODE


def item_scale_factor(natural_length: float, usable_height: float, target_page_count: int,
                      title: Optional[str] = None) -> float:
    """
    Scale that stretches or compresses an item to its requested page count.

    Examples:
        >>> item_scale_factor(400, 277, 2)
        1.385
    """
    if natural_length <= 0:
        raise InvalidScaleError(0.0, title)
    scale = usable_height * target_page_count / natural_length
    if not (scale > 0 and math.isfinite(scale)):
        raise InvalidScaleError(scale, title)
    return scale


@dataclass
class CombinedDocument:
    """Output of a combined-mode composition."""

    data: bytes
    rendered_pages: int
    items: List[BatchItemResult] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return sum(item.page_count for item in self.items)


class BatchComposer:
    """Paginates batch items against one shared page configuration.

    Attributes:
        page_config: Page geometry shared by every item
        options: Generation options shared by every item
        renderer: Rendering engine that captures each item
        paginator: Slices and assembles captured bitmaps
        analyzer: Break hint analysis run before each capture
        progress: Optional progress channel; one ITEM event per item
    """

    def __init__(
        self,
        page_config: PageConfig,
        options: GenerationOptions,
        renderer: RenderingEngine,
        paginator: Optional[SingleDocumentPaginator] = None,
        analyzer: Optional[BreakPointAnalyzer] = None,
        progress: Optional[ProgressChannel] = None,
    ):
        self.page_config = page_config
        self.options = options
        self.renderer = renderer
        self.paginator = paginator or SingleDocumentPaginator(page_config, options)
        self.analyzer = analyzer or BreakPointAnalyzer.from_options(options)
        self.progress = progress

        self.render_options = RenderOptions(
            layout_width=page_config.pixel_width,
            render_scale=options.render_scale,
            background_color=options.background_color,
        )

    def compose_separate(
        self,
        items: Sequence[ContentItem],
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ItemDocument]:
        """
        Paginate every item into its own document.

        Items whose capture fails, or that capture as empty, are recorded
        with no document and the error message; the rest of the batch still
        runs. InvalidScaleError and cancellation abort the batch.

        Returns:
            One ItemDocument per item, in input order, with planned page ranges
        """
        documents: List[ItemDocument] = []
        current_page = 0

        for index, item in enumerate(items):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(f"item {index + 1}")

            try:
                document = self._paginate_item(index, item, current_page, cancel_token)
            except (CaptureFailure, EmptyContentError, SliceAllocationError) as e:
                logger.warning("Item %d (%s) skipped: %s", index + 1, item.title or "untitled", e)
                document = ItemDocument(
                    None,
                    BatchItemResult(
                        title=item.title,
                        start_page=current_page + 1,
                        end_page=current_page,
                        page_count=0,
                        scale_factor=0.0,
                        target_page_count=item.target_page_count,
                        merged=False,
                        error=str(e),
                    ),
                    str(e),
                )

            current_page += document.result.page_count
            documents.append(document)
            self._emit_item_progress(index, len(items), item)

        return documents

    def _paginate_item(
        self,
        index: int,
        item: ContentItem,
        current_page: int,
        cancel_token: Optional[CancellationToken],
    ) -> ItemDocument:
        config = self.page_config

        # The bitmap is only valid while its context is open
        with self.renderer.open_context(self.render_options) as context:
            prepare_break_hints(context, item.content, self.analyzer, config.pixel_height)
            bitmap = capture_content(context, item.content, self.render_options.capture_width)
            if bitmap.height == 0:
                raise EmptyContentError(bitmap.width, bitmap.height)

            natural_length = content_length(bitmap.height, bitmap.width, config.usable_width)
            scale = item_scale_factor(natural_length, config.usable_height, item.target_page_count, item.title)
            pages_needed = page_count(natural_length * scale, config.usable_height)
            logger.debug(
                "Item %d: natural length %.1f mm, target %d page(s), scale %.4f, %d page(s) needed",
                index + 1, natural_length, item.target_page_count, scale, pages_needed,
            )

            paginated = self.paginator.paginate(bitmap, scale, title=item.title, cancel_token=cancel_token)

        if not paginated.complete:
            logger.warning(
                "Item %d produced %d of %d planned page(s)",
                index + 1, paginated.page_count, paginated.planned_pages,
            )

        start_page = current_page + 1
        result = BatchItemResult(
            title=item.title,
            start_page=start_page,
            end_page=start_page + paginated.page_count - 1,
            page_count=paginated.page_count,
            scale_factor=scale,
            target_page_count=item.target_page_count,
        )
        return ItemDocument(paginated.data, result)

    def compose_combined(
        self,
        items: Sequence[ContentItem],
        cancel_token: Optional[CancellationToken] = None,
    ) -> CombinedDocument:
        """
        Capture every item as one content tree and paginate it once.

        Any failure aborts the whole request. Item page ranges are estimated
        from the requested page counts, so they need not match the pages of
        the rendered document.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("combine")

        config = self.page_config
        with self.renderer.open_context(self.render_options) as context:
            try:
                combined = context.combine([item.content for item in items])
            except CaptureFailure:
                raise
            except Exception as e:
                raise CaptureFailure("combine", str(e) or type(e).__name__) from e

            prepare_break_hints(context, combined, self.analyzer, config.pixel_height)
            bitmap = capture_content(context, combined, self.render_options.capture_width)
            if bitmap.height == 0:
                raise EmptyContentError(bitmap.width, bitmap.height)

            paginated = self.paginator.paginate(bitmap, 1.0, cancel_token=cancel_token)

        estimated: List[BatchItemResult] = []
        current_page = 0
        for index, item in enumerate(items):
            start_page = current_page + 1
            current_page += item.target_page_count
            estimated.append(BatchItemResult(
                title=item.title,
                start_page=start_page,
                end_page=current_page,
                page_count=item.target_page_count,
                scale_factor=1.0,
                target_page_count=item.target_page_count,
                estimated=True,
            ))
            self._emit_item_progress(index, len(items), item)

        if current_page != paginated.page_count:
            logger.info(
                "Combined document has %d page(s); item estimates add up to %d",
                paginated.page_count, current_page,
            )
        return CombinedDocument(paginated.data, paginated.page_count, estimated)

    def _emit_item_progress(self, index: int, total: int, item: ContentItem):
        if self.progress is None:
            return
        fraction = (index + 1) / total * PROGRESS_STEPS["ITEMS"]
        label = item.title or f"item {index + 1}"
        self.progress.emit("ITEM", fraction, f"Processed {label} ({index + 1}/{total})")
