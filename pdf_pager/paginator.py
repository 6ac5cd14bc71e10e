"""Single Document Paginator

Slices one full-height bitmap into page images and assembles them into one
document. Batch items reuse the same paginator with their scale factor.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from PIL import Image, ImageColor

from .assembly import PageDecorator, ReportLabAssembler
from .exceptions import EmptyContentError, SliceAllocationError
from .generation_options import GenerationOptions
from .generation_result import PageSlice
from .geometry import PageConfig
from .progress import CancellationToken
from .slicing import compute_page_slices, slice_placement

logger = logging.getLogger(__name__)


@dataclass
class PaginatedDocument:
    """Serialized output of one pagination run.

    Attributes:
        data: PDF bytes
        page_count: Pages actually written
        slices: Slices that were written, in page order
        planned_pages: Pages the slicing plan called for
    """

    data: bytes
    page_count: int
    slices: List[PageSlice] = field(default_factory=list)
    planned_pages: int = 0

    @property
    def complete(self) -> bool:
        return self.page_count == self.planned_pages


class SingleDocumentPaginator:
    """Turns a captured bitmap into a paginated PDF.

    Attributes:
        page_config: Page geometry for the request
        options: Generation options (encoding, background, metadata, decorations)
        assembler: Document assembly collaborator
        decorator: Page decorations applied after each page image
    """

    def __init__(
        self,
        page_config: PageConfig,
        options: GenerationOptions,
        assembler: Optional[ReportLabAssembler] = None,
        decorator: Optional[PageDecorator] = None,
    ):
        self.page_config = page_config
        self.options = options
        self.assembler = assembler or ReportLabAssembler()
        self.decorator = decorator or PageDecorator(options)
        self.background = ImageColor.getrgb(options.background_color)

    def plan(self, bitmap: Image.Image, scale_factor: float = 1.0) -> List[PageSlice]:
        """Slice boundaries for a bitmap; raises EmptyContentError for zero height."""
        width, height = bitmap.size
        if height == 0:
            raise EmptyContentError(width, height)
        return compute_page_slices(
            height,
            width,
            self.page_config.usable_width,
            self.page_config.usable_height,
            scale_factor,
        )

    def paginate(
        self,
        bitmap: Image.Image,
        scale_factor: float = 1.0,
        title: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PaginatedDocument:
        """
        Slice the bitmap and write one page per slice.

        Args:
            bitmap: Full-height capture, width = capture width
            scale_factor: Content scale (1.0 for single documents)
            title: Document title override (batch items use their own title)
            cancel_token: Checked before each page

        Returns:
            PaginatedDocument with the serialized bytes

        Raises:
            EmptyContentError: If the bitmap has zero height
            SliceAllocationError: If not even the first page could be produced
            GenerationCancelledError: If the token is cancelled between pages
        """
        slices = self.plan(bitmap, scale_factor)
        total_pages = len(slices)
        config = self.page_config

        doc = self.assembler.create_document(config.page_width, config.page_height)
        metadata = self.options.metadata
        if title:
            metadata = replace(metadata, title=title)
        self.assembler.set_metadata(doc, metadata)

        written: List[PageSlice] = []
        for page_number, page_slice in enumerate(slices, start=1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(f"page {page_number}")

            if page_slice.source_height == 0:
                self.assembler.add_page(doc)
                self.decorator.decorate(doc, page_number, total_pages, title)
                written.append(page_slice)
                continue

            try:
                page_image = self._render_slice(bitmap, page_slice, page_number)
            except SliceAllocationError as e:
                logger.error("%s; stopping after %d of %d pages", e, len(written), total_pages)
                break

            try:
                x, y, width, height = slice_placement(page_slice, config, bitmap.width, scale_factor)
                self.assembler.add_page(doc)
                self.assembler.place_image(
                    doc,
                    page_image,
                    x,
                    y,
                    width,
                    height,
                    image_format=self.options.image_format,
                    quality=self.options.image_quality,
                )
            finally:
                page_image.close()

            self.decorator.decorate(doc, page_number, total_pages, title)
            written.append(page_slice)

        if not written:
            raise SliceAllocationError(1, "no page could be produced")

        data = self.assembler.serialize(doc)
        logger.info(
            "Paginated %dx%d px bitmap into %d page(s) (scale %.3f, %d bytes)",
            bitmap.width, bitmap.height, len(written), scale_factor, len(data),
        )
        return PaginatedDocument(data, len(written), written, total_pages)

    def _render_slice(self, bitmap: Image.Image, page_slice: PageSlice, page_number: int) -> Image.Image:
        """Copy one slice onto a background-filled page surface."""
        try:
            page = Image.new("RGB", (bitmap.width, page_slice.source_height), self.background)
        except (MemoryError, ValueError) as e:
            raise SliceAllocationError(page_number, str(e))

        region = bitmap.crop((0, page_slice.source_offset, bitmap.width, page_slice.source_end))
        try:
            page.paste(region, (0, 0))
        finally:
            region.close()
        return page
