"""Page Decorator Module

Draws per-page decorations on top of the page image: page numbers, header
and footer text, and text or image watermarks.
"""
import io
import logging
from datetime import date
from typing import Optional

from PIL import Image
from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader

from ..config import (
    DECORATION_FONT,
    HEADER_FOOTER_OFFSET_MM,
    PAGE_NUMBER_FONT_SIZE,
    PAGE_NUMBER_OFFSET_MM,
    WATERMARK_EDGE_OFFSET_MM,
    WATERMARK_IMAGE_SIZE_MM,
)
from ..generation_options import GenerationOptions, WatermarkOptions
from .document_assembler import DocumentHandle

logger = logging.getLogger(__name__)

PAGE_NUMBER_GREY = colors.Color(128 / 255, 128 / 255, 128 / 255)
HEADER_FOOTER_GREY = colors.Color(64 / 255, 64 / 255, 64 / 255)


class PageDecorator:
    """Applies configured decorations to the current page of a document."""

    def __init__(self, options: GenerationOptions):
        self.options = options

    @property
    def enabled(self) -> bool:
        options = self.options
        return bool(
            options.show_page_numbers
            or options.header_template
            or options.footer_template
            or (options.watermark and options.watermark.enabled)
        )

    def decorate(self, doc: DocumentHandle, page_number: int, total_pages: int, title: Optional[str] = None):
        """Draw every enabled decoration on the current page."""
        if not self.enabled:
            return
        self._draw_header_footer(doc, page_number, total_pages, title or self.options.metadata.title or "")
        if self.options.show_page_numbers:
            self._draw_page_number(doc, page_number, total_pages)
        if self.options.watermark and self.options.watermark.enabled:
            self._draw_watermark(doc, self.options.watermark)

    def _draw_page_number(self, doc: DocumentHandle, page_number: int, total_pages: int):
        canvas = doc.canvas
        canvas.saveState()
        canvas.setFont(DECORATION_FONT, PAGE_NUMBER_FONT_SIZE)
        canvas.setFillColor(PAGE_NUMBER_GREY)

        if self.options.page_number_position == "footer":
            y = doc.page_height - PAGE_NUMBER_OFFSET_MM
        else:
            y = PAGE_NUMBER_OFFSET_MM
        canvas.drawCentredString(doc.page_width / 2 * mm, (doc.page_height - y) * mm, f"{page_number} / {total_pages}")
        canvas.restoreState()

    def _draw_header_footer(self, doc: DocumentHandle, page_number: int, total_pages: int, title: str):
        today = date.today().isoformat()
        placements = (
            (self.options.header_template, HEADER_FOOTER_OFFSET_MM),
            (self.options.footer_template, doc.page_height - HEADER_FOOTER_OFFSET_MM),
        )
        for template, y in placements:
            if template is None:
                continue
            if page_number == 1 and not template.first_page:
                continue
            text = template.render(page_number, total_pages, title=title, date=today)
            if not text:
                continue
            canvas = doc.canvas
            canvas.saveState()
            canvas.setFont(DECORATION_FONT, PAGE_NUMBER_FONT_SIZE)
            canvas.setFillColor(HEADER_FOOTER_GREY)
            canvas.drawCentredString(doc.page_width / 2 * mm, (doc.page_height - y) * mm, text)
            canvas.restoreState()

    def _draw_watermark(self, doc: DocumentHandle, watermark: WatermarkOptions):
        canvas = doc.canvas
        canvas.saveState()
        try:
            if watermark.text:
                self._draw_text_watermark(doc, watermark)
            if watermark.image:
                self._draw_image_watermark(doc, watermark)
        finally:
            canvas.restoreState()

    def _draw_text_watermark(self, doc: DocumentHandle, watermark: WatermarkOptions):
        canvas = doc.canvas
        canvas.setFont(DECORATION_FONT, watermark.font_size)
        try:
            fill = colors.HexColor(watermark.color)
        except ValueError:
            logger.warning("Invalid watermark color %r, using default grey", watermark.color)
            fill = colors.HexColor("#cccccc")
        canvas.setFillColor(fill)
        canvas.setFillAlpha(watermark.text_opacity)

        # Text extent in mm; font size is in points
        text_width = canvas.stringWidth(watermark.text, DECORATION_FONT, watermark.font_size) / mm
        text_height = watermark.font_size * 0.35
        x, y = _watermark_anchor(
            watermark.position, doc.page_width, doc.page_height, text_width, text_height, centered=True
        )

        canvas.translate(x * mm, (doc.page_height - y) * mm)
        rotation = watermark.effective_rotation
        if rotation:
            canvas.rotate(rotation)
        canvas.drawCentredString(0, 0, watermark.text)

    def _draw_image_watermark(self, doc: DocumentHandle, watermark: WatermarkOptions):
        try:
            with Image.open(io.BytesIO(watermark.image)) as source:
                image = source.convert("RGBA")
        except (OSError, ValueError) as e:
            logger.error("Failed to add image watermark: %s", e)
            return

        # Fold the opacity into the alpha channel so transparency survives embedding
        alpha = image.split()[-1].point(lambda value: round(value * watermark.image_opacity))
        image.putalpha(alpha)

        size = WATERMARK_IMAGE_SIZE_MM
        x, y = _watermark_anchor(watermark.position, doc.page_width, doc.page_height, size, size, centered=False)
        px, py = doc.to_points(x, y, size)
        doc.canvas.drawImage(ImageReader(image), px, py, width=size * mm, height=size * mm, mask="auto")


def _watermark_anchor(position: str, page_width: float, page_height: float,
                      width: float, height: float, centered: bool):
    """
    Watermark anchor in mm (top-left origin).

    With centered=True the anchor is the center of the box, otherwise its
    top-left corner.
    """
    edge = WATERMARK_EDGE_OFFSET_MM
    if position in ("center", "diagonal"):
        left, top = (page_width - width) / 2, (page_height - height) / 2
    elif position == "top-left":
        left, top = edge, edge
    elif position == "top-right":
        left, top = page_width - width - edge, edge
    elif position == "bottom-left":
        left, top = edge, page_height - height - edge
    else:
        left, top = page_width - width - edge, page_height - height - edge

    if centered:
        return left + width / 2, top + height / 2
    return left, top
