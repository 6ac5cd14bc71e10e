"""Document Assembler Module

Document assembly collaborator: creates single documents page by page with a
ReportLab canvas and merges finished documents with pypdf.

All positions passed in are millimeters with the origin at the top-left page
corner; conversion to ReportLab's bottom-left point space happens here.
"""
import io
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from PIL import Image
from pypdf import PdfReader, PdfWriter
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdfcanvas

from ..generation_options import DocumentMetadata

logger = logging.getLogger(__name__)


@dataclass
class DocumentHandle:
    """A document under construction."""

    canvas: pdfcanvas.Canvas
    buffer: io.BytesIO
    page_width: float  # mm
    page_height: float  # mm
    page_count: int = 0
    serialized: bool = False

    def to_points(self, x: float, y: float, height: float = 0.0):
        """Top-left mm coordinates of a box to ReportLab bottom-left points."""
        return x * mm, (self.page_height - y - height) * mm


@dataclass
class MergeTarget:
    """Output document that pages from other documents are appended to."""

    writer: PdfWriter = field(default_factory=PdfWriter)

    @property
    def page_count(self) -> int:
        return len(self.writer.pages)


class ReportLabAssembler:
    """Builds PDF documents from page images.

    Attributes:
        compress: If True, page content streams are compressed
    """

    def __init__(self, compress: bool = True):
        self.compress = compress

    def create_document(self, page_width: float, page_height: float) -> DocumentHandle:
        """Start an empty document whose pages are page_width x page_height mm."""
        buffer = io.BytesIO()
        canvas = pdfcanvas.Canvas(
            buffer,
            pagesize=(page_width * mm, page_height * mm),
            pageCompression=1 if self.compress else 0,
        )
        return DocumentHandle(canvas, buffer, page_width, page_height)

    def add_page(self, doc: DocumentHandle):
        """Begin a new page; the first call uses the canvas' initial page."""
        if doc.page_count > 0:
            doc.canvas.showPage()
        doc.page_count += 1

    def place_image(
        self,
        doc: DocumentHandle,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
        image_format: str = "JPEG",
        quality: float = 0.85,
    ):
        """
        Draw a bitmap on the current page.

        Args:
            doc: Target document
            image: Page bitmap (RGB)
            x, y: Top-left corner in mm
            width, height: Drawn size in mm
            image_format: "JPEG" or "PNG" encoding for the embedded image
            quality: JPEG quality (0.0-1.0)
        """
        encoded = io.BytesIO()
        if image_format == "JPEG":
            image.convert("RGB").save(encoded, format="JPEG", quality=max(1, round(quality * 100)))
        else:
            image.save(encoded, format="PNG")
        encoded.seek(0)

        px, py = doc.to_points(x, y, height)
        doc.canvas.drawImage(ImageReader(encoded), px, py, width=width * mm, height=height * mm)

    def set_metadata(self, doc: DocumentHandle, metadata: DocumentMetadata):
        canvas = doc.canvas
        if metadata.title:
            canvas.setTitle(metadata.title)
        if metadata.author:
            canvas.setAuthor(metadata.author)
        if metadata.subject:
            canvas.setSubject(metadata.subject)
        if metadata.keywords:
            canvas.setKeywords(metadata.keywords_text)
        if metadata.creator:
            canvas.setCreator(metadata.creator)
        if metadata.producer:
            canvas.setProducer(metadata.producer)

    def serialize(self, doc: DocumentHandle) -> bytes:
        """Finish the document and return its bytes."""
        if not doc.serialized:
            if doc.page_count > 0:
                doc.canvas.showPage()
            doc.canvas.save()
            doc.serialized = True
        return doc.buffer.getvalue()

    # Merge support

    def load_document(self, data: bytes) -> PdfReader:
        return PdfReader(io.BytesIO(data))

    def copy_pages(self, source: PdfReader, page_indices: Sequence[int]) -> List:
        return [source.pages[index] for index in page_indices]

    def create_merge_target(self) -> MergeTarget:
        return MergeTarget()

    def append_pages(self, target: MergeTarget, pages: Sequence):
        """Append pages to target; if one fails, the ones already appended are removed."""
        appended = len(target.writer.pages)
        try:
            for page in pages:
                target.writer.add_page(page)
        except Exception:
            del target.writer.pages[appended:]
            raise

    def set_merged_metadata(self, target: MergeTarget, metadata: DocumentMetadata):
        info = {}
        if metadata.title:
            info["/Title"] = metadata.title
        if metadata.author:
            info["/Author"] = metadata.author
        if metadata.subject:
            info["/Subject"] = metadata.subject
        if metadata.keywords:
            info["/Keywords"] = metadata.keywords_text
        if metadata.creator:
            info["/Creator"] = metadata.creator
        if metadata.producer:
            info["/Producer"] = metadata.producer
        if info:
            target.writer.add_metadata(info)

    def serialize_merged(self, target: MergeTarget) -> bytes:
        output = io.BytesIO()
        target.writer.write(output)
        return output.getvalue()
