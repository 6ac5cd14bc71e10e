"""Shared pytest fixtures for pdf-pager tests."""
import io
from contextlib import contextmanager

import pytest
from PIL import Image
from pypdf import PdfReader

from pdf_pager import GenerationOptions, calculate_page_config
from pdf_pager.assembly import ReportLabAssembler
from pdf_pager.rendering import BitmapRenderContext, BitmapRenderer

# Content the crashing renderer cannot capture
CRASH = object()
# Content the crashing renderer cannot lay out
LAYOUT_CRASH = object()


class CrashingRenderContext(BitmapRenderContext):
    """Bitmap context that fails like a broken rendering engine."""

    def measure(self, content):
        if content is CRASH:
            return None
        if content is LAYOUT_CRASH:
            raise RuntimeError("layout engine crashed")
        return super().measure(content)

    def capture(self, content, pixel_width, natural_height_hint=None):
        if content is CRASH:
            raise RuntimeError("renderer crashed")
        return super().capture(content, pixel_width, natural_height_hint)


class CrashingRenderer(BitmapRenderer):
    @contextmanager
    def open_context(self, options):
        context = CrashingRenderContext(options)
        try:
            yield context
        finally:
            context.close()


class CountingAssembler(ReportLabAssembler):
    """Assembler that records how many documents and pages it created."""

    def __init__(self):
        super().__init__()
        self.documents_created = 0
        self.pages_added = 0

    def create_document(self, page_width, page_height):
        self.documents_created += 1
        return super().create_document(page_width, page_height)

    def add_page(self, doc):
        self.pages_added += 1
        super().add_page(doc)


@pytest.fixture
def page_config():
    """A4 portrait with 10 mm margins: usable area 190 x 277 mm."""
    return calculate_page_config("a4", "portrait", [10, 10, 10, 10])


@pytest.fixture
def options():
    return GenerationOptions()


@pytest.fixture
def make_bitmap():
    """Factory for solid-color RGB bitmaps."""
    created = []

    def factory(width, height, color="#336699"):
        image = Image.new("RGB", (width, height), color)
        created.append(image)
        return image

    yield factory
    for image in created:
        image.close()


@pytest.fixture
def crashing_renderer():
    return CrashingRenderer()


@pytest.fixture
def counting_assembler():
    return CountingAssembler()


def pdf_page_count(data: bytes) -> int:
    return len(PdfReader(io.BytesIO(data)).pages)


def pdf_reader(data: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(data))
