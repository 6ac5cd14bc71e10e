"""Tests for single-document pagination."""
import pytest
from PIL import Image

from conftest import pdf_page_count, pdf_reader
from pdf_pager import (
    CancellationToken,
    DocumentMetadata,
    EmptyContentError,
    GenerationCancelledError,
    GenerationOptions,
    SingleDocumentPaginator,
    SliceAllocationError,
)


class FlakyPaginator(SingleDocumentPaginator):
    """Paginator whose page surface allocation fails from a given page on."""

    def __init__(self, *args, fail_from_page, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_from_page = fail_from_page

    def _render_slice(self, bitmap, page_slice, page_number):
        if page_number >= self.fail_from_page:
            raise SliceAllocationError(page_number, "out of memory")
        return super()._render_slice(bitmap, page_slice, page_number)


def test_multi_page_content(page_config, options, make_bitmap):
    paginator = SingleDocumentPaginator(page_config, options)

    document = paginator.paginate(make_bitmap(190, 600))

    assert document.page_count == 3
    assert document.complete
    assert [s.source_height for s in document.slices] == [277, 277, 46]
    assert pdf_page_count(document.data) == 3


def test_short_content_is_a_single_page(page_config, options, make_bitmap):
    document = SingleDocumentPaginator(page_config, options).paginate(make_bitmap(190, 120))

    assert document.page_count == 1
    assert pdf_page_count(document.data) == 1


def test_pages_use_configured_paper_size(page_config, options, make_bitmap):
    document = SingleDocumentPaginator(page_config, options).paginate(make_bitmap(190, 120))

    box = pdf_reader(document.data).pages[0].mediabox
    assert float(box.width) == pytest.approx(595.3, abs=0.1)
    assert float(box.height) == pytest.approx(841.9, abs=0.1)


def test_zero_height_bitmap_produces_no_pages(page_config, options, counting_assembler):
    paginator = SingleDocumentPaginator(page_config, options, assembler=counting_assembler)
    empty = Image.new("RGB", (190, 0))

    with pytest.raises(EmptyContentError):
        paginator.paginate(empty)

    assert counting_assembler.documents_created == 0
    assert counting_assembler.pages_added == 0


def test_plan_is_idempotent(page_config, options, make_bitmap):
    paginator = SingleDocumentPaginator(page_config, options)
    bitmap = make_bitmap(1436, 9000)

    assert paginator.plan(bitmap) == paginator.plan(bitmap)


def test_slice_allocation_failure_keeps_finished_pages(page_config, options, make_bitmap):
    paginator = FlakyPaginator(page_config, options, fail_from_page=3)

    document = paginator.paginate(make_bitmap(190, 1000))

    assert document.planned_pages == 4
    assert document.page_count == 2
    assert not document.complete
    assert pdf_page_count(document.data) == 2


def test_failure_on_first_page_raises(page_config, options, make_bitmap):
    paginator = FlakyPaginator(page_config, options, fail_from_page=1)

    with pytest.raises(SliceAllocationError):
        paginator.paginate(make_bitmap(190, 600))


def test_cancellation_between_pages(page_config, options, make_bitmap):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(GenerationCancelledError):
        SingleDocumentPaginator(page_config, options).paginate(make_bitmap(190, 600), cancel_token=token)


def test_slice_surface_holds_slice_rows(page_config, make_bitmap):
    options = GenerationOptions(background_color="#ff0000")
    paginator = SingleDocumentPaginator(page_config, options)
    bitmap = make_bitmap(190, 600, color="#0000ff")
    page_slice = paginator.plan(bitmap)[2]

    page = paginator._render_slice(bitmap, page_slice, 3)

    assert page.size == (190, 46)
    assert page.mode == "RGB"
    assert page.getpixel((0, 0)) == (0, 0, 255)
    page.close()


def test_title_override_is_written_to_metadata(page_config, make_bitmap):
    options = GenerationOptions(metadata=DocumentMetadata(title="Default", author="Ops"))
    paginator = SingleDocumentPaginator(page_config, options)

    document = paginator.paginate(make_bitmap(190, 100), title="Chapter 1")

    metadata = pdf_reader(document.data).metadata
    assert metadata.title == "Chapter 1"
    assert metadata.author == "Ops"


@pytest.mark.parametrize("image_format", ["JPEG", "PNG"])
def test_image_formats(page_config, make_bitmap, image_format):
    options = GenerationOptions(image_format=image_format, image_quality=0.5)

    document = SingleDocumentPaginator(page_config, options).paginate(make_bitmap(190, 300))

    assert pdf_page_count(document.data) == 2
