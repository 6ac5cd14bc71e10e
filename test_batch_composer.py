"""Tests for batch composition: per-item scaling and composition modes."""
import pytest
from PIL import Image

from conftest import CRASH, LAYOUT_CRASH, pdf_page_count
from pdf_pager import (
    BatchComposer,
    BitmapRenderer,
    CancellationToken,
    CaptureFailure,
    ContentItem,
    GenerationCancelledError,
    InvalidContentItemError,
    InvalidScaleError,
    ProgressChannel,
    composition_mode,
    item_scale_factor,
)
from pdf_pager.batch_composer import COMBINED_MODE, SEPARATE_MODE


@pytest.fixture
def composer(page_config, options):
    return BatchComposer(page_config, options, BitmapRenderer())


@pytest.mark.parametrize(
    "flags, expected",
    [
        ([False, False, False], COMBINED_MODE),
        ([True, True], SEPARATE_MODE),
        ([True, False], SEPARATE_MODE),
        ([False, None], SEPARATE_MODE),
        ([None, None], SEPARATE_MODE),
    ],
)
def test_composition_mode(flags, expected):
    items = [ContentItem(content=None, force_new_page=flag) for flag in flags]
    assert composition_mode(items) == expected


def test_scale_factor_for_requested_pages():
    assert item_scale_factor(400, 277, 2) == pytest.approx(1.385)
    assert item_scale_factor(831, 277, 1) == pytest.approx(1 / 3)


def test_scale_factor_requires_content():
    with pytest.raises(InvalidScaleError):
        item_scale_factor(0, 277, 1)


@pytest.mark.parametrize("target_page_count", [0, -2, 1.5, True])
def test_content_item_rejects_bad_page_counts(target_page_count):
    with pytest.raises(InvalidContentItemError):
        ContentItem(content=None, target_page_count=target_page_count)


def test_item_stretched_to_two_pages(composer, make_bitmap):
    # 400 mm of content at the usable width, requested on two pages
    documents = composer.compose_separate([ContentItem(make_bitmap(190, 400), target_page_count=2, title="B")])

    result = documents[0].result
    assert result.page_count == 2
    assert result.scale_factor == pytest.approx(1.385, rel=1e-3)
    assert (result.start_page, result.end_page) == (1, 2)
    assert result.title == "B"
    assert pdf_page_count(documents[0].data) == 2


@pytest.mark.parametrize("target_page_count", [1, 2, 3, 5])
@pytest.mark.parametrize("height", [150, 277, 913, 2400])
def test_item_fills_requested_page_count(composer, make_bitmap, height, target_page_count):
    item = ContentItem(make_bitmap(190, height), target_page_count=target_page_count)

    result = composer.compose_separate([item])[0].result

    assert result.page_count == target_page_count


def test_thin_item_still_fills_requested_page_count(composer, make_bitmap):
    # Fewer captured rows than requested pages
    documents = composer.compose_separate([ContentItem(make_bitmap(1436, 4), target_page_count=10)])

    result = documents[0].result
    assert result.page_count == 10
    assert (result.start_page, result.end_page) == (1, 10)
    assert pdf_page_count(documents[0].data) == 10


def test_planned_page_ranges_are_contiguous(composer, make_bitmap):
    items = [
        ContentItem(make_bitmap(190, 300), target_page_count=2),
        ContentItem(make_bitmap(190, 900), target_page_count=1),
        ContentItem(make_bitmap(190, 100), target_page_count=3),
    ]

    results = [document.result for document in composer.compose_separate(items)]

    assert [(r.start_page, r.end_page) for r in results] == [(1, 2), (3, 3), (4, 6)]


def test_capture_failure_is_flagged_and_batch_continues(page_config, options, crashing_renderer, make_bitmap):
    composer = BatchComposer(page_config, options, crashing_renderer)
    items = [
        ContentItem(make_bitmap(190, 300), target_page_count=1, title="first"),
        ContentItem(CRASH, target_page_count=2, title="broken"),
        ContentItem(make_bitmap(190, 300), target_page_count=1, title="last"),
    ]

    documents = composer.compose_separate(items)

    broken = documents[1]
    assert broken.data is None
    assert broken.result.merged is False
    assert broken.result.page_count == 0
    assert "renderer crashed" in broken.error
    assert (documents[2].result.start_page, documents[2].result.end_page) == (2, 2)


def test_layout_failure_is_flagged_and_batch_continues(page_config, options, crashing_renderer, make_bitmap):
    composer = BatchComposer(page_config, options, crashing_renderer)
    items = [
        ContentItem(LAYOUT_CRASH, target_page_count=1, title="unmeasurable"),
        ContentItem(make_bitmap(190, 300), target_page_count=2, title="last"),
    ]

    documents = composer.compose_separate(items)

    assert documents[0].data is None
    assert documents[0].result.failed
    assert "layout engine crashed" in documents[0].error
    assert (documents[1].result.start_page, documents[1].result.end_page) == (1, 2)


def test_empty_capture_is_flagged(composer):
    documents = composer.compose_separate([ContentItem(Image.new("RGB", (190, 0)))])

    assert documents[0].data is None
    assert "empty" in documents[0].error


def test_undecodable_content_is_flagged(composer):
    documents = composer.compose_separate([ContentItem(b"definitely not an image")])

    assert documents[0].data is None
    assert documents[0].result.failed


def test_cancellation_between_items(page_config, options, make_bitmap):
    token = CancellationToken()
    progress = ProgressChannel()
    progress.subscribe(lambda event: token.cancel())
    composer = BatchComposer(page_config, options, BitmapRenderer(), progress=progress)
    items = [ContentItem(make_bitmap(190, 100)), ContentItem(make_bitmap(190, 100))]

    with pytest.raises(GenerationCancelledError):
        composer.compose_separate(items, cancel_token=token)

    assert len(progress.events) == 1


def test_item_progress_events(page_config, options, make_bitmap):
    progress = ProgressChannel()
    composer = BatchComposer(page_config, options, BitmapRenderer(), progress=progress)
    items = [ContentItem(make_bitmap(190, 100), title=f"part {n}") for n in range(3)]

    composer.compose_separate(items)

    assert [event.stage for event in progress.events] == ["ITEM"] * 3
    assert [event.fraction for event in progress.events] == pytest.approx([0.3, 0.6, 0.9])
    assert "part 2" in progress.events[-1].message


def test_combined_mode_estimates_page_ranges(composer, make_bitmap):
    items = [
        ContentItem(make_bitmap(190, 200), target_page_count=1, force_new_page=False),
        ContentItem(make_bitmap(190, 200), target_page_count=2, force_new_page=False),
    ]

    combined = composer.compose_combined(items)

    assert [(r.start_page, r.end_page) for r in combined.items] == [(1, 1), (2, 3)]
    assert all(r.estimated and r.scale_factor == 1.0 for r in combined.items)
    assert combined.total_pages == 3
    # 400 mm of stacked content renders onto two pages
    assert combined.rendered_pages == 2
    assert pdf_page_count(combined.data) == 2


def test_combined_mode_failure_aborts(page_config, options, crashing_renderer, make_bitmap):
    composer = BatchComposer(page_config, options, crashing_renderer)
    items = [ContentItem(make_bitmap(190, 200), force_new_page=False), ContentItem(b"garbage", force_new_page=False)]

    with pytest.raises(CaptureFailure):
        composer.compose_combined(items)
