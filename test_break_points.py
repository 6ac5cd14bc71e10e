"""Tests for break hint analysis and break position resolution."""
import pytest
from PIL import Image

from pdf_pager import BreakKind, BreakPoint, BreakPointAnalyzer, GenerationOptions, LayoutNode
from pdf_pager.break_points import prepare_break_hints
from pdf_pager.rendering import BitmapRenderContext, RenderedContent, RenderOptions


def article():
    return LayoutNode("div", 0, 1000, children=[
        LayoutNode("h1", 0, 30),
        LayoutNode("p", 40, 300),
        LayoutNode("table", 300, 600),
        LayoutNode("h3", 620, 640),
        LayoutNode("p", 800, 1000),
    ])


def kinds(break_points):
    return [(bp.element.tag, bp.kind, bp.priority) for bp in break_points]


def test_analyze_classifies_tags():
    break_points = BreakPointAnalyzer().analyze(article())

    assert kinds(break_points) == [
        ("h1", BreakKind.FORCED, 90),
        ("h1", BreakKind.AVOID, 85),
        ("table", BreakKind.AVOID, 70),
    ]
    assert break_points[0].position == 0
    assert break_points[2].position == 300


def test_heading_far_from_next_sibling_is_not_kept_with_it():
    # The h3 sits 160 units above the following paragraph
    break_points = BreakPointAnalyzer().analyze(article())

    assert "h3" not in [bp.element.tag for bp in break_points]


def test_orphan_prevention_can_be_disabled():
    analyzer = BreakPointAnalyzer(prevent_orphaned_headings=False)

    assert (BreakKind.AVOID, 85) not in [(bp.kind, bp.priority) for bp in analyzer.analyze(article())]


def test_style_directives_win_over_tag_rules():
    root = LayoutNode("div", 0, 500, children=[
        LayoutNode("h1", 0, 30, style={"page-break-before": "always"}),
        LayoutNode("section", 100, 200, style={"break-after": "page"}),
        LayoutNode("div", 200, 400, style={"Page-Break-Inside": "Avoid"}),
    ])

    break_points = BreakPointAnalyzer().analyze(root)

    assert kinds(break_points) == [
        ("h1", BreakKind.FORCED, 100),
        ("section", BreakKind.FORCED, 100),
        ("div", BreakKind.AVOID, 80),
    ]
    assert break_points[1].position == 200


def test_style_directives_ignored_when_disabled():
    root = LayoutNode("div", 0, 500, children=[
        LayoutNode("div", 0, 30, style={"page-break-before": "always"}),
    ])

    assert BreakPointAnalyzer(respect_css_page_breaks=False).analyze(root) == []


def test_nested_elements_are_visited_in_document_order():
    root = LayoutNode("div", 0, 900, children=[
        LayoutNode("section", 0, 500, children=[LayoutNode("pre", 10, 200), LayoutNode("img", 210, 400)]),
        LayoutNode("ul", 500, 900),
    ])

    assert [bp.element.tag for bp in BreakPointAnalyzer().analyze(root)] == ["pre", "img", "ul"]


def test_root_container_gets_no_hint():
    assert BreakPointAnalyzer().analyze(LayoutNode("table", 0, 500)) == []


def test_element_reference_is_reported():
    handle = object()
    root = LayoutNode("div", 0, 100, children=[LayoutNode("table", 0, 100, ref=handle)])

    assert BreakPointAnalyzer().analyze(root)[0].element is handle


def test_from_options_uses_tag_lists():
    options = GenerationOptions(break_before=("H2",), break_after=("section",), avoid_break_inside=())
    analyzer = BreakPointAnalyzer.from_options(options)
    root = LayoutNode("div", 0, 500, children=[
        LayoutNode("h2", 0, 20),
        LayoutNode("section", 100, 300),
        LayoutNode("table", 300, 400),
    ])

    break_points = analyzer.analyze(root)

    assert [(bp.element.tag, bp.kind, bp.position) for bp in break_points] == [
        ("h2", BreakKind.FORCED, 0),
        ("section", BreakKind.FORCED, 300),
    ]


class TestResolveBreakPosition:
    def setup_method(self):
        self.analyzer = BreakPointAnalyzer()

    def test_falls_back_to_raw_position(self):
        far = BreakPoint("far", 500, BreakKind.FORCED, 100)
        assert self.analyzer.resolve_break_position(277, [far]) == 277
        assert self.analyzer.resolve_break_position(277, []) == 277

    def test_avoid_candidates_are_rejected(self):
        avoid = BreakPoint("table", 260, BreakKind.AVOID, 85)
        assert self.analyzer.resolve_break_position(277, [avoid]) == 277

    def test_priority_wins_over_proximity(self):
        near = BreakPoint("near", 280, BreakKind.NATURAL, 10)
        strong = BreakPoint("strong", 200, BreakKind.FORCED, 90)
        assert self.analyzer.resolve_break_position(277, [near, strong]) == 200

    def test_closest_wins_on_equal_priority(self):
        a = BreakPoint("a", 200, BreakKind.FORCED, 90)
        b = BreakPoint("b", 300, BreakKind.FORCED, 90)
        assert self.analyzer.resolve_break_position(277, [a, b]) == 300

    def test_tolerance_window_is_inclusive(self):
        edge = BreakPoint("edge", 377, BreakKind.FORCED, 90)
        assert self.analyzer.resolve_break_position(277, [edge]) == 377


def test_resolve_break_positions_without_hints():
    positions = BreakPointAnalyzer().resolve_break_positions(1000, 277, [])

    assert positions == [277, 554, 831]


def test_resolve_break_positions_follow_forced_breaks():
    forced = BreakPoint("h1", 250, BreakKind.FORCED, 90)

    positions = BreakPointAnalyzer().resolve_break_positions(1000, 277, [forced])

    assert positions == [250, 527, 804]


def test_resolve_break_positions_always_advance():
    # A forced break at the top must not stall the loop
    forced = BreakPoint("h1", 0, BreakKind.FORCED, 100)

    positions = BreakPointAnalyzer(tolerance=300).resolve_break_positions(600, 277, [forced])

    assert positions == [277, 554]


def test_resolve_break_positions_rejects_bad_page_height():
    with pytest.raises(ValueError):
        BreakPointAnalyzer().resolve_break_positions(1000, 0, [])


def test_prepare_break_hints_records_hints_on_content():
    image = Image.new("RGB", (200, 1000), "white")
    content = RenderedContent(image, article())
    context = BitmapRenderContext(RenderOptions(layout_width=200, render_scale=1))

    positions = prepare_break_hints(context, content, BreakPointAnalyzer(), 277)

    assert positions == [277, 554, 831]
    assert [bp.kind for bp in content.break_hints] == [BreakKind.FORCED, BreakKind.AVOID, BreakKind.AVOID]
    context.close()
    image.close()


def test_prepare_break_hints_without_layout():
    image = Image.new("RGB", (200, 100), "white")
    context = BitmapRenderContext(RenderOptions(layout_width=200))

    assert prepare_break_hints(context, image, BreakPointAnalyzer(), 277) == []
    image.close()
