"""Break Point Analysis

Walks a laid-out content tree once before capture and classifies elements
into forced, avoid and natural break hints. The hints are handed to the
rendering collaborator so layout can honor them; resolve_break_position and
resolve_break_positions turn the hints into advisory page-break positions.

Positions are in layout units (the coordinate space of the LayoutNode tree).
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .config import (
    BREAK_TOLERANCE,
    DEFAULT_AVOID_BREAK_INSIDE,
    DEFAULT_BREAK_AFTER,
    DEFAULT_BREAK_BEFORE,
    HEADING_GAP_THRESHOLD,
    PRIORITY_CSS_AVOID,
    PRIORITY_CSS_FORCED,
    PRIORITY_HEADING_AVOID,
    PRIORITY_TAG_AVOID,
    PRIORITY_TAG_FORCED,
)
from .exceptions import CaptureFailure, PdfPagerError

logger = logging.getLogger(__name__)

HEADING_TAG = re.compile(r"^h[1-6]$", re.IGNORECASE)


class BreakKind(Enum):
    NATURAL = "natural"
    FORCED = "forced"
    AVOID = "avoid"


@dataclass
class LayoutNode:
    """One element of a laid-out content tree.

    Attributes:
        tag: Element tag name (e.g. "h1", "table", "p")
        top, bottom: Vertical extent in layout units
        style: Computed style properties (e.g. {"break-inside": "avoid"})
        children: Child elements in document order
        ref: Opaque handle to the renderer's own element
    """

    tag: str
    top: float
    bottom: float
    style: Dict[str, str] = field(default_factory=dict)
    children: List["LayoutNode"] = field(default_factory=list)
    ref: Any = None

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class BreakPoint:
    element: Any
    position: float
    kind: BreakKind
    priority: int


class BreakPointAnalyzer:
    """Classify layout elements into break hints and resolve break positions.

    Attributes:
        respect_css_page_breaks: Honor page-break-*/break-* styles
        prevent_orphaned_headings: Keep headings with a closely following sibling
        avoid_break_inside: Tags that must not be split
        break_before / break_after: Tags that force a break before/after them
        tolerance: Search window around a candidate break position
        heading_gap: Maximum gap between a heading and its next sibling
    """

    def __init__(
        self,
        respect_css_page_breaks: bool = True,
        prevent_orphaned_headings: bool = True,
        avoid_break_inside: Sequence[str] = DEFAULT_AVOID_BREAK_INSIDE,
        break_before: Sequence[str] = DEFAULT_BREAK_BEFORE,
        break_after: Sequence[str] = DEFAULT_BREAK_AFTER,
        tolerance: float = BREAK_TOLERANCE,
        heading_gap: float = HEADING_GAP_THRESHOLD,
    ):
        self.respect_css_page_breaks = respect_css_page_breaks
        self.prevent_orphaned_headings = prevent_orphaned_headings
        self.avoid_break_inside = frozenset(t.lower() for t in avoid_break_inside)
        self.break_before = frozenset(t.lower() for t in break_before)
        self.break_after = frozenset(t.lower() for t in break_after)
        self.tolerance = tolerance
        self.heading_gap = heading_gap

    @classmethod
    def from_options(cls, options) -> "BreakPointAnalyzer":
        """Build an analyzer from GenerationOptions."""
        return cls(
            respect_css_page_breaks=options.respect_css_page_breaks,
            prevent_orphaned_headings=options.prevent_orphaned_headings,
            avoid_break_inside=options.avoid_break_inside,
            break_before=options.break_before,
            break_after=options.break_after,
        )

    def analyze(self, root: LayoutNode) -> List[BreakPoint]:
        """
        Collect break hints for every descendant of root, in document order.

        The root itself is the capture container and never gets a hint.
        """
        break_points: List[BreakPoint] = []
        for node, next_sibling in _walk(root):
            break_points.extend(self._classify(node, next_sibling))

        logger.debug(
            "Analyzed layout tree: %d break points (%d forced, %d avoid)",
            len(break_points),
            sum(1 for bp in break_points if bp.kind is BreakKind.FORCED),
            sum(1 for bp in break_points if bp.kind is BreakKind.AVOID),
        )
        return break_points

    def _classify(self, node: LayoutNode, next_sibling: Optional[LayoutNode]) -> List[BreakPoint]:
        element = node.ref if node.ref is not None else node

        # Explicit style directives win and stop further classification
        if self.respect_css_page_breaks:
            style = {k.lower(): str(v).lower() for k, v in node.style.items()}
            if style.get("page-break-before") == "always" or style.get("break-before") == "page":
                return [BreakPoint(element, node.top, BreakKind.FORCED, PRIORITY_CSS_FORCED)]
            if style.get("page-break-after") == "always" or style.get("break-after") == "page":
                return [BreakPoint(element, node.bottom, BreakKind.FORCED, PRIORITY_CSS_FORCED)]
            if style.get("page-break-inside") == "avoid" or style.get("break-inside") == "avoid":
                return [BreakPoint(element, node.top, BreakKind.AVOID, PRIORITY_CSS_AVOID)]

        tag = node.tag.lower()
        hints = []

        if tag in self.avoid_break_inside:
            hints.append(BreakPoint(element, node.top, BreakKind.AVOID, PRIORITY_TAG_AVOID))
        if tag in self.break_before:
            hints.append(BreakPoint(element, node.top, BreakKind.FORCED, PRIORITY_TAG_FORCED))
        if tag in self.break_after:
            hints.append(BreakPoint(element, node.bottom, BreakKind.FORCED, PRIORITY_TAG_FORCED))

        if self.prevent_orphaned_headings and HEADING_TAG.match(tag) and next_sibling is not None:
            gap = next_sibling.top - node.bottom
            if gap < self.heading_gap:
                hints.append(BreakPoint(element, node.top, BreakKind.AVOID, PRIORITY_HEADING_AVOID))

        return hints

    def resolve_break_position(self, position: float, break_points: Sequence[BreakPoint]) -> float:
        """
        Pick the break position to use for a candidate position.

        Candidates within the tolerance window are considered; avoid hints are
        rejected, then higher priority wins, then proximity. Without an
        acceptable candidate the raw position is returned, which may split an
        element.
        """
        candidates = [
            bp for bp in break_points
            if abs(bp.position - position) <= self.tolerance and bp.kind is not BreakKind.AVOID
        ]
        if not candidates:
            return position

        best = min(candidates, key=lambda bp: (-bp.priority, abs(bp.position - position)))
        return best.position

    def resolve_break_positions(
        self,
        content_height: float,
        page_height: float,
        break_points: Sequence[BreakPoint],
    ) -> List[float]:
        """
        Advisory page-break positions for content of the given height.

        Returns every break position strictly inside the content, in order.
        """
        if page_height <= 0:
            raise ValueError(f"page_height must be positive, got {page_height}")

        positions = []
        current = 0.0
        while current + page_height < content_height:
            ideal = current + page_height
            chosen = self.resolve_break_position(ideal, break_points)
            # A break at or above the previous one would never advance
            if chosen <= current:
                chosen = ideal
            positions.append(chosen)
            current = chosen
        return positions


def _walk(root: LayoutNode) -> Iterator:
    """Yield (node, next_sibling) for every descendant, depth first."""
    stack = [(child, nxt) for child, nxt in _with_next(root.children)]
    stack.reverse()
    while stack:
        node, next_sibling = stack.pop()
        yield node, next_sibling
        children = list(_with_next(node.children))
        stack.extend(reversed(children))


def _with_next(nodes: List[LayoutNode]):
    for index, node in enumerate(nodes):
        yield node, nodes[index + 1] if index + 1 < len(nodes) else None


def prepare_break_hints(context, content: Any, analyzer: BreakPointAnalyzer, page_height: float) -> List[float]:
    """
    Run break analysis on content inside an open render context.

    Measures the content, hands the resulting hints to the context so layout
    can honor them and returns the advisory break positions. Content the
    context cannot measure yields no hints and no positions.

    Raises:
        CaptureFailure: If the context fails while measuring or applying hints
    """
    layout = _call_context("measure", context.measure, content)
    if layout is None:
        return []

    break_points = analyzer.analyze(layout)
    _call_context("break hints", context.apply_break_hints, content, break_points)
    return analyzer.resolve_break_positions(layout.bottom, page_height, break_points)


def _call_context(stage: str, operation, *args):
    try:
        return operation(*args)
    except PdfPagerError:
        raise
    except Exception as e:
        raise CaptureFailure(stage, str(e) or type(e).__name__) from e
