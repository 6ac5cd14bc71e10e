"""Rendering Collaborator

Interface of the rendering engine that turns content into a full-height
bitmap, and BitmapRenderer, a Pillow-backed implementation for content that
is already rendered (images, encoded image bytes, or RenderedContent with an
optional layout tree).

Renderers hand out a scoped RenderContext: everything a capture needs is
passed in explicitly, and whatever the context allocates is released when the
`with` block exits, including on errors.
"""
import io
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence

from PIL import Image, ImageColor

from .break_points import BreakPoint, LayoutNode
from .config import DEFAULT_BACKGROUND_COLOR, DEFAULT_RENDER_SCALE
from .exceptions import CaptureFailure, PdfPagerError

logger = logging.getLogger(__name__)


def capture_content(
    context: "RenderContext",
    content: Any,
    pixel_width: int,
    natural_height_hint: Optional[int] = None,
) -> Image.Image:
    """
    Capture content through a render context.

    Errors raised by the collaborator that are not pdf-pager errors are
    reported as CaptureFailure so callers only deal with one error family.
    """
    try:
        return context.capture(content, pixel_width, natural_height_hint)
    except PdfPagerError:
        raise
    except Exception as e:
        raise CaptureFailure("capture", str(e) or type(e).__name__) from e


@dataclass(frozen=True)
class RenderOptions:
    """Explicit configuration for one render context."""

    layout_width: float  # Usable width in layout pixels
    render_scale: float = DEFAULT_RENDER_SCALE
    background_color: str = DEFAULT_BACKGROUND_COLOR

    @property
    def capture_width(self) -> int:
        """Bitmap width in device pixels."""
        return max(1, round(self.layout_width * self.render_scale))


class RenderContext(ABC):
    """Operations available while a render context is open."""

    @abstractmethod
    def measure(self, content: Any) -> Optional[LayoutNode]:
        """Lay out content at the context's layout width; None if unsupported."""

    @abstractmethod
    def apply_break_hints(self, content: Any, break_points: Sequence[BreakPoint]) -> None:
        """Make break hints visible to layout before capture."""

    @abstractmethod
    def capture(self, content: Any, pixel_width: int, natural_height_hint: Optional[int] = None) -> Image.Image:
        """Capture content at its full natural height."""

    @abstractmethod
    def combine(self, contents: Sequence[Any]) -> Any:
        """Concatenate several contents into one tree for a single capture."""


class RenderingEngine(ABC):
    """Factory for scoped render contexts."""

    @abstractmethod
    def open_context(self, options: RenderOptions):
        """Return a context manager that yields a RenderContext."""


@dataclass
class RenderedContent:
    """Pre-rendered content: a bitmap and, optionally, its layout tree.

    Layout coordinates are in the bitmap's own pixel rows.
    """

    image: Image.Image
    layout: Optional[LayoutNode] = None
    break_hints: List[BreakPoint] = field(default_factory=list)


class BitmapRenderContext(RenderContext):
    """Render context for pre-rendered bitmaps."""

    def __init__(self, options: RenderOptions):
        self.options = options
        self.background = ImageColor.getrgb(options.background_color)
        self._owned_images: List[Image.Image] = []

    def measure(self, content: Any) -> Optional[LayoutNode]:
        rendered = self._coerce(content)
        if rendered.layout is None:
            return None
        if rendered.image.width <= 0:
            raise CaptureFailure("measure", "source bitmap has no width")
        scale = self.options.layout_width / rendered.image.width
        return _transform_layout(rendered.layout, 0.0, scale)

    def apply_break_hints(self, content: Any, break_points: Sequence[BreakPoint]) -> None:
        # A bitmap is already laid out; hints are recorded for the caller to inspect
        if isinstance(content, RenderedContent):
            content.break_hints = list(break_points)
        logger.debug("Recorded %d break hints on pre-rendered content", len(break_points))

    def capture(self, content: Any, pixel_width: int, natural_height_hint: Optional[int] = None) -> Image.Image:
        rendered = self._coerce(content)
        source = rendered.image
        if source.width <= 0:
            raise CaptureFailure("capture", "source bitmap has no width")

        # Composite onto the background so transparent regions stay defined
        if source.mode in ("RGBA", "LA") or (source.mode == "P" and "transparency" in source.info):
            rgba = source.convert("RGBA")
            flattened = Image.new("RGB", rgba.size, self.background)
            flattened.paste(rgba, mask=rgba.split()[-1])
        else:
            flattened = source.convert("RGB")
        self._owned_images.append(flattened)

        if flattened.height == 0 or flattened.width == pixel_width:
            return flattened

        height = max(1, round(flattened.height * pixel_width / flattened.width))
        resized = flattened.resize((pixel_width, height), Image.LANCZOS)
        self._owned_images.append(resized)
        return resized

    def combine(self, contents: Sequence[Any]) -> RenderedContent:
        parts = [self._coerce(content) for content in contents]
        if not parts:
            raise CaptureFailure("combine", "no content to combine")

        width = max(part.image.width for part in parts)
        scaled = []
        for part in parts:
            image = part.image.convert("RGB")
            if image.width != width and image.height > 0:
                image = image.resize((width, max(1, round(image.height * width / image.width))), Image.LANCZOS)
            scaled.append((part, image))

        total_height = sum(image.height for _, image in scaled)
        canvas = Image.new("RGB", (width, total_height), self.background)
        root = LayoutNode("div", 0.0, float(total_height))
        offset = 0
        for part, image in scaled:
            canvas.paste(image, (0, offset))
            if part.layout is not None:
                scale = image.height / part.image.height if part.image.height else 1.0
                root.children.append(_transform_layout(part.layout, float(offset), scale))
            offset += image.height
            if image is not part.image:
                self._owned_images.append(image)

        self._owned_images.append(canvas)
        return RenderedContent(canvas, root if root.children else None)

    def close(self):
        for image in self._owned_images:
            image.close()
        self._owned_images.clear()

    def _coerce(self, content: Any) -> RenderedContent:
        if isinstance(content, RenderedContent):
            return content
        if isinstance(content, Image.Image):
            return RenderedContent(content)
        if isinstance(content, (bytes, bytearray)):
            try:
                image = Image.open(io.BytesIO(content))
                image.load()
            except (OSError, ValueError) as e:
                raise CaptureFailure("decode", str(e))
            self._owned_images.append(image)
            return RenderedContent(image)
        raise CaptureFailure("decode", f"unsupported content type {type(content).__name__}")


class BitmapRenderer(RenderingEngine):
    """Rendering engine for content that is already a bitmap."""

    @contextmanager
    def open_context(self, options: RenderOptions) -> Iterator[BitmapRenderContext]:
        context = BitmapRenderContext(options)
        try:
            yield context
        finally:
            context.close()


def _transform_layout(node: LayoutNode, offset: float, scale: float) -> LayoutNode:
    """Copy of a layout tree scaled by `scale` and shifted down by `offset`."""
    return LayoutNode(
        tag=node.tag,
        top=offset + node.top * scale,
        bottom=offset + node.bottom * scale,
        style=dict(node.style),
        children=[_transform_layout(child, offset, scale) for child in node.children],
        ref=node.ref if node.ref is not None else node,
    )
