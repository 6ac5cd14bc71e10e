"""Generation Result Dataclasses

Result outputs from single-document and batch PDF generation.
"""
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd


@dataclass(frozen=True)
class PageSlice:
    """One rectangular region of the master bitmap mapped onto one page.

    Attributes:
        source_offset: First bitmap row of the slice (pixels)
        source_height: Number of bitmap rows in the slice (pixels)
        dest_height: Height the slice is drawn at on the page (mm); expanded
            content is drawn at natural size, so this can be less than a page
    """

    source_offset: int
    source_height: int
    dest_height: float

    @property
    def source_end(self) -> int:
        return self.source_offset + self.source_height


@dataclass
class BatchItemResult:
    """Page accounting for one batch item.

    Invariant: end_page - start_page + 1 == page_count. An item that was not
    merged into the output (capture or load failure) keeps its place in the
    numbering with page_count 0, merged False and the error message set.
    """

    title: Optional[str]
    start_page: int
    end_page: int
    page_count: int
    scale_factor: float
    target_page_count: int = 1
    merged: bool = True
    estimated: bool = False
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return not self.merged


@dataclass
class GenerationResult:
    """Result from single-document generation.

    Attributes:
        data: Serialized PDF bytes
        page_count: Number of pages in the document
        byte_size: len(data)
        elapsed_time: Wall-clock generation time in seconds
        status: "completed", or "partial" when the slice loop stopped early
        filename: Sanitized file name derived from the document title
        slices: Slice boundaries used for the pages
        break_positions: Advisory break positions resolved before capture (layout units)
    """

    data: bytes
    page_count: int
    byte_size: int
    elapsed_time: float
    status: str = "completed"
    slices: List[PageSlice] = field(default_factory=list)
    break_positions: List[float] = field(default_factory=list)
    filename: str = "document.pdf"

    @property
    def is_complete(self) -> bool:
        return self.status == "completed"


@dataclass
class BatchGenerationResult:
    """Result from batch generation.

    Attributes:
        data: Serialized PDF bytes of the composed document
        total_pages: Sum of the item page counts
        byte_size: len(data)
        elapsed_time: Wall-clock generation time in seconds
        items: Per-item page accounting, in input order
        mode: "separate" or "combined"
        rendered_pages: Page count of the produced document (differs from
                        total_pages only when combined mode estimates were off)
        status: "completed", or "partial" if any item failed
        filename: Sanitized file name derived from the document title
    """

    data: bytes
    total_pages: int
    byte_size: int
    elapsed_time: float
    items: List[BatchItemResult] = field(default_factory=list)
    mode: str = "separate"
    rendered_pages: Optional[int] = None
    status: str = "completed"
    filename: str = "document.pdf"

    @property
    def is_complete(self) -> bool:
        return self.status == "completed"

    @property
    def failed_items(self) -> List[BatchItemResult]:
        return [item for item in self.items if item.failed]

    def to_dataframe(self) -> pd.DataFrame:
        """Per-item page accounting as a DataFrame (one row per item)."""
        columns = [
            "title",
            "start_page",
            "end_page",
            "page_count",
            "target_page_count",
            "scale_factor",
            "merged",
            "estimated",
            "error",
        ]
        rows = [[getattr(item, name) for name in columns] for item in self.items]
        return pd.DataFrame(rows, columns=columns)
