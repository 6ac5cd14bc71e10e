"""Document Merger

Concatenates independently generated documents into one output document and
finalizes each item's page range from the pages actually copied.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from pypdf.errors import PyPdfError

from .assembly import ReportLabAssembler
from .exceptions import MergeFailure
from .generation_options import DocumentMetadata
from .generation_result import BatchItemResult

logger = logging.getLogger(__name__)


@dataclass
class ItemDocument:
    """One per-item input to the merge.

    data is None when the item never produced a document; error then says why.
    """

    data: Optional[bytes]
    result: BatchItemResult
    error: Optional[str] = None


@dataclass
class MergedDocument:
    data: bytes
    total_pages: int
    items: List[BatchItemResult] = field(default_factory=list)


class DocumentMerger:
    """Merge per-item documents in order, keeping exact page accounting.

    Items that cannot be merged keep their position in the numbering with a
    page count of 0 and merged=False. With strict=True a document that fails
    to load raises MergeFailure instead.
    """

    def __init__(self, assembler: Optional[ReportLabAssembler] = None, strict: bool = False):
        self.assembler = assembler or ReportLabAssembler()
        self.strict = strict

    def merge(self, documents: Sequence[ItemDocument], metadata: Optional[DocumentMetadata] = None) -> MergedDocument:
        target = self.assembler.create_merge_target()
        current_page = 0
        items: List[BatchItemResult] = []

        for index, document in enumerate(documents):
            if document.data is None:
                logger.warning("Item %d produced no document: %s", index, document.error)
                items.append(_unmerged(document.result, current_page, document.error or "no document produced"))
                continue

            try:
                page_count = self._copy_document(target, index, document.data)
            except MergeFailure as e:
                if self.strict:
                    raise
                logger.error("%s; item flagged as not merged", e)
                items.append(_unmerged(document.result, current_page, e.reason))
                continue

            start_page = current_page + 1
            current_page += page_count
            items.append(replace(
                document.result,
                start_page=start_page,
                end_page=current_page,
                page_count=page_count,
                merged=True,
                error=None,
            ))

        if metadata is not None:
            self.assembler.set_merged_metadata(target, metadata)

        data = self.assembler.serialize_merged(target)
        logger.info("Merged %d document(s) into %d page(s)", len(documents), current_page)
        return MergedDocument(data, current_page, items)

    def _copy_document(self, target, index: int, data: bytes) -> int:
        """Append every page of one document to target; returns the page count."""
        try:
            source = self.assembler.load_document(data)
            pages = self.assembler.copy_pages(source, range(len(source.pages)))
            self.assembler.append_pages(target, pages)
        except (PyPdfError, ValueError, KeyError, TypeError, AttributeError, OSError) as e:
            raise MergeFailure(index, str(e) or type(e).__name__)
        return len(pages)


def _unmerged(result: BatchItemResult, current_page: int, error: str) -> BatchItemResult:
    return replace(
        result,
        start_page=current_page + 1,
        end_page=current_page,
        page_count=0,
        merged=False,
        error=error,
    )
