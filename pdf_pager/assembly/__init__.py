"""Document Assembly Package

Components that turn page bitmaps into PDF bytes:

- ReportLabAssembler: creates documents, places page images, sets metadata,
  serializes, and merges finished documents (pypdf)
- PageDecorator: page numbers, header/footer text, watermarks
"""

from .document_assembler import DocumentHandle, MergeTarget, ReportLabAssembler
from .page_decorator import PageDecorator

__all__ = [
    'ReportLabAssembler',
    'DocumentHandle',
    'MergeTarget',
    'PageDecorator',
]
