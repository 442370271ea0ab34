"""
Data Models for the Filing Text-Extraction Pipeline
Simple, clean dataclasses - no complex Pydantic validation.

An extraction result is Optional[str]: a non-empty string with the recovered
text, or None meaning "no result". Engines never return an empty string.
"""

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional


# (page, total_pages)
PageProgressCallback = Callable[[int, int], None]

# (page, total_pages, status) - status is "starting", "rendering", "ocr", ...
ProgressCallback = Callable[[int, int, str], None]


class ExtractionMode(str, Enum):
    """Engines the router can dispatch a PDF to."""
    PURE = "pure"             # Embedded text layer only
    VISION = "vision"         # Page images transcribed by a remote vision model
    TESSERACT = "tesseract"   # Page images recognised locally
    DISABLED = "disabled"     # Intentional no-op
    
    @property
    def label(self) -> str:
        """Short engine label for status messages."""
        return {
            ExtractionMode.PURE: "PDF text",
            ExtractionMode.VISION: "Vision OCR",
            ExtractionMode.TESSERACT: "Tesseract",
            ExtractionMode.DISABLED: "",
        }[self]


@dataclass
class SourceDocument:
    """A binary document as received from the caller."""
    name: str
    data: bytes
    content_type: Optional[str] = None   # "application/pdf", "text/plain", ...
    
    @classmethod
    def from_path(cls, path) -> 'SourceDocument':
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, data=path.read_bytes(), content_type=content_type)
    
    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()
    
    @property
    def is_pdf(self) -> bool:
        return self.content_type == "application/pdf" or self.extension == ".pdf"


@dataclass
class DocumentSetInput:
    """
    Labelled documents of one lawsuit.
    
    primary: the initial petition
    responses: defences/answers, in filing order
    supplements: any other supporting filings, in upload order
    """
    primary: Optional[SourceDocument] = None
    responses: List[SourceDocument] = field(default_factory=list)
    supplements: List[SourceDocument] = field(default_factory=list)


@dataclass
class NamedText:
    """Extracted text of a secondary document together with its display name."""
    text: str
    name: str


@dataclass
class DocumentSetResult:
    """
    Mirror of DocumentSetInput. Every list has the same length and order as
    the input list; None marks an item whose extraction failed or was too short.
    """
    primary: Optional[str] = None
    responses: List[Optional[NamedText]] = field(default_factory=list)
    supplements: List[Optional[NamedText]] = field(default_factory=list)


@dataclass(frozen=True)
class PageBatch:
    """Contiguous 1-based inclusive page range sent in one vision request."""
    index: int
    start_page: int
    end_page: int
    
    @property
    def pages(self) -> range:
        return range(self.start_page, self.end_page + 1)
    
    @property
    def size(self) -> int:
        return self.end_page - self.start_page + 1


def partition_pages(total_pages: int, batch_size: int) -> List[PageBatch]:
    """
    Split pages 1..total_pages into ascending batches without gaps or overlap.
    
    Args:
        total_pages: Number of pages in the document
        batch_size: Maximum pages per batch
        
    Returns:
        List of PageBatch in ascending order
    """
    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    batches = []
    for index, start in enumerate(range(1, total_pages + 1, batch_size)):
        end = min(start + batch_size - 1, total_pages)
        batches.append(PageBatch(index=index, start_page=start, end_page=end))
    return batches


@dataclass
class UsageStats:
    """Token usage accumulated across vision requests."""
    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    
    def record(self, usage: Optional[dict]) -> None:
        self.requests += 1
        if not usage:
            return
        self.input_tokens += _tokens(usage.get("input_tokens"))
        self.output_tokens += _tokens(usage.get("output_tokens"))


def _tokens(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
