"""
Bulk Ingestion Validator
Single-file entry point for batch imports: picks the engine by file type and
rejects files that yield too little text to be useful.
"""

import asyncio
import logging
from typing import Optional

from .bootstrap import LibraryBootstrap
from .config import ExtractionConfig, get_config
from .errors import ExtractionError, UnsupportedType
from .models import ExtractionMode, SourceDocument
from .router import EngineRouter
from .structured_extractor import extract_structured

logger = logging.getLogger(__name__)

TEXT_TYPES = {"text/plain"}
TEXT_EXTENSIONS = {".txt"}

PDF_TYPES = {"application/pdf"}
PDF_EXTENSIONS = {".pdf"}

DOCX_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}
DOCX_EXTENSIONS = {".docx", ".doc"}


class BulkExtractor:
    """Type-dispatching extractor with a minimum-length acceptance rule."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        router: Optional[EngineRouter] = None,
        bootstrap: Optional[LibraryBootstrap] = None
    ):
        self.config = config or get_config()
        self.bootstrap = bootstrap
        self.router = router or EngineRouter(self.config, bootstrap=bootstrap)

    @property
    def min_chars(self) -> int:
        return self.config.bulk_min_chars

    async def extract(self, document: SourceDocument) -> str:
        """
        Extract the text of one imported file.

        Args:
            document: File name, content and optional content type

        Returns:
            Extracted text

        Raises:
            UnsupportedType: Neither text, PDF nor word-processor file
            ExtractionError: Extraction failed or produced too little text
        """
        content_type = (document.content_type or "").lower()
        extension = document.extension

        if content_type in TEXT_TYPES or extension in TEXT_EXTENSIONS:
            return document.data.decode("utf-8", errors="replace")

        if content_type in PDF_TYPES or extension in PDF_EXTENSIONS:
            text = await self.router.extract(document.data, ExtractionMode.PURE)
            return self._accept(text, "PDF", document.name)

        if content_type in DOCX_TYPES or extension in DOCX_EXTENSIONS:
            try:
                text = await extract_structured(document.data, self.bootstrap)
            except ExtractionError as e:
                raise ExtractionError(f"Failed to extract text from DOCX: {e.cause or e}", cause=e.cause) from e
            return self._accept(text, "DOCX", document.name)

        raise UnsupportedType(f"Unsupported file type: {document.content_type or extension or document.name}")

    def _accept(self, text: Optional[str], label: str, name: str) -> str:
        if not text or len(text.strip()) < self.min_chars:
            logger.warning(f"[BULK] {name}: {label} empty or shorter than {self.min_chars} chars")
            raise ExtractionError(f"Failed to extract text from {label}: insufficient text extracted")
        logger.info(f"[BULK] {name}: {len(text)} chars")
        return text


async def extract_bulk(document: SourceDocument, config: Optional[ExtractionConfig] = None) -> str:
    """Convenience wrapper around BulkExtractor.extract."""
    return await BulkExtractor(config).extract(document)


def extract_bulk_sync(document: SourceDocument, config: Optional[ExtractionConfig] = None) -> str:
    """Synchronous version of extract_bulk."""
    return asyncio.run(extract_bulk(document, config))
