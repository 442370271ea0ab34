"""
Batch Orchestrator
Extracts the text of every document of a lawsuit (petition, responses,
supplementary filings) one item at a time.

A failing or too-short item never aborts the batch: its slot becomes None and
the result keeps the exact length and order of the input.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .bootstrap import LibraryBootstrap
from .config import ExtractionConfig, get_config
from .models import (
    DocumentSetInput,
    DocumentSetResult,
    ExtractionMode,
    NamedText,
    SourceDocument,
)
from .router import EngineRouter, resolve_mode

logger = logging.getLogger(__name__)


def _ignore(*args) -> None:
    pass


@dataclass
class StatusReporter:
    """
    Caller hooks for a running batch.

    set_busy: receives True when the batch starts and False when it ends
    report: receives human-readable progress messages
    on_error: receives a message if the batch itself breaks down
    """
    set_busy: Callable[[bool], None] = _ignore
    report: Callable[[str], None] = _ignore
    on_error: Optional[Callable[[str], None]] = None


class BatchOrchestrator:
    """Sequential, failure-tolerant extraction over a DocumentSetInput."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        router: Optional[EngineRouter] = None,
        bootstrap: Optional[LibraryBootstrap] = None
    ):
        self.config = config or get_config()
        self.router = router or EngineRouter(self.config, bootstrap=bootstrap)

    @property
    def min_chars(self) -> int:
        return self.config.set_min_chars

    async def extract_set(
        self,
        document_set: DocumentSetInput,
        status: Optional[StatusReporter] = None,
        mode: Union[ExtractionMode, str, None] = ExtractionMode.PURE
    ) -> DocumentSetResult:
        """
        Extract every document of a set.

        Args:
            document_set: Petition, responses and supplementary documents
            status: Busy flag and progress message hooks
            mode: Engine for every PDF in the set (None uses the configured default)

        Returns:
            DocumentSetResult mirroring the input
        """
        status = status or StatusReporter()
        selected = self.router.default_mode if mode is None else resolve_mode(mode)
        engine = f" ({selected.label})" if selected.label else ""
        result = DocumentSetResult()

        status.set_busy(True)
        try:
            status.report("Extracting text from documents...")

            if document_set.primary:
                status.report(f"Extracting text from the initial petition{engine}...")
                result.primary = await self._extract_item(
                    document_set.primary, selected, status,
                    lambda page, total: f"Initial petition: page {page}/{total}{engine}..."
                )

            responses = document_set.responses
            for i, document in enumerate(responses, start=1):
                status.report(f"Extracting text from response {i}/{len(responses)}{engine}...")
                text = await self._extract_item(
                    document, selected, status,
                    lambda page, total, i=i: f"Response {i}: page {page}/{total}{engine}..."
                )
                result.responses.append(NamedText(text, f"Response {i}") if text else None)

            supplements = document_set.supplements
            for i, document in enumerate(supplements, start=1):
                status.report(f"Extracting text from supplementary document {i}/{len(supplements)}{engine}...")
                text = await self._extract_item(
                    document, selected, status,
                    lambda page, total, i=i: f"Document {i}: page {page}/{total}{engine}..."
                )
                name = document.name or f"Supplementary document {i}"
                result.supplements.append(NamedText(text, name) if text else None)

            logger.info(f"[BATCH] Done: primary={'yes' if result.primary else 'no'}, "
                        f"responses={_count(result.responses)}/{len(responses)}, "
                        f"supplements={_count(result.supplements)}/{len(supplements)}")
            return result

        except Exception as e:
            logger.error(f"[BATCH] Extraction aborted: {e}")
            if status.on_error:
                status.on_error("Text extraction failed. Using the original documents.")
            return _pad(result, document_set)

        finally:
            status.set_busy(False)

    async def _extract_item(
        self,
        document: SourceDocument,
        mode: ExtractionMode,
        status: StatusReporter,
        page_message: Callable[[int, int], str]
    ) -> Optional[str]:
        """Extract one document; None on failure or when the text is too short."""
        def on_progress(page: int, total: int, state: str) -> None:
            if total:
                status.report(page_message(page, total))

        try:
            text = await self.router.extract(document.data, mode, on_progress)
        except Exception as e:
            logger.warning(f"[BATCH] {document.name}: extraction failed: {e}")
            return None

        if not text or len(text) <= self.min_chars:
            logger.info(f"[BATCH] {document.name}: {len(text or '')} chars, below threshold")
            return None
        return text


def _count(items: List[Optional[NamedText]]) -> int:
    return sum(1 for item in items if item is not None)


def _pad(result: DocumentSetResult, document_set: DocumentSetInput) -> DocumentSetResult:
    """Fill the slots not reached before an abort with None."""
    result.responses.extend([None] * (len(document_set.responses) - len(result.responses)))
    result.supplements.extend([None] * (len(document_set.supplements) - len(result.supplements)))
    return result


class SyncBatchOrchestrator(BatchOrchestrator):
    """
    Synchronous wrapper for BatchOrchestrator.

    Use this when calling from non-async contexts.
    """

    def extract_set_sync(
        self,
        document_set: DocumentSetInput,
        status: Optional[StatusReporter] = None,
        mode: Union[ExtractionMode, str, None] = ExtractionMode.PURE
    ) -> DocumentSetResult:
        """Synchronous version of extract_set."""
        return asyncio.run(self.extract_set(document_set, status, mode))
