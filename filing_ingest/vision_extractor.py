"""
Vision OCR Engine
Renders PDF pages to JPEG and has a remote vision model transcribe them,
50 pages per request.

Failure policy:
- First batch fails (or anything outside a batch request fails): the whole
  document falls back to pure text extraction on the original bytes.
- A later batch fails: an inline error marker replaces that page range and
  the remaining batches continue, so text already obtained is kept.
"""

import asyncio
import base64
import io
import logging
from enum import Enum
from typing import Any, List, Optional

from .bootstrap import LibraryBootstrap
from .config import OCR_BATCH_SIZE, ExtractionConfig, get_config
from .errors import VisionRequestError
from .models import PageBatch, ProgressCallback, UsageStats, partition_pages
from .pure_extractor import extract_pure, open_pdf, run_page_job
from .vision_client import VisionClient

logger = logging.getLogger(__name__)

BATCH_ERROR_MARKER = "[ERROR: pages {start} to {end} could not be processed via OCR]"


class VisionState(str, Enum):
    NOT_TRIED = "not_tried"
    TRIED = "tried"                    # at least one batch submitted
    FAILED = "failed"                  # vision abandoned, fallback pending
    FALLBACK_TRIED = "fallback_tried"  # pure extraction ran instead
    DONE = "done"


def render_page_jpeg(pdf: Any, index: int, scale: float, quality: int) -> str:
    """Render the page at a 0-based index and return it as base64 JPEG."""
    page = pdf[index]
    try:
        bitmap = page.render(scale=scale)
        image = bitmap.to_pil()
        try:
            buffer = io.BytesIO()
            image.convert("RGB").save(buffer, format="JPEG", quality=quality)
        finally:
            image.close()
    finally:
        page.close()
    return base64.b64encode(buffer.getvalue()).decode("ascii")


class VisionOcrEngine:
    """PDF to text through page images and a remote vision model."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        client: Optional[VisionClient] = None,
        bootstrap: Optional[LibraryBootstrap] = None,
        batch_size: int = OCR_BATCH_SIZE
    ):
        self.config = config or get_config()
        self.client = client or VisionClient(self.config)
        self.bootstrap = bootstrap
        self.batch_size = batch_size
        self.usage = UsageStats()
        self.state = VisionState.NOT_TRIED

    def _transition(self, state: VisionState) -> None:
        logger.debug(f"[VISION] {self.state.value} -> {state.value}")
        self.state = state

    async def extract(self, pdf_bytes: bytes, on_progress: Optional[ProgressCallback] = None) -> Optional[str]:
        """
        Transcribe a PDF with the vision model.

        Args:
            pdf_bytes: Raw PDF content (reused unchanged for any fallback)
            on_progress: Called as (page, total_pages, status)

        Returns:
            Accumulated text, the pure-extraction result after a fallback, or None
        """
        self.state = VisionState.NOT_TRIED
        try:
            text = await self._run(pdf_bytes, on_progress)
        except VisionRequestError as e:
            logger.warning(f"[VISION] First batch failed ({e}), falling back to pure extraction")
            return await self._fallback(pdf_bytes, on_progress)
        except Exception as e:
            logger.warning(f"[VISION] OCR aborted ({e}), falling back to pure extraction")
            return await self._fallback(pdf_bytes, on_progress)

        self._transition(VisionState.DONE)
        return text

    async def _fallback(self, pdf_bytes: bytes, on_progress: Optional[ProgressCallback]) -> Optional[str]:
        self._transition(VisionState.FAILED)
        page_progress = None
        if on_progress:
            page_progress = lambda page, total: on_progress(page, total, "fallback")
        text = await extract_pure(pdf_bytes, page_progress, bootstrap=self.bootstrap)
        self._transition(VisionState.FALLBACK_TRIED)
        self._transition(VisionState.DONE)
        return text

    async def _run(self, pdf_bytes: bytes, on_progress: Optional[ProgressCallback]) -> Optional[str]:
        async with open_pdf(pdf_bytes, self.bootstrap) as pdf:
            total_pages = len(pdf)
            _notify(on_progress, 0, 0, "starting")

            batches = partition_pages(total_pages, self.batch_size)
            logger.info(f"[VISION] {total_pages} pages in {len(batches)} batch(es)")

            parts: List[str] = []
            for batch in batches:
                images = await self._render_batch(pdf, batch, total_pages, on_progress)
                _notify(on_progress, batch.end_page, total_pages,
                        f"processing batch {batch.index + 1}/{len(batches)}")

                self._transition(VisionState.TRIED)
                try:
                    response = await self.client.transcribe(images, batch.start_page, batch.end_page)
                except VisionRequestError as e:
                    if batch.index == 0:
                        raise
                    logger.warning(f"[VISION] Batch {batch.index + 1} failed, marking pages "
                                   f"{batch.start_page}-{batch.end_page}: {e}")
                    parts.append(BATCH_ERROR_MARKER.format(start=batch.start_page, end=batch.end_page))
                    continue

                self._log_usage(batch, response.usage)
                parts.append(response.text.strip())

            text = "\n\n".join(part for part in parts if part).strip()
            logger.info(f"[VISION] Extracted {len(text)} chars from {total_pages} pages")
            return text or None

    async def _render_batch(
        self,
        pdf: Any,
        batch: PageBatch,
        total_pages: int,
        on_progress: Optional[ProgressCallback]
    ) -> List[str]:
        images = []
        for page_num in batch.pages:
            _notify(on_progress, page_num, total_pages, "rendering")
            images.append(await run_page_job(
                render_page_jpeg, pdf, page_num - 1, self.config.render_scale, self.config.jpeg_quality
            ))
        return images

    def _log_usage(self, batch: PageBatch, usage: Optional[dict]) -> None:
        self.usage.record(usage)
        if usage:
            logger.info(f"[VISION] Batch {batch.index + 1} usage: "
                        f"in={usage.get('input_tokens', 0)} out={usage.get('output_tokens', 0)} "
                        f"(total in={self.usage.input_tokens} out={self.usage.output_tokens})")


def _notify(on_progress: Optional[ProgressCallback], page: int, total: int, status: str) -> None:
    if not on_progress:
        return
    try:
        on_progress(page, total, status)
    except Exception as e:
        logger.debug(f"[VISION] Progress callback failed: {e}")


async def extract_vision(
    pdf_bytes: bytes,
    on_progress: Optional[ProgressCallback] = None,
    config: Optional[ExtractionConfig] = None
) -> Optional[str]:
    """Convenience wrapper around VisionOcrEngine.extract."""
    return await VisionOcrEngine(config).extract(pdf_bytes, on_progress)


def extract_vision_sync(pdf_bytes: bytes, on_progress: Optional[ProgressCallback] = None) -> Optional[str]:
    """Synchronous version of extract_vision."""
    return asyncio.run(extract_vision(pdf_bytes, on_progress))
