"""
Engine Router
Dispatches a PDF to the engine selected by the extraction mode.
"""

import asyncio
import logging
from typing import Optional, Union

from .bootstrap import LibraryBootstrap
from .config import ExtractionConfig, get_config
from .models import ExtractionMode, ProgressCallback
from .pure_extractor import extract_pure
from .tesseract_extractor import extract_tesseract
from .vision_extractor import VisionOcrEngine

logger = logging.getLogger(__name__)


def resolve_mode(mode: Union[ExtractionMode, str, None]) -> ExtractionMode:
    """
    Convert a mode name to ExtractionMode.

    Unknown or missing names resolve to PURE.
    """
    if isinstance(mode, ExtractionMode):
        return mode
    if not mode:
        return ExtractionMode.PURE
    try:
        return ExtractionMode(str(mode).strip().lower())
    except ValueError:
        logger.warning(f"Invalid extraction mode '{mode}', using 'pure'")
        return ExtractionMode.PURE


class EngineRouter:
    """Routes PDF extraction requests to the pure, vision or tesseract engines."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        vision_engine: Optional[VisionOcrEngine] = None,
        bootstrap: Optional[LibraryBootstrap] = None
    ):
        """
        Args:
            config: Extraction settings; its extraction_mode is the default mode
            vision_engine: Vision engine (created lazily from config if omitted)
            bootstrap: Library registry shared by all engines
        """
        self.config = config or get_config()
        self.bootstrap = bootstrap
        self._vision_engine = vision_engine

    @property
    def default_mode(self) -> ExtractionMode:
        return resolve_mode(self.config.extraction_mode)

    @property
    def vision_engine(self) -> VisionOcrEngine:
        if self._vision_engine is None:
            self._vision_engine = VisionOcrEngine(self.config, bootstrap=self.bootstrap)
        return self._vision_engine

    async def extract(
        self,
        pdf_bytes: bytes,
        mode: Union[ExtractionMode, str, None] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> Optional[str]:
        """
        Extract text from a PDF.

        Args:
            pdf_bytes: Raw PDF content
            mode: Engine to use for this document (None uses the configured default)
            on_progress: Called as (page, total_pages, status)

        Returns:
            Extracted text, or None (always None in DISABLED mode)
        """
        selected = self.default_mode if mode is None else resolve_mode(mode)
        logger.debug(f"[ROUTER] mode={selected.value}")

        if selected is ExtractionMode.DISABLED:
            return None

        if selected is ExtractionMode.VISION:
            return await self.vision_engine.extract(pdf_bytes, on_progress)

        if selected is ExtractionMode.TESSERACT:
            return await extract_tesseract(pdf_bytes, on_progress, self.config, self.bootstrap)

        page_progress = None
        if on_progress:
            page_progress = lambda page, total: on_progress(page, total, "reading")
        return await extract_pure(pdf_bytes, page_progress, bootstrap=self.bootstrap)


class SyncEngineRouter(EngineRouter):
    """
    Synchronous wrapper for EngineRouter.

    Use this when calling from non-async contexts.
    """

    def extract_sync(
        self,
        pdf_bytes: bytes,
        mode: Union[ExtractionMode, str, None] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> Optional[str]:
        """Synchronous version of extract."""
        return asyncio.run(self.extract(pdf_bytes, mode, on_progress))
