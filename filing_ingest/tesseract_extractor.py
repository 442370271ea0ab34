"""
Tesseract OCR Engine
Offline OCR: renders each page at high resolution and recognises it locally.
Slower than the vision model and free; used for scanned filings when no
remote service is configured.
"""

import logging
from typing import Any, List, Optional

from .bootstrap import Capability, LibraryBootstrap, get_bootstrap
from .config import ExtractionConfig, get_config
from .models import ProgressCallback
from .pure_extractor import open_pdf, run_page_job

logger = logging.getLogger(__name__)

# Uniform block of text, keep spacing between columns
TESSERACT_OPTIONS = "--psm 6 -c preserve_interword_spaces=1"


def recognise_page(tesseract: Any, pdf: Any, index: int, config: ExtractionConfig) -> str:
    """Render the page at a 0-based index and run Tesseract on it."""
    page = pdf[index]
    try:
        image = page.render(scale=config.tesseract_scale).to_pil()
    finally:
        page.close()
    try:
        return tesseract.image_to_string(image, lang=config.ocr_language, config=TESSERACT_OPTIONS)
    finally:
        image.close()


async def extract_tesseract(
    pdf_bytes: bytes,
    on_progress: Optional[ProgressCallback] = None,
    config: Optional[ExtractionConfig] = None,
    bootstrap: Optional[LibraryBootstrap] = None
) -> Optional[str]:
    """
    Recognise every page of a PDF with Tesseract.

    Args:
        pdf_bytes: Raw PDF content
        on_progress: Called as (page, total_pages, "ocr") after each page
        config: Extraction settings (language, render scale)
        bootstrap: Library registry (defaults to the process-wide one)

    Returns:
        Recognised text, or None on any failure
    """
    config = config or get_config()
    registry = bootstrap or get_bootstrap()

    try:
        tesseract = await registry.acquire(Capability.TESSERACT)

        async with open_pdf(pdf_bytes, registry) as pdf:
            total_pages = len(pdf)
            logger.info(f"[TESSERACT] Recognising {total_pages} pages (lang={config.ocr_language})")

            pages: List[str] = []
            for index in range(total_pages):
                text = await run_page_job(recognise_page, tesseract, pdf, index, config)
                pages.append((text or "").strip())

                if on_progress:
                    try:
                        on_progress(index + 1, total_pages, "ocr")
                    except Exception as e:
                        logger.debug(f"[TESSERACT] Progress callback failed: {e}")

            text = "\n\n".join(pages).strip()
            logger.info(f"[TESSERACT] Extracted {len(text)} chars")
            return text or None

    except Exception as e:
        logger.error(f"[TESSERACT] OCR failed: {e}")
        return None
