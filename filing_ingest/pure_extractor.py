"""
Pure PDF Text Extraction
Reads the embedded text layer page by page. No rendering, no remote calls.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, List, Optional, TypeVar

from .bootstrap import Capability, LibraryBootstrap, get_bootstrap
from .models import PageProgressCallback

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def open_pdf(pdf_bytes: bytes, bootstrap: Optional[LibraryBootstrap] = None):
    """
    Open a PDF for the duration of one extraction call.

    The document is closed on every exit path; close errors are only logged.

    Args:
        pdf_bytes: Raw PDF content
        bootstrap: Library registry (defaults to the process-wide one)

    Yields:
        Opened pypdfium2 PdfDocument
    """
    pdfium = await (bootstrap or get_bootstrap()).acquire(Capability.PDF)
    pdf = pdfium.PdfDocument(pdf_bytes)
    try:
        yield pdf
    finally:
        try:
            pdf.close()
        except Exception as e:
            logger.debug(f"[PDF] Ignoring close error: {e}")


async def run_page_job(func: Callable[..., T], *args: Any) -> T:
    """
    Run blocking page work (rendering, OCR) in a worker thread.

    On cancellation the job is still awaited before CancelledError propagates,
    so the document is never closed while a worker is using one of its pages.
    """
    job = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(job)
    except asyncio.CancelledError:
        await asyncio.wait({job})
        raise


def page_text_runs(page: Any) -> List[str]:
    """
    Text runs of one page, in reading order.

    Missing text layers give an empty list rather than an error.
    """
    textpage = page.get_textpage()
    try:
        raw = textpage.get_text_range() or ""
    finally:
        textpage.close()

    return [run.strip() for run in raw.replace("\r", "").split("\n") if run and run.strip()]


def read_page_text(pdf: Any, index: int) -> str:
    """Text of the page at a 0-based index, runs joined by a single space."""
    page = pdf[index]
    try:
        return " ".join(page_text_runs(page))
    finally:
        page.close()


async def extract_pure(
    pdf_bytes: bytes,
    on_page_progress: Optional[PageProgressCallback] = None,
    max_pages: Optional[int] = None,
    bootstrap: Optional[LibraryBootstrap] = None
) -> Optional[str]:
    """
    Extract the embedded text of a PDF.

    Args:
        pdf_bytes: Raw PDF content
        on_page_progress: Called as (page, total_pages) after each page, ascending
        max_pages: Stop after this many pages (None reads the whole document)
        bootstrap: Library registry (defaults to the process-wide one)

    Returns:
        Extracted text, or None if the document could not be read or has no text
    """
    try:
        async with open_pdf(pdf_bytes, bootstrap) as pdf:
            total_pages = len(pdf)
            last_page = total_pages if max_pages is None else min(max_pages, total_pages)

            pages: List[str] = []
            for page_num in range(1, last_page + 1):
                pages.append(read_page_text(pdf, page_num - 1))

                if on_page_progress:
                    try:
                        on_page_progress(page_num, total_pages)
                    except Exception as e:
                        logger.debug(f"[PURE] Progress callback failed on page {page_num}: {e}")

                # Let the caller cancel between pages
                await asyncio.sleep(0)

            text = "\n\n".join(pages).strip()
            logger.info(f"[PURE] Extracted {len(text)} chars from {last_page}/{total_pages} pages")
            return text or None

    except Exception as e:
        logger.warning(f"[PURE] Extraction failed: {e}")
        return None
