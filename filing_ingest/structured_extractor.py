"""
Structured-Document Engine
Word-processor files (DOCX) to plain text. Unlike the PDF engines there is no
fallback here, so failures are raised to the caller.
"""

import io
import logging
from typing import List, Optional

from .bootstrap import Capability, LibraryBootstrap, get_bootstrap
from .errors import ExtractionError

logger = logging.getLogger(__name__)


async def extract_structured(doc_bytes: bytes, bootstrap: Optional[LibraryBootstrap] = None) -> str:
    """
    Extract raw text from a word-processor document.

    Args:
        doc_bytes: Raw DOCX content
        bootstrap: Library registry (defaults to the process-wide one)

    Returns:
        Paragraph text followed by table cell text, newline separated

    Raises:
        ExtractionError: The converter could not be loaded or could not read the file
    """
    try:
        docx = await (bootstrap or get_bootstrap()).acquire(Capability.DOCX)
        document = docx.Document(io.BytesIO(doc_bytes))

        lines: List[str] = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append("\t".join(cells))

        text = "\n".join(lines).strip()
        logger.info(f"[DOCX] Extracted {len(text)} chars")
        return text

    except Exception as e:
        raise ExtractionError(f"Failed to extract DOCX text: {e}", cause=e) from e
