"""
Case Number Detector
Recovers the docket number of a lawsuit from its documents.

Docket format (unified numbering): NNNNNNN-DD.YYYY.J.TR.OOOO, optionally
preceded by a case-class code such as "AT", "RO" or "ATOrd".

Search order, first match wins:
1. File name of the petition
2. File names of the responses, in order
3. File names of the supplementary documents, in order
4. First page of the petition
5. First page of each response, in order
"""

import logging
import re
from typing import Optional

from .bootstrap import LibraryBootstrap
from .models import DocumentSetInput, SourceDocument
from .pure_extractor import extract_pure

logger = logging.getLogger(__name__)


class CaseNumberDetector:
    """Pattern-based docket number detection over a document set."""

    def __init__(self, bootstrap: Optional[LibraryBootstrap] = None):
        self.bootstrap = bootstrap
        self._compile_patterns()

    def _compile_patterns(self):
        """Pre-compile regex patterns"""

        # NNNNNNN-DD.YYYY.J.TR.OOOO
        docket = r'\d{7}-\d{2}\.\d{4}\.\d\.\d{2}\.\d{4}'

        # Optional uppercase class code (2-5 letters, not glued to a preceding letter),
        # "Ord"/"Sum" rite suffix allowed
        prefix = r'(?:(?<![A-Za-z])[A-Z]{2,5}(?:Ord|Sum)?\s*)?'

        self.case_number_re = re.compile(prefix + r'(?<!\d)' + docket + r'(?!\d)')

    def match(self, text: Optional[str]) -> Optional[str]:
        """Return the first case number in a piece of text, if any."""
        if not text:
            return None
        found = self.case_number_re.search(text)
        return found.group(0).strip() if found else None

    async def _match_first_page(self, document: SourceDocument) -> Optional[str]:
        if not document.is_pdf:
            return None
        text = await extract_pure(document.data, max_pages=1, bootstrap=self.bootstrap)
        return self.match(text)

    async def detect(self, documents: DocumentSetInput) -> Optional[str]:
        """
        Detect the case number of a document set.

        Args:
            documents: Petition, responses and supplementary documents

        Returns:
            The case number, or None when not found (never raises)
        """
        try:
            # File names across the whole set take priority over any content
            named = []
            if documents.primary:
                named.append(documents.primary)
            named.extend(documents.responses)
            named.extend(documents.supplements)

            for document in named:
                number = self.match(document.name)
                if number:
                    logger.info(f"[CASE] Found {number} in file name '{document.name}'")
                    return number

            readable = []
            if documents.primary:
                readable.append(documents.primary)
            readable.extend(documents.responses)

            for document in readable:
                number = await self._match_first_page(document)
                if number:
                    logger.info(f"[CASE] Found {number} on first page of '{document.name}'")
                    return number

            logger.info("[CASE] No case number found")
            return None

        except Exception as e:
            logger.warning(f"[CASE] Detection failed: {e}")
            return None
