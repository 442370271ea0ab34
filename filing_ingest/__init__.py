"""
Filing Text-Extraction Pipeline
Turns court filings (PDF, DOCX, plain text) into plain text for downstream analysis.

Components:
- LibraryBootstrap: Lazy, single-flight loading of pypdfium2 / python-docx / pytesseract
- extract_pure: Embedded PDF text layer
- VisionOcrEngine: Page images transcribed by a remote vision model, pure fallback
- extract_tesseract: Local OCR of rendered pages
- extract_structured: DOCX to text
- EngineRouter: Mode-based dispatch for PDFs

Ingestion Components:
- CaseNumberDetector: Docket number from file names or first pages
- BulkExtractor: Type dispatch with minimum-length acceptance
- BatchOrchestrator: Failure-tolerant extraction over a lawsuit's document set
"""

from .config import ExtractionConfig, get_config
from .errors import (
    FilingIngestError,
    LibraryLoadError,
    LoadTimeout,
    LoadFailure,
    CapabilityNotFound,
    ExtractionError,
    UnsupportedType,
)
from .models import (
    ExtractionMode,
    SourceDocument,
    DocumentSetInput,
    DocumentSetResult,
    NamedText,
    UsageStats,
)
from .bootstrap import LibraryBootstrap, Capability, get_bootstrap
from .pure_extractor import extract_pure
from .vision_extractor import VisionOcrEngine, extract_vision, extract_vision_sync
from .tesseract_extractor import extract_tesseract
from .structured_extractor import extract_structured
from .router import EngineRouter, SyncEngineRouter, resolve_mode

# Ingestion components
from .case_number import CaseNumberDetector
from .bulk import BulkExtractor, extract_bulk, extract_bulk_sync
from .batch_orchestrator import BatchOrchestrator, SyncBatchOrchestrator, StatusReporter

__all__ = [
    # Configuration and errors
    'ExtractionConfig',
    'get_config',
    'FilingIngestError',
    'LibraryLoadError',
    'LoadTimeout',
    'LoadFailure',
    'CapabilityNotFound',
    'ExtractionError',
    'UnsupportedType',

    # Models
    'ExtractionMode',
    'SourceDocument',
    'DocumentSetInput',
    'DocumentSetResult',
    'NamedText',
    'UsageStats',

    # Engines
    'LibraryBootstrap',
    'Capability',
    'get_bootstrap',
    'extract_pure',
    'VisionOcrEngine',
    'extract_vision',
    'extract_vision_sync',
    'extract_tesseract',
    'extract_structured',
    'EngineRouter',
    'SyncEngineRouter',
    'resolve_mode',

    # Ingestion components
    'CaseNumberDetector',
    'BulkExtractor',
    'extract_bulk',
    'extract_bulk_sync',
    'BatchOrchestrator',
    'SyncBatchOrchestrator',
    'StatusReporter',
]
