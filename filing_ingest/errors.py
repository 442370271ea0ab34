"""
Error taxonomy for the extraction pipeline.

PDF engines never raise these for expected failures (they resolve to None);
the structured-document engine and the bulk validator do, because nothing
downstream can recover for them.
"""

from typing import Optional


class FilingIngestError(Exception):
    """Base class for all extraction pipeline errors."""


class LibraryLoadError(FilingIngestError):
    """A parsing library could not be made available."""
    
    def __init__(self, capability: str, message: str):
        super().__init__(f"{capability}: {message}")
        self.capability = capability


class LoadTimeout(LibraryLoadError):
    """The library load neither succeeded nor failed within the time limit."""


class LoadFailure(LibraryLoadError):
    """The loader itself raised."""


class CapabilityNotFound(LibraryLoadError):
    """The load finished but the expected entry point is missing."""


class ExtractionError(FilingIngestError):
    """Text extraction failed and no fallback strategy exists."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class UnsupportedType(FilingIngestError):
    """The file type is not handled by any engine."""


class VisionRequestError(FilingIngestError):
    """A single batch request to the vision service failed."""
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
