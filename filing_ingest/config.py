"""
Configuration for the Filing Text-Extraction Pipeline
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Pages per remote vision request (not user-tunable)
OCR_BATCH_SIZE = 50

# Hard limit for importing a parsing library, in seconds
LIBRARY_LOAD_TIMEOUT = 10.0

DEFAULT_VISION_BASE_URL = "https://api.anthropic.com"
DEFAULT_VISION_MODEL = "claude-sonnet-4-20250514"


@dataclass
class ExtractionConfig:
    """Configuration settings for text extraction."""
    
    # Engine selection
    extraction_mode: str = "pure"       # pure | vision | tesseract | disabled
    ocr_language: str = "por"           # Tesseract-style code: "por" or "eng"
    
    # Remote vision service
    anthropic_api_key: Optional[str] = None
    vision_base_url: str = DEFAULT_VISION_BASE_URL
    vision_model: str = DEFAULT_VISION_MODEL
    vision_max_tokens: int = 16384      # Room for up to 50 transcribed pages
    vision_timeout: float = 300.0       # Per-batch request timeout in seconds
    render_scale: float = 1.5           # Keeps page images under ~2000px
    jpeg_quality: int = 85
    
    # Local OCR
    tesseract_cmd: Optional[str] = None
    tesseract_scale: float = 4.0
    
    # Acceptance thresholds (characters)
    bulk_min_chars: int = 50
    set_min_chars: int = 100
    
    @classmethod
    def from_env(cls) -> 'ExtractionConfig':
        """Load configuration from environment variables."""
        return cls(
            extraction_mode=os.getenv("EXTRACTION_MODE", "pure"),
            ocr_language=os.getenv("OCR_LANGUAGE", "por"),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            vision_base_url=os.getenv("VISION_BASE_URL", DEFAULT_VISION_BASE_URL),
            vision_model=os.getenv("VISION_MODEL", DEFAULT_VISION_MODEL),
            vision_max_tokens=int(os.getenv("VISION_MAX_TOKENS", "16384")),
            vision_timeout=float(os.getenv("VISION_TIMEOUT", "300")),
            tesseract_cmd=os.getenv("TESSERACT_CMD"),
            bulk_min_chars=int(os.getenv("BULK_MIN_CHARS", "50")),
            set_min_chars=int(os.getenv("SET_MIN_CHARS", "100")),
        )
    
    @property
    def language_name(self) -> str:
        """Human-readable document language used in the OCR instruction."""
        return "Portuguese" if self.ocr_language == "por" else "English"
    
    def validate(self) -> bool:
        """Validate that required settings are present."""
        if self.extraction_mode == "vision" and not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY is required for vision extraction")
        if self.bulk_min_chars < 0 or self.set_min_chars < 0:
            raise ValueError("Minimum character thresholds must be non-negative")
        return True


_config: Optional[ExtractionConfig] = None


def get_config() -> ExtractionConfig:
    """Process-wide configuration, loaded from the environment on first use."""
    global _config
    if _config is None:
        _config = ExtractionConfig.from_env()
    return _config


def reload_config() -> ExtractionConfig:
    """Reload configuration from environment."""
    global _config
    load_dotenv()
    _config = ExtractionConfig.from_env()
    return _config
