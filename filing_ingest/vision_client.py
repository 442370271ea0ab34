"""
Vision Service Client
Sends batches of page images to the Anthropic Messages API for transcription.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .config import ExtractionConfig, get_config
from .errors import VisionRequestError

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

OCR_INSTRUCTION = """Extract ALL the text from ALL {count} images above. They are pages {first_page} to {last_page} of a legal document.

IMPORTANT INSTRUCTIONS:
- Process EACH page in the exact order presented
- Start EACH page with a line "--- PAGE N ---" (replace N with the page number)
- Return ONLY the extracted text, without comments or explanations
- Preserve paragraph formatting and the structure of the document
- Document language: {language}"""


@dataclass
class VisionResponse:
    """Transcribed text of one batch plus optional usage counters."""
    text: str
    usage: Optional[Dict[str, Any]] = None


def build_ocr_content(images: List[str], first_page: int, last_page: int, language: str) -> List[Dict[str, Any]]:
    """
    Build the content blocks of one multimodal OCR message.

    Args:
        images: Base64-encoded JPEG pages, in page order
        first_page: First page number of the batch (1-based)
        last_page: Last page number of the batch (1-based)
        language: Human-readable document language

    Returns:
        Image blocks followed by a single instruction block
    """
    content: List[Dict[str, Any]] = [
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": "image/jpeg",
                "data": image,
            },
        }
        for image in images
    ]
    content.append({
        "type": "text",
        "text": OCR_INSTRUCTION.format(
            count=len(images),
            first_page=first_page,
            last_page=last_page,
            language=language,
        ),
    })
    return content


class VisionClient:
    """Thin async client for the remote vision-capable completion service."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            config: Extraction settings (model, key, timeouts)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.config = config or get_config()
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.config.anthropic_api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    async def transcribe(self, images: List[str], first_page: int, last_page: int) -> VisionResponse:
        """
        Transcribe one batch of page images.

        Raises:
            VisionRequestError: Non-success status, transport failure or malformed body
        """
        payload = {
            "model": self.config.vision_model,
            "max_tokens": self.config.vision_max_tokens,
            "messages": [{
                "role": "user",
                "content": build_ocr_content(images, first_page, last_page, self.config.language_name),
            }],
        }
        url = f"{self.config.vision_base_url.rstrip('/')}/v1/messages"

        logger.info(f"[VISION] Requesting pages {first_page}-{last_page} ({self.config.vision_model})...")
        try:
            async with httpx.AsyncClient(timeout=self.config.vision_timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise VisionRequestError(f"Vision request failed: {e}") from e

        if response.status_code != 200:
            raise VisionRequestError(
                f"Vision request failed: {response.status_code} - {response.text[:300]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise VisionRequestError(f"Vision response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise VisionRequestError("Vision response is not an object")

        blocks = data.get("content") or []
        if not isinstance(blocks, list):
            raise VisionRequestError("Vision response content is not a list")

        usage = data.get("usage")
        text = ""
        if blocks and isinstance(blocks[0], dict):
            text = blocks[0].get("text") or ""
        if not isinstance(text, str):
            raise VisionRequestError("Vision response text is not a string")
        return VisionResponse(text=text, usage=usage if isinstance(usage, dict) else None)
