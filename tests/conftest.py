"""
Shared fixtures: an in-memory stand-in for the pypdfium2 handle, injected
through LibraryBootstrap, plus real python-docx documents.

A fake "PDF" is JSON: {"pages": ["text of page 1", ...]}. A page whose text is
the string "!boom" raises when its text layer is read; a page whose text starts
with "!norender" reads normally but raises when rendered.
"""

import importlib
import io
import json
import threading
from typing import List

import httpx
import pytest
from PIL import Image

from filing_ingest.bootstrap import CapabilitySpec, LibraryBootstrap
from filing_ingest.config import ExtractionConfig

BROKEN_PAGE = "!boom"
UNRENDERABLE_PAGE = "!norender"


class FakeTextPage:
    def __init__(self, text: str):
        self.text = text

    def get_text_range(self) -> str:
        if self.text == BROKEN_PAGE:
            raise RuntimeError("text layer is damaged")
        return self.text

    def close(self):
        pass


class FakeBitmap:
    def to_pil(self):
        return Image.new("RGB", (8, 8), "white")


class FakePage:
    def __init__(self, text: str, render_threads: List[int]):
        self.text = text
        self.render_threads = render_threads
        self.closed = False

    def get_textpage(self) -> FakeTextPage:
        return FakeTextPage(self.text)

    def render(self, scale: float = 1.0) -> FakeBitmap:
        self.render_threads.append(threading.get_ident())
        if self.text.startswith(UNRENDERABLE_PAGE):
            raise RuntimeError("page cannot be rasterised")
        return FakeBitmap()

    def close(self):
        self.closed = True


class FakePdf:
    def __init__(self, pages: List[str]):
        self.pages = pages
        self.render_threads: List[int] = []
        self.closed = False

    def __len__(self) -> int:
        return len(self.pages)

    def __getitem__(self, index: int) -> FakePage:
        return FakePage(self.pages[index], self.render_threads)

    def close(self):
        self.closed = True


class FakePdfium:
    """Module-like handle exposing PdfDocument, recording every opened document."""

    def __init__(self):
        self.opened: List[FakePdf] = []

    def PdfDocument(self, data: bytes) -> FakePdf:
        try:
            pages = json.loads(data.decode("utf-8"))["pages"]
        except (ValueError, KeyError, UnicodeDecodeError) as e:
            raise ValueError(f"Failed to load document: {e}") from e
        pdf = FakePdf(pages)
        self.opened.append(pdf)
        return pdf


class FakeTesseract:
    """Module-like handle exposing image_to_string."""

    def __init__(self):
        self.calls = 0
        self.threads: List[int] = []

    def image_to_string(self, image, lang=None, config=None) -> str:
        self.calls += 1
        self.threads.append(threading.get_ident())
        return f"recognised page {self.calls} ({lang})"


def make_pdf(*pages: str) -> bytes:
    return json.dumps({"pages": list(pages)}).encode("utf-8")


def make_docx(paragraphs: List[str], rows: List[List[str]] = None) -> bytes:
    docx = importlib.import_module("docx")
    document = docx.Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    if rows:
        table = document.add_table(rows=len(rows), cols=len(rows[0]))
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def long_text(prefix: str) -> str:
    """Page text comfortably above every acceptance threshold."""
    return f"{prefix} " + "lorem ipsum dolor sit amet " * 8


@pytest.fixture
def fake_pdfium() -> FakePdfium:
    return FakePdfium()


@pytest.fixture
def fake_tesseract() -> FakeTesseract:
    return FakeTesseract()


@pytest.fixture
def bootstrap(fake_pdfium, fake_tesseract) -> LibraryBootstrap:
    return LibraryBootstrap(specs={
        "pdf": CapabilitySpec(loader=lambda: fake_pdfium, entry_point="PdfDocument"),
        "docx": CapabilitySpec(loader=lambda: importlib.import_module("docx"), entry_point="Document"),
        "tesseract": CapabilitySpec(loader=lambda: fake_tesseract, entry_point="image_to_string"),
    })


@pytest.fixture
def config() -> ExtractionConfig:
    return ExtractionConfig(
        extraction_mode="pure",
        anthropic_api_key="test-key",
        vision_base_url="https://vision.test",
        vision_model="test-model",
    )


class VisionService:
    """Scripted vision endpoint for httpx.MockTransport."""

    def __init__(self, failures=None, bodies=None):
        # batch number (1-based) -> status code to answer with
        self.failures = dict(failures or {})
        # batch number (1-based) -> JSON body to answer with, status 200
        self.bodies = dict(bodies or {})
        self.requests: List[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append({"url": str(request.url), "headers": request.headers, "body": body})
        number = len(self.requests)

        status = self.failures.get(number)
        if status:
            return httpx.Response(status, json={"error": {"message": "overloaded"}})
        if number in self.bodies:
            return httpx.Response(200, json=self.bodies[number])

        content = body["messages"][0]["content"]
        images = [block for block in content if block["type"] == "image"]
        return httpx.Response(200, json={
            "content": [{"type": "text", "text": f"batch {number}: {len(images)} pages"}],
            "usage": {"input_tokens": 100 * len(images), "output_tokens": 10},
        })

    def image_counts(self) -> List[int]:
        return [
            sum(1 for block in r["body"]["messages"][0]["content"] if block["type"] == "image")
            for r in self.requests
        ]


@pytest.fixture
def helpers():
    """Document builders shared by the test modules."""
    class Helpers:
        pdf = staticmethod(make_pdf)
        docx = staticmethod(make_docx)
        long_text = staticmethod(long_text)
        vision_service = VisionService
        broken_page = BROKEN_PAGE
        unrenderable_page = UNRENDERABLE_PAGE
    return Helpers
