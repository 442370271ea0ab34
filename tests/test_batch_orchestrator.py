"""
Tests for document-set extraction.
"""

import asyncio

import pytest

from filing_ingest.batch_orchestrator import BatchOrchestrator, StatusReporter, SyncBatchOrchestrator
from filing_ingest.models import DocumentSetInput, ExtractionMode, NamedText, SourceDocument


class RecordingStatus(StatusReporter):
    def __init__(self):
        self.busy = []
        self.messages = []
        self.errors = []
        super().__init__(set_busy=self.busy.append, report=self.messages.append, on_error=self.errors.append)


@pytest.fixture
def orchestrator(config, bootstrap):
    return BatchOrchestrator(config, bootstrap=bootstrap)


def test_failed_item_leaves_null_slot_in_place(orchestrator, helpers):
    petition = helpers.long_text("Petição inicial")
    second = helpers.long_text("Segunda contestação")
    documents = DocumentSetInput(
        primary=SourceDocument("a.pdf", helpers.pdf(petition)),
        responses=[
            SourceDocument("b.pdf", b"corrupt"),
            SourceDocument("c.pdf", helpers.pdf(second)),
        ],
    )

    result = asyncio.run(orchestrator.extract_set(documents, RecordingStatus()))

    assert result.primary == petition.strip()
    assert result.responses == [None, NamedText(second.strip(), "Response 2")]
    assert result.supplements == []


def test_short_texts_become_null(orchestrator, helpers):
    documents = DocumentSetInput(
        primary=SourceDocument("a.pdf", helpers.pdf("x" * 100)),
        supplements=[SourceDocument("d.pdf", helpers.pdf("x" * 101))],
    )

    result = asyncio.run(orchestrator.extract_set(documents))

    assert result.primary is None
    assert result.supplements == [NamedText("x" * 101, "d.pdf")]


def test_supplement_names(orchestrator, helpers):
    body = helpers.long_text("Laudo pericial")
    documents = DocumentSetInput(supplements=[
        SourceDocument("laudo.pdf", helpers.pdf(body)),
        SourceDocument("", helpers.pdf(body), content_type="application/pdf"),
        SourceDocument("vazio.pdf", helpers.pdf("")),
    ])

    result = asyncio.run(orchestrator.extract_set(documents))

    assert [item.name if item else None for item in result.supplements] == [
        "laudo.pdf", "Supplementary document 2", None,
    ]


def test_busy_flag_and_messages(orchestrator, helpers):
    status = RecordingStatus()
    documents = DocumentSetInput(
        primary=SourceDocument("a.pdf", helpers.pdf(helpers.long_text("p1"), "p2")),
        responses=[SourceDocument("b.pdf", helpers.pdf("r1"))],
    )

    asyncio.run(orchestrator.extract_set(documents, status))

    assert status.busy == [True, False]
    assert "Extracting text from the initial petition (PDF text)..." in status.messages
    assert "Initial petition: page 1/2 (PDF text)..." in status.messages
    assert "Initial petition: page 2/2 (PDF text)..." in status.messages
    assert "Extracting text from response 1/1 (PDF text)..." in status.messages
    assert "Response 1: page 1/1 (PDF text)..." in status.messages
    assert status.errors == []


def test_busy_flag_reset_when_reporting_breaks(orchestrator, helpers):
    busy = []
    errors = []

    def report(message):
        raise RuntimeError("status sink closed")

    documents = DocumentSetInput(
        primary=SourceDocument("a.pdf", helpers.pdf(helpers.long_text("p"))),
        responses=[SourceDocument("b.pdf", b"")],
        supplements=[SourceDocument("c.pdf", b""), SourceDocument("d.pdf", b"")],
    )
    status = StatusReporter(set_busy=busy.append, report=report, on_error=errors.append)

    result = asyncio.run(orchestrator.extract_set(documents, status))

    assert busy == [True, False]
    assert len(errors) == 1
    assert result.primary is None
    assert result.responses == [None]
    assert result.supplements == [None, None]


def test_disabled_mode_yields_all_null(orchestrator, helpers):
    status = RecordingStatus()
    body = helpers.pdf(helpers.long_text("p"))
    documents = DocumentSetInput(
        primary=SourceDocument("a.pdf", body),
        responses=[SourceDocument("b.pdf", body)],
    )

    result = asyncio.run(orchestrator.extract_set(documents, status, mode=ExtractionMode.DISABLED))

    assert result.primary is None
    assert result.responses == [None]
    assert "Extracting text from the initial petition..." in status.messages


def test_sync_wrapper(config, bootstrap, helpers):
    orchestrator = SyncBatchOrchestrator(config, bootstrap=bootstrap)
    body = helpers.long_text("Réplica")

    result = orchestrator.extract_set_sync(DocumentSetInput(primary=SourceDocument("a.pdf", helpers.pdf(body))))

    assert result.primary == body.strip()
