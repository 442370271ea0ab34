"""
Tests for pure text-layer extraction.
"""

import asyncio
import time

import pytest

from filing_ingest.pure_extractor import extract_pure, run_page_job


def test_progress_called_once_per_page_in_order(bootstrap, helpers):
    calls = []
    pdf = helpers.pdf("first", "second", "third")

    text = asyncio.run(extract_pure(pdf, lambda page, total: calls.append((page, total)), bootstrap=bootstrap))

    assert calls == [(1, 3), (2, 3), (3, 3)]
    assert text == "first\n\nsecond\n\nthird"


def test_runs_joined_with_single_space(bootstrap, helpers):
    pdf = helpers.pdf("  EXCELENTISSIMO SENHOR \n\nJUIZ DO TRABALHO\r\n")

    assert asyncio.run(extract_pure(pdf, bootstrap=bootstrap)) == "EXCELENTISSIMO SENHOR JUIZ DO TRABALHO"


def test_empty_pages_are_tolerated(bootstrap, helpers):
    pdf = helpers.pdf("", "only text", "")

    assert asyncio.run(extract_pure(pdf, bootstrap=bootstrap)) == "only text"


def test_document_without_text_is_no_result(bootstrap, helpers):
    assert asyncio.run(extract_pure(helpers.pdf("", " "), bootstrap=bootstrap)) is None


def test_corrupt_document_is_no_result(bootstrap, fake_pdfium):
    assert asyncio.run(extract_pure(b"%PDF-1.7 truncated", bootstrap=bootstrap)) is None
    assert fake_pdfium.opened == []


def test_document_closed_on_success_and_failure(bootstrap, fake_pdfium, helpers):
    asyncio.run(extract_pure(helpers.pdf("fine"), bootstrap=bootstrap))
    result = asyncio.run(extract_pure(helpers.pdf("fine", helpers.broken_page), bootstrap=bootstrap))

    assert result is None
    assert [pdf.closed for pdf in fake_pdfium.opened] == [True, True]


def test_failing_progress_callback_does_not_stop_extraction(bootstrap, helpers):
    def callback(page, total):
        raise RuntimeError("ui went away")

    assert asyncio.run(extract_pure(helpers.pdf("a", "b"), callback, bootstrap=bootstrap)) == "a\n\nb"


def test_max_pages_limits_reading(bootstrap, helpers):
    calls = []
    pdf = helpers.pdf("cover", "body")

    text = asyncio.run(extract_pure(pdf, lambda p, t: calls.append((p, t)), max_pages=1, bootstrap=bootstrap))

    assert text == "cover"
    assert calls == [(1, 2)]


def test_cancelled_page_job_finishes_before_cancellation_propagates():
    finished = []

    def slow_render():
        time.sleep(0.2)
        finished.append(True)

    async def scenario():
        job = asyncio.ensure_future(run_page_job(slow_render))
        await asyncio.sleep(0.05)
        job.cancel()
        with pytest.raises(asyncio.CancelledError):
            await job
        return list(finished)

    assert asyncio.run(scenario()) == [True]
