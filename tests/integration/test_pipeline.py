"""
End-to-End Pipeline Tests
==========================

Runs the full pipeline with stub capabilities (no network, no OCR, no
ledger) and checks the persisted record.

Coverage:
    - Status outcomes: unreadable upload, match without URL, broken URL,
      declared skills, ledger failure
    - Corroboration is only consulted for matched documents with a URL
    - Anchoring and fingerprinting outcomes never change the status
    - Hard failures clean up the stored upload
"""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from credverify.errors import RecordPersistError, UploadReadError
from credverify.ingest.fingerprint import fingerprint_bytes
from credverify.ingest.extractors import FileFormat
from credverify.schemas.judgment import CorroborationOutcome
from credverify.schemas.record import AnchorState, VerificationStatus
from credverify.store.repository import CredentialStore
from credverify.verify.analyzer import REASON_TOO_SHORT
from tests.conftest import (
    VALID_TEXT,
    StubExtractor,
    StubFetcher,
    StubJudge,
    StubLedger,
    make_pipeline,
    make_request,
    upload,
)

URL = "https://verify.example.com/AWS-123-456"
DATA = b"%PDF-1.4 certificate bytes"


class FailingStore(CredentialStore):
    def save(self, record):
        raise RecordPersistError("disk full")


class BrokenStore(CredentialStore):
    def save(self, record):
        raise RuntimeError("unexpected")


class TestStatusOutcomes:

    def test_extraction_failure_rejected(self, tmp_path):
        """Empty extraction → rejected, note mentions unreadable."""
        judge = StubJudge(matched=True)
        fetcher = StubFetcher(200, "Certificate verified AWS Cloud Practitioner")
        pipeline = make_pipeline(
            tmp_path,
            extractor=StubExtractor(error=RuntimeError("pdf parser crashed")),
            judge=judge,
            fetcher=fetcher,
        )
        record = upload(pipeline, DATA, certificate_url=URL)

        assert record.status == VerificationStatus.REJECTED
        assert "unreadable" in record.verification_note
        assert record.extracted_text == ""
        assert record.match_judgment.reason == REASON_TOO_SHORT
        assert record.corroboration_judgment is None
        assert judge.calls == 0
        assert fetcher.urls == []

    def test_matched_without_url_verified(self, tmp_path):
        assert len(VALID_TEXT) >= 200
        fetcher = StubFetcher(404, "")
        pipeline = make_pipeline(tmp_path, judge=StubJudge(matched=True), fetcher=fetcher)
        record = upload(pipeline, DATA)

        assert record.status == VerificationStatus.VERIFIED
        assert record.corroboration_judgment is None
        assert fetcher.urls == []

    def test_url_not_found_demotes(self, tmp_path):
        pipeline = make_pipeline(tmp_path, judge=StubJudge(matched=True), fetcher=StubFetcher(404, ""))
        record = upload(pipeline, DATA, certificate_url=URL)

        assert record.status == VerificationStatus.PENDING
        assert "demoted" in record.verification_note
        assert record.corroboration_judgment.outcome == CorroborationOutcome.CONTRADICTED

    def test_declared_skills_set_level(self, tmp_path):
        pipeline = make_pipeline(tmp_path, table={"python": 5, "cloud": 6})
        record = upload(pipeline, DATA, skills=["python", "cloud"])

        assert record.skills == ["python", "cloud"]
        assert record.nsqf_level == 6

    def test_ledger_error_keeps_status(self, tmp_path):
        baseline = upload(make_pipeline(tmp_path / "a"), DATA)
        failing = upload(
            make_pipeline(tmp_path / "b", ledger=StubLedger(error=ConnectionError("rpc down"))),
            DATA,
        )

        assert failing.anchor_receipt.state == AnchorState.FAILED
        assert failing.anchor_receipt.tx_ref is None
        assert failing.status == baseline.status == VerificationStatus.VERIFIED


class TestPipelineFlow:

    def test_record_persisted_and_sealed(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        record = upload(pipeline, DATA, owner_id="learner-1")

        assert record.verify_integrity()
        assert pipeline.store.get(record.record_id) == record
        assert [r.record_id for r in pipeline.store.list_for_owner("learner-1")] == [record.record_id]
        assert pipeline.file_store.resolve(record.file_ref).read_bytes() == DATA
        assert set(record.stage_timings_ms) >= {"extract_ms", "match_ms", "total_ms"}

    def test_fingerprint_and_anchor(self, tmp_path):
        ledger = StubLedger(tx_ref="0xfeedface")
        record = upload(make_pipeline(tmp_path, ledger=ledger), DATA)

        assert record.fingerprint == fingerprint_bytes(DATA)
        assert record.anchor_receipt.state == AnchorState.ANCHORED
        assert record.anchor_receipt.tx_ref == "0xfeedface"
        assert ledger.payloads == [fingerprint_bytes(DATA).encode("ascii")]
        assert "Anchor: 0xfeedface" in record.verification_note

    def test_unhashable_file_skips_anchor(self, tmp_path, monkeypatch):
        def unreadable(path):
            raise OSError("read error")

        monkeypatch.setattr("credverify.pipeline.fingerprint_file", unreadable)
        ledger = StubLedger()
        record = upload(make_pipeline(tmp_path, ledger=ledger), DATA)

        assert record.fingerprint is None
        assert record.status == VerificationStatus.VERIFIED
        assert record.anchor_receipt.state == AnchorState.NOT_ATTEMPTED
        assert record.anchor_receipt.reason == "no fingerprint to anchor"
        assert ledger.payloads == []
        assert "Fingerprint: unavailable" in record.verification_note
        assert record.verify_integrity()

    def test_anchoring_disabled(self, tmp_path):
        record = upload(make_pipeline(tmp_path), DATA)
        assert record.anchor_receipt.state == AnchorState.NOT_ATTEMPTED

    def test_non_match_skips_corroboration(self, tmp_path):
        fetcher = StubFetcher(200, "Certificate verified AWS Cloud Practitioner")
        pipeline = make_pipeline(tmp_path, judge=StubJudge(matched=False, reason="serial missing"), fetcher=fetcher)
        record = upload(pipeline, DATA, certificate_url=URL)

        assert record.status == VerificationStatus.PENDING
        assert "serial missing" in record.verification_note
        assert fetcher.urls == []

    def test_corroborated(self, tmp_path):
        fetcher = StubFetcher(200, "<h1>Certificate verified</h1> AWS Cloud Practitioner")
        record = upload(make_pipeline(tmp_path, fetcher=fetcher), DATA, certificate_url=URL)

        assert record.status == VerificationStatus.VERIFIED
        assert record.corroboration_judgment.outcome == CorroborationOutcome.CORROBORATED
        assert fetcher.urls == [URL]

    def test_indeterminate_keeps_verified(self, tmp_path):
        record = upload(make_pipeline(tmp_path, fetcher=StubFetcher(200, "Welcome")), DATA, certificate_url=URL)
        assert record.status == VerificationStatus.VERIFIED
        assert record.corroboration_judgment.outcome == CorroborationOutcome.INDETERMINATE

    def test_judge_unavailable_pending(self, tmp_path):
        pipeline = make_pipeline(tmp_path, judge=StubJudge(error=TimeoutError("model overloaded")))
        record = upload(pipeline, DATA)
        assert record.status == VerificationStatus.PENDING
        assert "verification unavailable" in record.verification_note

    def test_format_hint_from_filename(self, tmp_path):
        extractor = StubExtractor()
        upload(make_pipeline(tmp_path, extractor=extractor), DATA, filename="scan.PNG")
        assert extractor.calls[0][1] == FileFormat.IMAGE

    def test_skills_detected_from_text(self, tmp_path):
        record = upload(make_pipeline(tmp_path), DATA)
        assert record.skills == ["python", "cloud"]
        assert record.nsqf_level == 6

    def test_declared_level(self, tmp_path):
        record = upload(make_pipeline(tmp_path), DATA, nsqf_level="9")
        assert record.nsqf_level == 9

    def test_run_sync_on_stored_file(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        stored = pipeline.file_store.store(DATA, "certificate.pdf")
        record = pipeline.run_sync(make_request(file_ref=stored.ref))
        assert record.status == VerificationStatus.VERIFIED
        assert record.file_ref == stored.ref


class TestHardFailures:

    def test_missing_upload_raises(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        pipeline.file_store.root.mkdir(parents=True, exist_ok=True)
        with pytest.raises(UploadReadError):
            asyncio.run(pipeline.run(make_request(file_ref="1718000000000-404.pdf")))
        assert pipeline.store.list_all() == []

    def test_persist_failure_cleans_up(self, tmp_path):
        store = FailingStore(tmp_path / "records.json")
        pipeline = make_pipeline(tmp_path, store=store)
        with pytest.raises(RecordPersistError):
            upload(pipeline, DATA)
        assert list(pipeline.file_store.root.iterdir()) == []

    def test_unexpected_persist_error_wrapped(self, tmp_path):
        pipeline = make_pipeline(tmp_path, store=BrokenStore(tmp_path / "records.json"))
        with pytest.raises(RecordPersistError):
            upload(pipeline, DATA)
        assert list(pipeline.file_store.root.iterdir()) == []

    def test_invalid_claim_cleans_up(self, tmp_path):
        pipeline = make_pipeline(tmp_path)
        with pytest.raises(ValidationError):
            upload(pipeline, DATA, certificate_number="  ")
        assert list(pipeline.file_store.root.iterdir()) == []
