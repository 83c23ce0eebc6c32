"""
CredVerify Test Configuration
==============================

Shared fixtures, factories, stub capabilities and helpers for the entire
test suite. No test touches the network, Tesseract or a real ledger: the
pipeline's capabilities are replaced by the stubs below.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import pytest

from credverify.anchor.anchor import LedgerAnchor
from credverify.anchor.ledger import BaseLedger
from credverify.config import CredVerifyConfig, JudgeBackend, StorageConfig
from credverify.ingest.extractors import FileFormat, TextExtractor
from credverify.ingest.storage import FileStore
from credverify.pipeline import CredentialPipeline
from credverify.schemas.judgment import MatchJudgment
from credverify.schemas.upload import ClaimedCertificate, UploadRequest
from credverify.store.repository import CredentialStore
from credverify.verify.analyzer import ContentMatchAnalyzer
from credverify.verify.corroboration import CorroborationChecker, FetchResult, HttpFetcher
from credverify.verify.judge import BaseJudge
from credverify.verify.skills import SkillInferencer

CERT_NAME = "AWS Cloud Practitioner"
CERT_ISSUER = "Amazon Web Services"
CERT_NUMBER = "AWS-123-456"

VALID_TEXT = (
    "Certificate of Completion. This is to certify that Jane Learner has "
    "successfully completed the AWS Cloud Practitioner program issued by "
    "Amazon Web Services. Certificate No: AWS-123-456. Skills covered "
    "include cloud architecture and python scripting."
)


# ── Markers ─────────────────────────────────────────────────────

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line("markers", "integration: multi-component tests")


# ── Stub capabilities ───────────────────────────────────────────

class StubExtractor(TextExtractor):
    """Returns canned text, or raises the given error."""

    def __init__(self, text: str = VALID_TEXT, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[tuple[Path, Optional[FileFormat]]] = []

    async def extract(self, path: Path, format_hint: Optional[FileFormat] = None) -> str:
        self.calls.append((path, format_hint))
        if self.error is not None:
            raise self.error
        return self.text


class StubJudge(BaseJudge):
    """Returns a fixed verdict, raises, or sleeps past a timeout."""

    name = "stub"

    def __init__(
        self,
        matched: bool = True,
        reason: str = "All fields confirmed.",
        error: Optional[Exception] = None,
        delay_s: float = 0.0,
    ):
        self.verdict = MatchJudgment(matched=matched, reason=reason)
        self.error = error
        self.delay_s = delay_s
        self.calls = 0

    async def judge(self, text: str, claim: ClaimedCertificate) -> MatchJudgment:
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return self.verdict


class StubFetcher(HttpFetcher):
    """Returns a fixed page, or raises the given error."""

    def __init__(
        self,
        status_code: int = 200,
        body: str = "",
        error: Optional[Exception] = None,
    ):
        self.result = FetchResult(status_code=status_code, body=body)
        self.error = error
        self.urls: list[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.result


class StubLedger(BaseLedger):
    """Returns a fixed transaction hash, or raises the given error."""

    def __init__(self, tx_ref: str = "0xabc123", error: Optional[Exception] = None):
        self.tx_ref = tx_ref
        self.error = error
        self.payloads: list[bytes] = []

    async def submit(self, payload: bytes) -> str:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.tx_ref


# ── Fixtures ────────────────────────────────────────────────────

@pytest.fixture
def config(tmp_path) -> CredVerifyConfig:
    """Test config: rule judge, storage under tmp_path, ledger disabled."""
    return make_config(tmp_path)


@pytest.fixture
def claim() -> ClaimedCertificate:
    return ClaimedCertificate(name=CERT_NAME, issuer=CERT_ISSUER, serial=CERT_NUMBER)


@pytest.fixture
def file_store(tmp_path) -> FileStore:
    return FileStore(tmp_path / "uploads", max_bytes=1024)


@pytest.fixture
def credential_store(tmp_path) -> CredentialStore:
    return CredentialStore(tmp_path / "data" / "credentials.json")


# ── Factories ───────────────────────────────────────────────────

def make_config(tmp_path: Path, **overrides) -> CredVerifyConfig:
    """Factory for an isolated test configuration."""
    values = {
        "gemini_api_key": None,
        "openai_api_key": None,
        "match": {"judge": JudgeBackend.RULE},
        "storage": StorageConfig(
            upload_dir=tmp_path / "uploads",
            records_path=tmp_path / "data" / "credentials.json",
        ),
    }
    values.update(overrides)
    return CredVerifyConfig(**values)


def make_request(file_ref: str = "1718000000000-1.pdf", **overrides) -> UploadRequest:
    """Factory for upload requests with the standard claimed certificate."""
    values = {
        "file_ref": file_ref,
        "filename": "certificate.pdf",
        "certificate_name": CERT_NAME,
        "issuer": CERT_ISSUER,
        "certificate_number": CERT_NUMBER,
    }
    values.update(overrides)
    return UploadRequest(**values)


def make_pipeline(
    tmp_path: Path,
    text: str = VALID_TEXT,
    judge: Optional[BaseJudge] = None,
    fetcher: Optional[HttpFetcher] = None,
    ledger: Optional[BaseLedger] = None,
    table: Optional[dict[str, int]] = None,
    extractor: Optional[TextExtractor] = None,
    store: Optional[CredentialStore] = None,
) -> CredentialPipeline:
    """Factory for a pipeline whose every capability is a local stub."""
    config = make_config(tmp_path)
    return CredentialPipeline(
        config,
        extractor=extractor or StubExtractor(text),
        analyzer=ContentMatchAnalyzer(judge=judge or StubJudge(), timeout_s=1.0),
        checker=CorroborationChecker(fetcher or StubFetcher(200, "")),
        inferencer=SkillInferencer(table if table is not None else config.skills.levels),
        anchor=LedgerAnchor(ledger, timeout_s=1.0),
        store=store,
    )


def upload(pipeline: CredentialPipeline, data: bytes = b"%PDF-1.4 stub", **overrides):
    """Run `verify_upload` synchronously with the standard claim."""
    values = {
        "certificate_name": CERT_NAME,
        "issuer": CERT_ISSUER,
        "certificate_number": CERT_NUMBER,
    }
    values.update(overrides)
    filename = values.pop("filename", "certificate.pdf")
    return asyncio.run(pipeline.verify_upload(data, filename, **values))
