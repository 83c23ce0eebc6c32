"""
CredVerify End-to-End Pipeline
===============================

Orchestrates the full credential verification pipeline:
    Extract → Match → Corroborate → Decide → (Fingerprint → Anchor) → Record

Fingerprinting and anchoring run as one background task started as soon
as the file is resolved, concurrently with extraction and matching. The
task's result is merged into the record but never consulted by the
status policy.

Failure model:
    - Soft stage failures become data on the record (never raised).
    - Hard failures (uploaded bytes unreadable, record not persisted)
      raise an InfrastructureError after the stored file is deleted.

Usage:
    from credverify.pipeline import CredentialPipeline

    pipeline = CredentialPipeline.from_config()
    record = pipeline.run_sync(request)
    print(record.status, record.verification_note)
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from credverify.anchor.anchor import LedgerAnchor
from credverify.config import CredVerifyConfig, get_config
from credverify.errors import RecordPersistError, UploadReadError
from credverify.ingest.extractors import (
    FormatRoutingExtractor,
    TextExtractor,
    detect_format,
    safe_extract,
)
from credverify.ingest.fingerprint import fingerprint_file
from credverify.ingest.storage import FileStore
from credverify.render.policy import StatusPolicy
from credverify.render.record import RecordBuilder
from credverify.schemas.judgment import CorroborationJudgment
from credverify.schemas.record import AnchorReceipt, VerificationRecord
from credverify.schemas.upload import UploadRequest
from credverify.store.repository import CredentialStore
from credverify.verify.analyzer import ContentMatchAnalyzer
from credverify.verify.corroboration import AiohttpFetcher, CorroborationChecker
from credverify.verify.judge import build_judge
from credverify.verify.skills import SkillInferencer

logger = logging.getLogger("credverify.pipeline")


class CredentialPipeline:
    """
    End-to-end credential verification orchestrator.

    Every collaborator can be injected, which is how tests swap in stub
    extractors, judges, fetchers and ledgers. Anything not injected is
    built from the configuration.

    Usage:
        pipeline = CredentialPipeline(config)
        record = await pipeline.verify_upload(
            data, "cert.pdf",
            certificate_name="AWS Cloud Practitioner",
            issuer="Amazon Web Services",
            certificate_number="AWS-123",
        )

    Args:
        config: CredVerify configuration.
        extractor: Text extraction capability.
        analyzer: Content match analyzer.
        checker: URL corroboration checker.
        inferencer: Skill / level inferencer.
        anchor: Ledger anchor.
        policy: Status policy.
        store: Record repository.
        file_store: Upload file store.
    """

    def __init__(
        self,
        config: Optional[CredVerifyConfig] = None,
        *,
        extractor: Optional[TextExtractor] = None,
        analyzer: Optional[ContentMatchAnalyzer] = None,
        checker: Optional[CorroborationChecker] = None,
        inferencer: Optional[SkillInferencer] = None,
        anchor: Optional[LedgerAnchor] = None,
        policy: Optional[StatusPolicy] = None,
        store: Optional[CredentialStore] = None,
        file_store: Optional[FileStore] = None,
    ):
        self.config = config or get_config()
        cfg = self.config

        self.extractor = extractor or FormatRoutingExtractor.default(
            language=cfg.extraction.ocr_language,
        )
        self.analyzer = analyzer or ContentMatchAnalyzer(
            judge=build_judge(cfg),
            min_text_length=cfg.extraction.min_text_length,
            timeout_s=cfg.match.timeout_s,
            max_text_chars=cfg.match.max_text_chars,
        )
        self.checker = checker or CorroborationChecker(
            AiohttpFetcher(
                timeout_s=cfg.corroboration.timeout_s,
                max_redirects=cfg.corroboration.max_redirects,
                max_body_bytes=cfg.corroboration.max_body_bytes,
            ),
            trust_markers=cfg.corroboration.trust_markers,
            timeout_s=cfg.corroboration.timeout_s + 1.0,
        )
        self.inferencer = inferencer or SkillInferencer(cfg.skills.levels)
        self.anchor = anchor or LedgerAnchor.from_config(cfg)
        self.policy = policy or StatusPolicy.from_config(cfg)
        self.store = store or CredentialStore(cfg.storage.records_path)
        self.file_store = file_store or FileStore(
            cfg.storage.upload_dir,
            max_bytes=cfg.storage.max_upload_bytes,
        )
        self.builder = RecordBuilder(cfg)

    @classmethod
    def from_config(cls, config_path: Optional[str] = None) -> "CredentialPipeline":
        """Create pipeline from config file or environment."""
        return cls(get_config(config_path))

    # ── Entry points ───────────────────────────────────────────────

    async def verify_upload(
        self,
        data: bytes,
        filename: str,
        *,
        certificate_name: str,
        issuer: str,
        certificate_number: str,
        certificate_url: Optional[str] = None,
        nsqf_level: Optional[Union[int, float, str]] = None,
        skills: Optional[Union[str, list[str]]] = None,
        owner_id: Optional[str] = None,
    ) -> VerificationRecord:
        """
        Store uploaded bytes, then run the pipeline on them.

        Raises:
            UploadRejectedError: If the file store refuses the bytes.
            pydantic.ValidationError: If the claimed metadata is invalid
                (the stored file is deleted first).
            InfrastructureError: See `run`.
        """
        stored = self.file_store.store(data, filename)
        try:
            request = UploadRequest(
                file_ref=stored.ref,
                filename=filename,
                certificate_name=certificate_name,
                issuer=issuer,
                certificate_number=certificate_number,
                certificate_url=certificate_url,
                nsqf_level=nsqf_level,
                skills=skills,
                owner_id=owner_id,
            )
        except ValidationError:
            self.file_store.delete(stored.ref)
            raise
        return await self.run(request)

    def run_sync(self, request: UploadRequest) -> VerificationRecord:
        """Blocking wrapper around `run` for scripts and the CLI."""
        return asyncio.run(self.run(request))

    async def run(self, request: UploadRequest) -> VerificationRecord:
        """
        Run the full pipeline on an already stored upload.

        Steps:
            1. Resolve stored file (hard failure if unreadable)
            2. Start fingerprint → anchor in the background
            3. Extract text
            4. Infer skills / level
            5. Content match
            6. URL corroboration (matched + URL only)
            7. Status decision
            8. Join background task, build + seal record
            9. Persist record (hard failure if it cannot be written)

        Returns:
            The persisted VerificationRecord.

        Raises:
            UploadReadError: If the uploaded bytes cannot be read.
            RecordPersistError: If the record cannot be persisted.
        """
        timings: dict[str, float] = {}
        total_start = time.time()

        # ── Step 1: Resolve upload ─────────────────────────────────
        try:
            path = self.file_store.resolve(request.file_ref)
        except UploadReadError:
            logger.error(f"Uploaded bytes unreadable: {request.file_ref}")
            self._discard(request.file_ref)
            raise

        # ── Step 2: Fingerprint + anchor (background) ──────────────
        enrich_task = asyncio.create_task(self._fingerprint_and_anchor(request.file_ref, path))

        try:
            # ── Step 3: Extract ────────────────────────────────────
            t0 = time.time()
            text = await safe_extract(self.extractor, path, detect_format(request.filename))
            timings["extract_ms"] = (time.time() - t0) * 1000
            logger.info(f"Extracted {len(text)} chars from {request.filename}")

            # ── Step 4: Skills ─────────────────────────────────────
            profile = self.inferencer.infer(text.lower(), request.skills, request.nsqf_level)

            # ── Step 5: Content match ──────────────────────────────
            t0 = time.time()
            match = await self.analyzer.analyze(text, request.claim)
            timings["match_ms"] = (time.time() - t0) * 1000

            # ── Step 6: URL corroboration ──────────────────────────
            corroboration: Optional[CorroborationJudgment] = None
            if request.certificate_url and self.policy.should_corroborate(len(text), match):
                t0 = time.time()
                corroboration = await self.checker.check(
                    request.certificate_url, request.certificate_name
                )
                timings["corroborate_ms"] = (time.time() - t0) * 1000

            # ── Step 7: Decide ─────────────────────────────────────
            decision = self.policy.decide(len(text), match, corroboration)

            # ── Step 8: Join enrichment ────────────────────────────
            t0 = time.time()
            fingerprint, receipt = await enrich_task
            timings["enrich_wait_ms"] = (time.time() - t0) * 1000
        finally:
            if not enrich_task.done():
                enrich_task.cancel()

        timings["total_ms"] = (time.time() - total_start) * 1000
        record = self.builder.build(
            request=request,
            extracted_text=text,
            decision=decision,
            match=match,
            corroboration=corroboration,
            profile=profile,
            fingerprint=fingerprint,
            receipt=receipt,
            timings=timings,
        )

        # ── Step 9: Persist ────────────────────────────────────────
        try:
            self.store.save(record)
        except Exception as e:
            logger.error(f"Persisting record {record.record_id} failed: {e}")
            self._discard(request.file_ref)
            if isinstance(e, RecordPersistError):
                raise
            raise RecordPersistError(f"Cannot persist record {record.record_id}: {e}") from e

        logger.info(
            f"Pipeline complete: {record.record_id} → {record.status.value} | "
            f"Total: {timings['total_ms']:.0f}ms"
        )
        return record

    # ── Helpers ────────────────────────────────────────────────────

    async def _fingerprint_and_anchor(
        self, file_ref: str, path: Path
    ) -> tuple[Optional[str], AnchorReceipt]:
        """Hash the file, then anchor the hash. Never raises."""
        try:
            fingerprint: Optional[str] = await asyncio.to_thread(fingerprint_file, path)
        except OSError as e:
            logger.warning(f"Fingerprinting {file_ref} failed: {e}")
            fingerprint = None
        receipt = await self.anchor.anchor(file_ref, fingerprint)
        return fingerprint, receipt

    def _discard(self, file_ref: str) -> None:
        """Best-effort removal of a stored upload on the failure path."""
        try:
            self.file_store.delete(file_ref)
        except Exception as e:
            logger.warning(f"Cleanup of {file_ref} failed: {e}")


