"""
CredVerify Exceptions
======================

Only infrastructure failures are raised out of the pipeline. Soft stage
failures (empty extraction, judge unavailable, unreachable URL, failed
anchoring) are represented as data on the VerificationRecord instead.
"""

from __future__ import annotations


class CredVerifyError(Exception):
    """Base class for all CredVerify errors."""


# ── Hard infrastructure failures ───────────────────────────────────
class InfrastructureError(CredVerifyError):
    """The pipeline could not run to completion; nothing was persisted."""


class UploadReadError(InfrastructureError):
    """The uploaded bytes could not be read at all."""


class RecordPersistError(InfrastructureError):
    """The assembled verification record could not be persisted."""


# ── Upload rejection (before pipeline entry) ───────────────────────
class UploadRejectedError(CredVerifyError):
    """The upload was refused by the file store."""


class EmptyUploadError(UploadRejectedError):
    """The uploaded file has no content."""


class UploadTooLargeError(UploadRejectedError):
    """The uploaded file exceeds the configured size cap."""


# ── Store lookups ──────────────────────────────────────────────────
class CredentialNotFoundError(CredVerifyError):
    """No credential with this id exists for the requesting owner."""
