"""
Upload Request Schema
======================

The fixed input contract of the verification pipeline. The caller layer
(HTTP route, CLI) stores the uploaded bytes first and hands the pipeline
a reference to them plus the learner's claimed certificate metadata.

Data Flow:
    route / CLI → FileStore.store() → UploadRequest → CredentialPipeline.run()
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClaimedCertificate(BaseModel):
    """The three identity fields a document must corroborate."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Certificate / course name as claimed")
    issuer: str = Field(description="Issuing organisation as claimed")
    serial: str = Field(description="Certificate number / reference as claimed")


class UploadRequest(BaseModel):
    """
    One credential upload, created per call and owned by the caller.

    Schema:
        {
          "file_ref": "1718000000000-123456789.pdf",
          "filename": "aws-cloud.pdf",
          "certificate_name": "AWS Cloud Practitioner",
          "issuer": "Amazon Web Services",
          "certificate_number": "AWS-123-456",
          "certificate_url": "https://verify.example.com/AWS-123-456",
          "nsqf_level": 5,
          "skills": ["cloud", "python"]
        }
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    file_ref: str = Field(min_length=1, description="Storage reference of the uploaded bytes")
    filename: str = Field(min_length=1, description="Original filename as uploaded")
    certificate_name: str = Field(min_length=1)
    issuer: str = Field(min_length=1)
    certificate_number: str = Field(min_length=1)
    certificate_url: Optional[str] = Field(
        default=None,
        description="Optional page that independently confirms the credential",
    )
    nsqf_level: Optional[float] = Field(
        default=None,
        description="Learner-declared proficiency level",
    )
    skills: Optional[Union[list[str], str]] = Field(
        default=None,
        description="Declared skills as a list, a JSON-encoded list or a comma-separated string",
    )
    owner_id: Optional[str] = Field(default=None, description="Owning learner")

    @field_validator("certificate_url", mode="before")
    @classmethod
    def blank_url_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("nsqf_level", mode="before")
    @classmethod
    def coerce_level(cls, v: Any) -> Optional[float]:
        """Malformed levels are dropped rather than rejected."""
        if v is None or v == "":
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @property
    def claim(self) -> ClaimedCertificate:
        """The claimed identity fields handed to the judges."""
        return ClaimedCertificate(
            name=self.certificate_name,
            issuer=self.issuer,
            serial=self.certificate_number,
        )
