"""
CredVerify Configuration System
================================

Central configuration using Pydantic Settings. Supports:
- Environment variables (CREDVERIFY_ prefix, ``__`` for nested fields)
- .env file loading
- YAML config file overrides

The config produces a deterministic hash for reproducibility tracking.
Every verification record is stamped with this hash so a reviewer can
tell which policy thresholds and skill table produced it.

Usage:
    from credverify.config import get_config
    cfg = get_config()                       # loads from env / .env
    cfg = get_config("configs/strict.yaml")  # loads with YAML overrides
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ── Judge Selection ────────────────────────────────────────────────
class JudgeBackend(str, Enum):
    """
    Which semantic judge backs the content match analyzer.

    - AUTO:   Gemini if a key is configured, then OpenAI, else none.
    - RULE:   Deterministic keyword/fuzzy matcher (no network).
    - GEMINI: Google Gemini via google-genai.
    - OPENAI: OpenAI chat completions.
    - NONE:   No judge; every credential goes to manual review.
    """
    AUTO = "auto"
    RULE = "rule"
    GEMINI = "gemini"
    OPENAI = "openai"
    NONE = "none"


DEFAULT_SKILL_LEVELS: dict[str, int] = {
    "python": 5,
    "javascript": 5,
    "react": 6,
    "data science": 7,
    "machine learning": 8,
    "management": 7,
    "cloud": 6,
    "cybersecurity": 8,
}


# ── Sub-configs ────────────────────────────────────────────────────
class ExtractionConfig(BaseModel):
    """Configuration for text extraction."""
    ocr_language: str = Field(default="eng", description="Tesseract language code(s)")
    min_text_length: int = Field(
        default=50,
        ge=1,
        description="Extracted text shorter than this is treated as unreadable",
    )


class MatchConfig(BaseModel):
    """Configuration for the content match analyzer and its judge."""
    judge: JudgeBackend = Field(default=JudgeBackend.AUTO, description="Judge backend")
    timeout_s: float = Field(default=30.0, gt=0, description="Timeout for one judge call")
    fuzzy_threshold: float = Field(
        default=0.85,
        ge=0.0, le=1.0,
        description="Minimum similarity for the rule judge to accept a near-miss spelling",
    )
    max_text_chars: int = Field(
        default=12000,
        description="Extracted text is truncated to this many characters before judging",
    )
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model name")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model name")


class CorroborationConfig(BaseModel):
    """Configuration for external URL corroboration."""
    timeout_s: float = Field(default=7.0, gt=0, description="Total timeout for the URL fetch")
    max_redirects: int = Field(default=3, ge=0, description="Redirect cap for the URL fetch")
    max_body_bytes: int = Field(default=2_000_000, description="Response bodies are cut at this size")
    trust_markers: list[str] = Field(
        default_factory=lambda: ["verified", "certificate"],
        description="At least one of these must appear on the page to corroborate",
    )


class LedgerConfig(BaseModel):
    """Configuration for ledger anchoring."""
    enabled: bool = Field(default=False, description="Anchor fingerprints on the ledger")
    provider_url: Optional[str] = Field(default=None, description="JSON-RPC endpoint")
    private_key: Optional[str] = Field(default=None, description="Signing key (hex)")
    gas_limit: Optional[int] = Field(
        default=None,
        description="Gas for the self-transfer; estimated by the node when unset",
    )
    timeout_s: float = Field(default=60.0, gt=0, description="Broadcast + receipt timeout")
    payload_prefix: int = Field(
        default=64,
        ge=1,
        description="Number of fingerprint characters embedded in the transaction",
    )


class SkillConfig(BaseModel):
    """Skill → NSQF level lookup table."""
    levels: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_SKILL_LEVELS))


class StorageConfig(BaseModel):
    """Configuration for uploaded files and persisted records."""
    upload_dir: Path = Field(default=Path("./uploads"), description="Uploaded file directory")
    records_path: Path = Field(
        default=Path("./data/credentials.json"),
        description="JSON file holding verification records",
    )
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Upload size cap")


# ── Main Config ────────────────────────────────────────────────────
class CredVerifyConfig(BaseSettings):
    """
    Root configuration for CredVerify.

    Loads from environment variables (CREDVERIFY_ prefix) and .env file.
    Can be extended with YAML overrides via `get_config(yaml_path)`.

    Example:
        export CREDVERIFY_MATCH__JUDGE=rule
        export CREDVERIFY_LEDGER__ENABLED=true
    """
    model_config = SettingsConfigDict(
        env_prefix="CREDVERIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: 'json' or 'text'")

    # ── API keys ───────────────────────────────────────────────────
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")

    # ── Sub-configs ────────────────────────────────────────────────
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    match: MatchConfig = Field(default_factory=MatchConfig)
    corroboration: CorroborationConfig = Field(default_factory=CorroborationConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    skills: SkillConfig = Field(default_factory=SkillConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    def config_hash(self) -> str:
        """
        Produce a deterministic SHA-256 hash of the configuration.

        Secrets (API keys, the ledger signing key) are excluded so the
        hash can be stored alongside records.
        """
        config_dict = self.model_dump(
            mode="json",
            exclude={
                "gemini_api_key": True,
                "openai_api_key": True,
                "ledger": {"private_key"},
            },
        )
        canonical = json.dumps(config_dict, sort_keys=True, default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]

    def ensure_dirs(self) -> None:
        """Create the upload and record directories if they don't exist."""
        self.storage.upload_dir.mkdir(parents=True, exist_ok=True)
        self.storage.records_path.parent.mkdir(parents=True, exist_ok=True)


# ── Config Loading ─────────────────────────────────────────────────
def get_config(yaml_path: Optional[str] = None) -> CredVerifyConfig:
    """
    Load CredVerify configuration.

    Priority (highest to lowest):
        1. Explicit YAML values (if provided)
        2. Environment variables (CREDVERIFY_ prefix)
        3. .env file
        4. Default values

    Args:
        yaml_path: Optional path to a YAML config file for overrides.

    Returns:
        Fully resolved CredVerifyConfig instance.
    """
    if yaml_path:
        import yaml
        with open(yaml_path) as f:
            overrides = yaml.safe_load(f) or {}
        return CredVerifyConfig(**overrides)
    return CredVerifyConfig()
