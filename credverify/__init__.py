"""
CredVerify — Credential Verification Pipeline
==============================================

CredVerify vets uploaded credential documents (certificates, course
completions, licences) before they are shown to employers. No credential
is marked "verified" unless its own text corroborates the learner's claim.

Architecture Overview:
    Upload → Extract → Match → Corroborate → Decide → Anchor → Record

Modules:
    - ingest:   File storage, text extraction, content fingerprinting
    - verify:   Semantic judges, content match, URL corroboration, skills
    - anchor:   Best-effort ledger anchoring of fingerprints
    - render:   Deterministic status policy + record assembly
    - store:    Persisted verification records with ownership checks
    - pipeline: End-to-end orchestrator
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
