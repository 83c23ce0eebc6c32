"""
CredVerify Ingestion
=====================

Everything that touches the uploaded bytes themselves.

Components:
    - storage.py:     Disk-backed upload store (store / resolve / delete)
    - extractors.py:  PDF, plain-text and OCR text extraction
    - fingerprint.py: SHA-256 content fingerprints
"""
