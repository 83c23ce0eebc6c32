"""
CredVerify Record Storage
==========================

Components:
    - repository.py: JSON-file CredentialStore with ownership checks
"""
