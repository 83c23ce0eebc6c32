"""
CredVerify Decision & Record Assembly
======================================

Components:
    - policy.py: Deterministic status state machine
    - record.py: Sealed VerificationRecord assembly + integrity checks
"""
