"""
CredVerify Anchoring
=====================

Components:
    - ledger.py: Ledger capability + web3.py implementation
    - anchor.py: Best-effort anchor returning an AnchorReceipt
"""
