"""
Ledger Anchor
==============

Best-effort publication of a credential fingerprint to an external
ledger as tamper evidence.

Anchoring never changes or blocks the verification status. Every
outcome is an AnchorReceipt:

    - NOT_ATTEMPTED: no ledger configured, or no fingerprint to anchor
    - FAILED:        submission raised or timed out
    - ANCHORED:      transaction reference returned by the ledger
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from credverify.anchor.ledger import BaseLedger
from credverify.config import CredVerifyConfig
from credverify.schemas.record import AnchorReceipt

logger = logging.getLogger("credverify.anchor.anchor")


class LedgerAnchor:
    """
    Wraps a ledger so that anchoring can never raise.

    Usage:
        anchor = LedgerAnchor(Web3Ledger(url, key), timeout_s=60)
        receipt = await anchor.anchor("1718000000000-1.pdf", fingerprint)

    Args:
        ledger: Ledger capability, or None when anchoring is disabled.
        timeout_s: Upper bound on one submission.
        payload_prefix: Number of fingerprint characters embedded.
    """

    def __init__(
        self,
        ledger: Optional[BaseLedger],
        timeout_s: float = 60.0,
        payload_prefix: int = 64,
    ):
        self.ledger = ledger
        self.timeout_s = timeout_s
        self.payload_prefix = payload_prefix

    @classmethod
    def from_config(cls, config: CredVerifyConfig) -> "LedgerAnchor":
        """Build the anchor; a misconfigured ledger disables anchoring."""
        ledger_cfg = config.ledger
        ledger = None
        if ledger_cfg.enabled:
            if ledger_cfg.provider_url and ledger_cfg.private_key:
                from credverify.anchor.ledger import Web3Ledger
                ledger = Web3Ledger(
                    provider_url=ledger_cfg.provider_url,
                    private_key=ledger_cfg.private_key,
                    gas_limit=ledger_cfg.gas_limit,
                    receipt_timeout_s=ledger_cfg.timeout_s,
                )
            else:
                logger.warning("Ledger enabled but provider_url/private_key missing; anchoring disabled")
        return cls(ledger, timeout_s=ledger_cfg.timeout_s, payload_prefix=ledger_cfg.payload_prefix)

    def payload_for(self, fingerprint: str) -> bytes:
        """Transaction payload: ASCII of the fingerprint prefix."""
        return fingerprint[: self.payload_prefix].encode("ascii")

    async def anchor(self, identifier: str, fingerprint: Optional[str]) -> AnchorReceipt:
        """
        Anchor a fingerprint. Never raises.

        Args:
            identifier: Name used in logs (stored file reference).
            fingerprint: Hex digest to anchor, or None if fingerprinting failed.
        """
        if self.ledger is None:
            return AnchorReceipt.not_attempted("anchoring disabled")
        if not fingerprint:
            return AnchorReceipt.not_attempted("no fingerprint to anchor")

        try:
            tx_ref = await asyncio.wait_for(
                self.ledger.submit(self.payload_for(fingerprint)),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error(f"Anchoring {identifier} timed out after {self.timeout_s}s")
            return AnchorReceipt.failed(f"timed out after {self.timeout_s:g}s")
        except Exception as e:
            logger.error(f"Anchoring {identifier} failed: {type(e).__name__}: {e}")
            return AnchorReceipt.failed(f"{type(e).__name__}: {e}")

        if not tx_ref:
            return AnchorReceipt.failed("ledger returned no transaction reference")

        logger.info(f"Anchored {identifier}: {tx_ref}")
        return AnchorReceipt.anchored(str(tx_ref))
