"""
External Corroboration Checker
===============================

Independently fetches the learner-supplied verification URL (an issuer's
"verify this certificate" page) and judges whether it corroborates the
claim.

Outcome rules:
    - network error, timeout, or non-2xx → CONTRADICTED
    - 2xx, page names the credential AND carries a trust marker
      ("verified" / "certificate")      → CORROBORATED
    - 2xx otherwise                      → INDETERMINATE

The checker never raises. It only runs after a positive content match;
its result can demote a credential but never promote one.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import aiohttp

from credverify.schemas.judgment import CorroborationJudgment, CorroborationOutcome
from credverify.utils import normalize_token

logger = logging.getLogger("credverify.verify.corroboration")

NOTE_INDETERMINATE = "valid URL, could not auto-confirm specifics"


@dataclass(frozen=True)
class FetchResult:
    """Status code and decoded body of a fetched page."""
    status_code: int
    body: str


class HttpFetcher(ABC):
    """Fetches a URL under timeout and redirect bounds."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchResult:
        """
        GET the URL.

        Raises:
            Exception: On network, timeout, or redirect-limit failures.
        """
        ...


def decode_body(raw: bytes, charset: Optional[str]) -> str:
    """
    Decode a response body, falling back to UTF-8 when the declared
    charset is missing or unknown. Undecodable bytes are replaced.
    """
    encoding = "utf-8"
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            logger.debug(f"Unknown response charset {charset!r}; decoding as utf-8")
    return raw.decode(encoding, errors="replace")


class AiohttpFetcher(HttpFetcher):
    """
    aiohttp-backed fetcher.

    A fresh session is opened per fetch, so no connection state is
    shared between pipeline runs.

    Args:
        timeout_s: Total timeout for connect + read.
        max_redirects: Redirect cap; exceeding it raises.
        max_body_bytes: Bodies are truncated at this many bytes.
    """

    def __init__(
        self,
        timeout_s: float = 7.0,
        max_redirects: int = 3,
        max_body_bytes: int = 2_000_000,
        user_agent: str = "credverify/0.1",
    ):
        self.timeout_s = timeout_s
        self.max_redirects = max_redirects
        self.max_body_bytes = max_body_bytes
        self.user_agent = user_agent

    async def fetch(self, url: str) -> FetchResult:
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        async with aiohttp.ClientSession(
            timeout=timeout,
            headers={"User-Agent": self.user_agent},
        ) as session:
            async with session.get(
                url,
                allow_redirects=self.max_redirects > 0,
                max_redirects=self.max_redirects,
            ) as resp:
                raw = bytearray()
                async for chunk in resp.content.iter_chunked(64 * 1024):
                    raw.extend(chunk)
                    if len(raw) >= self.max_body_bytes:
                        break
                body = decode_body(bytes(raw[: self.max_body_bytes]), resp.charset)
                return FetchResult(status_code=resp.status, body=body)


class CorroborationChecker:
    """
    Judges a verification URL against the claimed certificate name.

    Usage:
        checker = CorroborationChecker(AiohttpFetcher(timeout_s=7, max_redirects=3))
        judgment = await checker.check(url, "AWS Cloud Practitioner")

    Args:
        fetcher: HTTP capability.
        trust_markers: Generic terms of which at least one must appear on the page.
        timeout_s: Outer bound on the whole check, on top of the fetcher's own.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        trust_markers: Sequence[str] = ("verified", "certificate"),
        timeout_s: Optional[float] = None,
    ):
        self.fetcher = fetcher
        self.trust_markers = tuple(m.lower() for m in trust_markers)
        self.timeout_s = timeout_s

    async def check(self, url: str, claimed_name: str) -> CorroborationJudgment:
        """Fetch and judge the URL. Never raises."""
        try:
            if self.timeout_s:
                result = await asyncio.wait_for(self.fetcher.fetch(url), timeout=self.timeout_s)
            else:
                result = await self.fetcher.fetch(url)
        except asyncio.TimeoutError:
            logger.warning(f"URL check timed out: {url}")
            return self._contradicted("URL check failed: request timed out.")
        except aiohttp.TooManyRedirects:
            logger.warning(f"URL check exceeded redirect limit: {url}")
            return self._contradicted("URL check failed: too many redirects.")
        except aiohttp.ClientError as e:
            logger.warning(f"URL check network error for {url}: {e}")
            return self._contradicted(f"URL check failed: network error ({type(e).__name__}).")
        except Exception as e:
            logger.error(f"URL check failed for {url}: {type(e).__name__}: {e}")
            return self._contradicted(
                f"URL check failed: invalid URL or processing error ({type(e).__name__})."
            )

        return self.judge_page(result, claimed_name)

    def judge_page(self, result: FetchResult, claimed_name: str) -> CorroborationJudgment:
        """Apply the outcome rules to an already fetched page."""
        if not 200 <= result.status_code < 300:
            return self._contradicted(
                f"URL check failed: HTTP status {result.status_code} "
                f"(link broken or unauthorized)."
            )

        page = (result.body or "").lower()
        name = normalize_token(claimed_name)
        name_found = bool(name) and (name in page or name in normalize_token(page))
        marker_found = any(marker in page for marker in self.trust_markers)

        if name_found and marker_found:
            return CorroborationJudgment(
                outcome=CorroborationOutcome.CORROBORATED,
                note="URL is valid and the certificate name was found on the page.",
            )
        return CorroborationJudgment(
            outcome=CorroborationOutcome.INDETERMINATE,
            note=NOTE_INDETERMINATE,
        )

    @staticmethod
    def _contradicted(note: str) -> CorroborationJudgment:
        return CorroborationJudgment(outcome=CorroborationOutcome.CONTRADICTED, note=note)
