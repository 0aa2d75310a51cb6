"""
Receipt source fetcher.

Reads raw receipt content from a provider endpoint under an explicit
``RetryPolicy`` (attempt count, fixed delay, per-attempt timeout).
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict

from verifier.errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_attempts: int = 1
    delay_seconds: float = 0.0
    timeout_seconds: float = 30.0

    @property
    def budget_seconds(self) -> float:
        """Longest a fetch under this policy can take: every attempt timing out."""
        attempts = max(self.max_attempts, 1)
        return attempts * self.timeout_seconds + (attempts - 1) * self.delay_seconds


class SourceSpec(BaseModel):
    """One place a receipt can be read from."""
    model_config = ConfigDict(frozen=True)

    url: str
    accept: str = "*/*"
    verify_tls: bool = True
    name: str = "primary"


class FetchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    content_type: str
    url: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class SourceFetcher:
    """Blocking HTTP GET with bounded retries.

    ``transport`` is handed to every ``httpx.Client`` the fetcher opens, so
    tests can plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        sleep=time.sleep,
    ):
        self._transport = transport
        self._sleep = sleep

    def fetch(self, source: SourceSpec, policy: RetryPolicy) -> FetchResult:
        attempts = max(policy.max_attempts, 1)
        last_reason = "Unknown error"
        last_status: Optional[int] = None

        with httpx.Client(
            transport=self._transport,
            verify=source.verify_tls,
            follow_redirects=True,
            timeout=policy.timeout_seconds,
            headers={"User-Agent": USER_AGENT, "Accept": source.accept},
        ) as client:
            for attempt in range(1, attempts + 1):
                logger.info(
                    "Fetch attempt %d/%d (%s): %s", attempt, attempts, source.name, source.url
                )
                try:
                    response = client.get(source.url)
                except httpx.HTTPError as exc:
                    last_reason = f"Error fetching receipt: {exc}"
                    last_status = None
                    logger.error(
                        "Attempt %d/%d transport error for %s: %s",
                        attempt, attempts, source.url, exc,
                    )
                else:
                    if response.is_success:
                        return FetchResult(
                            content=response.content,
                            content_type=response.headers.get("content-type", ""),
                            url=source.url,
                        )
                    last_status = response.status_code
                    last_reason = f"HTTP error: {response.status_code}"
                    logger.error(
                        "Attempt %d/%d returned HTTP %d for %s",
                        attempt, attempts, response.status_code, source.url,
                    )

                if attempt < attempts and policy.delay_seconds > 0:
                    self._sleep(policy.delay_seconds)

        if attempts > 1:
            last_reason = f"{last_reason} after {attempts} attempts"
        raise FetchError(last_reason, status_code=last_status)
