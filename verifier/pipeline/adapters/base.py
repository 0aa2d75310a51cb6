"""
Shared machinery for provider extraction adapters.

An adapter owns an ordered table of field patterns. Each pattern locates a
label in whitespace-normalised receipt text and captures the value that
follows it.
"""
from __future__ import annotations

import io
import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Optional

import pdfplumber

from verifier.pipeline.fetcher import RetryPolicy, SourceSpec
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    TELEBIRR = "TELEBIRR"
    CBE = "CBE"
    ABYSSINIA = "ABYSSINIA"
    DASHEN = "DASHEN"

    @classmethod
    def parse(cls, tag: Optional[str]) -> Optional["Provider"]:
        """Case-insensitive lookup; ``None`` for unknown tags."""
        if not tag:
            return None
        try:
            return cls(tag.strip().upper())
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

_WS = re.compile(r"\s+")
_CURRENCY = re.compile(r"\b(ETB|Birr|Br)\b\.?", re.IGNORECASE)
_CENTS = Decimal("0.01")


def normalize_text(text: str) -> str:
    """Collapse every whitespace run to a single space."""
    return _WS.sub(" ", text).strip()


def search(text: str, pattern: str) -> Optional[str]:
    """First capture group of *pattern* in *text*, stripped; ``None`` if absent or blank."""
    m = re.search(pattern, text, re.IGNORECASE)
    if not m:
        return None
    value = m.group(1).strip()
    return value or None


def search_all(text: str, pattern: str) -> list[str]:
    return [m.strip() for m in re.findall(pattern, text, re.IGNORECASE)]


def extract_fields(text: str, patterns: dict[str, str]) -> dict[str, Optional[str]]:
    """Run an ordered pattern table over *text*."""
    return {name: search(text, pattern) for name, pattern in patterns.items()}


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """``"1,234.56"`` -> ``Decimal("1234.56")``; anything unparseable -> ``None``."""
    if raw is None:
        return None
    token = _CURRENCY.sub("", raw).replace(",", "").strip()
    if not token:
        return None
    try:
        value = Decimal(token)
        if not value.is_finite():
            return None
        return value.quantize(_CENTS)
    except InvalidOperation:
        logger.warning("Failed to parse amount: %s", raw)
        return None


def parse_timestamp(raw: Optional[str], formats: Iterable[str]) -> Optional[datetime]:
    if not raw:
        return None
    raw = raw.strip()
    for fmt in formats:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    logger.warning("Failed to parse date: %s", raw)
    return None


def title_case(value: Optional[str]) -> Optional[str]:
    """Cosmetic: upper-case the first letter of each whitespace token, lower the rest."""
    if not value:
        return value
    return " ".join(token[:1].upper() + token[1:].lower() for token in value.split())


def is_pdf(content: bytes, content_type: str) -> bool:
    return "pdf" in (content_type or "").lower() or content.lstrip()[:5] == b"%PDF-"


def read_document_text(content: bytes, content_type: str) -> str:
    """Plain text of a receipt body: PDF pages via pdfplumber, anything else decoded as UTF-8."""
    if is_pdf(content, content_type):
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            return "\n".join(page.extract_text() or "" for page in pdf.pages)
    return content.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Adapter interface
# ---------------------------------------------------------------------------

class ReceiptAdapter:
    """Turns one provider's raw receipt content into ``ReceiptFacts``.

    Subclasses set ``provider`` and implement ``sources`` and ``parse``.
    ``extract`` wraps ``parse`` so that a malformed payload never escapes as
    an exception.
    """

    provider: Provider
    parse_error = "Error parsing receipt data"

    def __init__(self, retry_policy: RetryPolicy):
        self.retry_policy = retry_policy

    def sources(self, reference: str, suffix: Optional[str]) -> list[SourceSpec]:
        raise NotImplementedError

    def parse(self, content: bytes, content_type: str) -> ReceiptFacts:
        raise NotImplementedError

    def extract(self, content: bytes, content_type: str) -> ReceiptFacts:
        try:
            return self.parse(content, content_type)
        except Exception:
            logger.error("%s receipt parsing failed", self.provider.value, exc_info=True)
            return ReceiptFacts.failure(self.parse_error)

    def is_valid(self, facts: ReceiptFacts) -> bool:
        """Whether *facts* is good enough to stop trying further sources."""
        return facts.success
