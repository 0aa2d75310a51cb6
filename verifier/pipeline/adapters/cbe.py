"""
Commercial Bank of Ethiopia receipt adapter (PDF).
"""
from __future__ import annotations

import logging
from typing import Optional

from verifier.pipeline.adapters.base import (
    Provider,
    ReceiptAdapter,
    extract_fields,
    is_pdf,
    normalize_text,
    parse_amount,
    parse_timestamp,
    read_document_text,
    search_all,
    title_case,
)
from verifier.pipeline.fetcher import RetryPolicy, SourceSpec
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)

FIELD_PATTERNS: dict[str, str] = {
    "payer_name": r"Payer\s*:?\s*(.*?)\s+Account",
    "receiver_name": r"Receiver\s*:?\s*(.*?)\s+Account",
    "payment_date": r"Payment Date & Time\s*:?\s*([\d/,: ]+[APM]{2})",
    "reference": r"Reference No\.?\s*\(VAT Invoice No\)\s*:?\s*([A-Z0-9]+)",
    "reason": r"Reason\s*/\s*Type of service\s*:?\s*(.*?)\s+Transferred Amount",
    "amount": r"Transferred Amount\s*:?\s*([\d,]+\.\d{2})\s*ETB",
}

# Masked numbers such as 1****5017; the first is the payer's, the second the receiver's.
ACCOUNT_PATTERN = r"Account\s*:?\s*([A-Z0-9]?\*{4}\d{4})"

DATE_FORMATS = [
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%d/%m/%Y, %I:%M:%S %p",
    "%d/%m/%Y %I:%M:%S %p",
    "%Y-%m-%d %H:%M:%S",
]


def parse_receipt_text(text: str) -> ReceiptFacts:
    text = normalize_text(text)
    logger.debug("CBE receipt text: %d characters", len(text))

    values = extract_fields(text, FIELD_PATTERNS)
    accounts = search_all(text, ACCOUNT_PATTERN)
    payer_account = accounts[0] if len(accounts) > 0 else None
    receiver_account = accounts[1] if len(accounts) > 1 else None

    amount = parse_amount(values["amount"])
    date = parse_timestamp(values["payment_date"], DATE_FORMATS)
    required = [
        values["payer_name"],
        payer_account,
        values["receiver_name"],
        receiver_account,
        amount,
        date,
        values["reference"],
    ]
    if any(value is None for value in required):
        return ReceiptFacts.failure("Could not extract all required fields from PDF.")

    return ReceiptFacts(
        success=True,
        payer_name=title_case(values["payer_name"]),
        payer_account=payer_account,
        receiver_name=title_case(values["receiver_name"]),
        receiver_account=receiver_account,
        amount=amount,
        transaction_date=date,
        reference=values["reference"],
        narrative=values["reason"],
    )


class CbeAdapter(ReceiptAdapter):
    provider = Provider.CBE
    parse_error = "Error parsing PDF data"

    def __init__(self, url: str, retry_policy: RetryPolicy, verify_tls: bool = False):
        super().__init__(retry_policy)
        self.url = url
        self.verify_tls = verify_tls

    def sources(self, reference: str, suffix: Optional[str]) -> list[SourceSpec]:
        full_id = reference + (suffix or "")
        return [
            SourceSpec(
                url=f"{self.url}?id={full_id}",
                accept="application/pdf",
                verify_tls=self.verify_tls,
            )
        ]

    def parse(self, content: bytes, content_type: str) -> ReceiptFacts:
        if not is_pdf(content, content_type) and len(content) < 100:
            return ReceiptFacts.failure("Response is not a PDF")
        return parse_receipt_text(read_document_text(content, content_type))
