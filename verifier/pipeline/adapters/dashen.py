"""
Dashen Bank receipt adapter (PDF).

Dashen receipts carry no receiver account number, only the receiver name.
"""
from __future__ import annotations

import logging
from typing import Optional

from verifier.pipeline.adapters.base import (
    Provider,
    ReceiptAdapter,
    extract_fields,
    normalize_text,
    parse_amount,
    parse_timestamp,
    read_document_text,
    title_case,
)
from verifier.pipeline.fetcher import RetryPolicy, SourceSpec
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)

FIELD_PATTERNS: dict[str, str] = {
    "sender_name": r"Sender\s*Name\s*:?\s*(.*?)\s+(?:Sender\s*Account|Account)",
    "sender_account": r"Sender\s*Account\s*(?:Number)?\s*:?\s*([A-Z0-9\*\-]+)",
    "channel": r"Transaction\s*Channel\s*:?\s*(.*?)\s+(?:Service|Type)",
    "service_type": r"Service\s*Type\s*:?\s*(.*?)\s+(?:Narrative|Description)",
    "narrative": r"Narrative\s*:?\s*(.*?)\s+(?:Receiver|Phone)",
    "receiver_name": r"Receiver\s*Name\s*:?\s*(.*?)\s+(?:Phone|Institution)",
    "phone": r"Phone\s*(?:No\.?|Number)?\s*:?\s*(\+?\d[\d\-\s]*\d)",
    "institution": r"Institution\s*Name\s*:?\s*(.*?)\s+(?:Transaction|Reference)",
    "reference": r"Transaction\s*Reference\s*:?\s*([A-Z0-9\-]+)",
    "transfer_reference": r"Transfer\s*Reference\s*:?\s*([A-Z0-9\-]+)",
    "date": r"Transaction\s*Date\s*(?:&\s*Time)?\s*:?\s*([\d/\-,: ]+(?:[APM]{2})?)",
    "amount": r"Transaction\s*Amount\s*(?:ETB|Birr)?\s*([\d,]+\.?\d*)",
    "total": r"Total\s*(?:ETB|Birr)?\s*([\d,]+\.?\d*)",
}

DATE_FORMATS = [
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%d/%m/%Y, %I:%M:%S %p",
    "%d/%m/%Y %I:%M:%S %p",
    "%Y-%m-%d %H:%M:%S",
]


def parse_receipt_text(text: str) -> ReceiptFacts:
    text = normalize_text(text)
    logger.debug("Dashen receipt text: %d characters", len(text))

    values = extract_fields(text, FIELD_PATTERNS)
    amount = parse_amount(values["amount"])
    if values["reference"] is None or amount is None:
        return ReceiptFacts.failure("Could not extract required fields (Reference and Amount) from PDF.")

    details = {
        key: values[key]
        for key in ("channel", "service_type", "phone", "transfer_reference", "total")
        if values.get(key)
    }
    if values.get("institution"):
        details["institution"] = title_case(values["institution"])

    return ReceiptFacts(
        success=True,
        payer_name=title_case(values["sender_name"]),
        payer_account=values["sender_account"],
        receiver_name=title_case(values["receiver_name"]),
        amount=amount,
        transaction_date=parse_timestamp(values["date"], DATE_FORMATS),
        reference=values["reference"],
        narrative=values["narrative"],
        details=details,
    )


class DashenAdapter(ReceiptAdapter):
    provider = Provider.DASHEN
    parse_error = "Error parsing PDF data"

    def __init__(self, url: str, retry_policy: RetryPolicy, verify_tls: bool = False):
        super().__init__(retry_policy)
        self.url = url
        self.verify_tls = verify_tls

    def sources(self, reference: str, suffix: Optional[str]) -> list[SourceSpec]:
        return [SourceSpec(url=self.url + reference, accept="application/pdf", verify_tls=self.verify_tls)]

    def parse(self, content: bytes, content_type: str) -> ReceiptFacts:
        return parse_receipt_text(read_document_text(content, content_type))
