"""
Bank of Abyssinia adapter.

The slip API answers with structured JSON, so fields are mapped by name
instead of scanned for:

    {"header": {"status": "success"},
     "body": [{"Payer's Name": ..., "Transferred Amount": ..., ...}]}
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from verifier.pipeline.adapters.base import (
    Provider,
    ReceiptAdapter,
    parse_amount,
    parse_timestamp,
    title_case,
)
from verifier.pipeline.fetcher import RetryPolicy, SourceSpec
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)

FIELD_KEYS: dict[str, str] = {
    "payer_name": "Payer's Name",
    "payer_account": "Source Account",
    "source_account_name": "Source Account Name",
    "receiver_account": "Receiver's Account",
    "receiver_name": "Receiver's Name",
    "amount": "Transferred Amount",
    "date": "Transaction Date",
    "reference": "Transaction Reference",
    "narrative": "Narrative",
}

DATE_FORMATS = ["%Y-%m-%d %H:%M:%S", "%d/%m/%Y %H:%M:%S", "%d/%m/%y %H:%M"]


def _text(record: dict[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_slip(payload: Any) -> ReceiptFacts:
    header = payload.get("header") if isinstance(payload, dict) else None
    status = str((header or {}).get("status", ""))
    if status != "success":
        logger.warning("Abyssinia API returned non-success status: %s", status)
        return ReceiptFacts.failure(f"API status: {status}")

    body = payload.get("body")
    if not isinstance(body, list) or not body or not isinstance(body[0], dict):
        logger.warning("Abyssinia API returned empty body")
        return ReceiptFacts.failure("No transaction data found")

    record = body[0]
    values = {name: _text(record, key) for name, key in FIELD_KEYS.items()}
    amount = parse_amount(values["amount"])
    if values["reference"] is None or amount is None:
        return ReceiptFacts.failure("Missing essential fields in transaction data")

    details = {}
    if values["source_account_name"]:
        details["source_account_name"] = values["source_account_name"]
    return ReceiptFacts(
        success=True,
        payer_name=title_case(values["payer_name"]),
        payer_account=values["payer_account"],
        receiver_name=title_case(values["receiver_name"]),
        receiver_account=values["receiver_account"],
        amount=amount,
        transaction_date=parse_timestamp(values["date"], DATE_FORMATS),
        reference=values["reference"],
        narrative=values["narrative"],
        details=details,
    )


class AbyssiniaAdapter(ReceiptAdapter):
    provider = Provider.ABYSSINIA
    parse_error = "Error parsing JSON data"

    def __init__(self, url: str, retry_policy: RetryPolicy):
        super().__init__(retry_policy)
        self.url = url

    def sources(self, reference: str, suffix: Optional[str]) -> list[SourceSpec]:
        return [SourceSpec(url=self.url + reference + (suffix or ""), accept="application/json")]

    def parse(self, content: bytes, content_type: str) -> ReceiptFacts:
        try:
            payload = json.loads(content)
        except ValueError:
            logger.error("Failed to parse Abyssinia JSON (%d bytes)", len(content))
            return ReceiptFacts.failure(self.parse_error)
        return parse_slip(payload)
