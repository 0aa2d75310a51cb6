"""
Downstream callback for verified payments.

The body is signed with base64(SHA-256(reference + secret + senderId +
merchantReferenceId)), sent in the ``x-api-signature`` header.
"""
from __future__ import annotations

import base64
import hashlib
import json
import logging
from decimal import Decimal
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-api-signature"


def encode_payload(payload: dict) -> bytes:
    """JSON object with ``Decimal`` values written as plain numbers, digits as-is."""
    members = []
    for key, value in payload.items():
        encoded = str(value) if isinstance(value, Decimal) else json.dumps(value)
        members.append(f"{json.dumps(key)}: {encoded}")
    return ("{" + ", ".join(members) + "}").encode("utf-8")


class Notifier:
    def __init__(
        self,
        url: str,
        secret: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._transport = transport

    def sign(self, reference: str, sender_id: str, merchant_reference_id: Optional[str]) -> str:
        # An absent merchant id hashes as the literal "null"
        merchant = merchant_reference_id if merchant_reference_id is not None else "null"
        message = f"{reference}{self.secret}{sender_id}{merchant}"
        digest = hashlib.sha256(message.encode("utf-8")).digest()
        return base64.b64encode(digest).decode("ascii")

    def notify(
        self,
        *,
        sender_id: str,
        reference: str,
        bank_type: str,
        amount: Optional[Decimal],
        merchant_reference_id: Optional[str],
    ) -> bool:
        """POST the verified payment downstream. True only on a 2xx response."""
        payload = {
            "senderId": sender_id,
            "reference": reference,
            "bankType": bank_type,
            "amount": amount if amount is not None else 0,
            "merchantReferenceId": merchant_reference_id or "",
        }
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: self.sign(reference, sender_id, merchant_reference_id),
        }

        logger.info("Sending callback to %s", self.url)
        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                response = client.post(self.url, content=encode_payload(payload), headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Error sending callback for %s: %s", reference, exc)
            return False

        logger.info("Callback response code: %d", response.status_code)
        return response.is_success
