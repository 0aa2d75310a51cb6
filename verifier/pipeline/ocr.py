"""
Screenshot OCR bridge.

Sends a receipt screenshot to a vision chat-completions endpoint and reads
back the provider and transaction reference as JSON.
"""
from __future__ import annotations

import base64
import json
import logging
from typing import Optional

import httpx

from verifier.schemas import OcrResult

logger = logging.getLogger(__name__)

PROMPT = """You are a payment receipt analyzer. Based on the uploaded image, determine:
- If the receipt was issued by Telebirr or the Commercial Bank of Ethiopia (CBE).
- If it's a CBE receipt, extract the transaction ID (usually starts with 'FT').
- If it's a Telebirr receipt, extract the transaction number (usually starts with 'CE').

Rules:
- CBE receipts usually include a purple header with the title "Commercial Bank of Ethiopia" and a structured table.
- Telebirr receipts are typically green with a large minus sign before the amount.
- CBE receipts may mention Telebirr (as the receiver) but are still CBE receipts.

Return this JSON format exactly:
{
  "type": "telebirr" or "cbe",
  "reference": "the extracted transaction reference"
}

If you cannot determine the type or extract the reference, return:
{
  "type": "unknown",
  "reference": null,
  "error": "reason why"
}"""

RECEIPT_TYPES = {
    "telebirr": "TELEBIRR",
    "cbe": "CBE",
}


def _failure(error: str) -> OcrResult:
    return OcrResult(success=False, error=error)


class OcrClient:
    def __init__(
        self,
        api_key: str,
        url: str,
        model: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def build_request(self, image_bytes: bytes, mime_type: str) -> dict:
        data_uri = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": PROMPT},
                        {"type": "image_url", "image_url": data_uri},
                    ],
                }
            ],
            "response_format": {"type": "json_object"},
        }

    def analyze(self, image_bytes: bytes, mime_type: str) -> OcrResult:
        if not self.api_key or not self.api_key.strip():
            logger.error("OCR API key is not configured (OCR_API_KEY)")
            return _failure("OCR service is not configured")

        logger.info("Sending receipt image (%d bytes) for OCR analysis", len(image_bytes))
        try:
            with httpx.Client(transport=self._transport, timeout=self.timeout) as client:
                response = client.post(
                    self.url,
                    json=self.build_request(image_bytes, mime_type),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("Error during OCR analysis: %s", exc)
            return _failure(f"OCR analysis failed: {exc}")

        if not response.is_success:
            logger.error("OCR API returned status %d: %s", response.status_code, response.text)
            return _failure(f"OCR service returned an error (status {response.status_code})")

        return self.parse_response(response.text)

    def parse_response(self, body: str) -> OcrResult:
        try:
            content = json.loads(body)["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.error("Could not extract content from OCR response: %s", body)
            return _failure("Invalid OCR response format")

        try:
            answer = json.loads(content) if isinstance(content, str) else content
        except ValueError:
            logger.error("OCR content is not JSON: %s", content)
            return _failure("Failed to parse OCR response")
        if not isinstance(answer, dict):
            return _failure("Failed to parse OCR response")

        receipt_type = answer.get("type")
        reference = str(answer.get("reference") or "").strip()
        logger.info("OCR result - type: %s, reference: %s", receipt_type, reference)

        if not receipt_type or str(receipt_type).lower() == "unknown" or not reference:
            return _failure(answer.get("error") or "Could not recognize receipt or extract reference")

        bank_type = RECEIPT_TYPES.get(str(receipt_type).lower())
        if bank_type is None:
            return _failure(f"Unsupported receipt type: {receipt_type}")
        return OcrResult(success=True, bank_type=bank_type, reference=reference)
