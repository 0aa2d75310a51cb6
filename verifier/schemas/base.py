"""
Canonical records for the verification pipeline.

Every adapter produces a ``ReceiptFacts``; every verification attempt ends
in a ``VerificationResult``. Both are immutable once built.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Inbound request
# ---------------------------------------------------------------------------

class VerificationRequest(BaseModel):
    """A caller's claim that a payment with *reference* was made via *bank_type*."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    bank_type: str = Field(
        ...,
        min_length=1,
        alias="bankType",
        validation_alias=AliasChoices("bankType", "providerTag", "bank_type"),
        description="Provider tag: CBE | TELEBIRR | ABYSSINIA | DASHEN",
    )
    reference: str = Field(..., min_length=1, description="Transaction reference on the receipt")
    suffix: Optional[str] = Field(
        default=None,
        description="Last digits of the payer account, for providers that need it",
    )
    sender_id: str = Field(
        ...,
        min_length=1,
        alias="senderId",
        validation_alias=AliasChoices("senderId", "sender_id"),
    )
    merchant_reference_id: Optional[str] = Field(
        default=None,
        alias="merchantReferenceId",
        validation_alias=AliasChoices("merchantReferenceId", "merchant_reference_id"),
    )


# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------

class ReceiptFacts(BaseModel):
    """Provider-agnostic facts read off a receipt. Any field may be absent."""
    model_config = ConfigDict(frozen=True)

    success: bool
    payer_name: Optional[str] = None
    payer_account: Optional[str] = None
    receiver_name: Optional[str] = None
    receiver_account: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, description="Fixed-point, 2 fractional digits")
    transaction_date: Optional[datetime] = None
    reference: Optional[str] = None
    narrative: Optional[str] = None
    bank_name: Optional[str] = None
    details: dict[str, str] = Field(
        default_factory=dict,
        description="Provider-specific extras (service fee, channel, phone, ...)",
    )
    error: Optional[str] = Field(default=None, description="Set only when success is false")

    @classmethod
    def failure(cls, reason: str) -> "ReceiptFacts":
        return cls(success=False, error=reason)


# ---------------------------------------------------------------------------
# Outbound result
# ---------------------------------------------------------------------------

class VerificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "VerificationResult":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, message: str) -> "VerificationResult":
        return cls(success=False, message=message)


# ---------------------------------------------------------------------------
# Screenshot bridge
# ---------------------------------------------------------------------------

class OcrResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool
    bank_type: Optional[str] = Field(default=None, alias="bankType")
    reference: Optional[str] = None
    error: Optional[str] = None


class ScreenshotResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    detected_bank: Optional[str] = Field(default=None, alias="detectedBank")
    extracted_reference: Optional[str] = Field(default=None, alias="extractedReference")
    message: Optional[str] = None
    error: Optional[str] = None
