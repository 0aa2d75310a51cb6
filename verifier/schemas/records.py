"""
Receiver account, verified payment and audit trail schemas
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ReceiverAccountCreate(BaseModel):
    """Create or replace a receiver account"""
    bank_type: str = Field(..., min_length=1, description="TELEBIRR | CBE | ABYSSINIA | DASHEN")
    account_number: str = Field(..., min_length=1, description="Full, unmasked account number")
    account_name: str = Field(..., min_length=1)


class ReceiverAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    bank_type: str
    account_number: str
    account_name: str
    last_used_at: Optional[datetime] = None


class VerifiedPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: str
    reference: str
    bank_type: str
    amount: Optional[Decimal] = None
    payer_name: Optional[str] = None
    payer_account: Optional[str] = None
    receiver_name: Optional[str] = None
    receiver_account: Optional[str] = None
    transaction_date: Optional[datetime] = None
    narrative: Optional[str] = None
    merchant_reference_id: Optional[str] = None
    verified_at: datetime


class FailedVerificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: Optional[str] = None
    reference: Optional[str] = None
    bank_type: Optional[str] = None
    reason: Optional[str] = None
    kind: Optional[str] = None
    merchant_reference_id: Optional[str] = None
    failed_at: datetime


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    size: int
