"""
Verified payment listing
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from verifier.database import get_db
from verifier.models import VerifiedPaymentModel
from verifier.schemas import VerifiedPaymentResponse

router = APIRouter()


@router.get("/verified-payments", response_model=List[VerifiedPaymentResponse])
def list_payments(
    sender_id: Optional[str] = Query(None, alias="senderId"),
    bank_type: Optional[str] = Query(None, alias="bankType"),
    from_date: Optional[datetime] = Query(None, alias="fromDate", description="Transaction date lower bound"),
    to_date: Optional[datetime] = Query(None, alias="toDate", description="Transaction date upper bound"),
    page: int = Query(0, ge=0),
    page_size: int = Query(20, ge=1, le=200, alias="pageSize"),
    db: Session = Depends(get_db),
):
    """Verified payments filtered by sender, bank and transaction date (0-based pages)"""
    query = db.query(VerifiedPaymentModel)
    if sender_id and sender_id.strip():
        query = query.filter(VerifiedPaymentModel.sender_id == sender_id.strip())
    if bank_type and bank_type.strip():
        query = query.filter(VerifiedPaymentModel.bank_type == bank_type.strip().upper())
    if from_date:
        query = query.filter(VerifiedPaymentModel.transaction_date >= from_date)
    if to_date:
        query = query.filter(VerifiedPaymentModel.transaction_date <= to_date)

    return (
        query.order_by(VerifiedPaymentModel.id)
        .offset(page * page_size)
        .limit(page_size)
        .all()
    )


@router.get("/verified-payments/{payment_id}", response_model=VerifiedPaymentResponse)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    payment = db.query(VerifiedPaymentModel).filter(VerifiedPaymentModel.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Verified payment not found")
    return payment
