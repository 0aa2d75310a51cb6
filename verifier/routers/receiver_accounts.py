"""
Receiver account management
"""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from verifier.database import get_db
from verifier.models import ReceiverAccountModel
from verifier.pipeline.adapters import Provider
from verifier.schemas import ReceiverAccountCreate, ReceiverAccountResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_or_404(db: Session, account_id: int) -> ReceiverAccountModel:
    account = db.query(ReceiverAccountModel).filter(ReceiverAccountModel.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Receiver account not found")
    return account


def _canonical_bank_type(bank_type: str) -> str:
    provider = Provider.parse(bank_type)
    if provider is None:
        raise HTTPException(status_code=400, detail=f"Unsupported bank type: {bank_type.strip().upper()}")
    return provider.value


@router.get("/receiver-accounts", response_model=List[ReceiverAccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    return db.query(ReceiverAccountModel).order_by(ReceiverAccountModel.id).all()


@router.get("/receiver-accounts/{account_id}", response_model=ReceiverAccountResponse)
def get_account(account_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, account_id)


@router.post("/receiver-accounts", response_model=ReceiverAccountResponse, status_code=201)
def create_account(req: ReceiverAccountCreate, db: Session = Depends(get_db)):
    account = ReceiverAccountModel(
        bank_type=_canonical_bank_type(req.bank_type),
        account_number=req.account_number.strip(),
        account_name=req.account_name.strip(),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Created receiver account #%d for %s", account.id, account.bank_type)
    return account


@router.put("/receiver-accounts/{account_id}", response_model=ReceiverAccountResponse)
def update_account(account_id: int, req: ReceiverAccountCreate, db: Session = Depends(get_db)):
    account = _get_or_404(db, account_id)
    account.bank_type = _canonical_bank_type(req.bank_type)
    account.account_number = req.account_number.strip()
    account.account_name = req.account_name.strip()
    db.commit()
    db.refresh(account)
    logger.info("Updated receiver account #%d", account.id)
    return account


@router.delete("/receiver-accounts/{account_id}", status_code=204)
def delete_account(account_id: int, db: Session = Depends(get_db)):
    account = _get_or_404(db, account_id)
    db.delete(account)
    db.commit()
    logger.info("Deleted receiver account #%d", account_id)
    return Response(status_code=204)
