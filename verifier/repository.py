"""
Storage contract for verification records.

The uniqueness of (bank_type, reference) and the rotation stamp are enforced
here as explicit operations rather than left to callers.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from verifier.models import FailedVerificationModel, ReceiverAccountModel, VerifiedPaymentModel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Verified payments
# ---------------------------------------------------------------------------

def find_by_provider_and_reference(
    db: Session, bank_type: str, reference: str
) -> Optional[VerifiedPaymentModel]:
    return (
        db.query(VerifiedPaymentModel)
        .filter(
            VerifiedPaymentModel.bank_type == bank_type,
            VerifiedPaymentModel.reference == reference,
        )
        .first()
    )


def insert_if_absent(db: Session, payment: VerifiedPaymentModel) -> bool:
    """Commit *payment*; return False if (bank_type, reference) already exists."""
    db.add(payment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Uniqueness violation for %s/%s; another request recorded it first",
            payment.bank_type,
            payment.reference,
        )
        return False
    return True


# ---------------------------------------------------------------------------
# Failed verifications
# ---------------------------------------------------------------------------

def record_failure(
    db: Session,
    *,
    bank_type: str,
    reference: str,
    sender_id: Optional[str],
    merchant_reference_id: Optional[str],
    reason: str,
    kind: str,
) -> FailedVerificationModel:
    row = FailedVerificationModel(
        bank_type=bank_type,
        reference=reference,
        sender_id=sender_id,
        merchant_reference_id=merchant_reference_id,
        reason=reason,
        kind=kind,
        failed_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    return row


# ---------------------------------------------------------------------------
# Receiver accounts
# ---------------------------------------------------------------------------

def list_receiver_accounts(db: Session, bank_type: str) -> list[ReceiverAccountModel]:
    return (
        db.query(ReceiverAccountModel)
        .filter(ReceiverAccountModel.bank_type == bank_type.upper())
        .order_by(ReceiverAccountModel.id)
        .all()
    )


def update_last_used(
    db: Session,
    account_id: int,
    previous: Optional[datetime],
    stamp: datetime,
) -> bool:
    """Set ``last_used_at`` to *stamp* only if it still equals *previous*.

    Returns False when another writer stamped the row in between.
    """
    if previous is None:
        guard = ReceiverAccountModel.last_used_at.is_(None)
    else:
        guard = ReceiverAccountModel.last_used_at == previous
    result = db.execute(
        update(ReceiverAccountModel)
        .where(ReceiverAccountModel.id == account_id, guard)
        .values(last_used_at=stamp)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1
