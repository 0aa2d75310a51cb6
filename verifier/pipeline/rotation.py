"""
Receiver account rotation.

Hands out the least recently used receiver account for a provider so that
inbound funds spread across every configured account.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from verifier.models import ReceiverAccountModel
from verifier.pipeline.adapters.base import Provider
from verifier import repository

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5


def _least_recently_used(db: Session, provider: Provider) -> Optional[ReceiverAccountModel]:
    return (
        db.query(ReceiverAccountModel)
        .filter(ReceiverAccountModel.bank_type == provider.value)
        .order_by(
            ReceiverAccountModel.last_used_at.is_(None).desc(),
            ReceiverAccountModel.last_used_at.asc(),
            ReceiverAccountModel.id.asc(),
        )
        .first()
    )


def next_account(db: Session, provider: Provider) -> Optional[ReceiverAccountModel]:
    """Select and stamp the account with the oldest (or no) ``last_used_at``.

    The stamp is a compare-and-set on the previous timestamp; losing the race
    to a concurrent caller re-runs the selection.
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        account = _least_recently_used(db, provider)
        if account is None:
            logger.info("No receiver accounts configured for %s", provider.value)
            return None

        stamp = datetime.utcnow()
        if repository.update_last_used(db, account.id, account.last_used_at, stamp):
            db.refresh(account)
            logger.info("Rotated %s to account #%d", provider.value, account.id)
            return account

        logger.warning(
            "Account #%d for %s was taken concurrently (attempt %d/%d)",
            account.id, provider.value, attempt, MAX_ATTEMPTS,
        )
        db.expire_all()

    logger.error("Gave up rotating %s accounts after %d attempts", provider.value, MAX_ATTEMPTS)
    return None
