"""
Idempotency ledger over ``verified_payments``.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from verifier import repository
from verifier.models import VerifiedPaymentModel
from verifier.pipeline.adapters.base import Provider


class Ledger:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, provider: Provider, reference: str) -> bool:
        return repository.find_by_provider_and_reference(self.db, provider.value, reference) is not None

    def record(self, payment: VerifiedPaymentModel) -> bool:
        """Insert *payment*; False means the reference was recorded concurrently."""
        return repository.insert_if_absent(self.db, payment)
