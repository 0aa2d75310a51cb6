"""
Verified payment and failed verification models
"""
from sqlalchemy import Column, Integer, String, Text, JSON, DateTime, Numeric, UniqueConstraint
from datetime import datetime
from verifier.database import Base


class VerifiedPaymentModel(Base):
    """A receipt that passed verification and was reported downstream"""
    __tablename__ = "verified_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(String, nullable=False, index=True)
    reference = Column(String, nullable=False)
    bank_type = Column(String, nullable=False, index=True)  # canonical provider tag

    amount = Column(Numeric(19, 2))
    payer_name = Column(String)
    payer_account = Column(String)
    receiver_name = Column(String)
    receiver_account = Column(String)
    transaction_date = Column(DateTime)
    narrative = Column(Text)
    raw_data = Column(JSON)  # extracted ReceiptFacts

    merchant_reference_id = Column(String)
    verified_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("bank_type", "reference", name="uq_verified_payments_bank_reference"),
    )


class FailedVerificationModel(Base):
    """Audit trail of rejected verification attempts"""
    __tablename__ = "failed_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(String)
    reference = Column(String, index=True)
    bank_type = Column(String)
    reason = Column(Text)
    kind = Column(String)  # FailureKind value
    merchant_reference_id = Column(String)
    failed_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
