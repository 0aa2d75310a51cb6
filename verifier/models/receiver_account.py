"""
Receiver account model
"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime
from verifier.database import Base


class ReceiverAccountModel(Base):
    """An account the operator expects to receive funds on"""
    __tablename__ = "receiver_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bank_type = Column(String, nullable=False, index=True)
    account_number = Column(String, nullable=False)  # full, unmasked
    account_name = Column(String, nullable=False)
    last_used_at = Column(DateTime)  # stamped by account rotation
    created_at = Column(DateTime, default=datetime.utcnow)
