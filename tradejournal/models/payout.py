"""Withdrawals taken out of an account."""
from sqlalchemy import Column, Integer, String, Date, DateTime, DECIMAL, Text, ForeignKey, text, Index
from sqlalchemy.orm import relationship

from tradejournal.models.db import Base


class Payout(Base):
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount = Column(DECIMAL(20, 2), nullable=False)
    payout_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))

    account = relationship("Account", back_populates="payouts")

    __table_args__ = (
        Index("idx_payout_account_date", "account_id", "payout_date"),
    )
