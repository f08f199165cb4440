"""Trading accounts: capital, drawdown policy and funding metadata."""
from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, text, Index
from sqlalchemy.orm import relationship

from tradejournal.models.db import Base

ACCOUNT_TYPES = ("personal", "evaluation", "live")
ASSET_CLASSES = ("futures", "forex", "crypto", "stocks", "other")
DRAWDOWN_TYPES = ("fixed", "trailing", "none")


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    name = Column(String(128), nullable=False)
    account_type = Column(String(16), nullable=False, default="personal")
    asset_class = Column(String(16), nullable=False, default="other")

    initial_capital = Column(DECIMAL(20, 2), nullable=False)
    # Cache only: rewritten from the trade/payout history on every ledger write
    current_capital = Column(DECIMAL(20, 2), nullable=False)
    highest_balance = Column(DECIMAL(20, 2), nullable=True)

    drawdown_type = Column(String(16), nullable=True)
    drawdown_amount = Column(DECIMAL(20, 2), nullable=True)
    profit_target = Column(DECIMAL(20, 2), nullable=True)

    funding_company = Column(String(128), nullable=True)
    funding_phases = Column(Integer, nullable=True)
    funding_target_1 = Column(DECIMAL(20, 2), nullable=True)
    funding_target_2 = Column(DECIMAL(20, 2), nullable=True)

    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))

    trades = relationship("Trade", back_populates="account", cascade="all, delete-orphan", passive_deletes=True)
    payouts = relationship("Payout", back_populates="account", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("idx_account_user", "user_id"),
    )
