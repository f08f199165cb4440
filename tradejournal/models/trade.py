"""Executed round-trip trades."""
from sqlalchemy import (
    Column, Integer, String, DateTime, DECIMAL, Text, Boolean, ForeignKey, Table, text, Index,
)
from sqlalchemy.orm import relationship

from tradejournal.models.db import Base

DIRECTIONS = ("buy", "sell")
SETUP_COMPLIANCE = ("full", "partial", "none")

trade_broken_rules = Table(
    "trade_broken_rules",
    Base.metadata,
    Column("trade_id", Integer, ForeignKey("trades.id", ondelete="CASCADE"), primary_key=True),
    Column("rule_id", Integer, ForeignKey("strategy_rules.id", ondelete="CASCADE"), primary_key=True),
)


class Trade(Base):
    __tablename__ = "trades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    strategy_id = Column(Integer, ForeignKey("strategies.id", ondelete="SET NULL"), nullable=True)

    entry_time = Column(DateTime, nullable=True)
    exit_time = Column(DateTime, nullable=True)
    symbol = Column(String(32), nullable=True)
    direction = Column(String(8), nullable=False, default="buy")

    net_pnl = Column(DECIMAL(20, 2), nullable=False, default=0)
    risk_amount = Column(DECIMAL(20, 2), nullable=True)

    emotion = Column(String(32), nullable=True)
    setup_rating = Column(String(16), nullable=True)
    setup_compliance = Column(String(16), nullable=True)
    is_outside_plan = Column(Boolean, nullable=False, default=False)

    pre_trade_notes = Column(Text, nullable=True)
    post_trade_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))

    account = relationship("Account", back_populates="trades")
    strategy = relationship("Strategy", back_populates="trades")
    broken_rules = relationship("StrategyRule", secondary=trade_broken_rules, lazy="selectin")

    __table_args__ = (
        Index("idx_trade_account_entry", "account_id", "entry_time"),
        Index("idx_trade_user", "user_id"),
        Index("idx_trade_strategy", "strategy_id"),
    )

    @property
    def broken_rule_ids(self) -> list[int]:
        return [r.id for r in self.broken_rules]

    @property
    def rules_followed(self) -> bool | None:
        """None when the trade is not tied to a strategy."""
        if self.strategy_id is None:
            return None
        return not self.broken_rules
