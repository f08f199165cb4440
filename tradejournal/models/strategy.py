from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, text, Index
from sqlalchemy.orm import relationship

from tradejournal.models.db import Base


class Strategy(Base):
    __tablename__ = "strategies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))

    rules = relationship(
        "StrategyRule",
        back_populates="strategy",
        cascade="all, delete-orphan",
        order_by="StrategyRule.position",
        lazy="selectin",
    )
    trades = relationship("Trade", back_populates="strategy", passive_deletes=True)

    __table_args__ = (
        Index("idx_strategy_user", "user_id"),
    )


class StrategyRule(Base):
    __tablename__ = "strategy_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    strategy_id = Column(Integer, ForeignKey("strategies.id", ondelete="CASCADE"), nullable=False)
    rule_text = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    strategy = relationship("Strategy", back_populates="rules")
