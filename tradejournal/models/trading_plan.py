from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, JSON, text, UniqueConstraint

from tradejournal.models.db import Base


class TradingPlan(Base):
    """One plan per user. Reference data for the dashboard and the mentor; it never gates trade entry."""

    __tablename__ = "trading_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)

    market = Column(String(64), nullable=True)
    instrument = Column(String(64), nullable=True)
    trading_type = Column(String(64), nullable=True)
    session = Column(String(64), nullable=True)
    allowed_hours_start = Column(String(8), nullable=True)
    allowed_hours_end = Column(String(8), nullable=True)

    risk_per_trade = Column(DECIMAL(10, 4), nullable=True)
    max_daily_risk = Column(DECIMAL(10, 4), nullable=True)
    max_trades_per_day = Column(Integer, nullable=True)
    min_rr = Column(DECIMAL(10, 4), nullable=True)
    stop_after_consecutive_losses = Column(Integer, nullable=True)

    # [{"rule": str, "active": bool}]
    psychological_rules = Column(JSON, nullable=False, default=list)
    # [{"name": str, "conditions": [str]}]
    setup_rules = Column(JSON, nullable=False, default=list)
    # {"discipline_goal", "performance_goal", "consistency_goal"}
    monthly_goals = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"), onupdate=text("CURRENT_TIMESTAMP"))

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_trading_plan_user"),
    )
