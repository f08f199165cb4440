from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PsychologicalRule(BaseModel):
    rule: str
    active: bool = True


class SetupRule(BaseModel):
    name: str
    conditions: list[str] = []


class MonthlyGoals(BaseModel):
    discipline_goal: str = ""
    performance_goal: str = ""
    consistency_goal: str = ""


class TradingPlanInput(BaseModel):
    market: Optional[str] = None
    instrument: Optional[str] = None
    trading_type: Optional[str] = None
    session: Optional[str] = None
    allowed_hours_start: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    allowed_hours_end: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    risk_per_trade: Optional[float] = Field(None, ge=0, le=100)
    max_daily_risk: Optional[float] = Field(None, ge=0, le=100)
    max_trades_per_day: Optional[int] = Field(None, ge=1)
    min_rr: Optional[float] = Field(None, ge=0)
    stop_after_consecutive_losses: Optional[int] = Field(None, ge=1)
    psychological_rules: list[PsychologicalRule] = []
    setup_rules: list[SetupRule] = []
    monthly_goals: Optional[MonthlyGoals] = None


class TradingPlanView(TradingPlanInput):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TradingPlanResponse(BaseModel):
    status: str = "ok"
    plan: Optional[TradingPlanView] = None


class ComplianceBucketView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: str
    trade_count: int
    pnl: float


class PlanReportView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_trades: int
    wins: int
    losses: int
    breakeven: int
    win_rate: float
    inside_plan_count: int
    outside_plan_count: int
    inside_plan_pct: float
    days_respecting_plan: int
    days_breaking_plan: int
    avg_rr: float
    avg_risk: float
    profit_factor: float
    total_pnl: float
    max_drawdown: float
    best_day_pnl: float
    worst_day_pnl: float
    max_streak_inside: int
    max_streak_outside: int
    compliance: list[ComplianceBucketView] = []
    cumulative_pnl: list[float] = []


class TradingPlanReportResponse(BaseModel):
    status: str = "ok"
    plan: Optional[TradingPlanView] = None
    report: PlanReportView
