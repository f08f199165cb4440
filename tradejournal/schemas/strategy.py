from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StrategyRuleView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rule_text: str
    position: int


class StrategyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    rules: list[str] = []


class StrategyUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    description: Optional[str] = None
    # When given, replaces the whole rule list
    rules: Optional[list[str]] = None


class StrategyView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    rules: list[StrategyRuleView] = []
    created_at: Optional[datetime] = None


class StrategyListResponse(BaseModel):
    status: str = "ok"
    total: int = 0
    items: list[StrategyView] = []


class BrokenRuleView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rule_id: int
    rule_text: str
    broken_count: int
    total_trades: int


class StrategyCalendarCellView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: date
    pnl: float
    trade_count: int
    rules_followed_pct: float


class StrategyReportView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_trades: int
    winning_trades: int
    losing_trades: int
    breakeven_trades: int
    realized_win_pct: float
    rules_followed_win_pct: float
    current_streak: int
    total_pnl: float
    cumulative_pnl: list[float] = []
    broken_rules: list[BrokenRuleView] = []
    calendar: list[StrategyCalendarCellView] = []
    most_broken_rule: Optional[str] = None


class StrategyReportResponse(BaseModel):
    status: str = "ok"
    strategy: StrategyView
    report: StrategyReportView
