from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from tradejournal.schemas.account import AccountView, EligibilityView, LedgerView, RiskStatusView


class _FromAttrs(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class WinLossView(_FromAttrs):
    total_trades: int
    wins: int
    losses: int
    breakeven: int
    win_rate: float
    avg_win: float
    avg_loss: float
    win_loss_ratio: float


class ProfitFactorView(_FromAttrs):
    gross_profit: float
    gross_loss: float
    profit_factor: float


class StreakView(BaseModel):
    current_count: int
    current_type: Literal["win", "loss", "neutral"]
    best: int
    worst: int


class BestWeekdayView(_FromAttrs):
    weekday: Optional[int] = None
    name: Optional[str] = None
    profit: float
    pct_of_capital: float


class TradeCountPointView(_FromAttrs):
    day: date
    count: int


class CalendarCellView(_FromAttrs):
    day: date
    pnl: float
    pnl_pct: float
    trade_count: int
    payout_total: float


class EquityPointView(_FromAttrs):
    entry_time: Optional[datetime] = None
    cumulative_pnl: float
    balance: float


class DailyAveragesView(_FromAttrs):
    avg_daily_win: float
    avg_daily_loss: float
    winning_days: int
    losing_days: int


class DisciplineView(BaseModel):
    score: int
    total_trades: int
    trades_inside_plan: int
    trades_inside_plan_pct: float
    days_respecting_plan: int
    current_discipline_streak: int


class DashboardResponse(BaseModel):
    status: str = "ok"
    account: AccountView
    start: Optional[date] = None
    end: Optional[date] = None
    as_of: date

    ledger: LedgerView
    eligibility: EligibilityView
    risk: Optional[RiskStatusView] = None

    overall: WinLossView
    today: WinLossView
    streaks: StreakView
    profit_factor: ProfitFactorView
    best_weekday: BestWeekdayView
    daily_averages: DailyAveragesView
    discipline: DisciplineView

    opening_balance: float
    equity_curve: list[EquityPointView] = []
    trade_counts: list[TradeCountPointView] = []
    calendar: list[CalendarCellView] = []
