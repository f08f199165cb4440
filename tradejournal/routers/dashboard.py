from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.routers.accounts import detail_view
from tradejournal.schemas.dashboard import (
    BestWeekdayView,
    CalendarCellView,
    DailyAveragesView,
    DashboardResponse,
    DisciplineView,
    EquityPointView,
    ProfitFactorView,
    StreakView,
    TradeCountPointView,
    WinLossView,
)
from tradejournal.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    account_id: int = Query(..., description="Account to summarize"),
    start: Optional[date] = Query(None, description="First day of the statistics window"),
    end: Optional[date] = Query(None, description="Last day of the statistics window"),
    as_of: Optional[date] = Query(None, description="Day used for today's stats, defaults to today"),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    snap = await DashboardService(session).snapshot(user_id, account_id, start=start, end=end, as_of=as_of)
    balance = detail_view(snap.balance)
    return DashboardResponse(
        account=balance.account,
        start=snap.start,
        end=snap.end,
        as_of=snap.as_of,
        ledger=balance.ledger,
        eligibility=balance.eligibility,
        risk=balance.risk,
        overall=WinLossView.model_validate(snap.overall),
        today=WinLossView.model_validate(snap.today),
        streaks=StreakView(
            current_count=snap.streaks.current_count,
            current_type=snap.streaks.current_type,
            best=snap.streaks.best,
            worst=snap.streaks.worst,
        ),
        profit_factor=ProfitFactorView.model_validate(snap.profit_factor),
        best_weekday=BestWeekdayView.model_validate(snap.best_weekday),
        daily_averages=DailyAveragesView.model_validate(snap.daily_averages),
        discipline=DisciplineView(
            score=snap.discipline_score,
            total_trades=snap.discipline.total_trades,
            trades_inside_plan=snap.discipline.trades_inside_plan,
            trades_inside_plan_pct=snap.discipline.trades_inside_plan_pct,
            days_respecting_plan=snap.discipline.days_respecting_plan,
            current_discipline_streak=snap.discipline.current_discipline_streak,
        ),
        opening_balance=snap.opening_balance,
        equity_curve=[EquityPointView.model_validate(p) for p in snap.equity_curve],
        trade_counts=[TradeCountPointView.model_validate(p) for p in snap.trade_counts],
        calendar=[CalendarCellView.model_validate(c) for c in snap.calendar],
    )
