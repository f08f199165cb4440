from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.config import settings
from tradejournal.core.exceptions import ValidationFailed
from tradejournal.engine.discipline import (
    DailyAverages,
    DisciplineMetrics,
    StreakStats,
    daily_averages,
    daily_pnl_totals,
    discipline_metrics,
    discipline_score,
    trade_streaks,
)
from tradejournal.engine.ledger import EquityPoint, equity_curve
from tradejournal.engine.performance import (
    BestWeekday,
    CalendarCell,
    ProfitFactor,
    TradeCountPoint,
    WinLossStats,
    best_weekday,
    calendar_cells,
    filter_by_range,
    profit_factor,
    trade_count_series,
    trades_on,
    win_loss_stats,
)
from tradejournal.services.account_service import AccountBalanceView, AccountService, read_guard

logger = logging.getLogger(__name__)


@dataclass
class DashboardSnapshot:
    balance: AccountBalanceView
    start: Optional[date]
    end: Optional[date]
    as_of: date
    overall: WinLossStats
    today: WinLossStats
    streaks: StreakStats
    profit_factor: ProfitFactor
    best_weekday: BestWeekday
    daily_averages: DailyAverages
    discipline_score: int
    discipline: DisciplineMetrics
    opening_balance: float
    equity_curve: List[EquityPoint]
    trade_counts: List[TradeCountPoint]
    calendar: List[CalendarCell]


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountService(session)

    async def snapshot(
        self,
        user_id: str,
        account_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        as_of: Optional[date] = None,
    ) -> DashboardSnapshot:
        """
        Everything the dashboard shows for one account.

        Balance, high-water mark, eligibility and risk always cover the full
        history; the statistics, curve and calendar cover [start, end] when given.
        """
        if start is not None and end is not None and start > end:
            raise ValidationFailed("start must not be after end")
        if start is not None and end is not None and (end - start).days + 1 > settings.MAX_RANGE_DAYS:
            raise ValidationFailed(f"date range must not exceed {settings.MAX_RANGE_DAYS} days")
        as_of = as_of or date.today()

        account = await self.accounts.get_account(user_id, account_id)
        trades, payouts = await self.accounts.load_history(account.id)
        balance = self.accounts.evaluate(account, await read_guard(self.accounts.ledger(account)))

        in_range = filter_by_range(trades, start, end)
        if start is not None or end is not None:
            lo, hi = start or date.min, end or start or date.max
            payouts_in_range = [p for p in payouts if lo <= p.payout_date <= hi]
        else:
            payouts_in_range = payouts

        if start is not None:
            count_start, count_end = start, end or start
        else:
            count_end = end or as_of
            span = min(settings.TRADE_COUNT_WINDOW_DAYS - 1, (count_end - date.min).days)
            count_start = count_end - timedelta(days=span)

        opening, curve = equity_curve(account.initial_capital, trades, start, end)

        logger.debug(
            f"Dashboard | account={account_id} | trades={len(trades)} | in_range={len(in_range)}"
        )
        return DashboardSnapshot(
            balance=balance,
            start=start,
            end=end,
            as_of=as_of,
            overall=win_loss_stats(in_range),
            today=win_loss_stats(trades_on(trades, as_of)),
            streaks=trade_streaks(in_range),
            profit_factor=profit_factor(in_range),
            best_weekday=best_weekday(in_range, account.initial_capital),
            daily_averages=daily_averages(daily_pnl_totals(in_range)),
            discipline_score=discipline_score(in_range),
            discipline=discipline_metrics(in_range),
            opening_balance=opening,
            equity_curve=curve,
            trade_counts=trade_count_series(trades, count_start, count_end),
            calendar=calendar_cells(in_range, payouts_in_range, account.initial_capital),
        )
