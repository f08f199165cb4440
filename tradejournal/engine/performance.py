"""
Dashboard performance statistics: win rate, averages, profit factor,
best weekday, trade-count series, calendar cells, per-strategy reports and
the trading plan report.

Break-even trades (net PnL == 0) count toward totals but are neither wins
nor losses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from tradejournal.engine.discipline import daily_aggregates, trade_day, trade_streaks
from tradejournal.engine.ledger import chronological, to_float

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# Shown instead of infinity when there is profit and no loss
PROFIT_FACTOR_CAP = 100.0


@dataclass
class WinLossStats:
    total_trades: int
    wins: int
    losses: int
    breakeven: int
    win_rate: float
    avg_win: float
    avg_loss: float
    win_loss_ratio: float


def win_loss_stats(trades: Sequence) -> WinLossStats:
    pnls = [to_float(t.net_pnl) for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    decided = len(wins) + len(losses)

    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = abs(sum(losses) / len(losses)) if losses else 0.0

    return WinLossStats(
        total_trades=len(pnls),
        wins=len(wins),
        losses=len(losses),
        breakeven=len(pnls) - decided,
        win_rate=len(wins) * 100 / decided if decided else 0.0,
        avg_win=avg_win,
        avg_loss=avg_loss,
        win_loss_ratio=avg_win / avg_loss if avg_loss > 0 else avg_win,
    )


@dataclass
class ProfitFactor:
    gross_profit: float
    gross_loss: float
    profit_factor: float


def profit_factor(trades: Sequence) -> ProfitFactor:
    gross_profit = sum(p for p in (to_float(t.net_pnl) for t in trades) if p > 0)
    gross_loss = abs(sum(p for p in (to_float(t.net_pnl) for t in trades) if p < 0))
    if gross_loss > 0:
        pf = gross_profit / gross_loss
    elif gross_profit > 0:
        pf = PROFIT_FACTOR_CAP
    else:
        pf = 0.0
    return ProfitFactor(gross_profit=gross_profit, gross_loss=gross_loss, profit_factor=pf)


@dataclass
class BestWeekday:
    weekday: Optional[int]
    name: Optional[str]
    profit: float
    pct_of_capital: float


def best_weekday(trades: Sequence, initial_capital) -> BestWeekday:
    """Weekday with the largest summed PnL. Empty when no weekday is positive."""
    totals = [0.0] * 7
    for t in trades:
        d = trade_day(t)
        if d is not None:
            totals[d.weekday()] += to_float(t.net_pnl)

    best_index = max(range(7), key=lambda i: totals[i])
    best_profit = totals[best_index]
    if best_profit <= 0:
        return BestWeekday(weekday=None, name=None, profit=0.0, pct_of_capital=0.0)

    capital = to_float(initial_capital) or 1.0
    return BestWeekday(
        weekday=best_index,
        name=WEEKDAY_NAMES[best_index],
        profit=best_profit,
        pct_of_capital=best_profit * 100 / capital,
    )


@dataclass
class TradeCountPoint:
    day: date
    count: int


def trade_count_series(trades: Sequence, start: date, end: date) -> List[TradeCountPoint]:
    """One point per calendar day in [start, end], zero-filled."""
    if start > end:
        end = start
    counts = {d: agg.trade_count for d, agg in daily_aggregates(trades).items()}
    series = []
    day = start
    while day <= end:
        series.append(TradeCountPoint(day=day, count=counts.get(day, 0)))
        day += timedelta(days=1)
    return series


@dataclass
class CalendarCell:
    day: date
    pnl: float
    pnl_pct: float
    trade_count: int
    payout_total: float = 0.0


def calendar_cells(trades: Sequence, payouts: Sequence, initial_capital) -> List[CalendarCell]:
    """Heatmap cells for every day that has a trade or a payout."""
    capital = to_float(initial_capital)
    cells: Dict[date, CalendarCell] = {}
    for d, agg in daily_aggregates(trades).items():
        cells[d] = CalendarCell(
            day=d,
            pnl=agg.pnl,
            pnl_pct=agg.pnl * 100 / capital if capital else 0.0,
            trade_count=agg.trade_count,
        )
    for p in payouts:
        d = p.payout_date
        cell = cells.setdefault(d, CalendarCell(day=d, pnl=0.0, pnl_pct=0.0, trade_count=0))
        cell.payout_total += to_float(p.amount)
    return [cells[d] for d in sorted(cells)]


def trades_on(trades: Sequence, day: date) -> list:
    return [t for t in trades if trade_day(t) == day]


def filter_by_range(trades: Sequence, start: Optional[date], end: Optional[date]) -> list:
    """Trades whose entry day falls within [start, end]; no bounds means everything."""
    if start is None and end is None:
        return list(trades)
    end = end or start
    result = []
    for t in trades:
        d = trade_day(t)
        if d is None:
            continue
        if start is not None and d < start:
            continue
        if end is not None and d > end:
            continue
        result.append(t)
    return result


# -------- strategy report --------

@dataclass
class BrokenRuleCount:
    rule_id: int
    rule_text: str
    broken_count: int
    total_trades: int


@dataclass
class StrategyCalendarCell:
    day: date
    pnl: float
    trade_count: int
    rules_followed_pct: float


@dataclass
class StrategyReport:
    total_trades: int
    winning_trades: int
    losing_trades: int
    breakeven_trades: int
    realized_win_pct: float
    rules_followed_win_pct: float
    current_streak: int
    total_pnl: float
    cumulative_pnl: List[float] = field(default_factory=list)
    broken_rules: List[BrokenRuleCount] = field(default_factory=list)
    calendar: List[StrategyCalendarCell] = field(default_factory=list)
    most_broken_rule: Optional[str] = None


def strategy_report(trades: Sequence, rules: Sequence = ()) -> StrategyReport:
    ordered = chronological(trades)
    if not ordered:
        return StrategyReport(
            total_trades=0, winning_trades=0, losing_trades=0, breakeven_trades=0,
            realized_win_pct=0.0, rules_followed_win_pct=0.0, current_streak=0, total_pnl=0.0,
        )

    stats = win_loss_stats(ordered)
    followed = [t for t in ordered if not t.broken_rules]
    followed_wins = sum(1 for t in followed if to_float(t.net_pnl) > 0)

    cumulative = []
    running = 0.0
    for t in ordered:
        running += to_float(t.net_pnl)
        cumulative.append(running)

    broken_counts: Dict[int, int] = {}
    for t in ordered:
        for r in t.broken_rules:
            broken_counts[r.id] = broken_counts.get(r.id, 0) + 1
    broken = [
        BrokenRuleCount(
            rule_id=r.id,
            rule_text=r.rule_text,
            broken_count=broken_counts.get(r.id, 0),
            total_trades=stats.total_trades,
        )
        for r in rules
    ]
    broken.sort(key=lambda b: b.broken_count, reverse=True)
    most_broken = broken[0].rule_text if broken and broken[0].broken_count > 0 else None

    by_day: Dict[date, StrategyCalendarCell] = {}
    followed_by_day: Dict[date, int] = {}
    for t in ordered:
        d = trade_day(t)
        if d is None:
            continue
        cell = by_day.setdefault(d, StrategyCalendarCell(day=d, pnl=0.0, trade_count=0, rules_followed_pct=0.0))
        cell.pnl += to_float(t.net_pnl)
        cell.trade_count += 1
        if not t.broken_rules:
            followed_by_day[d] = followed_by_day.get(d, 0) + 1
    for d, cell in by_day.items():
        cell.rules_followed_pct = followed_by_day.get(d, 0) * 100 / cell.trade_count

    return StrategyReport(
        total_trades=stats.total_trades,
        winning_trades=stats.wins,
        losing_trades=stats.losses,
        breakeven_trades=stats.breakeven,
        realized_win_pct=stats.wins * 100 / stats.total_trades,
        rules_followed_win_pct=followed_wins * 100 / len(followed) if followed else 0.0,
        current_streak=trade_streaks(ordered).current_count,
        total_pnl=running,
        cumulative_pnl=cumulative,
        broken_rules=broken,
        calendar=[by_day[d] for d in sorted(by_day)],
        most_broken_rule=most_broken,
    )


# -------- trading plan report --------

COMPLIANCE_LEVELS = ("full", "partial", "none")


@dataclass
class ComplianceBucket:
    level: str
    trade_count: int = 0
    pnl: float = 0.0


@dataclass
class PlanReport:
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
    compliance: List[ComplianceBucket] = field(default_factory=list)
    cumulative_pnl: List[float] = field(default_factory=list)


def plan_report(trades: Sequence) -> PlanReport:
    """How closely the trades followed the plan and what that was worth.

    A day breaks the plan when any of its trades is outside the plan. RR is
    net PnL over risk, averaged over trades with a risk amount. Trades with no
    setup compliance count as ``none``. Drawdown is measured on cumulative PnL
    from the first trade.
    """
    ordered = chronological(trades)
    stats = win_loss_stats(ordered)
    buckets = {level: ComplianceBucket(level=level) for level in COMPLIANCE_LEVELS}
    total = len(ordered)
    if not total:
        return PlanReport(
            total_trades=0, wins=0, losses=0, breakeven=0, win_rate=0.0,
            inside_plan_count=0, outside_plan_count=0, inside_plan_pct=0.0,
            days_respecting_plan=0, days_breaking_plan=0, avg_rr=0.0, avg_risk=0.0,
            profit_factor=0.0, total_pnl=0.0, max_drawdown=0.0, best_day_pnl=0.0,
            worst_day_pnl=0.0, max_streak_inside=0, max_streak_outside=0,
            compliance=list(buckets.values()),
        )

    outside = sum(1 for t in ordered if t.is_outside_plan)

    broken_by_day: Dict[date, bool] = {}
    for t in ordered:
        d = trade_day(t)
        if d is not None:
            broken_by_day[d] = broken_by_day.get(d, False) or bool(t.is_outside_plan)
    days_breaking = sum(1 for broken in broken_by_day.values() if broken)

    risks = []
    rrs = []
    for t in ordered:
        risk = to_float(t.risk_amount)
        if risk > 0:
            risks.append(risk)
            rrs.append(to_float(t.net_pnl) / risk)

    for t in ordered:
        bucket = buckets.get(t.setup_compliance or "none", buckets["none"])
        bucket.trade_count += 1
        bucket.pnl += to_float(t.net_pnl)

    cumulative = []
    running = 0.0
    peak = None
    max_drawdown = 0.0
    for t in ordered:
        running += to_float(t.net_pnl)
        cumulative.append(running)
        peak = running if peak is None else max(peak, running)
        max_drawdown = max(max_drawdown, peak - running)

    day_totals = [agg.pnl for agg in daily_aggregates(ordered).values()]

    inside_run = outside_run = best_inside = best_outside = 0
    for t in ordered:
        if t.is_outside_plan:
            outside_run, inside_run = outside_run + 1, 0
            best_outside = max(best_outside, outside_run)
        else:
            inside_run, outside_run = inside_run + 1, 0
            best_inside = max(best_inside, inside_run)

    return PlanReport(
        total_trades=total,
        wins=stats.wins,
        losses=stats.losses,
        breakeven=stats.breakeven,
        win_rate=stats.win_rate,
        inside_plan_count=total - outside,
        outside_plan_count=outside,
        inside_plan_pct=(total - outside) * 100 / total,
        days_respecting_plan=len(broken_by_day) - days_breaking,
        days_breaking_plan=days_breaking,
        avg_rr=sum(rrs) / len(rrs) if rrs else 0.0,
        avg_risk=sum(risks) / len(risks) if risks else 0.0,
        profit_factor=profit_factor(ordered).profit_factor,
        total_pnl=running,
        max_drawdown=max_drawdown,
        best_day_pnl=max(day_totals) if day_totals else 0.0,
        worst_day_pnl=min(day_totals) if day_totals else 0.0,
        max_streak_inside=best_inside,
        max_streak_outside=best_outside,
        compliance=list(buckets.values()),
        cumulative_pnl=cumulative,
    )
