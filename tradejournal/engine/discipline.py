"""
Discipline score, streaks and daily aggregation.

All reducers take trade rows (or anything with the same attributes) and
return plain dataclasses. Days are keyed by the ISO date of ``entry_time``;
trades without an entry time are left out of any per-day figure.
"""
from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from tradejournal.engine.ledger import chronological, to_float

PLAN_WEIGHT = 40
CONSISTENCY_WEIGHT = 30
RISK_WEIGHT = 20
REFLECTION_WEIGHT = 10


def trade_day(trade) -> Optional[date]:
    if trade.entry_time is None:
        return None
    return trade.entry_time.date()


@dataclass
class DayAggregate:
    day: date
    pnl: float = 0.0
    trade_count: int = 0


def daily_aggregates(trades: Sequence) -> Dict[date, DayAggregate]:
    """PnL sum and trade count per calendar day, ordered by day."""
    days: Dict[date, DayAggregate] = {}
    for t in trades:
        d = trade_day(t)
        if d is None:
            continue
        agg = days.setdefault(d, DayAggregate(day=d))
        agg.pnl += to_float(t.net_pnl)
        agg.trade_count += 1
    return dict(sorted(days.items()))


def daily_pnl_totals(trades: Sequence) -> List[float]:
    return [agg.pnl for agg in daily_aggregates(trades).values()]


@dataclass
class DailyAverages:
    avg_daily_win: float
    avg_daily_loss: float
    winning_days: int
    losing_days: int


def daily_averages(day_totals: Sequence[float]) -> DailyAverages:
    """Average of positive days and of negative days, each 0 when empty. Losses stay negative."""
    wins = [v for v in day_totals if v > 0]
    losses = [v for v in day_totals if v < 0]
    return DailyAverages(
        avg_daily_win=statistics.mean(wins) if wins else 0.0,
        avg_daily_loss=statistics.mean(losses) if losses else 0.0,
        winning_days=len(wins),
        losing_days=len(losses),
    )


# -------- streaks --------

@dataclass
class StreakStats:
    current: int = 0
    best: int = 0
    worst: int = 0
    history: List[int] = field(default_factory=list)

    @property
    def current_count(self) -> int:
        return abs(self.current)

    @property
    def current_type(self) -> str:
        if self.current > 0:
            return "win"
        if self.current < 0:
            return "loss"
        return "neutral"


def streak_walk(pnls: Sequence) -> StreakStats:
    """Signed win/loss run over PnL values in chronological order.

    Break-even values are skipped: they neither extend nor break a run.
    """
    stats = StreakStats()
    streak = 0
    for raw in pnls:
        pnl = to_float(raw)
        if pnl == 0:
            continue
        if pnl > 0:
            streak = streak + 1 if streak >= 0 else 1
        else:
            streak = streak - 1 if streak <= 0 else -1
        stats.best = max(stats.best, streak)
        stats.worst = min(stats.worst, streak)
        stats.history.append(streak)
    stats.current = streak
    return stats


def trade_streaks(trades: Sequence) -> StreakStats:
    return streak_walk([t.net_pnl for t in chronological(trades)])


# -------- discipline score --------

def _has_risk(trade) -> bool:
    return trade.risk_amount is not None and to_float(trade.risk_amount) > 0


def _has_notes(trade) -> bool:
    return bool(trade.pre_trade_notes) or bool(trade.post_trade_notes)


def consistency_component(day_totals: Sequence[float]) -> float:
    """Lower relative volatility of daily results scores higher, within [0, 30]."""
    if not day_totals:
        return float(CONSISTENCY_WEIGHT)
    mean = statistics.fmean(day_totals)
    std_dev = statistics.pstdev(day_totals)
    ratio = std_dev / (abs(mean) or 1)
    return max(0.0, CONSISTENCY_WEIGHT - min(CONSISTENCY_WEIGHT, ratio * 15))


@dataclass
class DisciplineBreakdown:
    plan: float
    consistency: float
    risk: float
    reflection: float
    score: int


def discipline_breakdown(trades: Sequence) -> DisciplineBreakdown:
    if not trades:
        return DisciplineBreakdown(plan=0.0, consistency=0.0, risk=0.0, reflection=0.0, score=0)

    total = len(trades)
    inside = sum(1 for t in trades if not t.is_outside_plan)
    with_risk = sum(1 for t in trades if _has_risk(t))
    with_notes = sum(1 for t in trades if _has_notes(t))

    plan = inside / total * PLAN_WEIGHT
    consistency = consistency_component(daily_pnl_totals(trades))
    risk = with_risk / total * RISK_WEIGHT
    reflection = with_notes / total * REFLECTION_WEIGHT

    # half-up, so 62.5 scores 63
    score = math.floor(plan + consistency + risk + reflection + 0.5)
    return DisciplineBreakdown(
        plan=plan,
        consistency=consistency,
        risk=risk,
        reflection=reflection,
        score=max(0, min(100, score)),
    )


def discipline_score(trades: Sequence) -> int:
    return discipline_breakdown(trades).score


# -------- plan adherence by day --------

@dataclass
class DisciplineMetrics:
    total_trades: int
    trades_inside_plan: int
    trades_inside_plan_pct: float
    days_respecting_plan: int
    current_discipline_streak: int


def discipline_metrics(trades: Sequence) -> DisciplineMetrics:
    if not trades:
        return DisciplineMetrics(0, 0, 0.0, 0, 0)

    total = len(trades)
    inside = sum(1 for t in trades if not t.is_outside_plan)

    respected_by_day: Dict[date, bool] = {}
    for t in trades:
        d = trade_day(t)
        if d is None:
            continue
        respected_by_day[d] = respected_by_day.get(d, True) and not t.is_outside_plan

    ordered_days = sorted(respected_by_day)
    days_respecting = sum(1 for d in ordered_days if respected_by_day[d])

    current = 0
    for d in reversed(ordered_days):
        if not respected_by_day[d]:
            break
        current += 1

    return DisciplineMetrics(
        total_trades=total,
        trades_inside_plan=inside,
        trades_inside_plan_pct=inside * 100 / total,
        days_respecting_plan=days_respecting,
        current_discipline_streak=current,
    )
