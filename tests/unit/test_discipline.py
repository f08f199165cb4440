from datetime import datetime
from types import SimpleNamespace

import pytest

from tradejournal.engine.discipline import (
    daily_aggregates,
    daily_averages,
    discipline_breakdown,
    discipline_metrics,
    discipline_score,
    streak_walk,
    trade_streaks,
)


def _trade(day, pnl, hour=10, outside=False, risk=None, pre=None, post=None):
    return SimpleNamespace(
        entry_time=datetime(2024, 3, day, hour),
        net_pnl=pnl,
        is_outside_plan=outside,
        risk_amount=risk,
        pre_trade_notes=pre,
        post_trade_notes=post,
    )


def test_streak_example():
    stats = streak_walk([10, 5, -3, -2, -1, 7])
    assert stats.best == 2
    assert stats.worst == -3
    assert stats.current == 1
    assert stats.current_type == "win"


def test_breakeven_trades_are_skipped():
    assert streak_walk([5, 0, 5]).current == 2
    assert streak_walk([-5, 0, -5]).current == -2
    assert streak_walk([0, 0]).current_type == "neutral"


def test_trade_streaks_sort_by_entry_time():
    trades = [_trade(3, -1), _trade(1, 1), _trade(2, 1)]
    stats = trade_streaks(trades)
    assert stats.current == -1
    assert stats.best == 2


def test_daily_averages_example():
    result = daily_averages([50, -20, 30, -10])
    assert result.avg_daily_win == 40
    assert result.avg_daily_loss == -15


def test_daily_averages_empty():
    result = daily_averages([])
    assert result.avg_daily_win == 0
    assert result.avg_daily_loss == 0


def test_daily_aggregates_group_by_entry_date():
    trades = [_trade(1, 10, hour=9), _trade(1, -4, hour=15), _trade(2, 3)]
    days = daily_aggregates(trades)
    assert [agg.pnl for agg in days.values()] == [6, 3]
    assert [agg.trade_count for agg in days.values()] == [2, 1]


def test_score_is_zero_without_trades():
    assert discipline_score([]) == 0


def test_score_reaches_100_in_the_limiting_case():
    trades = [_trade(1, 50, risk=100, pre="plan"), _trade(1, 20, risk=100, post="ok")]
    assert discipline_score(trades) == 100


def test_score_floor():
    trades = [_trade(1, 100, outside=True), _trade(2, -100, outside=True)]
    assert discipline_score(trades) == 0


def test_score_rounds_half_up():
    # plan 10 + consistency 30 + risk 10 + reflection 2.5 = 52.5
    trades = [
        _trade(1, 10, risk=5, pre="x"),
        _trade(1, 10, outside=True, risk=5),
        _trade(1, 10, outside=True),
        _trade(1, 10, outside=True),
    ]
    breakdown = discipline_breakdown(trades)
    assert breakdown.plan + breakdown.consistency + breakdown.risk + breakdown.reflection == pytest.approx(52.5)
    assert breakdown.score == 53


def test_score_stays_in_range():
    trades = [_trade(d, (-1) ** d * d * 10, risk=1, pre="n") for d in range(1, 10)]
    assert 0 <= discipline_score(trades) <= 100


def test_discipline_metrics_by_day():
    trades = [
        _trade(1, 10),
        _trade(2, 10),
        _trade(2, -5, outside=True),
        _trade(3, 10),
        _trade(4, 10),
    ]
    metrics = discipline_metrics(trades)
    assert metrics.total_trades == 5
    assert metrics.trades_inside_plan == 4
    assert metrics.trades_inside_plan_pct == 80
    assert metrics.days_respecting_plan == 3
    assert metrics.current_discipline_streak == 2


def test_undated_trades_stay_out_of_daily_figures():
    undated = _trade(4, -300)
    undated.entry_time = None
    trades = [_trade(4, 100), undated]

    assert list(daily_aggregates(trades)) == [datetime(2024, 3, 4).date()]
    breakdown = discipline_breakdown(trades)
    # one dated day, so no spread between days
    assert breakdown.consistency == 30
    assert breakdown.plan == 40
