from datetime import date, datetime
from types import SimpleNamespace

from tradejournal.engine.ledger import equity_curve, high_water_mark, reconcile, reconcile_balance


def _trade(day, pnl, hour=10):
    return SimpleNamespace(entry_time=datetime(2024, 1, day, hour), net_pnl=pnl)


def test_balance_adds_pnl_and_subtracts_payouts():
    assert reconcile_balance(10000, [100, -50], [200]) == 9850


def test_missing_values_count_as_zero():
    assert reconcile_balance(10000, [None, 100], [None]) == 10100


def test_reconcile_without_payouts_is_capital_plus_pnl():
    trades = [_trade(1, 250), _trade(2, -75.5)]
    snap = reconcile(5000, trades, [])
    assert snap.balance == 5000 + 250 - 75.5
    assert snap.total_pnl == 174.5
    assert snap.trade_count == 2


def test_reconcile_without_trades_is_capital_minus_payouts():
    payouts = [SimpleNamespace(amount=300), SimpleNamespace(amount=200)]
    snap = reconcile(5000, [], payouts)
    assert snap.balance == 4500
    assert snap.high_water_mark == 5000


def test_high_water_mark_never_below_initial():
    assert high_water_mark(10000, [-100, -200]) == 10000


def test_high_water_mark_is_non_decreasing_as_trades_append():
    pnls = [500, -200, 300, -1000, 50]
    marks = [high_water_mark(10000, pnls[:n]) for n in range(len(pnls) + 1)]
    assert marks == sorted(marks)
    assert marks[-1] == 10600


def test_high_water_mark_walks_trades_by_entry_time():
    # 10500 -> 9800 -> 10200 in time order; the given order would peak at 10900
    trades = [_trade(3, 400), _trade(1, 500), _trade(2, -700)]
    assert reconcile(10000, trades).high_water_mark == 10500


def test_payouts_do_not_lower_high_water_mark():
    snap = reconcile(10000, [_trade(1, 1000)], [SimpleNamespace(amount=800)])
    assert snap.balance == 10200
    assert snap.high_water_mark == 11000


def test_equity_curve_opens_at_balance_before_window():
    trades = [_trade(1, 100), _trade(2, 200), _trade(3, -50)]
    opening, points = equity_curve(10000, trades, start=date(2024, 1, 2), end=date(2024, 1, 3))
    assert opening == 10100
    assert [p.balance for p in points] == [10300, 10250]
    assert [p.cumulative_pnl for p in points] == [200, 150]


def test_equity_curve_without_range_covers_everything():
    opening, points = equity_curve(1000, [_trade(2, 10), _trade(1, 5)])
    assert opening == 1000
    assert [p.balance for p in points] == [1005, 1015]
