"""
Ledger reconciliation.

The authoritative balance of an account is always derived from its history:

    balance = initial_capital + sum(trade.net_pnl) - sum(payout.amount)

The ``current_capital`` column on the account is a cache of this value and is
never read back here.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence


def to_float(value) -> float:
    """Money columns come back as Decimal; missing values count as zero."""
    if value is None:
        return 0.0
    return float(value)


def sort_key(trade) -> datetime:
    return trade.entry_time or datetime.min


def chronological(trades: Iterable) -> list:
    return sorted(trades, key=sort_key)


def reconcile_balance(
    initial_capital,
    trade_pnls: Iterable,
    payout_amounts: Iterable = (),
) -> float:
    total_pnl = sum(to_float(p) for p in trade_pnls)
    total_payouts = sum(to_float(a) for a in payout_amounts)
    return to_float(initial_capital) + total_pnl - total_payouts


def high_water_mark(initial_capital, trade_pnls: Iterable) -> float:
    """Peak running balance over trades given in chronological order.

    Seeded at the initial capital, so it never drops below it. Payouts are not
    part of the walk: the mark tracks trading performance, not cash on hand.
    """
    running = to_float(initial_capital)
    hwm = running
    for pnl in trade_pnls:
        running += to_float(pnl)
        if running > hwm:
            hwm = running
    return hwm


@dataclass
class LedgerSnapshot:
    initial_capital: float
    total_pnl: float
    total_payouts: float
    balance: float
    high_water_mark: float
    trade_count: int
    payout_count: int


def reconcile(initial_capital, trades: Sequence, payouts: Sequence = ()) -> LedgerSnapshot:
    ordered = chronological(trades)
    pnls = [to_float(t.net_pnl) for t in ordered]
    amounts = [to_float(p.amount) for p in payouts]
    initial = to_float(initial_capital)
    return LedgerSnapshot(
        initial_capital=initial,
        total_pnl=sum(pnls),
        total_payouts=sum(amounts),
        balance=reconcile_balance(initial, pnls, amounts),
        high_water_mark=high_water_mark(initial, pnls),
        trade_count=len(pnls),
        payout_count=len(amounts),
    )


@dataclass
class EquityPoint:
    entry_time: Optional[datetime]
    cumulative_pnl: float
    balance: float


def _day_bounds(start: Optional[date], end: Optional[date]):
    start_dt = datetime.combine(start, datetime.min.time()) if start else None
    end_dt = datetime.combine(end or start, datetime.max.time()) if (end or start) else None
    return start_dt, end_dt


def equity_curve(
    initial_capital,
    trades: Sequence,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> tuple[float, List[EquityPoint]]:
    """Running balance for the trades inside [start, end].

    The curve opens at the balance reached before ``start``, so a filtered
    window still shows absolute account values. Returns (opening_balance, points).
    """
    start_dt, end_dt = _day_bounds(start, end)
    opening = to_float(initial_capital)
    points: List[EquityPoint] = []
    running_pnl = 0.0

    for t in chronological(trades):
        ts = t.entry_time
        if start_dt is not None and ts is not None and ts < start_dt:
            opening += to_float(t.net_pnl)
            continue
        if end_dt is not None and ts is not None and ts > end_dt:
            continue
        if start_dt is not None and ts is None:
            continue
        running_pnl += to_float(t.net_pnl)
        points.append(EquityPoint(entry_time=ts, cumulative_pnl=running_pnl, balance=opening + running_pnl))

    return opening, points
