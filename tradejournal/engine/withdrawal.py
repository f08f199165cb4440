"""
Withdrawal eligibility and drawdown risk.

Threshold by drawdown policy:

- none / amount == 0 : initial capital
- fixed              : initial capital
- trailing           : min(high_water_mark - drawdown, initial capital)

The trailing threshold freezes at the initial capital once the high-water
mark has grown past initial + drawdown.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from tradejournal.core.exceptions import WithdrawalRejected
from tradejournal.engine.ledger import to_float

FIXED = "fixed"
TRAILING = "trailing"
NONE = "none"


def withdrawal_threshold(
    drawdown_type: Optional[str],
    initial_capital,
    drawdown_amount,
    hwm=None,
) -> float:
    initial = to_float(initial_capital)
    amount = to_float(drawdown_amount)
    if not drawdown_type or drawdown_type == NONE or amount <= 0:
        return initial
    if drawdown_type == TRAILING:
        peak = to_float(hwm) if hwm is not None else initial
        return min(peak - amount, initial)
    return initial


@dataclass
class WithdrawalEligibility:
    balance: float
    threshold: float
    max_withdrawal: float
    eligible: bool


def evaluate_withdrawal(
    balance,
    drawdown_type: Optional[str],
    initial_capital,
    drawdown_amount,
    hwm=None,
) -> WithdrawalEligibility:
    balance = to_float(balance)
    threshold = withdrawal_threshold(drawdown_type, initial_capital, drawdown_amount, hwm)
    # Rounded to cents so a request for the displayed maximum is never rejected by float noise
    max_withdrawal = round(max(0.0, balance - threshold), 2)
    return WithdrawalEligibility(
        balance=balance,
        threshold=threshold,
        max_withdrawal=max_withdrawal,
        eligible=balance > threshold,
    )


def validate_withdrawal_request(amount, eligibility: Optional[WithdrawalEligibility]) -> float:
    """Return the accepted amount or raise WithdrawalRejected."""
    if eligibility is None:
        raise WithdrawalRejected("account is required")
    value = to_float(amount)
    if not math.isfinite(value):
        raise WithdrawalRejected("amount must be a finite number", eligibility.max_withdrawal)
    if value <= 0:
        raise WithdrawalRejected("amount must be positive", eligibility.max_withdrawal)
    if value > eligibility.max_withdrawal:
        raise WithdrawalRejected(
            f"amount exceeds the maximum withdrawal of {eligibility.max_withdrawal:.2f}",
            eligibility.max_withdrawal,
        )
    return value


@dataclass
class RiskStatus:
    drawdown_type: str
    drawdown_amount: float
    loss_limit: float
    distance_to_limit: float
    remaining_pct: float
    status: str  # safe / warning / breached
    high_water_mark: float


def risk_status(
    balance,
    drawdown_type: Optional[str],
    initial_capital,
    drawdown_amount,
    hwm=None,
    warning_ratio: float = 0.25,
) -> Optional[RiskStatus]:
    """Distance from the loss limit. None when the account has no drawdown amount."""
    amount = to_float(drawdown_amount)
    if amount <= 0:
        return None

    initial = to_float(initial_capital)
    kind = drawdown_type if drawdown_type in (FIXED, TRAILING) else TRAILING
    if kind == FIXED:
        peak = initial
        loss_limit = initial - amount
    else:
        peak = to_float(hwm) if hwm is not None else initial
        loss_limit = min(peak - amount, initial)

    distance = to_float(balance) - loss_limit
    if distance < 0:
        status = "breached"
    elif distance <= amount * warning_ratio:
        status = "warning"
    else:
        status = "safe"

    used = amount - distance
    remaining_pct = max(0.0, min(100.0, (amount - max(0.0, used)) * 100 / amount))

    return RiskStatus(
        drawdown_type=kind,
        drawdown_amount=amount,
        loss_limit=loss_limit,
        distance_to_limit=distance,
        remaining_pct=remaining_pct,
        status=status,
        high_water_mark=peak,
    )


def profit_target_progress(total_pnl, profit_target) -> Optional[float]:
    """Percent of the profit target reached, for evaluation accounts."""
    target = to_float(profit_target)
    if target <= 0:
        return None
    return to_float(total_pnl) * 100 / target
