from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.exceptions import ValidationFailed
from tradejournal.engine.performance import PlanReport, plan_report
from tradejournal.models.trading_plan import TradingPlan
from tradejournal.services.account_service import AccountService, ledger_transaction, read_guard
from tradejournal.services.trade_service import TradeService

logger = logging.getLogger(__name__)


class TradingPlanService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_plan(self, user_id: str) -> Optional[TradingPlan]:
        stmt = (
            select(TradingPlan)
            .where(TradingPlan.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        res = await read_guard(self.session.execute(stmt))
        return res.scalars().first()

    async def save_plan(self, user_id: str, payload: Dict[str, Any]) -> TradingPlan:
        """Create the user's plan or overwrite every field of the existing one."""
        async with ledger_transaction(self.session):
            plan = await self.get_plan(user_id)
            if plan is None:
                plan = TradingPlan(user_id=user_id)
                self.session.add(plan)
                logger.info(f"Trading plan created | user={user_id}")
            for field, value in payload.items():
                setattr(plan, field, value)
        await self.session.refresh(plan)
        return plan

    async def report(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Tuple[Optional[TradingPlan], PlanReport]:
        """Plan adherence over every trade of the user, or of one account, within [start, end]."""
        if start is not None and end is not None and start > end:
            raise ValidationFailed("start must not be after end")
        if account_id is not None:
            await AccountService(self.session).get_account(user_id, account_id)
        trades = await TradeService(self.session).list_trades(
            user_id, account_id=account_id, start=start, end=end
        )
        return await self.get_plan(user_id), plan_report(trades)


def _fmt(value, suffix: str = "") -> str:
    if value is None or value == "":
        return "not set"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{suffix}"


def plan_summary(plan: Optional[TradingPlan]) -> str:
    """Plain-text plan block for the mentor context."""
    if plan is None:
        return "No trading plan defined."

    lines: List[str] = [
        "TRADING PLAN:",
        f"- Market: {_fmt(plan.market)} | Instrument: {_fmt(plan.instrument)}",
        f"- Trading type: {_fmt(plan.trading_type)} | Session: {_fmt(plan.session)}",
        f"- Allowed hours: {_fmt(plan.allowed_hours_start)} - {_fmt(plan.allowed_hours_end)}",
        f"- Risk per trade: {_fmt(_num(plan.risk_per_trade), '%')} | Max daily risk: {_fmt(_num(plan.max_daily_risk), '%')}",
        f"- Max trades per day: {_fmt(plan.max_trades_per_day)} | Min RR: {_fmt(_num(plan.min_rr))}",
        f"- Stop after consecutive losses: {_fmt(plan.stop_after_consecutive_losses)}",
    ]

    active_rules = [r.get("rule") for r in (plan.psychological_rules or []) if r.get("active", True)]
    if active_rules:
        lines.append("- Psychological rules: " + "; ".join(active_rules))

    for setup in plan.setup_rules or []:
        conditions = ", ".join(setup.get("conditions") or []) or "no conditions"
        lines.append(f"- Setup {setup.get('name')}: {conditions}")

    goals = plan.monthly_goals or {}
    for key, label in (
        ("discipline_goal", "Discipline goal"),
        ("performance_goal", "Performance goal"),
        ("consistency_goal", "Consistency goal"),
    ):
        if goals.get(key):
            lines.append(f"- {label}: {goals[key]}")

    return "\n".join(lines)


def _num(value):
    return float(value) if value is not None else None
