from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.exceptions import NotFound, ValidationFailed
from tradejournal.models.strategy import Strategy, StrategyRule
from tradejournal.models.trade import Trade
from tradejournal.schemas.trade import REQUIRED_ON_UPDATE, naive_utc
from tradejournal.services.account_service import AccountService, ledger_transaction, read_guard

logger = logging.getLogger(__name__)


class TradeService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountService(session)

    async def list_trades(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        strategy_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[Trade]:
        stmt = select(Trade).where(Trade.user_id == user_id)
        if account_id is not None:
            stmt = stmt.where(Trade.account_id == account_id)
        if strategy_id is not None:
            stmt = stmt.where(Trade.strategy_id == strategy_id)
        if start is not None:
            stmt = stmt.where(Trade.entry_time >= datetime.combine(start, time.min))
        if end is not None:
            stmt = stmt.where(Trade.entry_time <= datetime.combine(end, time.max))
        stmt = stmt.order_by(desc(Trade.entry_time), desc(Trade.id))
        if limit:
            stmt = stmt.limit(limit)
        res = await read_guard(self.session.execute(stmt))
        return list(res.scalars().all())

    async def get_trade(self, user_id: str, trade_id: int) -> Trade:
        stmt = (
            select(Trade)
            .where(Trade.id == trade_id, Trade.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        res = await read_guard(self.session.execute(stmt))
        trade = res.scalars().first()
        if trade is None:
            raise NotFound("trade", trade_id)
        return trade

    async def _resolve_rules(
        self, user_id: str, strategy_id: Optional[int], rule_ids: Iterable[int]
    ) -> List[StrategyRule]:
        """Check the strategy belongs to the user and every broken rule belongs to the strategy."""
        rule_ids = list(dict.fromkeys(rule_ids))
        if strategy_id is None:
            if rule_ids:
                raise ValidationFailed("broken_rule_ids require a strategy_id")
            return []

        strategy = (
            await self.session.execute(
                select(Strategy.id).where(Strategy.id == strategy_id, Strategy.user_id == user_id)
            )
        ).scalar_one_or_none()
        if strategy is None:
            raise NotFound("strategy", strategy_id)
        if not rule_ids:
            return []

        res = await self.session.execute(
            select(StrategyRule).where(
                StrategyRule.id.in_(rule_ids), StrategyRule.strategy_id == strategy_id
            )
        )
        rules = list(res.scalars().all())
        missing = set(rule_ids) - {r.id for r in rules}
        if missing:
            raise ValidationFailed(
                f"rules {sorted(missing)} do not belong to strategy {strategy_id}"
            )
        return rules

    async def create_trade(self, user_id: str, payload: Dict[str, Any]) -> Trade:
        data = dict(payload)
        for key in ("entry_time", "exit_time"):
            if key in data:
                data[key] = naive_utc(data[key])
        rule_ids = data.pop("broken_rule_ids", None) or []

        async with ledger_transaction(self.session):
            account = await self.accounts.lock_account(user_id, data.get("account_id"))
            rules = await self._resolve_rules(user_id, data.get("strategy_id"), rule_ids)
            trade = Trade(user_id=user_id, **data)
            trade.broken_rules = rules
            self.session.add(trade)
            snapshot = await self.accounts.sync_capital(account)

        logger.info(
            f"Trade recorded | account={account.id} | pnl={trade.net_pnl} | balance={snapshot.balance:.2f}"
        )
        return await self.get_trade(user_id, trade.id)

    async def update_trade(self, user_id: str, trade_id: int, changes: Dict[str, Any]) -> Trade:
        data = dict(changes)
        nulled = [f for f in REQUIRED_ON_UPDATE if f in data and data[f] is None]
        if nulled:
            raise ValidationFailed(f"{', '.join(nulled)} cannot be null")
        for key in ("entry_time", "exit_time"):
            if key in data:
                data[key] = naive_utc(data[key])
        rule_ids = data.pop("broken_rule_ids", None)

        async with ledger_transaction(self.session):
            trade = await self.get_trade(user_id, trade_id)
            old_account_id = trade.account_id
            new_account_id = data.get("account_id", old_account_id)

            # Lock in id order so two moves between the same accounts cannot deadlock
            locked = {}
            for acc_id in sorted({old_account_id, new_account_id}):
                locked[acc_id] = await self.accounts.lock_account(user_id, acc_id)

            strategy_id = data.get("strategy_id", trade.strategy_id)
            if "strategy_id" in data or rule_ids is not None:
                ids = rule_ids if rule_ids is not None else (
                    trade.broken_rule_ids if strategy_id == trade.strategy_id else []
                )
                trade.broken_rules = await self._resolve_rules(user_id, strategy_id, ids)

            entry = data.get("entry_time", trade.entry_time)
            exit_ = data.get("exit_time", trade.exit_time)
            if entry is not None and exit_ is not None and exit_ < entry:
                raise ValidationFailed("exit_time must not be before entry_time")

            for field, value in data.items():
                setattr(trade, field, value)

            for account in locked.values():
                await self.accounts.sync_capital(account)

        logger.info(f"Trade updated | id={trade_id} | accounts={sorted(locked)}")
        return await self.get_trade(user_id, trade_id)

    async def delete_trade(self, user_id: str, trade_id: int) -> None:
        async with ledger_transaction(self.session):
            trade = await self.get_trade(user_id, trade_id)
            account = await self.accounts.lock_account(user_id, trade.account_id)
            await self.session.delete(trade)
            snapshot = await self.accounts.sync_capital(account)
        logger.info(f"Trade deleted | id={trade_id} | balance={snapshot.balance:.2f}")
