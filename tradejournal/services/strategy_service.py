from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.exceptions import NotFound, ValidationFailed
from tradejournal.engine.performance import StrategyReport, strategy_report
from tradejournal.models.strategy import Strategy, StrategyRule
from tradejournal.models.trade import Trade
from tradejournal.services.account_service import ledger_transaction, read_guard

logger = logging.getLogger(__name__)


def _clean_rules(rules: Optional[List[str]]) -> List[str]:
    cleaned = [r.strip() for r in (rules or [])]
    if any(not r for r in cleaned):
        raise ValidationFailed("rule text must not be empty")
    return cleaned


class StrategyService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_strategies(self, user_id: str) -> List[Strategy]:
        stmt = (
            select(Strategy)
            .where(Strategy.user_id == user_id)
            .order_by(desc(Strategy.created_at), desc(Strategy.id))
        )
        res = await read_guard(self.session.execute(stmt))
        return list(res.scalars().all())

    async def get_strategy(self, user_id: str, strategy_id: int) -> Strategy:
        stmt = (
            select(Strategy)
            .where(Strategy.id == strategy_id, Strategy.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        res = await read_guard(self.session.execute(stmt))
        strategy = res.scalars().first()
        if strategy is None:
            raise NotFound("strategy", strategy_id)
        return strategy

    async def create_strategy(self, user_id: str, payload: Dict[str, Any]) -> Strategy:
        data = dict(payload)
        rules = _clean_rules(data.pop("rules", None))
        strategy = Strategy(user_id=user_id, **data)
        strategy.rules = [StrategyRule(rule_text=text, position=i) for i, text in enumerate(rules)]
        async with ledger_transaction(self.session):
            self.session.add(strategy)
        logger.info(f"Strategy created | user={user_id} | id={strategy.id} | rules={len(rules)}")
        return await self.get_strategy(user_id, strategy.id)

    async def update_strategy(self, user_id: str, strategy_id: int, changes: Dict[str, Any]) -> Strategy:
        data = dict(changes)
        rules = data.pop("rules", None)
        async with ledger_transaction(self.session):
            strategy = await self.get_strategy(user_id, strategy_id)
            for field, value in data.items():
                setattr(strategy, field, value)
            if rules is not None:
                self._replace_rules(strategy, _clean_rules(rules))
        return await self.get_strategy(user_id, strategy_id)

    @staticmethod
    def _replace_rules(strategy: Strategy, texts: List[str]) -> None:
        """Keep rules whose text is unchanged so broken-rule history survives an edit."""
        existing = {r.rule_text: r for r in strategy.rules}
        new_rules = []
        for position, text in enumerate(texts):
            rule = existing.pop(text, None) or StrategyRule(rule_text=text)
            rule.position = position
            new_rules.append(rule)
        strategy.rules = new_rules

    async def delete_strategy(self, user_id: str, strategy_id: int) -> None:
        """Trades keep their PnL; their strategy link is cleared (ON DELETE SET NULL)."""
        async with ledger_transaction(self.session):
            strategy = await self.get_strategy(user_id, strategy_id)
            await self.session.delete(strategy)
        logger.info(f"Strategy deleted | user={user_id} | id={strategy_id}")

    async def report(self, user_id: str, strategy_id: int) -> tuple[Strategy, StrategyReport]:
        strategy = await self.get_strategy(user_id, strategy_id)
        res = await read_guard(
            self.session.execute(
                select(Trade).where(Trade.user_id == user_id, Trade.strategy_id == strategy_id)
            )
        )
        trades = list(res.scalars().all())
        return strategy, strategy_report(trades, strategy.rules)
