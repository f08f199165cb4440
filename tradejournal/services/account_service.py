"""
Account CRUD and the ledger cache.

Every write that can move a balance goes through ``ledger_transaction`` and
``AccountService.sync_capital``: lock the account row, apply the change,
recompute ``current_capital`` / ``highest_balance`` from the full history,
commit. Reads never look at the cached columns.
"""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.config import settings
from tradejournal.core.exceptions import NotFound, StorageError, ValidationFailed
from tradejournal.engine.ledger import LedgerSnapshot, reconcile
from tradejournal.engine.withdrawal import (
    RiskStatus,
    WithdrawalEligibility,
    evaluate_withdrawal,
    profit_target_progress,
    risk_status,
)
from tradejournal.models.account import Account
from tradejournal.models.payout import Payout
from tradejournal.models.trade import Trade
from tradejournal.schemas.account import REQUIRED_ON_UPDATE

logger = logging.getLogger(__name__)


@asynccontextmanager
async def ledger_transaction(session: AsyncSession):
    """Commit on success; roll back on any error and surface driver errors as StorageError."""
    try:
        yield
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Ledger write failed, rolled back: {e}")
        raise StorageError(str(e)) from e
    except Exception:
        await session.rollback()
        raise


async def read_guard(coro):
    """Await a read query, mapping driver errors to StorageError."""
    try:
        return await coro
    except SQLAlchemyError as e:
        logger.error(f"Read failed: {e}")
        raise StorageError(str(e)) from e


def _check_initial_capital(value) -> None:
    if value is None or not math.isfinite(float(value)) or float(value) <= 0:
        raise ValidationFailed("initial_capital must be positive")


@dataclass
class AccountBalanceView:
    account: Account
    ledger: LedgerSnapshot
    eligibility: WithdrawalEligibility
    risk: Optional[RiskStatus]
    profit_target_progress_pct: Optional[float]


class AccountService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # -------- lookups --------

    async def list_accounts(self, user_id: str) -> List[Account]:
        stmt = (
            select(Account)
            .where(Account.user_id == user_id)
            .order_by(desc(Account.created_at), desc(Account.id))
        )
        res = await read_guard(self.session.execute(stmt))
        return list(res.scalars().all())

    async def get_account(self, user_id: str, account_id: int) -> Account:
        stmt = select(Account).where(Account.id == account_id, Account.user_id == user_id)
        res = await read_guard(self.session.execute(stmt))
        account = res.scalars().first()
        if account is None:
            raise NotFound("account", account_id)
        return account

    async def lock_account(self, user_id: str, account_id: Optional[int]) -> Account:
        """SELECT ... FOR UPDATE on the account row. Must run inside ledger_transaction."""
        if account_id is None:
            raise ValidationFailed("account is required")
        stmt = (
            select(Account)
            .where(Account.id == account_id, Account.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        res = await self.session.execute(stmt)
        account = res.scalars().first()
        if account is None:
            raise NotFound("account", account_id)
        return account

    async def load_history(self, account_id: int) -> tuple[List[Trade], List[Payout]]:
        trades_res = await read_guard(
            self.session.execute(select(Trade).where(Trade.account_id == account_id))
        )
        payouts_res = await read_guard(
            self.session.execute(
                select(Payout).where(Payout.account_id == account_id).order_by(Payout.payout_date, Payout.id)
            )
        )
        return list(trades_res.scalars().all()), list(payouts_res.scalars().all())

    async def ledger(self, account: Account) -> LedgerSnapshot:
        """Reconciled balance from history. Only the two columns it needs are read."""
        trade_rows = (
            await self.session.execute(
                select(Trade.entry_time, Trade.net_pnl).where(Trade.account_id == account.id)
            )
        ).all()
        payout_rows = (
            await self.session.execute(select(Payout.amount).where(Payout.account_id == account.id))
        ).all()
        return reconcile(account.initial_capital, trade_rows, payout_rows)

    async def sync_capital(self, account: Account) -> LedgerSnapshot:
        """Rewrite the cached capital columns. Pending changes are flushed by the queries first."""
        snapshot = await self.ledger(account)
        account.current_capital = round(snapshot.balance, 2)
        account.highest_balance = round(snapshot.high_water_mark, 2)
        return snapshot

    # -------- balance view --------

    def evaluate(self, account: Account, snapshot: LedgerSnapshot) -> AccountBalanceView:
        return AccountBalanceView(
            account=account,
            ledger=snapshot,
            eligibility=evaluate_withdrawal(
                snapshot.balance,
                account.drawdown_type,
                account.initial_capital,
                account.drawdown_amount,
                snapshot.high_water_mark,
            ),
            risk=risk_status(
                snapshot.balance,
                account.drawdown_type,
                account.initial_capital,
                account.drawdown_amount,
                snapshot.high_water_mark,
                warning_ratio=settings.RISK_WARNING_RATIO,
            ),
            profit_target_progress_pct=profit_target_progress(snapshot.total_pnl, account.profit_target),
        )

    async def balance_view(self, user_id: str, account_id: int) -> AccountBalanceView:
        account = await self.get_account(user_id, account_id)
        snapshot = await read_guard(self.ledger(account))
        return self.evaluate(account, snapshot)

    # -------- writes --------

    async def create_account(self, user_id: str, payload: Dict[str, Any]) -> Account:
        initial = payload.get("initial_capital")
        _check_initial_capital(initial)

        account = Account(user_id=user_id, **payload)
        account.current_capital = initial
        account.highest_balance = initial
        async with ledger_transaction(self.session):
            self.session.add(account)
        await self.session.refresh(account)
        logger.info(f"Account created | user={user_id} | id={account.id} | capital={initial}")
        return account

    async def update_account(self, user_id: str, account_id: int, changes: Dict[str, Any]) -> Account:
        nulled = [f for f in REQUIRED_ON_UPDATE if f in changes and changes[f] is None]
        if nulled:
            raise ValidationFailed(f"{', '.join(nulled)} cannot be null")
        if "initial_capital" in changes:
            _check_initial_capital(changes["initial_capital"])

        async with ledger_transaction(self.session):
            account = await self.lock_account(user_id, account_id)
            for field, value in changes.items():
                setattr(account, field, value)
            if "initial_capital" in changes:
                snapshot = await self.sync_capital(account)
                logger.info(
                    f"Initial capital changed | account={account_id} | balance={snapshot.balance:.2f}"
                )
        await self.session.refresh(account)
        return account

    async def delete_account(self, user_id: str, account_id: int) -> None:
        """Trades and payouts go with the account (ON DELETE CASCADE)."""
        async with ledger_transaction(self.session):
            account = await self.lock_account(user_id, account_id)
            await self.session.delete(account)
        logger.info(f"Account deleted | user={user_id} | id={account_id}")
