from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.exceptions import NotFound, WithdrawalRejected
from tradejournal.engine.withdrawal import (
    WithdrawalEligibility,
    evaluate_withdrawal,
    validate_withdrawal_request,
)
from tradejournal.models.payout import Payout
from tradejournal.services.account_service import AccountService, ledger_transaction, read_guard

logger = logging.getLogger(__name__)


@dataclass
class PayoutResult:
    payout: Payout
    balance: float
    eligibility: WithdrawalEligibility


class PayoutService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountService(session)

    async def list_payouts(self, user_id: str, account_id: Optional[int] = None) -> List[Payout]:
        stmt = select(Payout).where(Payout.user_id == user_id)
        if account_id is not None:
            stmt = stmt.where(Payout.account_id == account_id)
        stmt = stmt.order_by(desc(Payout.payout_date), desc(Payout.id))
        res = await read_guard(self.session.execute(stmt))
        return list(res.scalars().all())

    async def eligibility(self, user_id: str, account_id: Optional[int]) -> WithdrawalEligibility:
        if account_id is None:
            raise WithdrawalRejected("account is required")
        view = await self.accounts.balance_view(user_id, account_id)
        return view.eligibility

    async def create_payout(self, user_id: str, payload: Dict[str, Any]) -> PayoutResult:
        """Validate against the reconciled balance, insert, resync. All under the account lock."""
        data = dict(payload)
        account_id = data.get("account_id")
        if account_id is None:
            raise WithdrawalRejected("account is required")

        async with ledger_transaction(self.session):
            account = await self.accounts.lock_account(user_id, account_id)
            before = await self.accounts.ledger(account)
            eligibility = evaluate_withdrawal(
                before.balance,
                account.drawdown_type,
                account.initial_capital,
                account.drawdown_amount,
                before.high_water_mark,
            )
            try:
                amount = validate_withdrawal_request(data.get("amount"), eligibility)
            except WithdrawalRejected as e:
                logger.warning(f"Payout rejected | account={account_id} | amount={data.get('amount')} | {e}")
                raise

            data["amount"] = round(amount, 2)
            payout = Payout(user_id=user_id, **data)
            self.session.add(payout)
            after = await self.accounts.sync_capital(account)

        await self.session.refresh(payout)
        logger.info(
            f"Payout recorded | account={account_id} | amount={payout.amount} | balance={after.balance:.2f}"
        )
        return PayoutResult(
            payout=payout,
            balance=after.balance,
            eligibility=evaluate_withdrawal(
                after.balance,
                account.drawdown_type,
                account.initial_capital,
                account.drawdown_amount,
                after.high_water_mark,
            ),
        )

    async def delete_payout(self, user_id: str, payout_id: int) -> float:
        """Remove a payout; the amount flows back into the balance. Returns the new balance."""
        async with ledger_transaction(self.session):
            res = await self.session.execute(
                select(Payout).where(Payout.id == payout_id, Payout.user_id == user_id)
            )
            payout = res.scalars().first()
            if payout is None:
                raise NotFound("payout", payout_id)
            account = await self.accounts.lock_account(user_id, payout.account_id)
            await self.session.delete(payout)
            snapshot = await self.accounts.sync_capital(account)

        logger.info(f"Payout deleted | id={payout_id} | balance={snapshot.balance:.2f}")
        return snapshot.balance
