import pytest

from tradejournal.core.exceptions import NotFound, ValidationFailed
from tradejournal.services.account_service import AccountService
from tradejournal.services.payout_service import PayoutService
from tradejournal.services.trade_service import TradeService


@pytest.mark.asyncio
async def test_other_users_account_is_invisible(session):
    svc = AccountService(session)
    account = await svc.create_account("alice", {"name": "A", "initial_capital": 5000})

    with pytest.raises(NotFound):
        await svc.get_account("bob", account.id)
    assert await svc.list_accounts("bob") == []


@pytest.mark.asyncio
async def test_trade_on_foreign_account_rejected_and_nothing_written(session):
    account = await AccountService(session).create_account("alice", {"name": "A", "initial_capital": 5000})

    with pytest.raises(NotFound):
        await TradeService(session).create_trade(
            "bob", {"account_id": account.id, "net_pnl": 100, "entry_time": None}
        )
    assert await TradeService(session).list_trades("alice") == []


@pytest.mark.asyncio
async def test_payout_without_account_rejected(session):
    with pytest.raises(ValidationFailed, match="account is required"):
        await PayoutService(session).create_payout("alice", {"amount": 10})


@pytest.mark.asyncio
async def test_cached_capital_matches_reconciler_after_each_write(session):
    accounts = AccountService(session)
    trades = TradeService(session)
    account = await accounts.create_account("alice", {"name": "A", "initial_capital": 1000})

    for pnl in (120, -30, 45.5):
        await trades.create_trade("alice", {"account_id": account.id, "net_pnl": pnl})
        refreshed = await accounts.get_account("alice", account.id)
        snapshot = await accounts.ledger(refreshed)
        assert float(refreshed.current_capital) == pytest.approx(snapshot.balance)
        assert float(refreshed.highest_balance) == pytest.approx(snapshot.high_water_mark)
