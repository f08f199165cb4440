import pytest

ACCOUNT = {
    "name": "Eval 50K",
    "account_type": "evaluation",
    "asset_class": "futures",
    "initial_capital": 10000,
    "drawdown_type": "trailing",
    "drawdown_amount": 2000,
    "profit_target": 3000,
}


async def _account(client, **overrides):
    resp = await client.post("/api/v1/accounts", json={**ACCOUNT, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()["account"]["id"]


async def _trade(client, account_id, pnl, when="2024-01-01T10:00:00", **extra):
    resp = await client.post(
        "/api/v1/trades",
        json={"account_id": account_id, "entry_time": when, "net_pnl": pnl, **extra},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _detail(client, account_id):
    resp = await client.get(f"/api/v1/accounts/{account_id}")
    assert resp.status_code == 200
    return resp.json()


@pytest.mark.asyncio
async def test_new_account_starts_at_initial_capital(client):
    account_id = await _account(client)
    detail = await _detail(client, account_id)
    assert detail["account"]["current_capital"] == 10000
    assert detail["ledger"]["balance"] == 10000
    # trailing: min(10000 - 2000, 10000) = 8000 until the high-water mark moves
    assert detail["eligibility"]["threshold"] == 8000
    assert detail["eligibility"]["max_withdrawal"] == 2000
    assert detail["risk"]["status"] == "safe"


@pytest.mark.asyncio
async def test_initial_capital_must_be_positive(client):
    resp = await client.post("/api/v1/accounts", json={**ACCOUNT, "initial_capital": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_trades_resync_cached_capital(client):
    account_id = await _account(client)
    await _trade(client, account_id, 1500, "2024-01-01T10:00:00")
    second = await _trade(client, account_id, -500, "2024-01-02T10:00:00")

    detail = await _detail(client, account_id)
    assert detail["ledger"]["balance"] == 11000
    assert detail["ledger"]["high_water_mark"] == 11500
    assert detail["account"]["current_capital"] == 11000
    assert detail["account"]["highest_balance"] == 11500
    # trailing: min(11500 - 2000, 10000) = 9500
    assert detail["eligibility"]["threshold"] == 9500
    assert detail["eligibility"]["max_withdrawal"] == 1500

    resp = await client.patch(f"/api/v1/trades/{second['id']}", json={"net_pnl": -200})
    assert resp.status_code == 200
    assert (await _detail(client, account_id))["account"]["current_capital"] == 11300

    resp = await client.delete(f"/api/v1/trades/{second['id']}")
    assert resp.status_code == 200
    assert (await _detail(client, account_id))["account"]["current_capital"] == 11500


@pytest.mark.asyncio
async def test_moving_a_trade_resyncs_both_accounts(client):
    first = await _account(client)
    second = await _account(client, name="Personal", drawdown_type=None, drawdown_amount=None)
    trade = await _trade(client, first, 700)

    resp = await client.patch(f"/api/v1/trades/{trade['id']}", json={"account_id": second})
    assert resp.status_code == 200
    assert (await _detail(client, first))["account"]["current_capital"] == 10000
    assert (await _detail(client, second))["account"]["current_capital"] == 10700


@pytest.mark.asyncio
async def test_payout_round_trip_restores_balance(client):
    account_id = await _account(client)
    await _trade(client, account_id, 1500)
    await _trade(client, account_id, -500, "2024-01-02T10:00:00")

    resp = await client.post(
        "/api/v1/payouts", json={"account_id": account_id, "amount": 1000, "payout_date": "2024-01-03"}
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["balance"] == 10000
    assert body["eligibility"]["max_withdrawal"] == 500
    payout_id = body["payout"]["id"]

    detail = await _detail(client, account_id)
    assert detail["account"]["current_capital"] == 10000
    assert detail["ledger"]["high_water_mark"] == 11500

    resp = await client.delete(f"/api/v1/payouts/{payout_id}")
    assert resp.status_code == 200
    assert resp.json()["balance"] == 11000

    detail = await _detail(client, account_id)
    assert detail["account"]["current_capital"] == 11000
    assert detail["ledger"]["total_payouts"] == 0


@pytest.mark.asyncio
async def test_payout_over_maximum_rejected_with_maximum(client):
    account_id = await _account(client)
    await _trade(client, account_id, 1500)
    await _trade(client, account_id, -500, "2024-01-02T10:00:00")

    resp = await client.post("/api/v1/payouts", json={"account_id": account_id, "amount": 2000})
    assert resp.status_code == 400
    assert resp.json()["max_withdrawal"] == 1500

    resp = await client.get("/api/v1/payouts", params={"account_id": account_id})
    assert resp.json()["total"] == 0
    assert (await _detail(client, account_id))["account"]["current_capital"] == 11000


@pytest.mark.asyncio
async def test_payout_needs_positive_amount(client):
    account_id = await _account(client)
    await _trade(client, account_id, 1500)
    resp = await client.post("/api/v1/payouts", json={"account_id": account_id, "amount": 0})
    assert resp.status_code == 400
    assert "positive" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_eligibility_endpoint(client):
    account_id = await _account(client, drawdown_type="fixed", drawdown_amount=1000)
    await _trade(client, account_id, 250)
    resp = await client.get("/api/v1/payouts/eligibility", params={"account_id": account_id})
    assert resp.status_code == 200
    assert resp.json() == {"balance": 10250, "threshold": 10000, "max_withdrawal": 250, "eligible": True}

    resp = await client.get("/api/v1/payouts/eligibility")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "account is required"


@pytest.mark.asyncio
async def test_deleting_account_removes_its_history(client):
    account_id = await _account(client)
    await _trade(client, account_id, 1500)
    await client.post("/api/v1/payouts", json={"account_id": account_id, "amount": 100})

    resp = await client.delete(f"/api/v1/accounts/{account_id}")
    assert resp.status_code == 200

    assert (await client.get(f"/api/v1/accounts/{account_id}")).status_code == 404
    assert (await client.get("/api/v1/trades", params={"account_id": account_id})).json()["total"] == 0
    assert (await client.get("/api/v1/payouts", params={"account_id": account_id})).json()["total"] == 0


@pytest.mark.asyncio
async def test_unknown_trade_is_not_found(client):
    resp = await client.delete("/api/v1/trades/999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "trade 999 not found"


@pytest.mark.asyncio
async def test_trade_list_filters_by_date(client):
    account_id = await _account(client)
    await _trade(client, account_id, 10, "2024-01-01T09:00:00")
    await _trade(client, account_id, 20, "2024-01-05T09:00:00")
    resp = await client.get(
        "/api/v1/trades", params={"account_id": account_id, "start": "2024-01-02", "end": "2024-01-31"}
    )
    assert [t["net_pnl"] for t in resp.json()["items"]] == [20]


@pytest.mark.asyncio
async def test_offset_times_are_stored_as_utc(client):
    account_id = await _account(client)
    trade = await _trade(client, account_id, 100, "2024-01-01T23:30:00-05:00")
    assert trade["entry_time"] == "2024-01-02T04:30:00"

    resp = await client.patch(f"/api/v1/trades/{trade['id']}", json={"exit_time": "2024-01-02T06:00:00+01:00"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["exit_time"] == "2024-01-02T05:00:00"

    resp = await client.patch(f"/api/v1/trades/{trade['id']}", json={"exit_time": "2024-01-02T04:00:00Z"})
    assert resp.status_code == 400
    assert "exit_time" in resp.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["account_id", "net_pnl", "direction", "is_outside_plan", "entry_time"])
async def test_trade_patch_cannot_null_required_fields(client, field):
    account_id = await _account(client)
    trade = await _trade(client, account_id, 300)

    resp = await client.patch(f"/api/v1/trades/{trade['id']}", json={field: None})
    assert resp.status_code == 422
    assert (await _detail(client, account_id))["account"]["current_capital"] == 10300


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["initial_capital", "name", "account_type"])
async def test_account_patch_cannot_null_required_fields(client, field):
    account_id = await _account(client)
    resp = await client.patch(f"/api/v1/accounts/{account_id}", json={field: None})
    assert resp.status_code == 422
    assert (await _detail(client, account_id))["account"]["initial_capital"] == 10000


@pytest.mark.asyncio
async def test_payout_amount_must_be_finite(client):
    account_id = await _account(client)
    await _trade(client, account_id, 1500)

    resp = await client.post(
        "/api/v1/payouts",
        content=f'{{"account_id": {account_id}, "amount": NaN}}',
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert "finite" in resp.json()["detail"]
    assert (await client.get("/api/v1/payouts", params={"account_id": account_id})).json()["total"] == 0
