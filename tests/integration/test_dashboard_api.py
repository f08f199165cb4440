import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def seeded_account(client):
    resp = await client.post(
        "/api/v1/accounts",
        json={"name": "Main", "initial_capital": 10000, "drawdown_type": "fixed", "drawdown_amount": 1000},
    )
    account_id = resp.json()["account"]["id"]
    # 2024-01-01 is a Monday
    await client.post(
        "/api/v1/trades",
        json={
            "account_id": account_id,
            "entry_time": "2024-01-01T10:00:00",
            "net_pnl": 1500,
            "risk_amount": 100,
            "pre_trade_notes": "A+ setup at the open",
        },
    )
    await client.post(
        "/api/v1/trades",
        json={
            "account_id": account_id,
            "entry_time": "2024-01-02T14:30:00",
            "net_pnl": -500,
            "is_outside_plan": True,
        },
    )
    return account_id


@pytest.mark.asyncio
async def test_dashboard_snapshot(client, seeded_account):
    resp = await client.get("/api/v1/dashboard", params={"account_id": seeded_account, "as_of": "2024-01-02"})
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert body["ledger"]["balance"] == 11000
    assert body["ledger"]["high_water_mark"] == 11500
    assert body["eligibility"]["max_withdrawal"] == 1000

    assert body["overall"]["win_rate"] == 50
    assert body["today"]["total_trades"] == 1
    assert body["today"]["losses"] == 1
    assert body["streaks"] == {"current_count": 1, "current_type": "loss", "best": 1, "worst": -1}
    assert body["profit_factor"]["profit_factor"] == 3
    assert body["best_weekday"]["name"] == "Monday"
    assert body["best_weekday"]["pct_of_capital"] == 15
    assert body["daily_averages"]["avg_daily_win"] == 1500
    assert body["daily_averages"]["avg_daily_loss"] == -500

    # plan 20 + consistency 0 + risk 10 + reflection 5
    assert body["discipline"]["score"] == 35
    assert body["discipline"]["trades_inside_plan"] == 1
    assert body["discipline"]["days_respecting_plan"] == 1
    assert body["discipline"]["current_discipline_streak"] == 0

    assert body["opening_balance"] == 10000
    assert [p["balance"] for p in body["equity_curve"]] == [11500, 11000]
    assert len(body["trade_counts"]) == 30
    assert [p["count"] for p in body["trade_counts"][-2:]] == [1, 1]
    assert [c["pnl_pct"] for c in body["calendar"]] == [15, -5]


@pytest.mark.asyncio
async def test_dashboard_date_window(client, seeded_account):
    resp = await client.get(
        "/api/v1/dashboard",
        params={"account_id": seeded_account, "start": "2024-01-02", "end": "2024-01-02", "as_of": "2024-01-02"},
    )
    body = resp.json()
    assert body["overall"]["total_trades"] == 1
    assert body["opening_balance"] == 11500
    assert [p["balance"] for p in body["equity_curve"]] == [11000]
    assert len(body["trade_counts"]) == 1
    # balance figures always cover the whole history
    assert body["ledger"]["balance"] == 11000


@pytest.mark.asyncio
async def test_dashboard_rejects_inverted_range(client, seeded_account):
    resp = await client.get(
        "/api/v1/dashboard",
        params={"account_id": seeded_account, "start": "2024-02-01", "end": "2024-01-01"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_dashboard_unknown_account(client):
    resp = await client.get("/api/v1/dashboard", params={"account_id": 42})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_dashboard_rejects_unbounded_range(client, seeded_account):
    resp = await client.get(
        "/api/v1/dashboard",
        params={"account_id": seeded_account, "start": "0001-01-01", "end": "9999-12-31"},
    )
    assert resp.status_code == 400
    assert "date range" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_dashboard_end_at_earliest_date(client, seeded_account):
    resp = await client.get("/api/v1/dashboard", params={"account_id": seeded_account, "end": "0001-01-01"})
    assert resp.status_code == 200, resp.text
    assert len(resp.json()["trade_counts"]) == 1
