import pytest


async def _setup(client):
    account = await client.post("/api/v1/accounts", json={"name": "Main", "initial_capital": 5000})
    strategy = await client.post(
        "/api/v1/strategies",
        json={"name": "Opening range", "rules": ["Wait for the retest", "Stop below the range"]},
    )
    assert strategy.status_code == 201, strategy.text
    return account.json()["account"]["id"], strategy.json()


@pytest.mark.asyncio
async def test_strategy_rules_keep_order(client):
    _, strategy = await _setup(client)
    assert [r["rule_text"] for r in strategy["rules"]] == ["Wait for the retest", "Stop below the range"]
    assert [r["position"] for r in strategy["rules"]] == [0, 1]


@pytest.mark.asyncio
async def test_strategy_report(client):
    account_id, strategy = await _setup(client)
    retest_id = strategy["rules"][0]["id"]

    trades = [
        ("2024-05-01T10:00:00", 200, []),
        ("2024-05-02T10:00:00", -100, [retest_id]),
        ("2024-05-02T11:00:00", 50, []),
    ]
    for when, pnl, broken in trades:
        resp = await client.post(
            "/api/v1/trades",
            json={
                "account_id": account_id,
                "entry_time": when,
                "net_pnl": pnl,
                "strategy_id": strategy["id"],
                "broken_rule_ids": broken,
            },
        )
        assert resp.status_code == 201, resp.text

    resp = await client.get(f"/api/v1/strategies/{strategy['id']}/report")
    assert resp.status_code == 200
    report = resp.json()["report"]
    assert report["total_trades"] == 3
    assert report["rules_followed_win_pct"] == 100
    assert report["most_broken_rule"] == "Wait for the retest"
    assert report["cumulative_pnl"] == [200, 100, 150]
    assert report["current_streak"] == 1
    assert [c["rules_followed_pct"] for c in report["calendar"]] == [100, 50]


@pytest.mark.asyncio
async def test_broken_rule_must_belong_to_strategy(client):
    account_id, strategy = await _setup(client)
    other = (await client.post("/api/v1/strategies", json={"name": "Other", "rules": ["x"]})).json()

    resp = await client.post(
        "/api/v1/trades",
        json={
            "account_id": account_id,
            "entry_time": "2024-05-01T10:00:00",
            "net_pnl": 10,
            "strategy_id": strategy["id"],
            "broken_rule_ids": [other["rules"][0]["id"]],
        },
    )
    assert resp.status_code == 400
    assert (await client.get("/api/v1/trades")).json()["total"] == 0


@pytest.mark.asyncio
async def test_editing_rules_keeps_unchanged_ones(client):
    _, strategy = await _setup(client)
    kept_id = strategy["rules"][0]["id"]

    resp = await client.patch(
        f"/api/v1/strategies/{strategy['id']}",
        json={"rules": ["Wait for the retest", "Max two trades"]},
    )
    assert resp.status_code == 200
    rules = resp.json()["rules"]
    assert rules[0]["id"] == kept_id
    assert [r["rule_text"] for r in rules] == ["Wait for the retest", "Max two trades"]


@pytest.mark.asyncio
async def test_deleting_strategy_keeps_trades(client):
    account_id, strategy = await _setup(client)
    trade = (
        await client.post(
            "/api/v1/trades",
            json={
                "account_id": account_id,
                "entry_time": "2024-05-01T10:00:00",
                "net_pnl": 75,
                "strategy_id": strategy["id"],
                "broken_rule_ids": [strategy["rules"][1]["id"]],
            },
        )
    ).json()
    assert trade["rules_followed"] is False

    assert (await client.delete(f"/api/v1/strategies/{strategy['id']}")).status_code == 200

    resp = await client.get(f"/api/v1/trades/{trade['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["strategy_id"] is None
    assert body["broken_rule_ids"] == []
    assert body["net_pnl"] == 75
