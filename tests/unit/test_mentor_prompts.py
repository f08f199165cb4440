from datetime import datetime
from types import SimpleNamespace

import pytest

from tradejournal.core.exceptions import MentorUnavailable
from tradejournal.services.mentor_service import (
    QUICK_QUESTIONS,
    build_context,
    build_messages,
    build_metrics_summary,
    parse_analysis,
    system_prompt,
)


def _trade(day, pnl, outside=False, risk=None):
    return SimpleNamespace(
        entry_time=datetime(2024, 4, day, 10),
        net_pnl=pnl,
        risk_amount=risk,
        direction="buy",
        is_outside_plan=outside,
        pre_trade_notes=None,
        post_trade_notes="held too long" if pnl < 0 else None,
    )


def test_summary_without_trades():
    assert build_metrics_summary([]) == "No trades recorded yet."


def test_summary_metrics():
    trades = [_trade(1, 100, risk=50), _trade(2, -40, outside=True)]
    summary = build_metrics_summary(trades, balance=10060)
    assert "Win rate: 50.0%" in summary
    assert "Profit factor: 2.50" in summary
    assert "Current streak: -1 losses" in summary
    assert "Balance: $10060.00" in summary
    assert "Trades inside the plan: 1/2 (50.0%)" in summary
    assert "RR: 2.00" in summary
    assert 'Post: "held too long"' in summary


def test_summary_profit_factor_without_losses():
    assert "Profit factor: inf" in build_metrics_summary([_trade(1, 10)])


def test_summary_keeps_only_recent_trades():
    trades = [_trade(d, 1) for d in range(1, 16)]
    summary = build_metrics_summary(trades, recent_limit=10)
    assert "LAST 10 TRADES:" in summary
    assert "Date: 2024-04-15" in summary
    assert "Date: 2024-04-05" not in summary


def test_context_carries_score():
    context = build_context("CURRENT METRICS:", 73, "TRADING PLAN:")
    assert context.endswith("Discipline Score: 73/100")
    assert "TRADING PLAN:" in context


def test_messages_order():
    history = [SimpleNamespace(role="user", content="hi"), SimpleNamespace(role="assistant", content="hello")]
    messages = build_messages(history, "what now?", "ctx", language="English")
    assert messages[0]["role"] == "system"
    assert messages[0]["content"].endswith("ctx")
    assert [m["content"] for m in messages[1:]] == ["hi", "hello", "what now?"]


def test_system_prompt_language():
    assert "Always answer in Spanish." in system_prompt("Spanish")


def test_quick_questions():
    assert len(QUICK_QUESTIONS) == 7
    assert len({q.key for q in QUICK_QUESTIONS}) == 7


def test_parse_analysis_fills_missing_keys():
    result = parse_analysis('{"summary": "Solid month", "strengths": ["cuts losses"], "extra": 1}')
    assert result["summary"] == "Solid month"
    assert result["strengths"] == ["cuts losses"]
    assert result["tips"] == []
    assert result["emotional_pattern"] == ""
    assert "extra" not in result


def test_parse_analysis_rejects_invalid_json():
    with pytest.raises(MentorUnavailable):
        parse_analysis("not json")
