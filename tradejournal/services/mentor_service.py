"""
AI trading mentor.

The mentor sees a metrics summary built from the user's whole trade history,
the discipline score, the trading plan and the last few chat messages. The
user's message is stored before the LLM is called, so a provider failure
never loses what the user wrote.
"""
from __future__ import annotations

import asyncio
import json
import logging
import weakref
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.config import settings
from tradejournal.core.exceptions import MentorBusy, MentorUnavailable, ValidationFailed
from tradejournal.engine.discipline import (
    DisciplineBreakdown,
    daily_averages,
    daily_pnl_totals,
    discipline_breakdown,
    trade_streaks,
)
from tradejournal.engine.ledger import chronological, to_float
from tradejournal.engine.performance import profit_factor, win_loss_stats
from tradejournal.models.mentor_message import MentorMessage
from tradejournal.models.trade import Trade
from tradejournal.services.account_service import AccountService, ledger_transaction, read_guard
from tradejournal.services.ai_client_manager import AIProvider, call_ai_with_fallback
from tradejournal.services.trading_plan_service import TradingPlanService, plan_summary

logger = logging.getLogger(__name__)


def system_prompt(language: Optional[str] = None) -> str:
    language = language or settings.MENTOR_LANGUAGE
    return (
        "You are a professional trading performance mentor built into an advanced trading journal.\n"
        "You analyze quantitative metrics and psychological reflections.\n"
        "You detect discipline patterns, emotional biases and repeated mistakes.\n"
        "You are direct, precise and honest. You do not use empty motivational phrases.\n"
        "You rely on real data. You give at most 3 actionable recommendations.\n"
        "\n"
        "ANALYSIS RULES:\n"
        "- Detect: FOMO, revenge trading, overtrading, breaking the plan, poor risk management, "
        "contradictions between the trader's notes and the metrics.\n"
        "- Compare: win rate vs profit factor, average RR vs narrative, trades outside the plan vs results, "
        "losing streaks vs discipline.\n"
        "- Say it plainly when discipline is the main problem, when risk is badly sized, "
        "or when the trader is fooling themselves.\n"
        "- Keep answers to 150-250 words unless the user asks for a deep analysis.\n"
        f"- Always answer in {language}."
    )


@dataclass(frozen=True)
class QuickQuestion:
    key: str
    label: str
    prompt: str


QUICK_QUESTIONS: List[QuickQuestion] = [
    QuickQuestion(
        "analyze_week",
        "Analyze my week",
        "Analyze my performance over the last week based on my metrics and recent trades. "
        "Give me a clear summary with strengths, weaknesses and actionable recommendations.",
    ),
    QuickQuestion(
        "evaluate_discipline",
        "Evaluate my discipline",
        "Evaluate my real level of discipline based on my metrics. Am I following my plan? "
        "Are there contradictions between what I believe and what the data shows?",
    ),
    QuickQuestion(
        "why_losing",
        "Why am I losing?",
        "Analyze my recent losing trades. What is the main cause of my losses? "
        "Is it technical, psychological or risk management?",
    ),
    QuickQuestion(
        "psych_patterns",
        "Detect psychological patterns",
        "Detect psychological patterns in my trading: FOMO, revenge trading, overtrading, fear of losing, "
        "self-deception. Base it on my pre/post trade notes and results.",
    ),
    QuickQuestion(
        "respecting_plan",
        "Am I respecting my plan?",
        "Compare my trades inside and outside the plan. Are the trades outside the plan profitable or harmful? "
        "How much do they affect my overall result?",
    ),
    QuickQuestion(
        "biggest_mistake",
        "What is my biggest mistake?",
        "Identify my biggest recurring mistake right now. Be direct and tell me exactly what I am doing wrong "
        "and how to fix it.",
    ),
    QuickQuestion(
        "improve_consistency",
        "Improve consistency",
        "How can I become more consistent as a trader? Analyze my metrics and give me a concrete, "
        "data-driven improvement plan.",
    ),
]

WEEKLY_REPORT_PROMPT = (
    "Generate a complete Weekly Report of my trading. Include: 1) Performance summary, "
    "2) Dominant pattern detected, 3) Discipline evaluation, 4) Concrete improvement plan for next week. "
    "Be detailed and direct."
)

ANALYSIS_KEYS = ("summary", "strengths", "improvement_areas", "tips", "emotional_pattern")


def analysis_prompt(trades_json: str) -> str:
    return (
        "Act as a professional trading coach and expert data analyst. Your job is to analyze the following "
        "trade history and give personalized, objective and actionable feedback.\n\n"
        f"Trades as JSON:\n{trades_json}\n\n"
        "Reply ONLY with a valid JSON object with exactly this structure:\n"
        "{\n"
        '  "summary": "2-3 lines on overall performance and observed behavior",\n'
        '  "strengths": ["biggest strength", "second strength"],\n'
        '  "improvement_areas": ["most important weakness", "second weakness"],\n'
        '  "tips": ["practical tip", "second practical tip"],\n'
        '  "emotional_pattern": "how the recorded emotion relates to net_pnl, with one short tip"\n'
        "}"
    )


# -------- context builders --------

def _money(value: float) -> str:
    return f"${value:.2f}"


def _streak_label(current: int) -> str:
    if current > 0:
        return f"+{current} wins"
    if current < 0:
        return f"{current} losses"
    return "neutral"


def _trade_line(index: int, trade) -> str:
    pnl = to_float(trade.net_pnl)
    risk = to_float(trade.risk_amount) if trade.risk_amount is not None else None
    rr = f"{pnl / risk:.2f}" if risk else "N/A"
    day = trade.entry_time.date().isoformat() if trade.entry_time else "N/A"
    return (
        f"{index}. Date: {day} | PnL: {_money(pnl)} | Risk: {_money(risk) if risk else 'N/A'} | RR: {rr} "
        f"| Dir: {trade.direction} | Plan: {'NO' if trade.is_outside_plan else 'YES'} "
        f"| Pre: \"{trade.pre_trade_notes or '-'}\" | Post: \"{trade.post_trade_notes or '-'}\""
    )


def build_metrics_summary(
    trades: Sequence,
    balance: Optional[float] = None,
    recent_limit: Optional[int] = None,
) -> str:
    """Plain-text metrics block. Break-even trades are left out of win rate and streaks."""
    if not trades:
        return "No trades recorded yet."

    recent_limit = recent_limit or settings.MENTOR_RECENT_TRADES
    ordered = chronological(trades)
    stats = win_loss_stats(ordered)
    pf = profit_factor(ordered)
    if pf.gross_loss > 0:
        pf_text = f"{pf.profit_factor:.2f}"
    elif pf.gross_profit > 0:
        pf_text = "inf"
    else:
        pf_text = "0"
    streak = trade_streaks(ordered).current
    daily = daily_averages(daily_pnl_totals(ordered))
    inside = sum(1 for t in ordered if not t.is_outside_plan)

    lines = [
        "CURRENT METRICS:",
        f"- Win rate: {stats.win_rate:.1f}%",
        f"- Average win: {_money(stats.avg_win)}",
        f"- Average loss: {_money(stats.avg_loss)}",
        f"- Total trades: {stats.total_trades}",
        f"- Current streak: {_streak_label(streak)}",
        f"- Profit factor: {pf_text}",
        f"- Average winning day: {_money(daily.avg_daily_win)}",
        f"- Average losing day: {_money(abs(daily.avg_daily_loss))}",
    ]
    if balance is not None:
        lines.append(f"- Balance: {_money(balance)}")
    lines.append(f"- Trades inside the plan: {inside}/{stats.total_trades} ({inside * 100 / stats.total_trades:.1f}%)")

    recent = ordered[-recent_limit:]
    lines.append("")
    lines.append(f"LAST {len(recent)} TRADES:")
    lines.extend(_trade_line(i, t) for i, t in enumerate(recent, start=1))
    return "\n".join(lines)


def build_context(metrics_summary: str, score: int, plan_text: Optional[str] = None) -> str:
    parts = [f"TRADER CONTEXT:\n{metrics_summary}"]
    if plan_text:
        parts.append(plan_text)
    parts.append(f"Discipline Score: {score}/100")
    return "\n\n".join(parts)


def build_messages(
    history: Sequence,
    user_message: str,
    context: str,
    language: Optional[str] = None,
) -> List[Dict[str, str]]:
    """System prompt with context, then prior turns oldest first, then the new message."""
    messages = [{"role": "system", "content": f"{system_prompt(language)}\n\n{context}"}]
    messages.extend({"role": m.role, "content": m.content} for m in history)
    messages.append({"role": "user", "content": user_message})
    return messages


def parse_analysis(content: str) -> Dict[str, object]:
    """Decode the analysis JSON and keep only the known keys, with empty defaults."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MentorUnavailable(f"mentor returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MentorUnavailable("mentor returned a non-object JSON value")

    result: Dict[str, object] = {}
    for key in ANALYSIS_KEYS:
        value = data.get(key)
        if key in ("summary", "emotional_pattern"):
            result[key] = str(value) if value is not None else ""
        else:
            result[key] = [str(v) for v in value] if isinstance(value, list) else []
    return result


# -------- per-user concurrency --------

# Entries live only while a request holds the lock
_user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _lock_for(user_id: str) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = _user_locks[user_id] = asyncio.Lock()
    return lock


@dataclass
class MentorReply:
    reply: str
    provider: Optional[AIProvider]
    discipline_score: int


class MentorService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountService(session)

    # -------- history --------

    async def history(self, user_id: str, limit: Optional[int] = None) -> List[MentorMessage]:
        """Messages oldest first; with ``limit`` only the most recent ones."""
        stmt = (
            select(MentorMessage)
            .where(MentorMessage.user_id == user_id)
            .order_by(desc(MentorMessage.created_at), desc(MentorMessage.id))
        )
        if limit:
            stmt = stmt.limit(limit)
        res = await read_guard(self.session.execute(stmt))
        return list(reversed(res.scalars().all()))

    async def _save(self, user_id: str, role: str, content: str) -> MentorMessage:
        message = MentorMessage(user_id=user_id, role=role, content=content)
        async with ledger_transaction(self.session):
            self.session.add(message)
        return message

    async def clear(self, user_id: str) -> int:
        async with ledger_transaction(self.session):
            res = await self.session.execute(delete(MentorMessage).where(MentorMessage.user_id == user_id))
            deleted = res.rowcount or 0
        logger.info(f"Mentor history cleared | user={user_id} | deleted={deleted}")
        return deleted

    # -------- context --------

    async def _trades(self, user_id: str) -> List[Trade]:
        res = await read_guard(self.session.execute(select(Trade).where(Trade.user_id == user_id)))
        return list(res.scalars().all())

    async def _total_balance(self, user_id: str) -> Optional[float]:
        accounts = await self.accounts.list_accounts(user_id)
        if not accounts:
            return None
        total = 0.0
        for account in accounts:
            snapshot = await read_guard(self.accounts.ledger(account))
            total += snapshot.balance
        return total

    async def discipline(self, user_id: str) -> DisciplineBreakdown:
        return discipline_breakdown(await self._trades(user_id))

    async def build_context_for(self, user_id: str) -> tuple[str, int]:
        trades = await self._trades(user_id)
        score = discipline_breakdown(trades).score
        balance = await self._total_balance(user_id)
        plan = await TradingPlanService(self.session).get_plan(user_id)
        summary = build_metrics_summary(trades, balance)
        return build_context(summary, score, plan_summary(plan) if plan else None), score

    # -------- chat --------

    async def send_message(self, user_id: str, message: str) -> MentorReply:
        message = (message or "").strip()
        if not message:
            raise ValidationFailed("message must not be empty")

        lock = _lock_for(user_id)
        if lock.locked():
            logger.warning(f"Mentor busy | user={user_id}")
            raise MentorBusy("a mentor request is already running for this user")

        async with lock:
            history = await self.history(user_id, limit=settings.MENTOR_HISTORY_LIMIT)
            await self._save(user_id, "user", message)

            context, score = await self.build_context_for(user_id)
            messages = build_messages(history, message, context)
            content, provider = await call_ai_with_fallback(messages=messages)
            if not content:
                raise MentorUnavailable("no AI provider produced a reply; your message was saved")

            await self._save(user_id, "assistant", content)
            logger.info(f"Mentor reply | user={user_id} | provider={provider.value if provider else None}")
            return MentorReply(reply=content, provider=provider, discipline_score=score)

    async def weekly_report(self, user_id: str) -> MentorReply:
        return await self.send_message(user_id, WEEKLY_REPORT_PROMPT)

    async def analyze_trades(self, user_id: str) -> Dict[str, object]:
        """One-shot structured review of the whole trade history. Nothing is stored."""
        trades = chronological(await self._trades(user_id))
        if not trades:
            raise ValidationFailed("no trades recorded to analyze")

        lock = _lock_for(user_id)
        if lock.locked():
            raise MentorBusy("a mentor request is already running for this user")

        rows = [
            {
                "entry_time": t.entry_time.isoformat() if t.entry_time else None,
                "symbol": t.symbol,
                "direction": t.direction,
                "net_pnl": to_float(t.net_pnl),
                "risk_amount": to_float(t.risk_amount) if t.risk_amount is not None else None,
                "emotion": t.emotion,
                "setup_rating": t.setup_rating,
                "is_outside_plan": bool(t.is_outside_plan),
                "pre_trade_notes": t.pre_trade_notes,
                "post_trade_notes": t.post_trade_notes,
            }
            for t in trades
        ]
        messages = [
            {"role": "system", "content": system_prompt()},
            {"role": "user", "content": analysis_prompt(json.dumps(rows, ensure_ascii=False))},
        ]
        async with lock:
            content, provider = await call_ai_with_fallback(
                messages=messages,
                response_format={"type": "json_object"},
            )
        if not content:
            raise MentorUnavailable("no AI provider produced an analysis")
        return parse_analysis(content)
