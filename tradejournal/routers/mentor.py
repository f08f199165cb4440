from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.schemas.mentor import (
    DisciplineScoreResponse,
    MentorAskRequest,
    MentorHistoryResponse,
    MentorMessageView,
    MentorReplyResponse,
    QuickQuestionListResponse,
    QuickQuestionView,
    TradeAnalysisResponse,
)
from tradejournal.services.mentor_service import QUICK_QUESTIONS, MentorReply, MentorService

router = APIRouter(prefix="/mentor")


def _reply(reply: MentorReply) -> MentorReplyResponse:
    return MentorReplyResponse(
        reply=reply.reply,
        provider=reply.provider.value if reply.provider else None,
        discipline_score=reply.discipline_score,
    )


@router.get("/messages", response_model=MentorHistoryResponse)
async def get_history(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    messages = await MentorService(session).history(user_id)
    return MentorHistoryResponse(items=[MentorMessageView.model_validate(m) for m in messages])


@router.post("/messages", response_model=MentorReplyResponse)
async def send_message(
    payload: MentorAskRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return _reply(await MentorService(session).send_message(user_id, payload.message))


@router.delete("/messages")
async def clear_history(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    deleted = await MentorService(session).clear(user_id)
    return {"status": "ok", "deleted": deleted}


@router.get("/quick-questions", response_model=QuickQuestionListResponse)
async def quick_questions():
    return QuickQuestionListResponse(
        items=[QuickQuestionView(key=q.key, label=q.label, prompt=q.prompt) for q in QUICK_QUESTIONS]
    )


@router.post("/weekly-report", response_model=MentorReplyResponse)
async def weekly_report(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return _reply(await MentorService(session).weekly_report(user_id))


@router.post("/analysis", response_model=TradeAnalysisResponse)
async def analyze_trades(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return TradeAnalysisResponse(**await MentorService(session).analyze_trades(user_id))


@router.get("/discipline-score", response_model=DisciplineScoreResponse)
async def discipline_score(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    breakdown = await MentorService(session).discipline(user_id)
    return DisciplineScoreResponse(
        score=breakdown.score,
        plan=breakdown.plan,
        consistency=breakdown.consistency,
        risk=breakdown.risk,
        reflection=breakdown.reflection,
    )
