from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.schemas.account import EligibilityView
from tradejournal.schemas.payout import (
    PayoutCreateRequest,
    PayoutCreatedResponse,
    PayoutListResponse,
    PayoutView,
)
from tradejournal.services.payout_service import PayoutService

router = APIRouter()


@router.get("/payouts", response_model=PayoutListResponse)
async def list_payouts(
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    payouts = await PayoutService(session).list_payouts(user_id, account_id)
    views = [PayoutView.model_validate(p) for p in payouts]
    return PayoutListResponse(total=len(views), items=views)


@router.get("/payouts/eligibility", response_model=EligibilityView)
async def payout_eligibility(
    account_id: Optional[int] = Query(None),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    eligibility = await PayoutService(session).eligibility(user_id, account_id)
    return EligibilityView.model_validate(eligibility, from_attributes=True)


@router.post("/payouts", response_model=PayoutCreatedResponse, status_code=201)
async def create_payout(
    payload: PayoutCreateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    result = await PayoutService(session).create_payout(user_id, payload.model_dump())
    return PayoutCreatedResponse(
        payout=PayoutView.model_validate(result.payout),
        balance=result.balance,
        eligibility=EligibilityView.model_validate(result.eligibility, from_attributes=True),
    )


@router.delete("/payouts/{payout_id}")
async def delete_payout(
    payout_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    balance = await PayoutService(session).delete_payout(user_id, payout_id)
    return {"status": "ok", "deleted": True, "balance": balance}
