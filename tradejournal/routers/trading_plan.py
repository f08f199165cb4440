from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.schemas.trading_plan import (
    PlanReportView,
    TradingPlanInput,
    TradingPlanReportResponse,
    TradingPlanResponse,
    TradingPlanView,
)
from tradejournal.services.trading_plan_service import TradingPlanService

router = APIRouter()


@router.get("/trading-plan", response_model=TradingPlanResponse)
async def get_trading_plan(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    plan = await TradingPlanService(session).get_plan(user_id)
    return TradingPlanResponse(plan=TradingPlanView.model_validate(plan) if plan else None)


@router.put("/trading-plan", response_model=TradingPlanResponse)
async def save_trading_plan(
    payload: TradingPlanInput,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    plan = await TradingPlanService(session).save_plan(user_id, payload.model_dump(mode="json"))
    return TradingPlanResponse(plan=TradingPlanView.model_validate(plan))


@router.get("/trading-plan/report", response_model=TradingPlanReportResponse)
async def trading_plan_report(
    account_id: Optional[int] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    plan, report = await TradingPlanService(session).report(user_id, account_id, start, end)
    return TradingPlanReportResponse(
        plan=TradingPlanView.model_validate(plan) if plan else None,
        report=PlanReportView.model_validate(report),
    )
