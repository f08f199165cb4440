from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.schemas.strategy import (
    StrategyCreateRequest,
    StrategyListResponse,
    StrategyReportResponse,
    StrategyReportView,
    StrategyUpdateRequest,
    StrategyView,
)
from tradejournal.services.strategy_service import StrategyService

router = APIRouter()


@router.get("/strategies", response_model=StrategyListResponse)
async def list_strategies(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    strategies = await StrategyService(session).list_strategies(user_id)
    views = [StrategyView.model_validate(s) for s in strategies]
    return StrategyListResponse(total=len(views), items=views)


@router.post("/strategies", response_model=StrategyView, status_code=201)
async def create_strategy(
    payload: StrategyCreateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    strategy = await StrategyService(session).create_strategy(user_id, payload.model_dump())
    return StrategyView.model_validate(strategy)


@router.get("/strategies/{strategy_id}", response_model=StrategyView)
async def get_strategy(
    strategy_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return StrategyView.model_validate(await StrategyService(session).get_strategy(user_id, strategy_id))


@router.patch("/strategies/{strategy_id}", response_model=StrategyView)
async def update_strategy(
    strategy_id: int,
    payload: StrategyUpdateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    strategy = await StrategyService(session).update_strategy(
        user_id, strategy_id, payload.model_dump(exclude_unset=True)
    )
    return StrategyView.model_validate(strategy)


@router.delete("/strategies/{strategy_id}")
async def delete_strategy(
    strategy_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await StrategyService(session).delete_strategy(user_id, strategy_id)
    return {"status": "ok", "deleted": True}


@router.get("/strategies/{strategy_id}/report", response_model=StrategyReportResponse)
async def strategy_report(
    strategy_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    strategy, report = await StrategyService(session).report(user_id, strategy_id)
    return StrategyReportResponse(
        strategy=StrategyView.model_validate(strategy),
        report=StrategyReportView.model_validate(report),
    )
