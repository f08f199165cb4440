from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.schemas.trade import TradeCreateRequest, TradeListResponse, TradeUpdateRequest, TradeView
from tradejournal.services.trade_service import TradeService

router = APIRouter()


@router.get("/trades", response_model=TradeListResponse)
async def list_trades(
    account_id: Optional[int] = Query(None, description="Only trades of this account"),
    strategy_id: Optional[int] = Query(None, description="Only trades of this strategy"),
    start: Optional[date] = Query(None, description="First entry day, inclusive"),
    end: Optional[date] = Query(None, description="Last entry day, inclusive"),
    limit: Optional[int] = Query(None, ge=1, le=5000),
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    trades = await TradeService(session).list_trades(
        user_id, account_id=account_id, strategy_id=strategy_id, start=start, end=end, limit=limit
    )
    views = [TradeView.model_validate(t) for t in trades]
    return TradeListResponse(total=len(views), items=views)


@router.post("/trades", response_model=TradeView, status_code=201)
async def create_trade(
    payload: TradeCreateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    trade = await TradeService(session).create_trade(user_id, payload.model_dump())
    return TradeView.model_validate(trade)


@router.get("/trades/{trade_id}", response_model=TradeView)
async def get_trade(
    trade_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return TradeView.model_validate(await TradeService(session).get_trade(user_id, trade_id))


@router.patch("/trades/{trade_id}", response_model=TradeView)
async def update_trade(
    trade_id: int,
    payload: TradeUpdateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    trade = await TradeService(session).update_trade(user_id, trade_id, payload.model_dump(exclude_unset=True))
    return TradeView.model_validate(trade)


@router.delete("/trades/{trade_id}")
async def delete_trade(
    trade_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await TradeService(session).delete_trade(user_id, trade_id)
    return {"status": "ok", "deleted": True}
