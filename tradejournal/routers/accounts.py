from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tradejournal.core.auth import get_current_user
from tradejournal.models.db import get_session
from tradejournal.schemas.account import (
    AccountCreateRequest,
    AccountDetailView,
    AccountListResponse,
    AccountUpdateRequest,
    AccountView,
    EligibilityView,
    LedgerView,
    RiskStatusView,
)
from tradejournal.services.account_service import AccountBalanceView, AccountService

router = APIRouter()


def detail_view(view: AccountBalanceView) -> AccountDetailView:
    return AccountDetailView(
        account=AccountView.model_validate(view.account),
        ledger=LedgerView.model_validate(view.ledger, from_attributes=True),
        eligibility=EligibilityView.model_validate(view.eligibility, from_attributes=True),
        risk=RiskStatusView.model_validate(view.risk, from_attributes=True) if view.risk else None,
        profit_target_progress_pct=view.profit_target_progress_pct,
    )


@router.get("/accounts", response_model=AccountListResponse)
async def list_accounts(
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    accounts = await AccountService(session).list_accounts(user_id)
    views = [AccountView.model_validate(a) for a in accounts]
    return AccountListResponse(total=len(views), items=views)


@router.post("/accounts", response_model=AccountDetailView, status_code=201)
async def create_account(
    payload: AccountCreateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    svc = AccountService(session)
    account = await svc.create_account(user_id, payload.model_dump(exclude_none=True))
    return detail_view(await svc.balance_view(user_id, account.id))


@router.get("/accounts/{account_id}", response_model=AccountDetailView)
async def get_account(
    account_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return detail_view(await AccountService(session).balance_view(user_id, account_id))


@router.patch("/accounts/{account_id}", response_model=AccountDetailView)
async def update_account(
    account_id: int,
    payload: AccountUpdateRequest,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    svc = AccountService(session)
    await svc.update_account(user_id, account_id, payload.model_dump(exclude_unset=True))
    return detail_view(await svc.balance_view(user_id, account_id))


@router.delete("/accounts/{account_id}")
async def delete_account(
    account_id: int,
    user_id: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await AccountService(session).delete_account(user_id, account_id)
    return {"status": "ok", "deleted": True}
