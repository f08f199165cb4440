from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tradejournal.schemas.account import EligibilityView


class PayoutCreateRequest(BaseModel):
    account_id: int
    # Sign and size are checked by the withdrawal calculator so the caller gets its message
    amount: float
    payout_date: date = Field(default_factory=date.today)
    notes: Optional[str] = None


class PayoutView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    amount: float
    payout_date: date
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class PayoutListResponse(BaseModel):
    status: str = "ok"
    total: int = 0
    items: list[PayoutView] = []


class PayoutCreatedResponse(BaseModel):
    status: str = "ok"
    payout: PayoutView
    balance: float
    eligibility: EligibilityView
