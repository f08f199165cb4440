from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

AccountType = Literal["personal", "evaluation", "live"]
AssetClass = Literal["futures", "forex", "crypto", "stocks", "other"]
DrawdownType = Literal["fixed", "trailing", "none"]

# NOT NULL columns of the accounts table
REQUIRED_ON_UPDATE = ("name", "account_type", "asset_class", "initial_capital")


class AccountCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    account_type: AccountType = "personal"
    asset_class: AssetClass = "other"
    initial_capital: float = Field(..., gt=0, allow_inf_nan=False)
    drawdown_type: Optional[DrawdownType] = None
    drawdown_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    profit_target: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    funding_company: Optional[str] = None
    funding_phases: Optional[int] = Field(None, ge=1)
    funding_target_1: Optional[float] = None
    funding_target_2: Optional[float] = None


class AccountUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    account_type: Optional[AccountType] = None
    asset_class: Optional[AssetClass] = None
    initial_capital: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    drawdown_type: Optional[DrawdownType] = None
    drawdown_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    profit_target: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    funding_company: Optional[str] = None
    funding_phases: Optional[int] = Field(None, ge=1)
    funding_target_1: Optional[float] = None
    funding_target_2: Optional[float] = None

    @model_validator(mode="after")
    def check_required(self):
        nulled = [f for f in REQUIRED_ON_UPDATE if f in self.model_fields_set and getattr(self, f) is None]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class AccountView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    account_type: str
    asset_class: str
    initial_capital: float
    current_capital: float
    highest_balance: Optional[float] = None
    drawdown_type: Optional[str] = None
    drawdown_amount: Optional[float] = None
    profit_target: Optional[float] = None
    funding_company: Optional[str] = None
    funding_phases: Optional[int] = None
    funding_target_1: Optional[float] = None
    funding_target_2: Optional[float] = None
    created_at: Optional[datetime] = None


class LedgerView(BaseModel):
    balance: float
    high_water_mark: float
    total_pnl: float
    total_payouts: float
    trade_count: int
    payout_count: int


class EligibilityView(BaseModel):
    balance: float
    threshold: float
    max_withdrawal: float
    eligible: bool


class RiskStatusView(BaseModel):
    drawdown_type: str
    drawdown_amount: float
    loss_limit: float
    distance_to_limit: float
    remaining_pct: float
    status: Literal["safe", "warning", "breached"]
    high_water_mark: float


class AccountDetailView(BaseModel):
    status: str = "ok"
    account: AccountView
    ledger: LedgerView
    eligibility: EligibilityView
    risk: Optional[RiskStatusView] = None
    profit_target_progress_pct: Optional[float] = None


class AccountListResponse(BaseModel):
    status: str = "ok"
    total: int = 0
    items: list[AccountView] = []
