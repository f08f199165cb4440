from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Direction = Literal["buy", "sell"]
SetupCompliance = Literal["full", "partial", "none"]

# Columns that are NOT NULL in the trades table; a PATCH may omit them but not null them
REQUIRED_ON_UPDATE = ("account_id", "entry_time", "direction", "net_pnl", "is_outside_plan")


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored times are naive UTC; offset-aware input is converted."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TradeCreateRequest(BaseModel):
    account_id: int
    entry_time: datetime
    exit_time: Optional[datetime] = None
    symbol: Optional[str] = Field(None, max_length=32)
    direction: Direction = "buy"
    net_pnl: float = Field(..., allow_inf_nan=False)
    risk_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    emotion: Optional[str] = Field(None, max_length=32)
    setup_rating: Optional[str] = Field(None, max_length=16)
    setup_compliance: Optional[SetupCompliance] = None
    is_outside_plan: bool = False
    pre_trade_notes: Optional[str] = None
    post_trade_notes: Optional[str] = None
    strategy_id: Optional[int] = None
    broken_rule_ids: list[int] = []

    @field_validator("entry_time", "exit_time")
    @classmethod
    def normalize_times(cls, value):
        return naive_utc(value)

    @model_validator(mode="after")
    def check_times(self):
        if self.exit_time is not None and self.exit_time < self.entry_time:
            raise ValueError("exit_time must not be before entry_time")
        if self.broken_rule_ids and self.strategy_id is None:
            raise ValueError("broken_rule_ids require a strategy_id")
        return self


class TradeUpdateRequest(BaseModel):
    account_id: Optional[int] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    symbol: Optional[str] = Field(None, max_length=32)
    direction: Optional[Direction] = None
    net_pnl: Optional[float] = Field(None, allow_inf_nan=False)
    risk_amount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    emotion: Optional[str] = Field(None, max_length=32)
    setup_rating: Optional[str] = Field(None, max_length=16)
    setup_compliance: Optional[SetupCompliance] = None
    is_outside_plan: Optional[bool] = None
    pre_trade_notes: Optional[str] = None
    post_trade_notes: Optional[str] = None
    strategy_id: Optional[int] = None
    broken_rule_ids: Optional[list[int]] = None

    @field_validator("entry_time", "exit_time")
    @classmethod
    def normalize_times(cls, value):
        return naive_utc(value)

    @model_validator(mode="after")
    def check_required(self):
        nulled = [f for f in REQUIRED_ON_UPDATE if f in self.model_fields_set and getattr(self, f) is None]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        if self.entry_time is not None and self.exit_time is not None and self.exit_time < self.entry_time:
            raise ValueError("exit_time must not be before entry_time")
        return self


class TradeView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    strategy_id: Optional[int] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    symbol: Optional[str] = None
    direction: str
    net_pnl: float
    risk_amount: Optional[float] = None
    emotion: Optional[str] = None
    setup_rating: Optional[str] = None
    setup_compliance: Optional[str] = None
    is_outside_plan: bool = False
    pre_trade_notes: Optional[str] = None
    post_trade_notes: Optional[str] = None
    broken_rule_ids: list[int] = []
    rules_followed: Optional[bool] = None
    created_at: Optional[datetime] = None


class TradeListResponse(BaseModel):
    status: str = "ok"
    total: int = 0
    items: list[TradeView] = []
