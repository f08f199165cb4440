from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MentorMessageView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: Literal["user", "assistant"]
    content: str
    created_at: Optional[datetime] = None


class MentorHistoryResponse(BaseModel):
    status: str = "ok"
    items: list[MentorMessageView] = []


class MentorAskRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class MentorReplyResponse(BaseModel):
    status: str = "ok"
    reply: str
    provider: Optional[str] = None
    discipline_score: int


class QuickQuestionView(BaseModel):
    key: str
    label: str
    prompt: str


class QuickQuestionListResponse(BaseModel):
    status: str = "ok"
    items: list[QuickQuestionView] = []


class TradeAnalysisResponse(BaseModel):
    status: str = "ok"
    summary: str = ""
    strengths: list[str] = []
    improvement_areas: list[str] = []
    tips: list[str] = []
    emotional_pattern: str = ""


class DisciplineScoreResponse(BaseModel):
    status: str = "ok"
    score: int
    plan: float
    consistency: float
    risk: float
    reflection: float
