# api/v1/schemas/recommend.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from budtender.domain.models.intent import ChatTurn, QuizAnswers
from budtender.domain.models.product import Recommendation

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecommendRequest(BaseModel):
    # Optional so a missing id gets the same error shape as an unknown one
    tenant_id: Optional[str] = None
    answers: QuizAnswers = Field(default_factory=QuizAnswers)

    model_config = _CAMEL


class ChatRequest(BaseModel):
    tenant_id: Optional[str] = None
    message: str = Field(..., min_length=1)
    conversation_history: List[ChatTurn] = Field(default_factory=list)

    model_config = _CAMEL


class RecommendResponse(BaseModel):
    message: str
    recommendations: List[Recommendation] = Field(default_factory=list)

    model_config = _CAMEL


class ChatResponse(RecommendResponse):
    suggested_replies: List[str] = Field(default_factory=list)
