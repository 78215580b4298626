from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

Budget = Literal["<25", "25-50", "50+", "none"]


class QuizAnswers(BaseModel):
    """Structured intent collected by the widget's quiz."""
    goal: Optional[str] = None          # relax / sleep / social / focus / high / ...
    experience: Optional[str] = None    # new / casual / regular
    format: str = "any"                 # category name or "any"
    budget: Budget = "none"

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @field_validator("format", "budget", mode="before")
    @classmethod
    def _null_means_no_preference(cls, v, info):
        # the widget sends null for skipped questions
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str

    model_config = ConfigDict(frozen=True)
