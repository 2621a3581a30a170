"""Pydantic models for chat turns, generation options and HTTP bodies.

Nothing here is persisted. Conversation history is owned by the caller and
sent back in full with every chat request.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatRole(str, Enum):
    """Roles a caller may use in conversation history."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str

    def to_openai(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class GenerationOptions(BaseModel):
    """Per-call overrides for :meth:`CompletionService.generate_text`.

    ``None`` means "use the service default"; defaults are resolved at call time.
    """

    model_config = ConfigDict(populate_by_name=True)

    model: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens", gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1)
    options: Optional[GenerationOptions] = None


class StreamRequest(BaseModel):
    prompt: str = Field(min_length=1)


class ChatRequest(BaseModel):
    history: List[ChatMessage] = Field(default_factory=list)
    message: str = Field(min_length=1)


def _is_finite_json(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, dict):
        return all(_is_finite_json(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return all(_is_finite_json(v) for v in value)
    return True


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timetable_data: Any = Field(alias="timetableData")
    analysis_type: Optional[str] = Field(default="general", alias="analysisType")

    @field_validator("timetable_data")
    @classmethod
    def _reject_non_finite(cls, value: Any) -> Any:
        # Request bodies may carry NaN or Infinity, which the prompt serializer refuses.
        if not _is_finite_json(value):
            raise ValueError("timetableData must not contain NaN or Infinity")
        return value


class TextResponse(BaseModel):
    content: str
