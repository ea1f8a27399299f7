from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Mood = Literal["very-happy", "happy", "neutral", "sad", "very-sad", "anxious", "excited", "calm"]
MOODS = get_args(Mood)


class ApiModel(BaseModel):
    # camelCase on the wire and in MongoDB, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentModel(ApiModel):
    id: str

    @classmethod
    def from_document(cls, doc: Dict[str, Any]):
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be empty")
    return v


# -------- Journal --------

class JournalEntryCreate(ApiModel):
    mood: Mood
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    mood_score: Optional[int] = Field(None, ge=1, le=10)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("title", "content")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _not_blank(v)


class JournalEntryUpdate(ApiModel):
    mood: Optional[Mood] = None
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    mood_score: Optional[int] = Field(None, ge=1, le=10)
    date: Optional[datetime] = None

    @field_validator("mood", "title", "content", "tags", "date", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may not be null")
        return v

    @field_validator("title", "content")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _not_blank(v)


class JournalEntryOut(DocumentModel):
    date: Optional[datetime] = None
    mood: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    mood_score: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MoodTrend(ApiModel):
    date: str
    mood: Optional[str] = None
    count: int
    avg_score: Optional[float] = None


# -------- Assessment --------

class AssessmentCreate(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    score: Optional[Union[int, float, str]] = None
    text: Optional[str] = None


class RewrittenText(ApiModel):
    positive: Optional[str] = None
    neutral: Optional[str] = None
    negative: Optional[str] = None


class AssessmentOut(DocumentModel):
    name: Optional[str] = None
    email: Optional[str] = None
    score: Optional[Union[int, float, str]] = None
    text: Optional[str] = None
    rewritten: Optional[RewrittenText] = None
    created_at: Optional[datetime] = None


# -------- Chat --------

class ChatRequest(ApiModel):
    message: Optional[str] = None


class ChatResponse(ApiModel):
    response: str


class ChatMessageOut(DocumentModel):
    message: str
    response: str
    timestamp: datetime


class MessageResponse(ApiModel):
    message: str
