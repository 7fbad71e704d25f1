"""
Records produced by the generation pipeline and request bodies of the API.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


DEFAULT_EXPLANATION = "No explanation provided."

_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def sanitize_user_text(value: str, limit: int) -> str:
    """Strip markup from free text typed by a user and cap its length."""
    value = _SCRIPT_RE.sub("", value)
    value = _TAG_RE.sub("", value)
    return value.strip()[:limit]


class _WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(populate_by_name=True)


# ----------------- Generated records -----------------

class FlashcardRecord(BaseModel):
    question: str = ""
    answer: str = ""


class QuizQuestionRecord(_WireModel):
    question: str
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., ge=0, le=3, alias="correctAnswer")
    explanation: str = DEFAULT_EXPLANATION

    @field_validator("explanation")
    @classmethod
    def explanation_not_empty(cls, v: str) -> str:
        return v.strip() or DEFAULT_EXPLANATION


class ModelDescriptor(BaseModel):
    name: str
    owned_by: Optional[str] = None
    created: Optional[int] = None


class HealthReport(BaseModel):
    status: Literal["ok", "warning", "error"]
    message: str
    model: Optional[str] = None


class QuizScore(_WireModel):
    score: int
    correct_count: int = Field(..., alias="correctCount")
    total_questions: int = Field(..., alias="totalQuestions")


# ----------------- Request bodies -----------------

class ChatRequest(BaseModel):
    question: str

    @field_validator("question")
    @classmethod
    def clean_question(cls, v: str) -> str:
        return sanitize_user_text(v, 1000)


class ConceptRequest(BaseModel):
    concept: str

    @field_validator("concept")
    @classmethod
    def clean_concept(cls, v: str) -> str:
        return sanitize_user_text(v, 500)


class FlashcardRequest(BaseModel):
    count: int = 10


class QuizRequest(_WireModel):
    question_count: int = Field(5, alias="questionCount")


class FlashcardIn(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)

    @field_validator("question", "answer", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class FlashcardUpdate(BaseModel):
    # Omitted fields keep their stored value
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)

    @field_validator("question", "answer", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class FlashcardSetIn(_WireModel):
    document_id: int = Field(..., alias="documentId")
    flashcards: List[FlashcardIn] = Field(..., min_length=1)


class QuizIn(_WireModel):
    document_id: int = Field(..., alias="documentId")
    questions: List[QuizQuestionRecord] = Field(..., min_length=1)


class QuizSubmission(BaseModel):
    # StrictInt: "1" or True never count as an answer index
    answers: List[Optional[StrictInt]]


class QuizOut(_WireModel):
    id: int
    document_id: int = Field(..., alias="documentId")
    questions: List[QuizQuestionRecord]
    total_questions: int = Field(..., alias="totalQuestions")
    user_answers: List[Optional[int]] = Field(default_factory=list, alias="userAnswers")
    score: Optional[int] = None
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    created_at: datetime = Field(..., alias="createdAt")
