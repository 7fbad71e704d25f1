from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON


class Document(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str
    text: Optional[str] = None
    # Cached output of generate_summary; written once per document
    summary: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Flashcard(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    document_id: int = Field(foreign_key="document.id", index=True)
    question: str
    answer: str
    is_favorite: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Quiz(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    document_id: int = Field(foreign_key="document.id", index=True)
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    total_questions: int
    user_answers: List[Optional[int]] = Field(default_factory=list, sa_column=Column(JSON))
    score: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
