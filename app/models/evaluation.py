# app/models/evaluation.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class EvaluationSession(SQLModel, table=True):
    __tablename__ = "evaluation_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    property_type_id: int = Field(foreign_key="property_types.id", index=True)

    # free-text property metadata (editable later, scores are not)
    property_name: str
    property_location: Optional[str] = None
    property_surface: Optional[int] = None
    property_floors: Optional[str] = None
    property_construction_year: Optional[int] = None

    total_score: float = 0
    max_possible_score: float = 0
    percentage: float = 0
    level: str = "Pending"  # Novice | Good | Expert | Pending
    badge: str = ""
    completion_rate: float = 0

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    completed_at: datetime = Field(default_factory=datetime.utcnow)


class UserEvaluationAnswer(SQLModel, table=True):
    __tablename__ = "user_evaluation_answers"

    id: Optional[int] = Field(default=None, primary_key=True)
    evaluation_session_id: int = Field(foreign_key="evaluation_sessions.id", index=True)
    question_id: int
    answer_id: int
    # weights snapshotted at submission time
    answer_weight: int
    question_weight: int
    points_earned: int
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CustomField(SQLModel, table=True):
    __tablename__ = "custom_fields"

    id: Optional[int] = Field(default=None, primary_key=True)
    property_type_id: int = Field(foreign_key="property_types.id", index=True)
    label_ro: str
    label_en: Optional[str] = None
    field_type: str = "text"  # text | number | select | textarea | date | boolean
    is_required: bool = False
    sort_order: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CustomFieldValue(SQLModel, table=True):
    __tablename__ = "custom_field_values"

    id: Optional[int] = Field(default=None, primary_key=True)
    evaluation_session_id: int = Field(foreign_key="evaluation_sessions.id", index=True)
    custom_field_id: int = Field(foreign_key="custom_fields.id")
    value: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
