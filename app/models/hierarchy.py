# app/models/hierarchy.py
from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class PropertyType(SQLModel, table=True):
    __tablename__ = "property_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    name_ro: str
    name_en: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class QuestionCategory(SQLModel, table=True):
    __tablename__ = "question_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name_ro: str
    name_en: Optional[str] = None
    property_type_id: int = Field(foreign_key="property_types.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Question(SQLModel, table=True):
    __tablename__ = "questions"

    id: Optional[int] = Field(default=None, primary_key=True)
    text_ro: str
    text_en: Optional[str] = None
    # importance multiplier 1..10
    weight: int = 5
    category_id: int = Field(foreign_key="question_categories.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Answer(SQLModel, table=True):
    __tablename__ = "answers"

    id: Optional[int] = Field(default=None, primary_key=True)
    text_ro: str
    text_en: Optional[str] = None
    # desirability 1..10
    weight: int = 5
    question_id: int = Field(foreign_key="questions.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
