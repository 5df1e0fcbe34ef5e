# app/models/schemas.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire; both accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


# ============================== Hierarchy tree ==============================
class HierarchyAnswer(CamelModel):
    id: int
    text: str
    weight: int


class HierarchyQuestion(CamelModel):
    id: int
    text: str
    weight: int
    answers: List[HierarchyAnswer] = []


class HierarchyCategory(CamelModel):
    id: int
    name: str
    questions: List[HierarchyQuestion] = []


class PropertyTypeWithCategories(CamelModel):
    id: int
    name: str
    categories: List[HierarchyCategory] = []


# ============================== Scoring ==============================
class UserAnswer(CamelModel):
    question_id: int
    answer_id: int
    answer_weight: int = Field(ge=1, le=10)
    question_weight: int = Field(ge=1, le=10)


class CategoryScore(CamelModel):
    category_id: int
    category_name: str
    score: float
    max_score: float
    percentage: float
    questions_answered: int
    total_questions: int


class EvaluationResult(CamelModel):
    total_score: float
    max_possible_score: float
    percentage: float
    category_scores: List[CategoryScore] = []
    level: str
    badge: str
    completion_rate: float


class ScoreRequest(CamelModel):
    property_type_id: int
    user_answers: List[UserAnswer]


# ============================== Evaluations ==============================
class PropertyInfo(CamelModel):
    name: str = Field(min_length=1)
    location: Optional[str] = None
    surface: Optional[int] = Field(default=None, ge=0)
    floors: Optional[str] = None
    construction_year: Optional[int] = None


class EvaluationSubmit(CamelModel):
    property_type_id: int
    property_info: PropertyInfo
    user_answers: List[UserAnswer] = Field(min_length=1)
    # accepted for compatibility, the server recomputes it
    evaluation_result: Optional[EvaluationResult] = None

    @field_validator("user_answers")
    @classmethod
    def one_answer_per_question(cls, v: List[UserAnswer]) -> List[UserAnswer]:
        # stored answer rows must be exactly the ones that were scored
        seen = set()
        for ua in v:
            if ua.question_id in seen:
                raise ValueError(f"Question {ua.question_id} is answered more than once")
            seen.add(ua.question_id)
        return v


class PropertyInfoPatch(CamelModel):
    property_name: Optional[str] = Field(default=None, min_length=1)
    property_location: Optional[str] = None
    property_surface: Optional[int] = Field(default=None, ge=0)
    property_floors: Optional[str] = None
    property_construction_year: Optional[int] = None


class EvaluationAnswerOut(CamelModel):
    question_id: int
    answer_id: int
    answer_weight: int
    question_weight: int
    points_earned: int


class EvaluationSessionOut(CamelModel):
    id: int
    user_id: int
    property_type_id: int
    property_type_name: Optional[str] = None
    property_name: str
    property_location: Optional[str] = None
    property_surface: Optional[int] = None
    property_floors: Optional[str] = None
    property_construction_year: Optional[int] = None
    total_score: float
    max_possible_score: float
    percentage: float
    level: str
    badge: str
    completion_rate: float
    created_at: datetime
    completed_at: datetime


class EvaluationDetailOut(EvaluationSessionOut):
    answers: List[EvaluationAnswerOut] = []
    custom_field_values: Dict[str, str] = {}


class EvaluationStats(CamelModel):
    total_evaluations: int = 0
    average_score: int = 0
    best_score: float = 0
    completion_rate: int = 0


# ============================== Admin CRUD ==============================
class PropertyTypeIn(CamelModel):
    name_ro: str = Field(min_length=1)
    name_en: Optional[str] = None


class PropertyTypeOut(CamelModel):
    id: int
    name_ro: str
    name_en: Optional[str] = None
    category_count: int = 0


class CategoryIn(CamelModel):
    property_type_id: int
    name_ro: str = Field(min_length=1)
    name_en: Optional[str] = None


class AnswerIn(CamelModel):
    text_ro: str = Field(min_length=1)
    text_en: Optional[str] = None
    weight: int = Field(ge=1, le=10)


class QuestionIn(CamelModel):
    category_id: int
    text_ro: str = Field(min_length=1)
    text_en: Optional[str] = None
    weight: int = Field(ge=1, le=10)
    # a question is only usable in an evaluation with at least two answers
    answers: List[AnswerIn] = Field(min_length=2)


FieldType = Literal["text", "number", "select", "textarea", "date", "boolean"]


class CustomFieldIn(CamelModel):
    label_ro: str = Field(min_length=1)
    label_en: Optional[str] = None
    field_type: FieldType = "text"
    is_required: bool = False
    sort_order: int = 0


class CustomFieldOut(CustomFieldIn):
    id: int
    property_type_id: int


class DynamicEvaluationIn(CamelModel):
    # {"propertyTypeId": 1, "<customFieldId>": value, ...}
    model_config = ConfigDict(extra="allow")

    property_type_id: int

    def field_values(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


# ============================== Bulk import ==============================
class BulkImportRequest(CamelModel):
    # raw rows, validated by app.core.import_rows (snake_case or camelCase keys)
    questions: List[Dict[str, Any]] = Field(min_length=1)
    replace_existing: bool = False
    dedupe_by_name: bool = False


class ImportDetail(BaseModel):
    type: Literal["category", "question", "answer"]
    name: Optional[str] = None
    text: Optional[str] = None
    error: str


class IdMappings(CamelModel):
    categories: Dict[str, int] = Field(default_factory=dict)
    questions: Dict[str, int] = Field(default_factory=dict)
    answers: Dict[str, int] = Field(default_factory=dict)


class ReconcileResult(CamelModel):
    categories_created: int = 0
    categories_updated: int = 0
    questions_created: int = 0
    questions_updated: int = 0
    answers_created: int = 0
    answers_updated: int = 0
    failed: int = 0
    # rows dropped in the question phase because their category did not resolve
    skipped_unresolved: int = 0
    details: List[ImportDetail] = Field(default_factory=list)
    id_mappings: IdMappings = Field(default_factory=IdMappings)

    @property
    def total_processed(self) -> int:
        return (
            self.categories_created + self.categories_updated
            + self.questions_created + self.questions_updated
            + self.answers_created + self.answers_updated
            + self.failed
        )

    def to_response(self) -> Dict[str, Any]:
        body = self.model_dump(by_alias=True, exclude_none=True)
        body["totalProcessed"] = self.total_processed
        return body
