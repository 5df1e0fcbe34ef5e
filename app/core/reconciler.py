# app/core/reconciler.py
"""
ID-based bulk import of the question hierarchy.

Rows are processed in three strict phases (categories, questions, answers)
because each phase resolves the foreign keys produced by the previous one.
An id of 0 means "create"; a nonzero id must exist and is only rewritten when
`replace_existing` is set. Every item is committed on its own: a failing item
is rolled back, recorded in `details` and the batch carries on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional, Sequence, Type

from sqlmodel import Session, SQLModel, select

from app.core.errors import ImportValidationError
from app.core.import_rows import ImportRow
from app.models.hierarchy import Answer, PropertyType, Question, QuestionCategory
from app.models.schemas import IdMappings, ImportDetail, ReconcileResult

logger = logging.getLogger(__name__)


class ItemError(Exception):
    """Per-item failure; recorded in the result, never raised to the caller."""


def category_key(property_type_id: int, name_ro: str) -> str:
    return f"{property_type_id}-{name_ro}"


def question_key(category_id: int, text_ro: str) -> str:
    return f"{category_id}-{text_ro}"


def answer_key(question_id: int, text_ro: str) -> str:
    return f"{question_id}-{text_ro}"


@dataclass
class ReconcileContext:
    """Logical key -> real id maps, built up phase by phase (insertion ordered)."""
    categories: Dict[str, int] = field(default_factory=dict)
    questions: Dict[str, int] = field(default_factory=dict)
    answers: Dict[str, int] = field(default_factory=dict)

    def resolve_category(self, row: ImportRow) -> Optional[int]:
        return self.categories.get(category_key(row.property_type_id, row.category_name_ro))

    def resolve_question(self, category_id: int, row: ImportRow) -> Optional[int]:
        return self.questions.get(question_key(category_id, row.question_ro))

    def to_mappings(self) -> IdMappings:
        return IdMappings(
            categories=dict(self.categories),
            questions=dict(self.questions),
            answers=dict(self.answers),
        )


def verify_property_types(session: Session, rows: Iterable[ImportRow]) -> None:
    """Every distinct property type id must exist; checked once, before any write."""
    ids = sorted({r.property_type_id for r in rows})
    if not ids:
        return
    found = set(session.exec(select(PropertyType.id).where(PropertyType.id.in_(ids))).all())
    missing = [i for i in ids if i not in found]
    if missing:
        raise ImportValidationError(
            f"Property Type ID {missing[0]} does not exist",
            details=[{"propertyTypeId": i, "error": "not found"} for i in missing],
        )


def _first_by_key(rows: Iterable[ImportRow], key_fn) -> Dict[str, ImportRow]:
    groups: Dict[str, ImportRow] = {}
    for row in rows:
        key = key_fn(row)
        if key is not None and key not in groups:
            groups[key] = row
    return groups


class _Reconciler:
    def __init__(self, session: Session, replace_existing: bool, dedupe_by_name: bool):
        self.session = session
        self.replace_existing = replace_existing
        self.dedupe_by_name = dedupe_by_name
        self.ctx = ReconcileContext()
        self.result = ReconcileResult()

    # -------------------------------------------------------------- helpers
    def _fail(self, kind: str, label: str, exc: Exception) -> None:
        self.session.rollback()
        self.result.failed += 1
        message = str(exc)
        if kind == "category":
            detail = ImportDetail(type=kind, name=label, error=message)
        else:
            detail = ImportDetail(type=kind, text=label, error=message)
        self.result.details.append(detail)
        logger.warning("import %s failed", kind, extra={"item": label, "error": message})

    def _existing(self, model: Type[SQLModel], item_id: int, label: str):
        obj = self.session.get(model, item_id)
        if obj is None:
            raise ItemError(f"{label} ID {item_id} not found")
        return obj

    def _find_by_name(self, stmt):
        if not self.dedupe_by_name:
            return None
        return self.session.exec(stmt).first()

    def _save(self, obj: SQLModel) -> int:
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj.id

    def _touch(self, obj: SQLModel, **values) -> None:
        for name, value in values.items():
            setattr(obj, name, value)
        obj.updated_at = datetime.utcnow()
        self._save(obj)

    # -------------------------------------------------------------- phase 1
    def categories(self, rows: Sequence[ImportRow]) -> None:
        groups = _first_by_key(rows, lambda r: category_key(r.property_type_id, r.category_name_ro))
        for key, row in groups.items():
            try:
                names = dict(name_ro=row.category_name_ro, name_en=row.category_name_en_or_ro)
                if row.category_id == 0:
                    existing = self._find_by_name(select(QuestionCategory).where(
                        QuestionCategory.property_type_id == row.property_type_id,
                        QuestionCategory.name_ro == row.category_name_ro,
                    ).order_by(QuestionCategory.id))
                    if existing is None:
                        self.ctx.categories[key] = self._save(
                            QuestionCategory(property_type_id=row.property_type_id, **names)
                        )
                        self.result.categories_created += 1
                        continue
                    cat = existing
                else:
                    cat = self._existing(QuestionCategory, row.category_id, "Category")

                if self.replace_existing:
                    self._touch(cat, **names)
                    self.result.categories_updated += 1
                self.ctx.categories[key] = cat.id
            except Exception as exc:
                self._fail("category", row.category_name_ro, exc)

    # -------------------------------------------------------------- phase 2
    def questions(self, rows: Sequence[ImportRow]) -> None:
        resolved: Dict[str, tuple] = {}
        for row in rows:
            cat_id = self.ctx.resolve_category(row)
            if cat_id is None:
                # reported once more by the answer phase
                self.result.skipped_unresolved += 1
                continue
            resolved.setdefault(question_key(cat_id, row.question_ro), (cat_id, row))

        for key, (cat_id, row) in resolved.items():
            try:
                values = dict(text_ro=row.question_ro, text_en=row.question_en_or_ro, weight=row.question_weight)
                if row.question_id == 0:
                    existing = self._find_by_name(select(Question).where(
                        Question.category_id == cat_id,
                        Question.text_ro == row.question_ro,
                    ).order_by(Question.id))
                    if existing is None:
                        self.ctx.questions[key] = self._save(Question(category_id=cat_id, **values))
                        self.result.questions_created += 1
                        continue
                    q = existing
                else:
                    q = self._existing(Question, row.question_id, "Question")

                if self.replace_existing:
                    self._touch(q, **values)
                    self.result.questions_updated += 1
                self.ctx.questions[key] = q.id
            except Exception as exc:
                self._fail("question", row.question_ro, exc)

    # -------------------------------------------------------------- phase 3
    def answers(self, rows: Sequence[ImportRow]) -> None:
        # every row: several answers share one question
        for row in rows:
            try:
                cat_id = self.ctx.resolve_category(row)
                if cat_id is None:
                    raise ItemError(f"Category not found for {row.category_name_ro}")
                q_id = self.ctx.resolve_question(cat_id, row)
                if q_id is None:
                    raise ItemError(f"Question not found for {row.question_ro}")

                key = answer_key(q_id, row.answer_ro)
                values = dict(text_ro=row.answer_ro, text_en=row.answer_en_or_ro, weight=row.answer_weight)
                if row.answer_id == 0:
                    existing = self._find_by_name(select(Answer).where(
                        Answer.question_id == q_id,
                        Answer.text_ro == row.answer_ro,
                    ).order_by(Answer.id))
                    if existing is None:
                        self.ctx.answers[key] = self._save(Answer(question_id=q_id, **values))
                        self.result.answers_created += 1
                        continue
                    a = existing
                else:
                    a = self._existing(Answer, row.answer_id, "Answer")

                if self.replace_existing:
                    self._touch(a, **values)
                    self.result.answers_updated += 1
                self.ctx.answers[key] = a.id
            except Exception as exc:
                self._fail("answer", row.answer_ro, exc)


def reconcile(
    session: Session,
    rows: Sequence[ImportRow],
    replace_existing: bool = False,
    dedupe_by_name: bool = False,
) -> ReconcileResult:
    """
    Upsert already-validated rows into the hierarchy.
    Raises ImportValidationError (nothing written) for an unknown property type.
    """
    verify_property_types(session, rows)

    job = _Reconciler(session, replace_existing, dedupe_by_name)
    job.categories(rows)
    job.questions(rows)
    job.answers(rows)

    job.result.id_mappings = job.ctx.to_mappings()
    logger.info(
        "bulk import finished",
        extra={
            "rows": len(rows),
            "replace_existing": replace_existing,
            "dedupe_by_name": dedupe_by_name,
            "failed": job.result.failed,
            "total_processed": job.result.total_processed,
        },
    )
    return job.result
