# app/core/hierarchy.py
from __future__ import annotations
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from app.core.errors import HierarchyConflict, ReferenceNotFound
from app.core.import_rows import ImportRow
from app.models.hierarchy import Answer, PropertyType, Question, QuestionCategory
from app.models.schemas import (
    HierarchyAnswer,
    HierarchyCategory,
    HierarchyQuestion,
    PropertyTypeOut,
    PropertyTypeWithCategories,
)

DEFAULT_WEIGHT = 5


def _localized(ro: str, en: Optional[str], lang: str) -> str:
    if lang == "en" and en:
        return en
    return ro


def load_property_type_tree(session: Session, property_type_id: int, lang: str = "ro") -> Optional[PropertyTypeWithCategories]:
    """Nested property type -> categories -> questions -> answers, in id order."""
    pt = session.get(PropertyType, property_type_id)
    if pt is None:
        return None

    categories = session.exec(
        select(QuestionCategory)
        .where(QuestionCategory.property_type_id == pt.id)
        .order_by(QuestionCategory.id)
    ).all()
    cat_ids = [c.id for c in categories]

    questions: List[Question] = []
    if cat_ids:
        questions = session.exec(
            select(Question).where(Question.category_id.in_(cat_ids)).order_by(Question.id)
        ).all()
    q_ids = [q.id for q in questions]

    answers: List[Answer] = []
    if q_ids:
        answers = session.exec(
            select(Answer).where(Answer.question_id.in_(q_ids)).order_by(Answer.id)
        ).all()

    answers_by_q: Dict[int, List[HierarchyAnswer]] = {}
    for a in answers:
        answers_by_q.setdefault(a.question_id, []).append(
            HierarchyAnswer(id=a.id, text=_localized(a.text_ro, a.text_en, lang), weight=a.weight)
        )

    questions_by_cat: Dict[int, List[HierarchyQuestion]] = {}
    for q in questions:
        questions_by_cat.setdefault(q.category_id, []).append(HierarchyQuestion(
            id=q.id,
            text=_localized(q.text_ro, q.text_en, lang),
            weight=q.weight,
            answers=answers_by_q.get(q.id, []),
        ))

    return PropertyTypeWithCategories(
        id=pt.id,
        name=_localized(pt.name_ro, pt.name_en, lang),
        categories=[
            HierarchyCategory(
                id=c.id,
                name=_localized(c.name_ro, c.name_en, lang),
                questions=questions_by_cat.get(c.id, []),
            )
            for c in categories
        ],
    )


def list_property_types(session: Session) -> List[PropertyTypeOut]:
    counts = dict(session.exec(
        select(QuestionCategory.property_type_id, func.count(QuestionCategory.id))
        .group_by(QuestionCategory.property_type_id)
    ).all())
    types = session.exec(select(PropertyType).order_by(PropertyType.id)).all()
    return [
        PropertyTypeOut(id=pt.id, name_ro=pt.name_ro, name_en=pt.name_en, category_count=counts.get(pt.id, 0))
        for pt in types
    ]


def flatten_hierarchy(
    session: Session,
    property_type_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[ImportRow]:
    """
    One ImportRow per (property type, category, question, answer), in id order.
    Questions without answers produce no row. Zero weights come out as 5 and a
    missing English text repeats the Romanian one, as the importer stores it.
    """
    stmt = select(PropertyType, QuestionCategory, Question, Answer).where(
        QuestionCategory.property_type_id == PropertyType.id,
        Question.category_id == QuestionCategory.id,
        Answer.question_id == Question.id,
    )
    if property_type_id is not None:
        stmt = stmt.where(PropertyType.id == property_type_id)
    stmt = stmt.order_by(PropertyType.id, QuestionCategory.id, Question.id, Answer.id)
    if limit is not None:
        stmt = stmt.limit(limit)

    rows: List[ImportRow] = []
    for pt, cat, q, a in session.exec(stmt).all():
        rows.append(ImportRow(
            property_type_id=pt.id,
            category_id=cat.id,
            category_name_ro=cat.name_ro,
            category_name_en=cat.name_en or cat.name_ro,
            question_id=q.id,
            question_ro=q.text_ro,
            question_en=q.text_en or q.text_ro,
            question_weight=q.weight or DEFAULT_WEIGHT,
            answer_id=a.id,
            answer_ro=a.text_ro,
            answer_en=a.text_en or a.text_ro,
            answer_weight=a.weight or DEFAULT_WEIGHT,
        ))
    return rows


# ---------------------------------------------------------------------------
# Deletes (children must be removed first)
# ---------------------------------------------------------------------------
def delete_property_type(session: Session, property_type_id: int) -> None:
    pt = session.get(PropertyType, property_type_id)
    if pt is None:
        raise ReferenceNotFound(f"Property type ID {property_type_id} not found")
    count = session.exec(
        select(func.count(QuestionCategory.id)).where(QuestionCategory.property_type_id == property_type_id)
    ).one()
    if count:
        raise HierarchyConflict(
            "Cannot delete property type with existing categories",
            details={"categoryCount": count},
        )
    session.delete(pt)
    session.commit()


def delete_category(session: Session, category_id: int) -> None:
    cat = session.get(QuestionCategory, category_id)
    if cat is None:
        raise ReferenceNotFound(f"Category ID {category_id} not found")
    count = session.exec(select(func.count(Question.id)).where(Question.category_id == category_id)).one()
    if count:
        raise HierarchyConflict(
            "Cannot delete category with existing questions",
            details={"questionCount": count},
        )
    session.delete(cat)
    session.commit()


def delete_question(session: Session, question_id: int) -> None:
    """A question owns its answers; both go in one transaction."""
    q = session.get(Question, question_id)
    if q is None:
        raise ReferenceNotFound(f"Question ID {question_id} not found")
    try:
        for a in session.exec(select(Answer).where(Answer.question_id == question_id)).all():
            session.delete(a)
        session.flush()
        session.delete(q)
        session.commit()
    except Exception:
        session.rollback()
        raise
