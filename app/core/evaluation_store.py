# app/core/evaluation_store.py
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, func
from sqlmodel import Session, select

from app.core.scoring import PENDING_BADGE, PENDING_LEVEL
from app.models.evaluation import (
    CustomField,
    CustomFieldValue,
    EvaluationSession,
    UserEvaluationAnswer,
)
from app.models.hierarchy import PropertyType
from app.models.schemas import (
    EvaluationAnswerOut,
    EvaluationDetailOut,
    EvaluationResult,
    EvaluationSessionOut,
    EvaluationStats,
    PropertyInfo,
    PropertyInfoPatch,
    UserAnswer,
)

logger = logging.getLogger(__name__)

DEFAULT_DYNAMIC_NAME = "Property Evaluation"
DYNAMIC_MAX_SCORE = 100


def save_evaluation(
    session: Session,
    user_id: int,
    property_type_id: int,
    user_answers: Sequence[UserAnswer],
    result: EvaluationResult,
    property_info: PropertyInfo,
) -> int:
    """
    Persist one completed evaluation and its answer snapshots in a single
    transaction. Nothing is left behind if any insert fails.
    """
    now = datetime.utcnow()
    ev = EvaluationSession(
        user_id=user_id,
        property_type_id=property_type_id,
        property_name=property_info.name,
        property_location=property_info.location,
        property_surface=property_info.surface,
        property_floors=property_info.floors,
        property_construction_year=property_info.construction_year,
        total_score=result.total_score,
        max_possible_score=result.max_possible_score,
        percentage=result.percentage,
        level=result.level,
        badge=result.badge,
        completion_rate=result.completion_rate,
        created_at=now,
        completed_at=now,
    )
    try:
        session.add(ev)
        session.flush()
        for ua in user_answers:
            session.add(UserEvaluationAnswer(
                evaluation_session_id=ev.id,
                question_id=ua.question_id,
                answer_id=ua.answer_id,
                answer_weight=ua.answer_weight,
                question_weight=ua.question_weight,
                points_earned=ua.answer_weight * ua.question_weight,
            ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "evaluation saved",
        extra={"evaluation_id": ev.id, "user_id": user_id, "answers": len(user_answers), "percentage": result.percentage},
    )
    return ev.id


def get_user_evaluation(session: Session, user_id: int, evaluation_id: int) -> Optional[EvaluationSession]:
    """Ownership-scoped lookup; another user's session reads as missing."""
    return session.exec(
        select(EvaluationSession).where(
            EvaluationSession.id == evaluation_id,
            EvaluationSession.user_id == user_id,
        )
    ).first()


def update_property_info(session: Session, evaluation: EvaluationSession, patch: PropertyInfoPatch) -> EvaluationSession:
    """Metadata only; scores are never recomputed."""
    for name, value in patch.model_dump(exclude_unset=True).items():
        if name == "property_name" and value is None:
            continue
        setattr(evaluation, name, value)
    session.add(evaluation)
    session.commit()
    session.refresh(evaluation)
    return evaluation


def delete_evaluation(session: Session, evaluation: EvaluationSession) -> None:
    try:
        session.execute(delete(UserEvaluationAnswer).where(UserEvaluationAnswer.evaluation_session_id == evaluation.id))
        session.execute(delete(CustomFieldValue).where(CustomFieldValue.evaluation_session_id == evaluation.id))
        session.delete(evaluation)
        session.commit()
    except Exception:
        session.rollback()
        raise


def _type_names(session: Session, ids: Sequence[int]) -> Dict[int, str]:
    if not ids:
        return {}
    rows = session.exec(select(PropertyType).where(PropertyType.id.in_(list(ids)))).all()
    return {pt.id: pt.name_ro for pt in rows}


def to_session_out(ev: EvaluationSession, type_name: Optional[str] = None) -> EvaluationSessionOut:
    return EvaluationSessionOut(property_type_name=type_name, **ev.model_dump())


def list_user_evaluations(session: Session, user_id: int) -> List[EvaluationSessionOut]:
    rows = session.exec(
        select(EvaluationSession)
        .where(EvaluationSession.user_id == user_id)
        .order_by(EvaluationSession.created_at.desc(), EvaluationSession.id.desc())
    ).all()
    names = _type_names(session, sorted({r.property_type_id for r in rows}))
    return [to_session_out(r, names.get(r.property_type_id)) for r in rows]


def evaluation_detail(session: Session, ev: EvaluationSession) -> EvaluationDetailOut:
    answers = session.exec(
        select(UserEvaluationAnswer)
        .where(UserEvaluationAnswer.evaluation_session_id == ev.id)
        .order_by(UserEvaluationAnswer.id)
    ).all()
    values = session.exec(
        select(CustomFieldValue)
        .where(CustomFieldValue.evaluation_session_id == ev.id)
        .order_by(CustomFieldValue.id)
    ).all()
    pt = session.get(PropertyType, ev.property_type_id)
    return EvaluationDetailOut(
        property_type_name=pt.name_ro if pt else None,
        answers=[
            EvaluationAnswerOut(
                question_id=a.question_id,
                answer_id=a.answer_id,
                answer_weight=a.answer_weight,
                question_weight=a.question_weight,
                points_earned=a.points_earned,
            )
            for a in answers
        ],
        custom_field_values={f"custom_{v.custom_field_id}": v.value for v in values},
        **ev.model_dump(),
    )


def user_evaluation_stats(session: Session, user_id: int) -> EvaluationStats:
    total, avg_pct, best, avg_completion = session.exec(
        select(
            func.count(EvaluationSession.id),
            func.avg(EvaluationSession.percentage),
            func.max(EvaluationSession.percentage),
            func.avg(EvaluationSession.completion_rate),
        ).where(EvaluationSession.user_id == user_id)
    ).one()
    if not total:
        return EvaluationStats()
    return EvaluationStats(
        total_evaluations=total,
        average_score=round(avg_pct or 0),
        best_score=best or 0,
        completion_rate=round(avg_completion or 0),
    )


# ---------------------------------------------------------------------------
# Custom-field path (unscored "Pending" sessions)
# ---------------------------------------------------------------------------
def _guess_name_and_location(values: Mapping[str, Any]) -> tuple:
    name = DEFAULT_DYNAMIC_NAME
    location = ""
    for value in values.values():
        if not isinstance(value, str):
            continue
        is_coords = "GPS" in value or "Coordonate" in value
        if name == DEFAULT_DYNAMIC_NAME and 3 < len(value) < 100 and not is_coords:
            name = value
        if is_coords or "strada" in value or "Str." in value:
            location = value
    return name, location


def _stringify(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def save_dynamic_evaluation(session: Session, user_id: int, property_type_id: int, field_values: Mapping[str, Any]) -> EvaluationSession:
    """
    Store a custom-field evaluation. Keys that are not ids of this property
    type's custom fields, and empty values, are ignored.
    """
    known = set(session.exec(select(CustomField.id).where(CustomField.property_type_id == property_type_id)).all())

    cleaned: Dict[int, str] = {}
    for key, value in field_values.items():
        if value is None or value == "":
            continue
        try:
            field_id = int(str(key))
        except ValueError:
            continue
        if field_id in known:
            cleaned[field_id] = _stringify(value)

    name, location = _guess_name_and_location(field_values)
    ev = EvaluationSession(
        user_id=user_id,
        property_type_id=property_type_id,
        property_name=name,
        property_location=location or None,
        total_score=0,
        max_possible_score=DYNAMIC_MAX_SCORE,
        percentage=0,
        level=PENDING_LEVEL,
        badge=PENDING_BADGE,
        completion_rate=0,
    )
    try:
        session.add(ev)
        session.flush()
        for field_id, value in cleaned.items():
            session.add(CustomFieldValue(evaluation_session_id=ev.id, custom_field_id=field_id, value=value))
        session.commit()
        session.refresh(ev)
    except Exception:
        session.rollback()
        raise

    logger.info("dynamic evaluation saved", extra={"evaluation_id": ev.id, "fields": len(cleaned)})
    return ev


def clear_evaluations(session: Session) -> int:
    """Remove every evaluation with its answers and field values. Returns the session count."""
    count = session.exec(select(func.count(EvaluationSession.id))).one()
    try:
        session.execute(delete(CustomFieldValue))
        session.execute(delete(UserEvaluationAnswer))
        session.execute(delete(EvaluationSession))
        session.commit()
    except Exception:
        session.rollback()
        raise
    return count
