# app/routers/evaluations.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.core.db import get_session
from app.core.errors import ReferenceNotFound
from app.core.evaluation_store import (
    delete_evaluation,
    evaluation_detail,
    get_user_evaluation,
    list_user_evaluations,
    save_dynamic_evaluation,
    save_evaluation,
    to_session_out,
    update_property_info,
    user_evaluation_stats,
)
from app.core.hierarchy import load_property_type_tree
from app.core.scoring import compute_result
from app.core.security import require_user
from app.core.session_token import SessionUser
from app.models.hierarchy import PropertyType
from app.models.schemas import (
    DynamicEvaluationIn,
    EvaluationDetailOut,
    EvaluationResult,
    EvaluationSessionOut,
    EvaluationStats,
    EvaluationSubmit,
    PropertyInfoPatch,
    ScoreRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


def _score(session: Session, property_type_id: int, answers) -> EvaluationResult:
    tree = load_property_type_tree(session, property_type_id)
    if tree is None:
        raise ReferenceNotFound(f"Property type ID {property_type_id} not found")
    return compute_result(tree, answers)


@router.post("/score", response_model=EvaluationResult)
def score(payload: ScoreRequest, session: Session = Depends(get_session)):
    """Compute only; nothing is stored."""
    return _score(session, payload.property_type_id, payload.user_answers)


@router.post("")
def submit_evaluation(
    payload: EvaluationSubmit,
    session: Session = Depends(get_session),
    user: SessionUser = Depends(require_user),
):
    result = _score(session, payload.property_type_id, payload.user_answers)

    claimed = payload.evaluation_result
    if claimed is not None and (
        abs(claimed.percentage - result.percentage) > 0.01 or claimed.level != result.level
    ):
        logger.warning(
            "client result differs from server result",
            extra={
                "user_id": user.user_id,
                "client_percentage": claimed.percentage,
                "server_percentage": result.percentage,
            },
        )

    evaluation_id = save_evaluation(
        session,
        user_id=user.user_id,
        property_type_id=payload.property_type_id,
        user_answers=payload.user_answers,
        result=result,
        property_info=payload.property_info,
    )
    return {
        "success": True,
        "evaluationSessionId": evaluation_id,
        "result": result.model_dump(by_alias=True),
    }


@router.get("", response_model=List[EvaluationSessionOut])
def list_evaluations(session: Session = Depends(get_session), user: SessionUser = Depends(require_user)):
    return list_user_evaluations(session, user.user_id)


@router.get("/stats", response_model=EvaluationStats)
def stats(session: Session = Depends(get_session), user: SessionUser = Depends(require_user)):
    return user_evaluation_stats(session, user.user_id)


# ----------------------------------------------------------------- custom-field path
@router.post("/dynamic")
def submit_dynamic(
    payload: DynamicEvaluationIn,
    session: Session = Depends(get_session),
    user: SessionUser = Depends(require_user),
):
    if session.get(PropertyType, payload.property_type_id) is None:
        raise ReferenceNotFound(f"Property type ID {payload.property_type_id} not found")
    ev = save_dynamic_evaluation(session, user.user_id, payload.property_type_id, payload.field_values())
    return {
        "success": True,
        "evaluationSession": to_session_out(ev).model_dump(by_alias=True, mode="json"),
        "message": "Property evaluation created successfully",
    }


@router.get("/dynamic/{evaluation_id}")
def get_dynamic(evaluation_id: int, session: Session = Depends(get_session), user: SessionUser = Depends(require_user)):
    ev = get_user_evaluation(session, user.user_id, evaluation_id)
    if ev is None:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    return {"evaluationSession": evaluation_detail(session, ev).model_dump(by_alias=True, mode="json")}


# ----------------------------------------------------------------- single evaluation
@router.get("/{evaluation_id}", response_model=EvaluationDetailOut)
def get_evaluation(evaluation_id: int, session: Session = Depends(get_session), user: SessionUser = Depends(require_user)):
    ev = get_user_evaluation(session, user.user_id, evaluation_id)
    if ev is None:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    return evaluation_detail(session, ev)


@router.patch("/{evaluation_id}", response_model=EvaluationSessionOut)
def patch_evaluation(
    evaluation_id: int,
    patch: PropertyInfoPatch,
    session: Session = Depends(get_session),
    user: SessionUser = Depends(require_user),
):
    """Edits property metadata only; scores stay as computed at submission."""
    ev = get_user_evaluation(session, user.user_id, evaluation_id)
    if ev is None:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    ev = update_property_info(session, ev, patch)
    pt = session.get(PropertyType, ev.property_type_id)
    return to_session_out(ev, pt.name_ro if pt else None)


@router.delete("/{evaluation_id}")
def remove_evaluation(evaluation_id: int, session: Session = Depends(get_session), user: SessionUser = Depends(require_user)):
    ev = get_user_evaluation(session, user.user_id, evaluation_id)
    if ev is None:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    delete_evaluation(session, ev)
    return {"success": True, "message": "Evaluation deleted successfully"}
