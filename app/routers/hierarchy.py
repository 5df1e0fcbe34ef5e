# app/routers/hierarchy.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.core.db import get_session
from app.core.errors import ReferenceNotFound
from app.core.hierarchy import (
    delete_category,
    delete_property_type,
    delete_question,
    list_property_types,
    load_property_type_tree,
)
from app.core.security import require_admin
from app.core.session_token import SessionUser
from app.models.evaluation import CustomField
from app.models.hierarchy import Answer, PropertyType, Question, QuestionCategory
from app.models.schemas import (
    CategoryIn,
    CustomFieldIn,
    CustomFieldOut,
    PropertyTypeIn,
    PropertyTypeOut,
    PropertyTypeWithCategories,
    QuestionIn,
)

router = APIRouter(prefix="", tags=["hierarchy"])


# ----------------------------------------------------------------- property types
@router.get("/property-types", response_model=List[PropertyTypeOut])
def get_property_types(session: Session = Depends(get_session)):
    return list_property_types(session)


@router.get("/property-types/{property_type_id}", response_model=PropertyTypeWithCategories)
def get_property_type(
    property_type_id: int,
    lang: str = Query("ro", pattern="^(ro|en)$"),
    session: Session = Depends(get_session),
):
    tree = load_property_type_tree(session, property_type_id, lang=lang)
    if tree is None:
        raise HTTPException(status_code=404, detail="Property type not found")
    return tree


@router.post("/property-types", response_model=PropertyTypeOut, status_code=201)
def create_property_type(
    payload: PropertyTypeIn,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    pt = PropertyType(name_ro=payload.name_ro, name_en=payload.name_en)
    session.add(pt)
    session.commit()
    session.refresh(pt)
    return PropertyTypeOut(id=pt.id, name_ro=pt.name_ro, name_en=pt.name_en)


@router.delete("/property-types/{property_type_id}")
def remove_property_type(
    property_type_id: int,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    delete_property_type(session, property_type_id)
    return {"success": True}


# ----------------------------------------------------------------- custom fields
@router.get("/property-types/{property_type_id}/custom-fields", response_model=List[CustomFieldOut])
def get_custom_fields(property_type_id: int, session: Session = Depends(get_session)):
    fields = session.exec(
        select(CustomField)
        .where(CustomField.property_type_id == property_type_id)
        .order_by(CustomField.sort_order, CustomField.id)
    ).all()
    return [CustomFieldOut.model_validate(cf.model_dump()) for cf in fields]


@router.post("/property-types/{property_type_id}/custom-fields", response_model=CustomFieldOut, status_code=201)
def create_custom_field(
    property_type_id: int,
    payload: CustomFieldIn,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    if session.get(PropertyType, property_type_id) is None:
        raise ReferenceNotFound(f"Property type ID {property_type_id} not found")
    cf = CustomField(property_type_id=property_type_id, **payload.model_dump())
    session.add(cf)
    session.commit()
    session.refresh(cf)
    return CustomFieldOut.model_validate(cf.model_dump())


# ----------------------------------------------------------------- categories
@router.post("/question-categories", status_code=201)
def create_category(
    payload: CategoryIn,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    if session.get(PropertyType, payload.property_type_id) is None:
        raise ReferenceNotFound(f"Property type ID {payload.property_type_id} not found")
    cat = QuestionCategory(**payload.model_dump())
    session.add(cat)
    session.commit()
    session.refresh(cat)
    return {"id": cat.id, "propertyTypeId": cat.property_type_id, "nameRo": cat.name_ro, "nameEn": cat.name_en}


@router.delete("/question-categories/{category_id}")
def remove_category(
    category_id: int,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    delete_category(session, category_id)
    return {"success": True}


# ----------------------------------------------------------------- questions
@router.post("/questions", status_code=201)
def create_question(
    payload: QuestionIn,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    if session.get(QuestionCategory, payload.category_id) is None:
        raise ReferenceNotFound(f"Category ID {payload.category_id} not found")

    q = Question(category_id=payload.category_id, text_ro=payload.text_ro, text_en=payload.text_en, weight=payload.weight)
    try:
        session.add(q)
        session.flush()
        answers = [Answer(question_id=q.id, **a.model_dump()) for a in payload.answers]
        session.add_all(answers)
        session.commit()
    except Exception:
        session.rollback()
        raise

    return {
        "id": q.id,
        "categoryId": q.category_id,
        "textRo": q.text_ro,
        "textEn": q.text_en,
        "weight": q.weight,
        "answers": [{"id": a.id, "textRo": a.text_ro, "textEn": a.text_en, "weight": a.weight} for a in answers],
    }


@router.delete("/questions/{question_id}")
def remove_question(
    question_id: int,
    session: Session = Depends(get_session),
    _admin: SessionUser = Depends(require_admin),
):
    delete_question(session, question_id)
    return {"success": True}
