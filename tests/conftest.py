# tests/conftest.py
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from app.core.db import get_session, init_db, make_engine
from app.core.session_token import make_token
from app.main import app
from app.models.hierarchy import Answer, PropertyType, Question, QuestionCategory


@pytest.fixture
def engine():
    # one shared in-memory connection for the whole test
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(engine):
    def _session_override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id: int, role: str = "member") -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def member_headers():
    return auth(1)


@pytest.fixture
def other_member_headers():
    return auth(2)


@pytest.fixture
def admin_headers():
    return auth(10, "admin")


@pytest.fixture
def superuser_headers():
    return auth(99, "superuser")


@pytest.fixture
def hierarchy(session) -> Dict[str, int]:
    """1 category, 1 question (weight 5) with answers of weight 10 and 3."""
    pt = PropertyType(name_ro="Apartament", name_en="Apartment")
    session.add(pt)
    session.commit()
    cat = QuestionCategory(property_type_id=pt.id, name_ro="Structura", name_en="Structure")
    session.add(cat)
    session.commit()
    q = Question(category_id=cat.id, text_ro="Starea structurii?", text_en="Structure condition?", weight=5)
    session.add(q)
    session.commit()
    best = Answer(question_id=q.id, text_ro="Excelenta", text_en="Excellent", weight=10)
    poor = Answer(question_id=q.id, text_ro="Slaba", text_en="Poor", weight=3)
    session.add_all([best, poor])
    session.commit()
    return {
        "property_type_id": pt.id,
        "category_id": cat.id,
        "question_id": q.id,
        "best_answer_id": best.id,
        "poor_answer_id": poor.id,
    }
