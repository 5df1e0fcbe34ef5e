# app/core/seed.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlmodel import Session, select

from app.models.hierarchy import Answer, PropertyType, Question, QuestionCategory

logger = logging.getLogger(__name__)

# (text_ro, text_en, weight) for answers
SAMPLE_HIERARCHY: Dict[str, Any] = {
    "name_ro": "Casă",
    "name_en": "House",
    "categories": [
        {
            "name_ro": "Utilități",
            "name_en": "Utilities",
            "questions": [
                {
                    "text_ro": "Este terenul racordat la apă, canal, curent și gaz?",
                    "text_en": "Is the land connected to water, sewage, electricity and gas?",
                    "weight": 10,
                    "answers": [
                        ("Da, integral racordat", "Yes, fully connected", 10),
                        ("Parțial racordat (doar la poartă)", "Partially connected (only at gate)", 5),
                        ("Nu este racordat", "Not connected", 1),
                    ],
                },
                {
                    "text_ro": "Unde se află utilitățile? Sunt trase în curte sau doar la poartă?",
                    "text_en": "Where are the utilities located? Are they drawn in the yard or only at the gate?",
                    "weight": 8,
                    "answers": [
                        ("În curte, aproape de casă", "In the yard, close to the house", 10),
                        ("La poartă, cu posibilitate de prelungire", "At the gate, with extension possibility", 7),
                        ("Nespecificat sau incert", "Unspecified or uncertain", 1),
                    ],
                },
            ],
        },
        {
            "name_ro": "Fundația",
            "name_en": "Foundation",
            "questions": [
                {
                    "text_ro": "Fundația a fost executată pe un pământ bine compactat?",
                    "text_en": "Was the foundation built on well-compacted soil?",
                    "weight": 9,
                    "answers": [
                        ("Da, pământul a fost compactat corespunzător", "Yes, the soil was properly compacted", 10),
                        ("Parțial compactat", "Partially compacted", 5),
                        ("Nu a fost compactat corespunzător", "Not properly compacted", 1),
                    ],
                },
            ],
        },
    ],
}


def seed_sample_hierarchy(session: Session, data: Dict[str, Any] = SAMPLE_HIERARCHY) -> bool:
    """Insert the sample property type unless any property type exists. Returns True if seeded."""
    if session.exec(select(PropertyType.id)).first() is not None:
        logger.info("seed skipped, property types already present")
        return False

    counts: Dict[str, int] = {"categories": 0, "questions": 0, "answers": 0}
    try:
        pt = PropertyType(name_ro=data["name_ro"], name_en=data.get("name_en"))
        session.add(pt)
        session.flush()
        for cat_data in data["categories"]:
            cat = QuestionCategory(property_type_id=pt.id, name_ro=cat_data["name_ro"], name_en=cat_data.get("name_en"))
            session.add(cat)
            session.flush()
            counts["categories"] += 1
            for q_data in cat_data["questions"]:
                q = Question(
                    category_id=cat.id,
                    text_ro=q_data["text_ro"],
                    text_en=q_data.get("text_en"),
                    weight=q_data["weight"],
                )
                session.add(q)
                session.flush()
                counts["questions"] += 1
                answers: List[Answer] = [
                    Answer(question_id=q.id, text_ro=ro, text_en=en, weight=w)
                    for ro, en, w in q_data["answers"]
                ]
                session.add_all(answers)
                counts["answers"] += len(answers)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("sample hierarchy seeded", extra=counts)
    return True
