# tests/test_reconciler.py
import pytest
from sqlalchemy import func
from sqlmodel import select

from app.core.errors import ImportValidationError
from app.core.hierarchy import flatten_hierarchy
from app.core.import_rows import ImportRow
from app.core.reconciler import reconcile
from app.core.template import build_export_rows
from app.models.hierarchy import Answer, PropertyType, Question, QuestionCategory


@pytest.fixture
def property_type_id(session):
    pt = PropertyType(name_ro="Casa", name_en="House")
    session.add(pt)
    session.commit()
    return pt.id


def _count(session, model):
    return session.exec(select(func.count(model.id))).one()


def _row(pt_id, **overrides):
    values = dict(
        property_type_id=pt_id,
        category_name_ro="Structura",
        category_name_en="Structure",
        question_ro="Starea structurii?",
        question_en="Structure condition?",
        question_weight=8,
        answer_ro="Excelenta",
        answer_en="Excellent",
        answer_weight=10,
    )
    values.update(overrides)
    return ImportRow(**values)


def _new_rows(pt_id):
    return [
        _row(pt_id),
        _row(pt_id, answer_ro="Buna", answer_en="Good", answer_weight=7),
        _row(pt_id, question_ro="Acoperis?", question_en="Roof?", question_weight=6, answer_ro="Nou", answer_en="New", answer_weight=9),
    ]


def test_zero_ids_create_and_link_by_name(session, property_type_id):
    result = reconcile(session, _new_rows(property_type_id))

    assert result.categories_created == 1
    assert result.questions_created == 2
    assert result.answers_created == 3
    assert result.failed == 0
    assert result.total_processed == 6

    cat_id = result.id_mappings.categories[f"{property_type_id}-Structura"]
    q_id = result.id_mappings.questions[f"{cat_id}-Starea structurii?"]
    assert f"{q_id}-Buna" in result.id_mappings.answers

    answers = session.exec(select(Answer).where(Answer.question_id == q_id).order_by(Answer.id)).all()
    assert [(a.text_ro, a.weight) for a in answers] == [("Excelenta", 10), ("Buna", 7)]


def test_missing_english_text_falls_back_to_romanian(session, property_type_id):
    reconcile(session, [_row(property_type_id, category_name_en="", question_en="", answer_en="")])
    cat = session.exec(select(QuestionCategory)).one()
    assert cat.name_en == "Structura"
    assert session.exec(select(Answer)).one().text_en == "Excelenta"


def test_nonzero_ids_with_replace_are_idempotent(session, property_type_id):
    reconcile(session, _new_rows(property_type_id))
    rows = [
        ImportRow(**{**r.as_payload(), "question_weight": 3, "answer_en": r.answer_en + "!"})
        for r in flatten_hierarchy(session, property_type_id)
    ]

    first = reconcile(session, rows, replace_existing=True)
    state = flatten_hierarchy(session, property_type_id)
    second = reconcile(session, rows, replace_existing=True)

    for result in (first, second):
        assert (result.categories_created, result.questions_created, result.answers_created) == (0, 0, 0)
        assert (result.categories_updated, result.questions_updated, result.answers_updated) == (1, 2, 3)
        assert result.failed == 0
    assert flatten_hierarchy(session, property_type_id) == state
    assert all(r.question_weight == 3 for r in state)
    assert _count(session, QuestionCategory) == 1
    assert _count(session, Question) == 2
    assert _count(session, Answer) == 3


def test_export_round_trip_is_a_no_op(session, property_type_id):
    reconcile(session, _new_rows(property_type_id))
    before = flatten_hierarchy(session)

    exported = build_export_rows(session)
    rows = [ImportRow.from_cells(cells) for cells in exported[1:]]
    result = reconcile(session, rows, replace_existing=True)

    assert (result.categories_created, result.questions_created, result.answers_created) == (0, 0, 0)
    assert result.answers_updated == 3
    assert result.failed == 0
    assert flatten_hierarchy(session) == before


def test_without_replace_existing_rows_are_only_mapped(session, property_type_id):
    first = reconcile(session, _new_rows(property_type_id))
    rows = [
        ImportRow(**{**r.as_payload(), "answer_weight": 1, "category_name_en": "Changed"})
        for r in flatten_hierarchy(session, property_type_id)
    ]
    result = reconcile(session, rows)

    assert result.total_processed == 0
    assert result.id_mappings.categories == first.id_mappings.categories
    assert len(result.id_mappings.answers) == 3
    assert {a.weight for a in session.exec(select(Answer)).all()} == {10, 7, 9}
    assert session.exec(select(QuestionCategory)).one().name_en == "Structure"


def test_unknown_category_id_fails_that_item_only(session, property_type_id):
    rows = [
        _row(property_type_id, category_id=5, category_name_ro="Fantoma", answer_ro="X"),
        _row(property_type_id),
    ]
    result = reconcile(session, rows)

    assert result.categories_created == 1
    assert result.questions_created == 1
    assert result.answers_created == 1
    assert result.failed == 2
    assert result.skipped_unresolved == 1

    details = [d.model_dump(exclude_none=True) for d in result.details]
    assert details == [
        {"type": "category", "name": "Fantoma", "error": "Category ID 5 not found"},
        {"type": "answer", "text": "X", "error": "Category not found for Fantoma"},
    ]


def test_unknown_question_id_fails_its_answers(session, property_type_id):
    rows = [
        _row(property_type_id, question_id=777, question_ro="Lipsa?", answer_ro="A1"),
        _row(property_type_id, question_id=777, question_ro="Lipsa?", answer_ro="A2"),
    ]
    result = reconcile(session, rows)

    assert result.categories_created == 1
    assert result.failed == 3
    assert [d.error for d in result.details] == [
        "Question ID 777 not found",
        "Question not found for Lipsa?",
        "Question not found for Lipsa?",
    ]
    assert _count(session, Answer) == 0


def test_unknown_answer_id_is_reported(session, property_type_id):
    result = reconcile(session, [_row(property_type_id, answer_id=4242)])
    assert result.failed == 1
    assert result.details[0].type == "answer"
    assert result.details[0].error == "Answer ID 4242 not found"


def test_unknown_property_type_rejects_the_batch(session, property_type_id):
    rows = _new_rows(property_type_id) + [_row(property_type_id + 100)]
    with pytest.raises(ImportValidationError) as err:
        reconcile(session, rows)
    assert err.value.message == f"Property Type ID {property_type_id + 100} does not exist"
    assert _count(session, QuestionCategory) == 0


def test_zero_id_rerun_duplicates_by_default(session, property_type_id):
    reconcile(session, _new_rows(property_type_id))
    reconcile(session, _new_rows(property_type_id))
    assert _count(session, QuestionCategory) == 2
    assert _count(session, Answer) == 6


def test_dedupe_by_name_reuses_existing_rows(session, property_type_id):
    reconcile(session, _new_rows(property_type_id))
    result = reconcile(session, _new_rows(property_type_id), dedupe_by_name=True)

    assert (result.categories_created, result.questions_created, result.answers_created) == (0, 0, 0)
    assert result.total_processed == 0
    assert len(result.id_mappings.answers) == 3
    assert _count(session, QuestionCategory) == 1
    assert _count(session, Question) == 2
    assert _count(session, Answer) == 3


def test_dedupe_with_replace_updates_matches(session, property_type_id):
    reconcile(session, _new_rows(property_type_id))
    rows = [_row(property_type_id, answer_weight=4)]
    result = reconcile(session, rows, replace_existing=True, dedupe_by_name=True)

    assert (result.categories_updated, result.questions_updated, result.answers_updated) == (1, 1, 1)
    answer = session.exec(select(Answer).where(Answer.text_ro == "Excelenta")).one()
    assert answer.weight == 4


def test_result_response_shape(session, property_type_id):
    body = reconcile(session, _new_rows(property_type_id)).to_response()
    assert set(body) >= {
        "categoriesCreated", "categoriesUpdated", "questionsCreated", "questionsUpdated",
        "answersCreated", "answersUpdated", "failed", "skippedUnresolved", "totalProcessed",
        "details", "idMappings",
    }
    assert set(body["idMappings"]) == {"categories", "questions", "answers"}


def test_unexpected_item_error_reports_the_plain_message(session, property_type_id, monkeypatch):
    def _broken(**kwargs):
        raise RuntimeError("answer insert failed")

    monkeypatch.setattr("app.core.reconciler.Answer", _broken)
    result = reconcile(session, [_row(property_type_id)])

    assert result.categories_created == 1
    assert result.questions_created == 1
    assert result.failed == 1
    assert result.details[0].error == "answer insert failed"
