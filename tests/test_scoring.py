# tests/test_scoring.py
import pytest

from app.core.scoring import compute_result, level_for_percentage
from app.models.schemas import (
    HierarchyAnswer,
    HierarchyCategory,
    HierarchyQuestion,
    PropertyTypeWithCategories,
    UserAnswer,
)


def _tree():
    return PropertyTypeWithCategories(
        id=1,
        name="Apartament",
        categories=[
            HierarchyCategory(
                id=1,
                name="Structura",
                questions=[
                    HierarchyQuestion(
                        id=1,
                        text="Starea structurii?",
                        weight=5,
                        answers=[
                            HierarchyAnswer(id=1, text="Excelenta", weight=10),
                            HierarchyAnswer(id=2, text="Slaba", weight=3),
                        ],
                    )
                ],
            )
        ],
    )


def _answer(question_id=1, answer_id=1, answer_weight=10, question_weight=5):
    return UserAnswer(
        question_id=question_id,
        answer_id=answer_id,
        answer_weight=answer_weight,
        question_weight=question_weight,
    )


def test_best_answer_scores_full_marks():
    result = compute_result(_tree(), [_answer()])
    cat = result.category_scores[0]
    assert cat.score == 50
    assert cat.max_score == 50
    assert cat.percentage == 100
    assert result.percentage == 100
    assert result.level == "Expert"
    assert result.badge == "Property Master"
    assert result.completion_rate == 100


def test_thirty_percent_is_inclusive_good():
    result = compute_result(_tree(), [_answer(answer_id=2, answer_weight=3)])
    assert result.category_scores[0].score == 15
    assert result.percentage == 30
    assert result.level == "Good"
    assert result.badge == "Property Learner"


def test_empty_categories_do_not_divide_by_zero():
    tree = PropertyTypeWithCategories(
        id=1,
        name="Gol",
        categories=[HierarchyCategory(id=1, name="A"), HierarchyCategory(id=2, name="B")],
    )
    result = compute_result(tree, [])
    assert result.percentage == 0
    assert result.completion_rate == 0
    assert result.max_possible_score == 0
    assert all(c.percentage == 0 for c in result.category_scores)


def test_no_categories_at_all():
    result = compute_result(PropertyTypeWithCategories(id=1, name="Gol"), [_answer()])
    assert result.percentage == 0
    assert result.completion_rate == 0
    assert result.category_scores == []


def test_max_score_sums_best_answer_times_question_weight():
    tree = _tree()
    tree.categories.append(HierarchyCategory(
        id=2,
        name="Utilitati",
        questions=[
            HierarchyQuestion(id=2, text="Apa?", weight=8, answers=[
                HierarchyAnswer(id=3, text="Da", weight=9),
                HierarchyAnswer(id=4, text="Nu", weight=1),
            ]),
            # no answers: contributes nothing to the maximum
            HierarchyQuestion(id=3, text="Gaz?", weight=10, answers=[]),
        ],
    ))
    result = compute_result(tree, [_answer()])
    assert result.max_possible_score == 50 + 72
    assert result.category_scores[1].max_score == 72
    assert result.category_scores[1].questions_answered == 0
    assert result.category_scores[1].total_questions == 2
    assert result.completion_rate == pytest.approx(100 / 3)


def test_unknown_question_is_ignored():
    result = compute_result(_tree(), [_answer(question_id=42)])
    assert result.total_score == 0
    assert result.completion_rate == 0


def test_first_answer_per_question_wins():
    result = compute_result(_tree(), [_answer(answer_id=2, answer_weight=3), _answer()])
    assert result.total_score == 15
    assert result.category_scores[0].questions_answered == 1


def test_submitted_weights_are_used_for_the_score():
    # question weight snapshot from the client, maxima from the hierarchy
    result = compute_result(_tree(), [_answer(answer_weight=10, question_weight=4)])
    assert result.total_score == 40
    assert result.max_possible_score == 50


@pytest.mark.parametrize("percentage,expected", [
    (100, ("Expert", "Property Master")),
    (90, ("Expert", "Property Master")),
    (89.99, ("Good", "Property Expert")),
    (60, ("Good", "Property Expert")),
    (59.9, ("Good", "Property Learner")),
    (30, ("Good", "Property Learner")),
    (29.99, ("Novice", "Beginner")),
    (0, ("Novice", "Beginner")),
])
def test_level_bands(percentage, expected):
    assert level_for_percentage(percentage) == expected


def test_result_serializes_camel_case():
    body = compute_result(_tree(), [_answer()]).model_dump(by_alias=True)
    assert {"totalScore", "maxPossibleScore", "categoryScores", "completionRate"} <= set(body)
    assert "maxScore" in body["categoryScores"][0]
