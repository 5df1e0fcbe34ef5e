# app/core/scoring.py
from __future__ import annotations
from typing import Dict, List, Sequence, Tuple

from app.models.schemas import (
    CategoryScore,
    EvaluationResult,
    PropertyTypeWithCategories,
    UserAnswer,
)

# Inclusive lower bounds, highest first. The two middle bands share the
# "Good" level and differ only by badge.
_TIERS: List[Tuple[float, str, str]] = [
    (90.0, "Expert", "Property Master"),
    (60.0, "Good", "Property Expert"),
    (30.0, "Good", "Property Learner"),
]
_FLOOR = ("Novice", "Beginner")

PENDING_LEVEL = "Pending"
PENDING_BADGE = "evaluation-pending"

# Bands shown by the client next to the result
LEVEL_THRESHOLDS: Dict[str, Dict[str, float]] = {
    "novice": {"min": 0, "max": 30},
    "good": {"min": 30, "max": 60},
    "expert": {"min": 60, "max": 90},
    "master": {"min": 90, "max": 100},
}


def level_for_percentage(percentage: float) -> Tuple[str, str]:
    """(level, badge) for an overall percentage."""
    for lower, level, badge in _TIERS:
        if percentage >= lower:
            return level, badge
    return _FLOOR


def _percent(part: float, whole: float) -> float:
    # multiply first so exact band boundaries (30, 60, 90) stay exact
    return (part * 100) / whole if whole > 0 else 0.0


def compute_result(hierarchy: PropertyTypeWithCategories, answers: Sequence[UserAnswer]) -> EvaluationResult:
    """
    Score a set of user answers against one property type's hierarchy.

    The answer and question weights are taken from the submitted answers
    (the client's snapshot), the maxima from the hierarchy. Answers whose
    question is not part of the hierarchy contribute nothing.
    """
    # first answer per question wins
    by_question: Dict[int, UserAnswer] = {}
    for ua in answers:
        by_question.setdefault(ua.question_id, ua)

    category_scores: List[CategoryScore] = []
    total_score = 0.0
    max_possible = 0.0
    total_questions = 0
    total_answered = 0

    for category in hierarchy.categories:
        score = 0.0
        max_score = 0.0
        answered = 0

        for question in category.questions:
            total_questions += 1
            max_answer_weight = max((a.weight for a in question.answers), default=0)
            max_score += max_answer_weight * question.weight

            ua = by_question.get(question.id)
            if ua is not None:
                answered += 1
                score += ua.answer_weight * ua.question_weight

        category_scores.append(CategoryScore(
            category_id=category.id,
            category_name=category.name,
            score=score,
            max_score=max_score,
            percentage=_percent(score, max_score),
            questions_answered=answered,
            total_questions=len(category.questions),
        ))
        total_score += score
        max_possible += max_score
        total_answered += answered

    percentage = _percent(total_score, max_possible)
    level, badge = level_for_percentage(percentage)

    return EvaluationResult(
        total_score=total_score,
        max_possible_score=max_possible,
        percentage=percentage,
        category_scores=category_scores,
        level=level,
        badge=badge,
        completion_rate=_percent(total_answered, total_questions),
    )
