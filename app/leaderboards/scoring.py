"""
Scoring engine

Pure point computation, no database access:
- quiz answers are scored with a time-decay formula
- game scores are client-reported and only validated/floored here
"""

import math
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from app.core import errors

MAX_POINTS_PER_QUESTION = 100
MIN_CORRECT_POINTS = 1

# ==================== RESULT MODELS ====================

class ScoredAnswer(BaseModel):
    question_index: int
    selected_index: int  # -1 when out of range
    time_taken_sec: float
    correct: bool
    points: int

class QuizScore(BaseModel):
    answers: List[ScoredAnswer]
    correct_count: int
    total_points: int

# ==================== HELPERS ====================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number

def _as_index(value: Any) -> int:
    number = _as_number(value)
    if number is None or number != int(number):
        return -1
    return int(number)

def clamp_time(time_taken_sec: Any, per_question_seconds: float) -> float:
    """
    Clamp time to [0, per_question_seconds]
    A missing or non-numeric time counts as the whole budget
    """
    t = _as_number(time_taken_sec)
    if t is None:
        t = per_question_seconds
    return max(0.0, min(float(per_question_seconds), t))

# ==================== QUIZ SCORING ====================

def score_answer(
    per_question_seconds: float,
    question: Optional[Mapping],
    question_index: int,
    selected_index: Any,
    time_taken_sec: Any
) -> ScoredAnswer:
    """
    Score one answer

    correct answers earn max(1, round(100 * remaining / budget));
    wrong or out-of-range answers earn 0 regardless of timing
    """
    t = clamp_time(time_taken_sec, per_question_seconds)
    selected = _as_index(selected_index)

    options = (question or {}).get("options") or []
    valid_selection = 0 <= selected < len(options)
    correct = bool(question) and valid_selection and selected == question.get("correct_index")

    remaining = max(0.0, per_question_seconds - t)
    scale = remaining / per_question_seconds if per_question_seconds > 0 else 0
    points = max(MIN_CORRECT_POINTS, _round_half_up(MAX_POINTS_PER_QUESTION * scale)) if correct else 0

    return ScoredAnswer(
        question_index=question_index,
        selected_index=selected if valid_selection else -1,
        time_taken_sec=t,
        correct=correct,
        points=points
    )


def score_quiz(quiz: Mapping, answers: Sequence[Mapping]) -> QuizScore:
    """
    Score a full attempt

    Raises:
        ValidationError: answers length differs from the question count,
            or a question is answered more than once
    """
    questions = quiz.get("questions") or []

    if not isinstance(answers, (list, tuple)) or len(answers) != len(questions):
        raise errors.ValidationError("answers must match questions length")

    per_question_seconds = float(quiz.get("per_question_seconds", 30))

    scored = []
    seen = set()
    for answer in answers:
        qi = _as_index(answer.get("question_index"))
        # Negative indexes must not wrap around to the last question
        question = questions[qi] if 0 <= qi < len(questions) else None
        if question is not None:
            if qi in seen:
                raise errors.ValidationError("each question can be answered only once")
            seen.add(qi)
        scored.append(score_answer(
            per_question_seconds,
            question,
            qi,
            answer.get("selected_index"),
            answer.get("time_taken_sec")
        ))

    return QuizScore(
        answers=scored,
        correct_count=sum(1 for a in scored if a.correct),
        total_points=sum(a.points for a in scored)
    )

# ==================== GAME SCORING ====================

def game_points(points: Any) -> int:
    """Validate client-reported points and floor them to an integer"""
    value = _as_number(points)
    if value is None or value < 0:
        raise errors.ValidationError("points must be a non-negative number")
    return int(math.floor(value))
