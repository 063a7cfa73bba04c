import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from typing import Any, Dict, Optional

from app.core import errors
from app.core.permissions import StudentContext
from app.leaderboards import best_scores, score_log
from app.leaderboards.item_refs import normalize_ref, parse_score_type, split_ref
from app.leaderboards.models import ScoreEntry, ScoreType
from app.leaderboards.scoring import game_points

logger = logging.getLogger(__name__)


async def record_score(
    db: AsyncIOMotorDatabase,
    score_type: ScoreType,
    item_ref: str,
    class_id: str,
    teacher_id: Optional[str],
    student_id: str,
    points: int,
    meta: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Append to the score log, then raise the best score if beaten

    Scope arguments must already be resolved from the student's profile.
    If the best-score write fails the log row is kept; it remains the
    source for windowed boards.

    Returns:
        bool: True if the best score was created or improved
    """
    await score_log.append(db, ScoreEntry(
        type=score_type,
        item_ref=item_ref,
        class_id=class_id,
        teacher_id=teacher_id,
        student_id=student_id,
        points=points,
        meta=meta or None
    ))

    try:
        improved = await best_scores.upsert_if_greater(
            db, score_type, item_ref, class_id, teacher_id, student_id, points, meta or None
        )
    except PyMongoError:
        logger.exception("best score update failed after log write for %s / %s", item_ref, student_id)
        raise

    if improved:
        logger.info("new best %s for %s on %s (class %s)", points, student_id, item_ref, class_id)

    return improved


async def submit_score(
    db: AsyncIOMotorDatabase,
    student: StudentContext,
    score_type: Any,
    ref: Any,
    points: Any,
    meta: Optional[Dict[str, Any]] = None
) -> dict:
    """
    Student submits a quiz or game score

    Validations:
    - type is quiz|game, points non-negative, ref non-empty
    - student has a class (scope is taken from the profile, not the body)
    - quizzes must belong to the student's class
    """
    if student.role != "student":
        raise errors.ScopeError("Only students can submit scores")

    kind = parse_score_type(score_type)
    value = game_points(points)
    item_ref = normalize_ref(kind, ref)

    if meta is not None and not isinstance(meta, dict):
        raise errors.ValidationError("meta must be an object")

    class_id = student.require_class()

    if kind is ScoreType.QUIZ:
        _, quiz_id = split_ref(item_ref)
        quiz = await db.quizzes.find_one({"quiz_id": quiz_id, "class_id": class_id})
        if not quiz:
            raise errors.ScopeError("Quiz not found for your class")

    await record_score(
        db,
        kind,
        item_ref,
        class_id,
        student.teacher_id,
        student.user_id,
        value,
        meta
    )

    logger.info("score %s submitted by %s for %s", value, student.user_id, item_ref)
    return {"ok": True}
