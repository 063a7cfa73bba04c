import logging
import secrets
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core import errors
from app.core.permissions import StudentContext, TeacherContext
from app.leaderboards.config import DEFAULT_DISPLAY_NAME, TEACHER_TOP_LIMIT
from app.leaderboards.item_refs import quiz_ref
from app.leaderboards.models import ScoreType
from app.leaderboards.ranking_service import resolve_names
from app.leaderboards.scoring import score_quiz
from app.leaderboards.submission_service import record_score
from app.quizzes.models import (
    Quiz, QuizAttempt, QuizQuestion,
    PER_QUESTION_SECONDS_DEFAULT, PER_QUESTION_SECONDS_MIN, PER_QUESTION_SECONDS_MAX,
    MAX_ATTEMPTS_DEFAULT, MAX_ATTEMPTS_MIN, MAX_ATTEMPTS_MAX,
)

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def clamp_setting(value: Any, low: int, high: int, default: Optional[int] = None) -> int:
    """
    Clamp a numeric setting into [low, high]
    With a default, missing/zero/non-numeric values take it (create);
    without one they clamp up to low (update)
    """
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        number = None
    if default is not None and not number:
        number = default
    return min(high, max(low, number or low))


def build_questions(questions: Sequence[Any]) -> List[QuizQuestion]:
    """
    Validate and normalize question payloads
    Each question needs text, at least 2 options and an in-range correct_index
    """
    if not questions:
        raise errors.ValidationError("title and at least 1 question are required")

    built = []
    for q in questions:
        data = q.model_dump() if hasattr(q, "model_dump") else dict(q)
        text = str(data.get("text") or "").strip()
        options = data.get("options")
        correct_index = data.get("correct_index")

        if not text or not isinstance(options, list) or len(options) < 2 or not isinstance(correct_index, int):
            raise errors.ValidationError("Invalid question format")
        if correct_index < 0 or correct_index >= len(options):
            raise errors.ValidationError("correctIndex out of range")

        built.append(QuizQuestion(
            text=text,
            options=[str(o) for o in options],
            correct_index=correct_index
        ))
    return built


def summarize_quiz(quiz: dict) -> dict:
    return {
        "quiz_id": quiz["quiz_id"],
        "title": quiz["title"],
        "per_question_seconds": quiz["per_question_seconds"],
        "max_attempts_per_student": quiz["max_attempts_per_student"],
        "published": quiz.get("published", True),
        "questions_count": len(quiz.get("questions") or []),
        "created_at": quiz.get("created_at"),
        "updated_at": quiz.get("updated_at")
    }

# ==================== TEACHER: QUIZ MANAGEMENT ====================

async def list_teacher_quizzes(db: AsyncIOMotorDatabase, teacher: TeacherContext) -> List[dict]:
    class_id = teacher.require_class()

    cursor = db.quizzes.find({
        "teacher_id": teacher.user_id,
        "class_id": class_id
    }).sort("created_at", -1)

    quizzes = await cursor.to_list(length=None)
    return [summarize_quiz(q) for q in quizzes]


async def create_quiz(db: AsyncIOMotorDatabase, teacher: TeacherContext, data: Mapping) -> dict:
    class_id = teacher.require_class()

    title = str(data.get("title") or "").strip()
    if not title:
        raise errors.ValidationError("title and at least 1 question are required")

    quiz = Quiz(
        quiz_id=generate_id("QUIZ"),
        teacher_id=teacher.user_id,
        class_id=class_id,
        title=title,
        source_blog_id=data.get("source_blog_id"),
        questions=build_questions(data.get("questions") or []),
        per_question_seconds=clamp_setting(
            data.get("per_question_seconds"),
            PER_QUESTION_SECONDS_MIN, PER_QUESTION_SECONDS_MAX, PER_QUESTION_SECONDS_DEFAULT
        ),
        max_attempts_per_student=clamp_setting(
            data.get("max_attempts_per_student"),
            MAX_ATTEMPTS_MIN, MAX_ATTEMPTS_MAX, MAX_ATTEMPTS_DEFAULT
        ),
        published=bool(data.get("published", True))
    )

    doc = quiz.model_dump()
    await db.quizzes.insert_one(doc)

    logger.info("quiz %s created by %s for class %s", quiz.quiz_id, teacher.user_id, class_id)
    return summarize_quiz(doc)


async def update_quiz(
    db: AsyncIOMotorDatabase,
    teacher: TeacherContext,
    quiz_id: str,
    data: Mapping
) -> dict:
    class_id = teacher.require_class()
    updates = {}

    if data.get("title") is not None:
        updates["title"] = str(data["title"]).strip()
    if data.get("per_question_seconds") is not None:
        updates["per_question_seconds"] = clamp_setting(
            data["per_question_seconds"], PER_QUESTION_SECONDS_MIN, PER_QUESTION_SECONDS_MAX
        )
    if data.get("max_attempts_per_student") is not None:
        updates["max_attempts_per_student"] = clamp_setting(
            data["max_attempts_per_student"], MAX_ATTEMPTS_MIN, MAX_ATTEMPTS_MAX
        )
    if data.get("published") is not None:
        updates["published"] = bool(data["published"])
    if data.get("questions") is not None:
        updates["questions"] = [q.model_dump() for q in build_questions(data["questions"])]

    owner_filter = {"quiz_id": quiz_id, "teacher_id": teacher.user_id, "class_id": class_id}
    updates["updated_at"] = datetime.utcnow()

    result = await db.quizzes.update_one(owner_filter, {"$set": updates})
    if result.matched_count == 0:
        raise errors.NotFoundError("Quiz not found")

    quiz = await db.quizzes.find_one(owner_filter)
    return summarize_quiz(quiz)


async def delete_quiz(db: AsyncIOMotorDatabase, teacher: TeacherContext, quiz_id: str) -> dict:
    """
    Delete a quiz and its attempts
    Leaderboard rows for the quiz are kept
    """
    class_id = teacher.require_class()

    quiz = await db.quizzes.find_one({
        "quiz_id": quiz_id,
        "teacher_id": teacher.user_id,
        "class_id": class_id
    })
    if not quiz:
        raise errors.NotFoundError("Quiz not found")

    await db.quizzes.delete_one({"quiz_id": quiz_id})
    await db.quiz_attempts.delete_many({"quiz_id": quiz_id})

    logger.info("quiz %s deleted by %s", quiz_id, teacher.user_id)
    return {"ok": True, "message": f'Deleted quiz "{quiz["title"]}"'}


async def quiz_attempt_leaderboard(
    db: AsyncIOMotorDatabase,
    teacher: TeacherContext,
    quiz_id: str
) -> List[dict]:
    """Best attempt per student for one quiz, from the attempt log"""
    class_id = teacher.require_class()

    quiz = await db.quizzes.find_one({
        "quiz_id": quiz_id,
        "teacher_id": teacher.user_id,
        "class_id": class_id
    })
    if not quiz:
        raise errors.NotFoundError("Quiz not found")

    pipeline = [
        {"$match": {"quiz_id": quiz_id}},
        {
            "$group": {
                "_id": "$student_id",
                "best_points": {"$max": "$total_points"},
                "best_correct": {"$max": "$correct_count"},
                "last_at": {"$max": "$created_at"}
            }
        },
        {"$sort": {"best_points": -1, "last_at": 1}},
        {"$limit": TEACHER_TOP_LIMIT}
    ]
    rows = await db.quiz_attempts.aggregate(pipeline).to_list(length=TEACHER_TOP_LIMIT)
    names = await resolve_names(db, (r["_id"] for r in rows))

    return [
        {
            "rank": idx + 1,
            "student_id": row["_id"],
            "name": names.get(row["_id"]) or DEFAULT_DISPLAY_NAME,
            "best_points": row["best_points"],
            "best_correct": row["best_correct"],
            "last_at": row["last_at"]
        }
        for idx, row in enumerate(rows)
    ]

# ==================== STUDENT: QUIZ PLAY ====================

async def _get_playable_quiz(db: AsyncIOMotorDatabase, student: StudentContext, quiz_id: str) -> dict:
    class_id = student.require_class()

    quiz = await db.quizzes.find_one({"quiz_id": quiz_id, "class_id": class_id, "published": True})
    if not quiz:
        raise errors.NotFoundError("Quiz not found")
    return quiz


async def count_attempts(db: AsyncIOMotorDatabase, quiz_id: str, student_id: str) -> int:
    return await db.quiz_attempts.count_documents({"quiz_id": quiz_id, "student_id": student_id})


async def list_student_quizzes(db: AsyncIOMotorDatabase, student: StudentContext) -> List[dict]:
    """Published quizzes of the student's class with attempts used and best points"""
    class_id = student.require_class()

    cursor = db.quizzes.find({"class_id": class_id, "published": True}).sort("created_at", -1)
    quizzes = await cursor.to_list(length=None)

    summary = await db.quiz_attempts.aggregate([
        {"$match": {"student_id": student.user_id}},
        {"$group": {"_id": "$quiz_id", "count": {"$sum": 1}, "best_points": {"$max": "$total_points"}}}
    ]).to_list(length=None)
    by_quiz = {s["_id"]: s for s in summary}

    results = []
    for q in quizzes:
        attempts = by_quiz.get(q["quiz_id"], {})
        results.append({
            "quiz_id": q["quiz_id"],
            "title": q["title"],
            "per_question_seconds": q["per_question_seconds"],
            "questions_count": len(q.get("questions") or []),
            "attempts_used": attempts.get("count", 0),
            "max_attempts_per_student": q["max_attempts_per_student"],
            "best_points": attempts.get("best_points") or 0,
            "created_at": q.get("created_at")
        })
    return results


async def get_quiz_for_play(db: AsyncIOMotorDatabase, student: StudentContext, quiz_id: str) -> dict:
    """Quiz without correct answers"""
    quiz = await _get_playable_quiz(db, student, quiz_id)
    used = await count_attempts(db, quiz_id, student.user_id)

    return {
        "quiz_id": quiz["quiz_id"],
        "title": quiz["title"],
        "per_question_seconds": quiz["per_question_seconds"],
        "max_attempts_per_student": quiz["max_attempts_per_student"],
        "attempts_used": used,
        "questions": [
            {"text": q["text"], "options": q["options"]}
            for q in quiz.get("questions") or []
        ]
    }


async def submit_attempt(
    db: AsyncIOMotorDatabase,
    student: StudentContext,
    quiz_id: str,
    answers: Sequence[Mapping]
) -> dict:
    """
    Score and record a quiz attempt

    Order of checks:
    - quiz published in the student's class (404)
    - attempts left (LimitExceededError, nothing written)
    - answers length equals question count (400, nothing written)
    Then the attempt is stored and fed to the leaderboard as quiz:<quiz_id>.
    """
    quiz = await _get_playable_quiz(db, student, quiz_id)

    used = await count_attempts(db, quiz_id, student.user_id)
    if used >= quiz.get("max_attempts_per_student", MAX_ATTEMPTS_DEFAULT):
        raise errors.LimitExceededError("Attempts limit reached")

    result = score_quiz(quiz, answers)

    attempt = QuizAttempt(
        attempt_id=generate_id("ATT"),
        quiz_id=quiz_id,
        student_id=student.user_id,
        class_id=quiz["class_id"],
        answers=result.answers,
        correct_count=result.correct_count,
        total_points=result.total_points
    )
    await db.quiz_attempts.insert_one(attempt.model_dump())

    await record_score(
        db,
        ScoreType.QUIZ,
        quiz_ref(quiz_id),
        quiz["class_id"],
        student.teacher_id,
        student.user_id,
        result.total_points,
        {"correct_count": result.correct_count, "total": len(quiz.get("questions") or [])}
    )

    logger.info(
        "attempt %d/%d on %s by %s: %d points",
        used + 1, quiz.get("max_attempts_per_student", MAX_ATTEMPTS_DEFAULT),
        quiz_id, student.user_id, result.total_points
    )

    return {
        "attempt_id": attempt.attempt_id,
        "correct_count": result.correct_count,
        "total_points": result.total_points,
        "answers": [a.model_dump() for a in result.answers]
    }
