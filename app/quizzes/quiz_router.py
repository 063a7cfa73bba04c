from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List

from app.core.database import get_db
from app.core.permissions import (
    get_current_student,
    get_current_teacher,
    StudentContext,
    TeacherContext
)
from app.quizzes import quiz_service as service
from app.quizzes.schemas import (
    AttemptSubmit, QuizCreate, QuizUpdate,
    AttemptResult, QuizSummary, StudentQuizItem, QuizForPlay, AttemptBoardRow
)

router = APIRouter(tags=["Quizzes"])

# ==================== TEACHER: QUIZ MANAGEMENT ====================

@router.get("/teacher/quizzes", response_model=List[QuizSummary])
async def list_quizzes(
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Quizzes of the teacher's primary class, newest first"""
    return await service.list_teacher_quizzes(db, teacher)

@router.post("/teacher/quizzes", response_model=QuizSummary)
async def create_quiz(
    payload: QuizCreate,
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Create a quiz

    per_question_seconds is clamped to 5-600 (default 30),
    max_attempts_per_student to 1-10 (default 1)
    """
    return await service.create_quiz(db, teacher, payload.model_dump())

@router.put("/teacher/quizzes/{quiz_id}", response_model=QuizSummary)
async def update_quiz(
    quiz_id: str,
    payload: QuizUpdate,
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.update_quiz(db, teacher, quiz_id, payload.model_dump(exclude_unset=True))

@router.delete("/teacher/quizzes/{quiz_id}")
async def delete_quiz(
    quiz_id: str,
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Deletes the quiz and its attempts (leaderboard rows stay)"""
    return await service.delete_quiz(db, teacher, quiz_id)

@router.get("/teacher/quizzes/{quiz_id}/leaderboard", response_model=List[AttemptBoardRow])
async def quiz_leaderboard(
    quiz_id: str,
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Best attempt per student, computed from the attempt log"""
    return await service.quiz_attempt_leaderboard(db, teacher, quiz_id)

# ==================== STUDENT: QUIZ PLAY ====================

@router.get("/student/quizzes", response_model=List[StudentQuizItem])
async def list_my_quizzes(
    student: StudentContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_student_quizzes(db, student)

@router.get("/student/quizzes/{quiz_id}", response_model=QuizForPlay)
async def get_quiz(
    quiz_id: str,
    student: StudentContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Get a quiz to play

    Does NOT include correct answers
    """
    return await service.get_quiz_for_play(db, student, quiz_id)

@router.post("/student/quizzes/{quiz_id}/attempt", response_model=AttemptResult)
async def submit_attempt(
    quiz_id: str,
    payload: AttemptSubmit,
    student: StudentContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Submit an attempt

    Server-side validations:
    - Attempts left (403 "Attempts limit reached")
    - One answer per question (400)
    Also updates the quiz leaderboard.
    """
    answers = [a.model_dump() for a in payload.answers]
    return await service.submit_attempt(db, student, quiz_id, answers)
