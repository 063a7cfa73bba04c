from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from app.core.database import get_db
from app.core.permissions import (
    get_current_student,
    get_current_teacher,
    StudentContext,
    TeacherContext
)
from app.leaderboards import ranking_service, score_log
from app.leaderboards import submission_service as service
from app.leaderboards.config import HISTORY_MAX_LIMIT
from app.leaderboards.item_refs import normalize_ref, parse_score_type
from app.leaderboards.schemas import (
    ScoreSubmit, LeaderboardReset,
    LeaderboardResponse, ScoreHistoryResponse,
    SubmitSuccess, ResetSuccess
)

router = APIRouter(tags=["Leaderboards"])

# ==================== STUDENT ====================

@router.post("/student/leaderboard/submit", response_model=SubmitSuccess)
async def submit_score(
    payload: ScoreSubmit,
    student: StudentContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Submit a new score

    Every submission is logged (daily/weekly boards); the all-time best
    only moves when the new score is higher.
    """
    return await service.submit_score(
        db, student, payload.type, payload.ref, payload.points, payload.meta
    )

@router.get("/student/leaderboard", response_model=LeaderboardResponse)
async def student_leaderboard(
    type: str = Query(...),
    ref: str = Query(...),
    window: Optional[str] = Query(None, description="daily | weekly (games only)"),
    student: StudentContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Top 50 of the student's class plus the student's own rank"""
    return await ranking_service.get_leaderboard(db, student, type, ref, window)

@router.get("/student/leaderboard/history", response_model=ScoreHistoryResponse)
async def my_score_history(
    type: str = Query(...),
    ref: str = Query(...),
    limit: int = Query(20, ge=1, le=HISTORY_MAX_LIMIT),
    student: StudentContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """The student's own recent submissions for one item"""
    kind = parse_score_type(type)
    item_ref = normalize_ref(kind, ref)
    entries = await score_log.history(db, item_ref, student.user_id, limit)

    return {"type": kind.value, "ref": item_ref, "entries": entries}

# ==================== TEACHER ====================

@router.get("/teacher/leaderboard", response_model=LeaderboardResponse)
async def teacher_leaderboard(
    type: str = Query(...),
    ref: str = Query(...),
    window: Optional[str] = Query(None, description="daily | weekly (games only)"),
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Top 100 of the teacher's primary class"""
    return await ranking_service.get_leaderboard(db, teacher, type, ref, window)

@router.post("/teacher/leaderboard/reset", response_model=ResetSuccess)
async def reset_leaderboard(
    payload: LeaderboardReset,
    teacher: TeacherContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Reset one item's board for the teacher's class

    Deletes score history and all-time bests for this class only.
    """
    return await ranking_service.reset_leaderboard(db, teacher, payload.type, payload.ref)
