import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from app.core import errors
from app.core.permissions import StudentContext, TeacherContext
from app.leaderboards import best_scores, score_log
from app.leaderboards.config import (
    DEFAULT_DISPLAY_NAME,
    STUDENT_TOP_LIMIT,
    TEACHER_TOP_LIMIT,
    WINDOW_LENGTHS,
)
from app.leaderboards.item_refs import normalize_ref, parse_score_type
from app.leaderboards.models import LeaderboardWindow, ScoreType

logger = logging.getLogger(__name__)

Viewer = Union[StudentContext, TeacherContext]

# ==================== HELPERS ====================

def window_start(window: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of a trailing window, or None for all-time"""
    length = WINDOW_LENGTHS.get(str(window or "").lower())
    if length is None:
        return None
    return (now or datetime.utcnow()) - length


def top_limit(viewer: Viewer) -> int:
    return TEACHER_TOP_LIMIT if viewer.role == "teacher" else STUDENT_TOP_LIMIT


def rank_rows(rows: List[dict], names: Dict[str, str]) -> List[dict]:
    """Attach 1-based ranks (rows are already sorted) and display names"""
    return [
        {
            "rank": idx + 1,
            "student_id": row["student_id"],
            "name": names.get(row["student_id"]) or DEFAULT_DISPLAY_NAME,
            "best_points": row["best_points"],
            "updated_at": row.get("updated_at")
        }
        for idx, row in enumerate(rows)
    ]


async def resolve_names(db: AsyncIOMotorDatabase, student_ids: Iterable[str]) -> Dict[str, str]:
    """
    Batch display-name lookup
    Never fails: unresolved ids fall back to the placeholder at render time
    """
    ids = list(dict.fromkeys(student_ids))
    if not ids:
        return {}

    try:
        cursor = db.users_profile.find({"user_id": {"$in": ids}}, {"user_id": 1, "name": 1})
        users = await cursor.to_list(length=len(ids))
    except PyMongoError:
        logger.warning("name lookup failed for %d students, using placeholders", len(ids), exc_info=True)
        return {}

    return {u["user_id"]: u.get("name") for u in users if u.get("name")}

# ==================== LEADERBOARD QUERIES ====================

async def get_windowed_board(
    db: AsyncIOMotorDatabase,
    viewer: Viewer,
    item_ref: str,
    class_id: str,
    since: datetime
) -> tuple[List[dict], Optional[dict]]:
    rows = await score_log.windowed_best(db, item_ref, class_id, since, top_limit(viewer))

    you = None
    if viewer.role == "student":
        my_best = await score_log.student_windowed_best(db, item_ref, class_id, viewer.user_id, since)
        if my_best is not None:
            better = await score_log.count_students_above(db, item_ref, class_id, since, my_best)
            you = {"rank": better + 1, "best_points": my_best}

    return rows, you


async def get_all_time_board(
    db: AsyncIOMotorDatabase,
    viewer: Viewer,
    item_ref: str,
    class_id: str
) -> tuple[List[dict], Optional[dict]]:
    rows = await best_scores.top(db, item_ref, class_id, top_limit(viewer))

    you = None
    if viewer.role == "student":
        me = await best_scores.find(db, item_ref, class_id, viewer.user_id)
        if me:
            better = await best_scores.count_above(db, item_ref, class_id, me["best_points"])
            you = {"rank": better + 1, "best_points": me["best_points"]}

    return rows, you


async def get_leaderboard(
    db: AsyncIOMotorDatabase,
    viewer: Viewer,
    score_type,
    ref,
    window: Optional[str] = None
) -> dict:
    """
    Ranked board for the viewer's own class

    - daily/weekly windows apply to games only and read the score log
    - everything else reads all-time bests
    - students get their own rank in `you` when they have a row
    """
    kind = parse_score_type(score_type)
    item_ref = normalize_ref(kind, ref)
    class_id = viewer.require_class()

    since = window_start(window) if kind is ScoreType.GAME else None

    if since is not None:
        rows, you = await get_windowed_board(db, viewer, item_ref, class_id, since)
        window_label = LeaderboardWindow(str(window).lower()).value
    else:
        rows, you = await get_all_time_board(db, viewer, item_ref, class_id)
        window_label = LeaderboardWindow.ALL.value

    names = await resolve_names(db, (r["student_id"] for r in rows))

    return {
        "type": kind.value,
        "ref": item_ref,
        "window": window_label,
        "top": rank_rows(rows, names),
        "you": you
    }

# ==================== RESET ====================

async def reset_leaderboard(
    db: AsyncIOMotorDatabase,
    teacher: TeacherContext,
    score_type,
    ref
) -> dict:
    """
    Delete history and bests for one item in the teacher's class only
    Other classes sharing the same item ref are untouched
    """
    if teacher.role != "teacher":
        raise errors.ScopeError("Only teachers can reset leaderboards")

    kind = parse_score_type(score_type)
    item_ref = normalize_ref(kind, ref)
    class_id = teacher.require_class()

    scores_deleted = await score_log.delete_scope(db, item_ref, class_id)
    best_deleted = await best_scores.delete_scope(db, item_ref, class_id)

    logger.info(
        "leaderboard %s reset for class %s by %s (%d scores, %d bests)",
        item_ref, class_id, teacher.user_id, scores_deleted, best_deleted
    )

    return {
        "ok": True,
        "message": "Leaderboard reset for your class",
        "deleted": {"scores": scores_deleted, "best": best_deleted}
    }
