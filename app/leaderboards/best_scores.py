import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.leaderboards.models import BestScoreEntry, ScoreType

logger = logging.getLogger(__name__)

# ==================== BEST SCORE TABLE (leaderboard_best) ====================
# One row per (item_ref, student_id), guarded by a unique index


async def upsert_if_greater(
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
    Raise best_points to `points` with a conditional upsert

    The filter only matches a row holding a lower score. When the row
    exists with an equal or higher score, the upsert attempts an insert
    that collides on the unique (item_ref, student_id) index. A collision
    can also mean a concurrent first insert landed between our match and
    our insert, so the update is retried once without upsert; only a
    row that is still lower gets raised.

    Returns:
        bool: True if the row was created or improved
    """
    now = datetime.utcnow()
    entry = BestScoreEntry(
        type=score_type,
        item_ref=item_ref,
        class_id=class_id,
        teacher_id=teacher_id,
        student_id=student_id,
        best_points=points,
        best_meta=meta,
        created_at=now,
        updated_at=now
    )

    lower_row = {
        "item_ref": entry.item_ref,
        "student_id": entry.student_id,
        "best_points": {"$lt": entry.best_points}
    }
    update = {
        "$set": {
            "best_points": entry.best_points,
            "best_meta": entry.best_meta,
            "class_id": entry.class_id,
            "teacher_id": entry.teacher_id,
            "updated_at": entry.updated_at
        },
        "$setOnInsert": {
            "type": entry.type.value,
            "created_at": entry.created_at
        }
    }

    try:
        result = await db.leaderboard_best.update_one(lower_row, update, upsert=True)
    except DuplicateKeyError:
        result = await db.leaderboard_best.update_one(lower_row, update)
        if result.modified_count == 0:
            logger.debug("best score kept for %s / %s (%s not higher)", item_ref, student_id, points)
        return result.modified_count > 0

    return result.upserted_id is not None or result.modified_count > 0


async def find(db: AsyncIOMotorDatabase, item_ref: str, class_id: str, student_id: str) -> Optional[dict]:
    return await db.leaderboard_best.find_one({
        "item_ref": item_ref,
        "class_id": class_id,
        "student_id": student_id
    })


async def top(db: AsyncIOMotorDatabase, item_ref: str, class_id: str, limit: int) -> List[dict]:
    """Highest first; on a tie the earlier achiever ranks higher"""
    cursor = db.leaderboard_best.find(
        {"item_ref": item_ref, "class_id": class_id},
        {"_id": 0, "student_id": 1, "best_points": 1, "updated_at": 1}
    ).sort([("best_points", -1), ("updated_at", 1)]).limit(limit)
    return await cursor.to_list(length=limit)


async def count_above(db: AsyncIOMotorDatabase, item_ref: str, class_id: str, points: int) -> int:
    return await db.leaderboard_best.count_documents({
        "item_ref": item_ref,
        "class_id": class_id,
        "best_points": {"$gt": points}
    })


async def delete_scope(db: AsyncIOMotorDatabase, item_ref: str, class_id: str) -> int:
    result = await db.leaderboard_best.delete_many({"item_ref": item_ref, "class_id": class_id})
    return result.deleted_count
