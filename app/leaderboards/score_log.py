from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional

from app.leaderboards.models import ScoreEntry

# ==================== SCORE LOG (leaderboard_scores) ====================
# Append-only history of every submission; source of the daily/weekly boards


async def append(db: AsyncIOMotorDatabase, entry: ScoreEntry) -> None:
    """Insert one submission row"""
    doc = entry.model_dump()
    doc["type"] = entry.type.value
    await db.leaderboard_scores.insert_one(doc)


def windowed_best_pipeline(item_ref: str, class_id: str, since: datetime, limit: int) -> list:
    """Best score per student inside the window, highest first, earliest finisher on ties"""
    return [
        {
            "$match": {
                "item_ref": item_ref,
                "class_id": class_id,
                "created_at": {"$gte": since}
            }
        },
        {
            "$group": {
                "_id": "$student_id",
                "best_points": {"$max": "$points"},
                "last_at": {"$max": "$created_at"}
            }
        },
        {"$sort": {"best_points": -1, "last_at": 1}},
        {"$limit": limit}
    ]


async def windowed_best(
    db: AsyncIOMotorDatabase,
    item_ref: str,
    class_id: str,
    since: datetime,
    limit: int
) -> List[dict]:
    """
    Rows shaped {student_id, best_points, updated_at}
    updated_at is the latest in-window submission of that student
    """
    pipeline = windowed_best_pipeline(item_ref, class_id, since, limit)
    results = await db.leaderboard_scores.aggregate(pipeline).to_list(length=limit)

    return [
        {
            "student_id": row["_id"],
            "best_points": row["best_points"],
            "updated_at": row["last_at"]
        }
        for row in results
    ]


async def student_windowed_best(
    db: AsyncIOMotorDatabase,
    item_ref: str,
    class_id: str,
    student_id: str,
    since: datetime
) -> Optional[int]:
    pipeline = [
        {
            "$match": {
                "item_ref": item_ref,
                "class_id": class_id,
                "student_id": student_id,
                "created_at": {"$gte": since}
            }
        },
        {"$group": {"_id": "$student_id", "best_points": {"$max": "$points"}}}
    ]
    results = await db.leaderboard_scores.aggregate(pipeline).to_list(length=1)
    return results[0]["best_points"] if results else None


async def count_students_above(
    db: AsyncIOMotorDatabase,
    item_ref: str,
    class_id: str,
    since: datetime,
    points: int
) -> int:
    """Distinct students whose windowed best is strictly greater than points"""
    pipeline = [
        {
            "$match": {
                "item_ref": item_ref,
                "class_id": class_id,
                "created_at": {"$gte": since}
            }
        },
        {"$group": {"_id": "$student_id", "best_points": {"$max": "$points"}}},
        {"$match": {"best_points": {"$gt": points}}},
        {"$count": "students"}
    ]
    results = await db.leaderboard_scores.aggregate(pipeline).to_list(length=1)
    return results[0]["students"] if results else 0


async def history(
    db: AsyncIOMotorDatabase,
    item_ref: str,
    student_id: str,
    limit: int = 20
) -> List[dict]:
    """A student's own submissions for an item, newest first"""
    cursor = db.leaderboard_scores.find(
        {"item_ref": item_ref, "student_id": student_id},
        {"_id": 0, "points": 1, "meta": 1, "created_at": 1}
    ).sort("created_at", -1).limit(limit)
    return await cursor.to_list(length=limit)


async def delete_scope(db: AsyncIOMotorDatabase, item_ref: str, class_id: str) -> int:
    """Reset only: drop one class's history for an item"""
    result = await db.leaderboard_scores.delete_many({"item_ref": item_ref, "class_id": class_id})
    return result.deleted_count
