import logging
from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


async def create_leaderboard_indexes(db: AsyncIOMotorDatabase):
    """
    Create database indexes for score log and best-score table
    Called during application startup
    """

    # Score log (windowed scans)
    await db.leaderboard_scores.create_index([("item_ref", 1), ("class_id", 1), ("created_at", -1)])
    await db.leaderboard_scores.create_index("student_id")
    await db.leaderboard_scores.create_index("type")

    # Best scores: exactly one row per (item_ref, student_id)
    await db.leaderboard_best.create_index([("item_ref", 1), ("student_id", 1)], unique=True)
    await db.leaderboard_best.create_index([("item_ref", 1), ("class_id", 1)])
    await db.leaderboard_best.create_index([("item_ref", 1), ("class_id", 1), ("best_points", -1)])

    logger.info("Leaderboard indexes created")
