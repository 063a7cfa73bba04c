import logging
from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


async def create_quiz_indexes(db: AsyncIOMotorDatabase):
    """
    Create database indexes for quizzes and attempts
    Called during application startup
    """

    # Quizzes
    await db.quizzes.create_index("quiz_id", unique=True)
    await db.quizzes.create_index([("teacher_id", 1), ("class_id", 1), ("created_at", -1)])
    await db.quizzes.create_index([("class_id", 1), ("published", 1)])

    # Attempts (attempt cap counts, history)
    await db.quiz_attempts.create_index("attempt_id", unique=True)
    await db.quiz_attempts.create_index([("quiz_id", 1), ("student_id", 1), ("created_at", -1)])
    await db.quiz_attempts.create_index("student_id")

    logger.info("Quiz indexes created")
