import logging
from datetime import datetime
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.config import APP_ENV
from app.core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health")
async def health(db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Liveness probe
    The service is UP while this handler runs; the database is pinged
    """
    try:
        await db.command("ping")
        database = "UP"
    except PyMongoError:
        logger.warning("database ping failed", exc_info=True)
        database = "DOWN"

    return {
        "ok": True,
        "env": APP_ENV,
        "time": datetime.utcnow().isoformat() + "Z",
        "database": database
    }
