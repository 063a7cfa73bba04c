from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import CORS_ORIGINS
from app.core.database import get_db_instance
from app.core.logging_config import configure_logging
from app.leaderboards.database_setup import create_leaderboard_indexes
from app.leaderboards.leaderboard_router import router as leaderboard_router
from app.quizzes.database_setup import create_quiz_indexes
from app.quizzes.quiz_router import router as quiz_router
from app.system.health_router import router as health_router


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger = configure_logging()
    db = get_db_instance()
    await create_leaderboard_indexes(db)
    await create_quiz_indexes(db)
    logger.info("STEM-Play leaderboard service started")
    yield


app = FastAPI(title="STEM-Play Leaderboards", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)

# ==================== ROUTER REGISTRATION ====================
app.include_router(health_router)
app.include_router(leaderboard_router)
app.include_router(quiz_router)
