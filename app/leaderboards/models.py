from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

# ==================== ENUMS ====================

class ScoreType(str, Enum):
    QUIZ = "quiz"
    GAME = "game"

class LeaderboardWindow(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    ALL = "all"

# ==================== DATABASE MODELS ====================

class ScoreEntry(BaseModel):
    """
    One row per submission (leaderboard_scores)
    Append-only; removed only by a class-scoped teacher reset
    """
    type: ScoreType
    item_ref: str  # quiz:<quiz_id> | game:<slug>
    class_id: str  # class at submission time
    teacher_id: Optional[str] = None
    student_id: str
    points: int = Field(..., ge=0)
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class BestScoreEntry(BaseModel):
    """
    One row per (item_ref, student_id) in leaderboard_best
    best_points never decreases until a reset deletes the row
    """
    type: ScoreType
    item_ref: str
    class_id: str
    teacher_id: Optional[str] = None
    student_id: str
    best_points: int = Field(..., ge=0)
    best_meta: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
