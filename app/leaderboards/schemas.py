from pydantic import BaseModel, Field, StrictFloat, StrictInt
from typing import Optional, List, Dict, Any, Union
from datetime import datetime

# ==================== REQUEST SCHEMAS ====================

class ScoreSubmit(BaseModel):
    """
    Student submits a quiz or game score
    ref may be sent with or without the "quiz:" / "game:" prefix
    """
    type: str
    ref: str
    points: Union[StrictInt, StrictFloat]
    meta: Optional[Dict[str, Any]] = None

class LeaderboardReset(BaseModel):
    type: str
    ref: str

# ==================== RESPONSE SCHEMAS ====================

class RankedRow(BaseModel):
    rank: int
    student_id: str
    name: str
    best_points: int
    updated_at: Optional[datetime] = None

class YourRank(BaseModel):
    rank: int
    best_points: int

class LeaderboardResponse(BaseModel):
    type: str
    ref: str
    window: str  # daily | weekly | all
    top: List[RankedRow]
    you: Optional[YourRank] = None

class ScoreHistoryItem(BaseModel):
    points: int
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime

class ScoreHistoryResponse(BaseModel):
    type: str
    ref: str
    entries: List[ScoreHistoryItem]

class SubmitSuccess(BaseModel):
    ok: bool = True

class ResetSuccess(BaseModel):
    ok: bool = True
    message: str
    deleted: Dict[str, int] = Field(default_factory=dict)
