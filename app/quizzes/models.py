from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.leaderboards.scoring import ScoredAnswer

# ==================== LIMITS ====================

PER_QUESTION_SECONDS_DEFAULT = 30
PER_QUESTION_SECONDS_MIN = 5
PER_QUESTION_SECONDS_MAX = 600

MAX_ATTEMPTS_DEFAULT = 1
MAX_ATTEMPTS_MIN = 1
MAX_ATTEMPTS_MAX = 10

# ==================== DATABASE MODELS ====================

class QuizQuestion(BaseModel):
    text: str
    options: List[str]
    correct_index: int  # never sent to students

class Quiz(BaseModel):
    """
    Quiz owned by a teacher, scoped to one class
    """
    quiz_id: str  # QUIZ_XXXXXX
    teacher_id: str
    class_id: str
    title: str
    source_blog_id: Optional[str] = None
    questions: List[QuizQuestion]
    per_question_seconds: int = PER_QUESTION_SECONDS_DEFAULT
    max_attempts_per_student: int = MAX_ATTEMPTS_DEFAULT
    published: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class QuizAttempt(BaseModel):
    """
    One scored attempt; all attempts are kept for history
    len(answers) always equals the question count at attempt time
    """
    attempt_id: str  # ATT_XXXXXX
    quiz_id: str
    student_id: str
    class_id: str
    answers: List[ScoredAnswer]
    correct_count: int = 0
    total_points: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
