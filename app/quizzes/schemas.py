from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

# ==================== REQUEST SCHEMAS ====================

class AnswerSubmit(BaseModel):
    question_index: int = Field(..., ge=0)
    selected_index: int = -1  # unanswered / out of range scores 0
    time_taken_sec: Optional[float] = None  # missing counts as the full budget

class AttemptSubmit(BaseModel):
    answers: List[AnswerSubmit]

class QuestionCreate(BaseModel):
    text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_index: int

    @field_validator('text')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Question text is required')
        return v

class QuizCreate(BaseModel):
    """
    Teacher creates a quiz in their primary class
    Timing and attempt limits are clamped by the service
    """
    title: str = Field(..., min_length=1)
    questions: List[QuestionCreate] = Field(..., min_length=1)
    per_question_seconds: Optional[float] = None
    max_attempts_per_student: Optional[float] = None
    published: bool = True
    source_blog_id: Optional[str] = None

class QuizUpdate(BaseModel):
    title: Optional[str] = None
    questions: Optional[List[QuestionCreate]] = None
    per_question_seconds: Optional[float] = None
    max_attempts_per_student: Optional[float] = None
    published: Optional[bool] = None

# ==================== RESPONSE SCHEMAS ====================

class ScoredAnswerOut(BaseModel):
    question_index: int
    selected_index: int
    time_taken_sec: float
    correct: bool
    points: int

class AttemptResult(BaseModel):
    attempt_id: str
    correct_count: int
    total_points: int
    answers: List[ScoredAnswerOut]

class QuizSummary(BaseModel):
    """Teacher-facing quiz row"""
    quiz_id: str
    title: str
    per_question_seconds: int
    max_attempts_per_student: int
    published: bool
    questions_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class StudentQuizItem(BaseModel):
    quiz_id: str
    title: str
    per_question_seconds: int
    questions_count: int
    attempts_used: int
    max_attempts_per_student: int
    best_points: int
    created_at: Optional[datetime] = None

class PlayQuestion(BaseModel):
    text: str
    options: List[str]

class QuizForPlay(BaseModel):
    """Quiz as sent to a student: no correct answers"""
    quiz_id: str
    title: str
    per_question_seconds: int
    max_attempts_per_student: int
    attempts_used: int
    questions: List[PlayQuestion]

class AttemptBoardRow(BaseModel):
    rank: int
    student_id: str
    name: str
    best_points: int
    best_correct: int
    last_at: Optional[datetime] = None
