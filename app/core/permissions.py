from fastapi import HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List, Optional

from app.core import errors
from app.core.auth_utils import verify_token
from app.core.database import get_db


class StudentContext:
    """
    Contains validated student profile and scope

    Scope (class/teacher) is read from the profile at request time and is
    never taken from the request body.
    """
    role = "student"

    def __init__(self, user_id: str, profile: dict):
        self.user_id = user_id
        self.name = profile.get("name")
        self.class_id: Optional[str] = profile.get("assigned_class_id")
        self.teacher_id: Optional[str] = profile.get("assigned_teacher_id")
        self.profile = profile

    def require_class(self) -> str:
        if not self.class_id:
            raise errors.ScopeError("No class assigned to this student")
        return self.class_id


class TeacherContext:
    """
    Contains validated teacher profile and scope
    Leaderboards and quizzes always use the first assigned class
    """
    role = "teacher"

    def __init__(self, user_id: str, profile: dict):
        self.user_id = user_id
        self.name = profile.get("name")
        self.class_ids: List[str] = list(profile.get("class_ids") or [])
        self.profile = profile

    @property
    def class_id(self) -> Optional[str]:
        return self.class_ids[0] if self.class_ids else None

    def require_class(self) -> str:
        if not self.class_id:
            raise errors.ScopeError("No class assigned to this teacher")
        return self.class_id


async def _load_profile(db: AsyncIOMotorDatabase, user: dict) -> tuple[str, dict]:
    user_id = user.get("sub")

    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user_id")

    profile = await db.users_profile.find_one({"user_id": user_id})

    if not profile:
        raise HTTPException(
            status_code=404,
            detail="Profile not found. Please complete registration first."
        )

    return user_id, profile


async def get_current_student(
    user: dict = Depends(verify_token),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> StudentContext:
    """
    Dependency: Validates user is a student and returns their context

    Raises:
        401: Invalid token
        403: Not a student
        404: Profile not found
    """
    user_id, profile = await _load_profile(db, user)

    if profile.get("role") != "student":
        raise HTTPException(status_code=403, detail="Forbidden: student access only")

    return StudentContext(user_id, profile)


async def get_current_teacher(
    user: dict = Depends(verify_token),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> TeacherContext:
    """
    Dependency: Validates user is a teacher and returns their context

    Raises:
        401: Invalid token
        403: Not a teacher
        404: Profile not found
    """
    user_id, profile = await _load_profile(db, user)

    if profile.get("role") != "teacher":
        raise HTTPException(
            status_code=403,
            detail="Access denied. Teacher privileges required."
        )

    return TeacherContext(user_id, profile)
