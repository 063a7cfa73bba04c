"""
Service error taxonomy

Every error is an HTTPException so routers surface it without extra
handlers, and services can be called directly from tests or scripts.
"""

from fastapi import HTTPException


class ServiceError(HTTPException):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(status_code=type(self).status_code, detail=detail)


class ValidationError(ServiceError):
    """Malformed or out-of-range input (negative points, answers length mismatch)"""
    status_code = 400


class ScopeError(ServiceError):
    """Request reaches outside the requester's class, or the requester has no class"""
    status_code = 403


class NotFoundError(ServiceError):
    """Referenced quiz/teacher/student does not exist"""
    status_code = 404


class LimitExceededError(ServiceError):
    """No quiz attempts remaining"""
    status_code = 403
