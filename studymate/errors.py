"""
Application error types and their HTTP status codes
"""
from typing import Any, Dict, Optional


class StudyMateError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class ValidationError(StudyMateError):
    """User-correctable input problem."""

    status_code = 400


class AuthError(StudyMateError):
    """Missing or rejected credentials."""

    status_code = 401


class ForbiddenError(StudyMateError):
    """Credential present but invalid or expired."""

    status_code = 403


class NotFoundError(StudyMateError):
    status_code = 404


class ConflictError(StudyMateError):
    status_code = 409


class UpstreamError(StudyMateError):
    """Remote inference failure. Always recovered locally."""

    status_code = 502


class StorageInconsistency(StudyMateError):
    """Read-back after a write did not match what was written."""

    status_code = 500
