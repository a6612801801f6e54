"""
Custom exception classes and error handling.

Provides consistent error responses across the API:
every error body carries a human-readable ``message`` and an ``error_code``.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any, List


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.detail, "error_code": self.error_code}
        body.update(self.extra)
        return body


class NotFoundError(APIException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None, detail: Optional[str] = None):
        if detail is None:
            detail = f"{resource} not found" if identifier is None else f"{resource} with ID {identifier} not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class ValidationError(APIException):
    """Missing or invalid input."""

    def __init__(self, detail: str, field: Optional[str] = None, issues: Optional[List[Dict[str, str]]] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
            extra={"issues": issues} if issues else None,
        )


class InvalidStateError(APIException):
    """Operation not allowed in the current state (no open check-in, stale challenge, ...)."""

    def __init__(self, detail: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="INVALID_STATE",
            extra=extra,
        )


class UnauthorizedError(APIException):
    """Authentication required."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access denied."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Duplicate entry. Reported as 400 to keep the existing client contract."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="CONFLICT"
        )


class InternalError(APIException):
    """Persistence or downstream failure. The raw cause is surfaced under ``error``."""

    def __init__(self, detail: str, cause: Optional[BaseException] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="INTERNAL_ERROR",
            extra={"error": str(cause)} if cause is not None else None,
        )
