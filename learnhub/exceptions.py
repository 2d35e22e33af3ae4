from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class NotFoundException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, detail or "Not found", headers)


class ForbiddenException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_403_FORBIDDEN, detail or "Forbidden", headers)


class ConflictException(HTTPException):
    """Raised for duplicate state; ``reason`` is a stable machine-readable code."""

    def __init__(self, detail: Any = None, reason: str = "conflict", headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_409_CONFLICT, detail or "Conflict", headers)
        self.reason = reason


class BadRequestException(HTTPException):
    def __init__(self, detail: Any = None, reason: str = "bad_request", headers: Optional[Dict[str, str]] = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail or "Bad request", headers)
        self.reason = reason


class UnauthorizedException(HTTPException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail or "Unauthorized",
            headers or {"WWW-Authenticate": "Bearer"},
        )


# reason codes
ALREADY_ENROLLED = "already_enrolled"
NO_MATERIALS = "no_materials"
MISSING_QUERY = "missing_query"
MISSING_SEARCH_PARAMS = "missing_search_params"
