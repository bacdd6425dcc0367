"""
Pydantic schemas shared by every endpoint: the response envelopes.
"""

from typing import Any, List, Optional

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """
    Standard success envelope.

    Attributes:
        success: Always true
        data: Endpoint payload
        message: Optional acknowledgement text
    """
    success: bool = True
    data: Any = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """
    Standard error envelope.

    Attributes:
        success: Always false
        error: Human-readable error message
        path: Request path
        timestamp: When the error was produced (ISO 8601)
        error_code: Machine-readable code for auth and rate limit errors
        details: Field errors for validation failures
    """
    success: bool = False
    error: str
    path: str
    timestamp: str
    error_code: Optional[str] = None
    details: Optional[Any] = None


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    403: {"model": ErrorResponse, "description": "Forbidden"},
    404: {"model": ErrorResponse, "description": "Not found"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


def error_responses(*codes: int) -> dict:
    """Subset of ERROR_RESPONSES for a route's ``responses`` argument."""
    return {code: ERROR_RESPONSES[code] for code in codes}


def clean_skills(skills: Optional[List[str]]) -> Optional[List[str]]:
    """Trim entries, drop blanks and duplicates, keep order."""
    if skills is None:
        return None
    cleaned = [s.strip() for s in skills if s and s.strip()]
    return list(dict.fromkeys(cleaned))
