"""
Response envelopes.

Every endpoint answers ``{"success": true, "data": ...}`` and every error
``{"success": false, "error": ...}``.
"""

from datetime import datetime
from typing import Any, Optional


def success_response(data: Any = None, message: Optional[str] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def error_body(
    message: str,
    path: str,
    error_code: Optional[str] = None,
    details: Optional[Any] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "success": False,
        "error": message,
        "path": path,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details
    return body
