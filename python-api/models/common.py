"""
Shared helpers for domain records.

Records are plain dicts as stored in ZeroDB. Timestamps are naive UTC
datetimes serialized as ISO-8601 strings.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union


class DomainError(ValueError):
    """A rejected state transition with a user-facing message."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.utcnow()


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a stored timestamp into a naive UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_iso(value: Union[str, datetime, None]) -> Optional[str]:
    parsed = parse_datetime(value)
    return parsed.isoformat() if parsed else None


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "item"


def unique_slug(text: str) -> str:
    """Slug with a short random suffix, since uniqueness is not enforced by the store."""
    return f"{slugify(text)}-{uuid.uuid4().hex[:6]}"


def strip_private(record: dict[str, Any], *fields: str) -> dict[str, Any]:
    return {key: value for key, value in record.items() if key not in fields}
