"""
Pydantic schemas for notification endpoints.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel


class NotificationPreferencesRequest(BaseModel):
    """
    Per-channel switches keyed by notification type.

    Attributes:
        email: e.g. ``{"team_invite": true, "announcement": false}``
        push: Same keys for socket and browser push delivery
        frequency: Email digest frequency
    """
    email: Optional[Dict[str, bool]] = None
    push: Optional[Dict[str, bool]] = None
    frequency: Optional[Literal["instant", "daily", "weekly"]] = None
