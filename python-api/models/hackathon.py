"""
Hackathon schedule.

The stored ``status`` is only authoritative when it is ``cancelled``; every
other status is a function of the wall clock against the stored window
boundaries and is computed when the record is read.
"""

import math
from datetime import datetime
from typing import Any, Optional

from models.common import parse_datetime, utcnow

HACKATHON_STATUSES = (
    "upcoming",
    "registration_open",
    "in_progress",
    "judging",
    "completed",
    "cancelled",
)
VISIBILITIES = ("public", "private", "invite_only")

TIMELINE_EVENTS = (
    ("Registration Starts", "registration_start"),
    ("Registration Ends", "registration_end"),
    ("Hackathon Starts", "hackathon_start"),
    ("Hackathon Ends", "hackathon_end"),
    ("Judging Starts", "judging_start"),
    ("Judging Ends", "judging_end"),
    ("Results Announcement", "results_announcement"),
)


def _bound(hackathon: dict[str, Any], field: str) -> Optional[datetime]:
    return parse_datetime(hackathon.get(field))


def _within(now: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    return start is not None and end is not None and start <= now <= end


def current_status(hackathon: dict[str, Any], now: Optional[datetime] = None) -> str:
    if hackathon.get("status") == "cancelled":
        return "cancelled"

    now = now or utcnow()
    registration_start = _bound(hackathon, "registration_start")
    judging_end = _bound(hackathon, "judging_end")

    if registration_start is None or now < registration_start:
        return "upcoming"
    if _within(now, registration_start, _bound(hackathon, "registration_end")):
        return "registration_open"
    if _within(now, _bound(hackathon, "hackathon_start"), _bound(hackathon, "hackathon_end")):
        return "in_progress"
    if _within(now, _bound(hackathon, "judging_start"), judging_end):
        return "judging"
    if judging_end is not None and now > judging_end:
        return "completed"
    # between windows
    return "upcoming"


def days_remaining(hackathon: dict[str, Any], now: Optional[datetime] = None) -> int:
    """Days until the next milestone (registration, start, end); 0 once running out."""
    now = now or utcnow()
    for field in ("registration_start", "hackathon_start", "hackathon_end"):
        target = _bound(hackathon, field)
        if target is not None and now < target:
            return max(0, math.ceil((target - now).total_seconds() / 86400))
    return 0


def is_registration_open(hackathon: dict[str, Any], now: Optional[datetime] = None) -> bool:
    if hackathon.get("status") == "cancelled":
        return False
    return _within(
        now or utcnow(),
        _bound(hackathon, "registration_start"),
        _bound(hackathon, "registration_end"),
    )


def is_active(hackathon: dict[str, Any], now: Optional[datetime] = None) -> bool:
    if hackathon.get("status") == "cancelled":
        return False
    return _within(
        now or utcnow(), _bound(hackathon, "hackathon_start"), _bound(hackathon, "hackathon_end")
    )


# Submissions are accepted while the event runs
is_submission_open = is_active


def accepts_late_submission(hackathon: dict[str, Any], now: Optional[datetime] = None) -> bool:
    """True after the event ended, for hackathons that allow late submissions."""
    if hackathon.get("status") == "cancelled" or not hackathon.get("allow_late_submissions"):
        return False
    end = _bound(hackathon, "hackathon_end")
    return end is not None and (now or utcnow()) > end


def judging_finished(hackathon: dict[str, Any], now: Optional[datetime] = None) -> bool:
    judging_end = _bound(hackathon, "judging_end")
    return judging_end is not None and (now or utcnow()) > judging_end


def with_derived_fields(
    hackathon: dict[str, Any], now: Optional[datetime] = None
) -> dict[str, Any]:
    now = now or utcnow()
    return {
        **hackathon,
        "current_status": current_status(hackathon, now),
        "days_remaining": days_remaining(hackathon, now),
        "is_registration_open": is_registration_open(hackathon, now),
        "is_active": is_active(hackathon, now),
        "is_submission_open": is_submission_open(hackathon, now),
    }


def _event_status(date: datetime, now: datetime) -> str:
    if now > date:
        return "completed"
    if now.date() == date.date():
        return "today"
    return "upcoming"


def timeline(hackathon: dict[str, Any], now: Optional[datetime] = None) -> list[dict[str, Any]]:
    now = now or utcnow()
    events = []
    for label, field in TIMELINE_EVENTS:
        date = _bound(hackathon, field)
        if date is None:
            continue
        events.append(
            {
                "event": label,
                "date": date.isoformat(),
                "status": _event_status(date, now),
                "days_from_now": math.ceil((date - now).total_seconds() / 86400),
            }
        )
    return events
