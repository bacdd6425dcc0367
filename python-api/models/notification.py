"""
Notification kinds and their typed metadata.

Every notification type carries metadata from a closed set of payload
models, discriminated by ``kind``. Building a notification with a payload
that does not belong to its type is rejected.
"""

from datetime import datetime, timedelta
from typing import Annotated, Any, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from models.common import DomainError, new_id, utcnow

NotificationType = Literal[
    "team_invite",
    "team_join_request",
    "team_acceptance",
    "team_rejection",
    "project_update",
    "submission_status",
    "judging_result",
    "new_message",
    "deadline_reminder",
    "announcement",
    "system",
]
NotificationPriority = Literal["low", "medium", "high", "urgent"]

NOTIFICATION_TYPES: tuple[str, ...] = get_args(NotificationType)
NOTIFICATION_PRIORITIES: tuple[str, ...] = get_args(NotificationPriority)

DEFAULT_TTL_DAYS = 30


class _Metadata(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class TeamInviteMetadata(_Metadata):
    kind: Literal["team_invite"] = "team_invite"
    team_name: str
    inviter_name: str
    role: str = "Member"


class TeamJoinRequestMetadata(_Metadata):
    kind: Literal["team_join_request"] = "team_join_request"
    team_name: str
    requester_name: str
    message: Optional[str] = None


class TeamResponseMetadata(_Metadata):
    kind: Literal["team_response"] = "team_response"
    team_name: str
    member_name: str
    accepted: bool


class TeamChangeMetadata(_Metadata):
    kind: Literal["team_change"] = "team_change"
    team_name: str
    change: Literal["updated", "disbanded", "removed", "member_left"]
    updated_fields: list[str] = Field(default_factory=list)


class ProjectUpdateMetadata(_Metadata):
    kind: Literal["project_update"] = "project_update"
    project_title: str
    update_type: Literal["updated", "member_added", "member_removed", "submitted"]


class SubmissionStatusMetadata(_Metadata):
    kind: Literal["submission_status"] = "submission_status"
    project_title: str
    old_status: Optional[str] = None
    new_status: str
    feedback: Optional[str] = None


class JudgingResultMetadata(_Metadata):
    kind: Literal["judging_result"] = "judging_result"
    project_title: str
    average_score: float
    judge_count: int


class NewMessageMetadata(_Metadata):
    kind: Literal["new_message"] = "new_message"
    room_id: str
    sender_name: str
    preview: str


class DeadlineReminderMetadata(_Metadata):
    kind: Literal["deadline_reminder"] = "deadline_reminder"
    hackathon_name: str
    milestone: str
    deadline: datetime


class SystemMetadata(_Metadata):
    kind: Literal["system"] = "system"
    event: str


NotificationMetadata = Annotated[
    Union[
        TeamInviteMetadata,
        TeamJoinRequestMetadata,
        TeamResponseMetadata,
        TeamChangeMetadata,
        ProjectUpdateMetadata,
        SubmissionStatusMetadata,
        JudgingResultMetadata,
        NewMessageMetadata,
        DeadlineReminderMetadata,
        SystemMetadata,
    ],
    Field(discriminator="kind"),
]

metadata_adapter: TypeAdapter = TypeAdapter(NotificationMetadata)

# Metadata payloads accepted for each notification type
ALLOWED_METADATA: dict[str, tuple[type, ...]] = {
    "team_invite": (TeamInviteMetadata,),
    "team_join_request": (TeamJoinRequestMetadata,),
    "team_acceptance": (TeamResponseMetadata,),
    "team_rejection": (TeamResponseMetadata,),
    "project_update": (ProjectUpdateMetadata,),
    "submission_status": (SubmissionStatusMetadata,),
    "judging_result": (JudgingResultMetadata,),
    "new_message": (NewMessageMetadata,),
    "deadline_reminder": (DeadlineReminderMetadata,),
    "announcement": (TeamChangeMetadata, SystemMetadata),
    "system": (SystemMetadata,),
}


def parse_metadata(raw: Optional[dict[str, Any]]):
    """Load a stored metadata blob back into its payload model."""
    if not raw:
        return None
    return metadata_adapter.validate_python(raw)


def build_notification(
    user_id: str,
    type: str,
    title: str,
    message: str,
    metadata: Optional[_Metadata] = None,
    *,
    priority: str = "medium",
    team_id: Optional[str] = None,
    project_id: Optional[str] = None,
    hackathon_id: Optional[str] = None,
    sender_id: Optional[str] = None,
    action_link: Optional[str] = None,
    action_text: Optional[str] = None,
    ttl_days: int = DEFAULT_TTL_DAYS,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Build a notification row addressed to one account."""
    if type not in ALLOWED_METADATA:
        raise DomainError(f"Unknown notification type: {type}")
    if priority not in NOTIFICATION_PRIORITIES:
        raise DomainError(f"Unknown notification priority: {priority}")
    if metadata is not None and not isinstance(metadata, ALLOWED_METADATA[type]):
        raise DomainError(f"{metadata.kind} metadata cannot be attached to {type} notifications")

    now = now or utcnow()
    return {
        "notification_id": new_id(),
        "user_id": user_id,
        "type": type,
        "title": title,
        "message": message,
        "priority": priority,
        "team_id": team_id,
        "project_id": project_id,
        "hackathon_id": hackathon_id,
        "sender_id": sender_id,
        "metadata": metadata.model_dump(mode="json") if metadata is not None else None,
        "action_link": action_link,
        "action_text": action_text,
        "is_read": False,
        "read_at": None,
        "is_archived": False,
        "created_at": now.isoformat(),
        "expires_at": (now + timedelta(days=ttl_days)).isoformat(),
    }
