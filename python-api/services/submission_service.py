"""
Submission Service

One submission per project. Judges add score vectors; the aggregate is
recomputed from the full judge list on every evaluation and mirrored onto
the project as ``average_score``. Status changes drive the project status
as well.

The submission row, the project row and the notifications are written as
separate calls with no rollback. A failure part way leaves the earlier
writes in place.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from fastapi import status as http_status
from integrations.zerodb.client import ZeroDBClient
from models import hackathon as schedule
from models import project as project_rules
from models import submission as scoring
from models.common import new_id, utcnow
from models.notification import JudgingResultMetadata, SubmissionStatusMetadata
from services.authorization import check_admin, check_judge, check_project_member, is_judge
from services.notification_service import notify_many
from services.records import find_all, find_one, get_or_404, not_found, sort_rows

# Configure logger
logger = logging.getLogger(__name__)

TABLE = "submissions"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=detail)


async def get_submission_record(zerodb_client: ZeroDBClient, submission_id: str) -> Dict[str, Any]:
    return await get_or_404(zerodb_client, TABLE, "submission_id", submission_id, "Submission")


async def _load_project(zerodb_client: ZeroDBClient, project_id: str) -> Dict[str, Any]:
    project = await find_one(zerodb_client, "projects", {"project_id": project_id})
    if project is None or project.get("is_deleted"):
        raise not_found("Project")
    return project


async def _notify_team(
    zerodb_client: ZeroDBClient,
    project: Dict[str, Any],
    type: str,
    title: str,
    message: str,
    metadata,
    actor_id: Optional[str] = None,
) -> None:
    await notify_many(
        zerodb_client,
        project_rules.team_member_ids(project),
        type,
        title,
        message,
        metadata,
        exclude=[actor_id] if actor_id else None,
        priority="high",
        project_id=project["project_id"],
        hackathon_id=project.get("hackathon_id"),
        sender_id=actor_id,
        action_link=f"/projects/{project['project_id']}",
        action_text="View project",
    )


async def create_submission(
    zerodb_client: ZeroDBClient,
    user: Dict[str, Any],
    data: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Submit a project.

    Only project team members may submit. After the hackathon ends a
    submission is accepted only when the event allows late submissions, in
    which case it is flagged ``is_late``.

    Args:
        zerodb_client: ZeroDB client instance
        user: Submitting account
        data: Validated fields: project_id, title, summary, links, assets,
            optional team_id

    Returns:
        The stored submission

    Raises:
        HTTPException: 400 duplicate or deadline passed, 403 non-member,
            404 unknown project
    """
    project = await _load_project(zerodb_client, data["project_id"])
    check_project_member(project, user["user_id"], "Not authorized to submit for this project")

    if await find_one(zerodb_client, TABLE, {"project_id": project["project_id"]}):
        raise _bad_request("Submission already exists for this project")

    hackathon = await get_or_404(
        zerodb_client, "hackathons", "hackathon_id", project["hackathon_id"], "Hackathon"
    )
    now = utcnow()
    is_late = False
    if not schedule.is_submission_open(hackathon, now):
        if not schedule.accepts_late_submission(hackathon, now):
            raise _bad_request("Submissions are not open for this hackathon")
        is_late = True

    submission = {
        "submission_id": new_id(),
        "project_id": project["project_id"],
        "hackathon_id": project["hackathon_id"],
        "team_id": data.get("team_id"),
        "submitted_by": user["user_id"],
        **{f: data.get(f) for f in scoring.VERSIONED_FIELDS},
        "judges": [],
        **scoring.calculate_scores([]),
        "version": 1,
        "previous_versions": [],
        "is_late": is_late,
        "disqualified": False,
        "disqualification_reason": None,
        "reviewed_at": None,
        "created_at": now.isoformat(),
        "updated_at": now.isoformat(),
    }
    scoring.set_status(submission, "submitted", now)

    await zerodb_client.tables.insert_rows(TABLE, rows=[submission])
    logger.info(
        f"User {user['user_id']} submitted project {project['project_id']}"
        f"{' (late)' if is_late else ''}"
    )

    project_rules.set_status(project, "submitted", now)
    await zerodb_client.tables.update_row(
        "projects",
        project["project_id"],
        data={
            "status": project["status"],
            "submission_date": project["submission_date"],
            "updated_at": now.isoformat(),
        },
    )

    await _notify_team(
        zerodb_client,
        project,
        "submission_status",
        "Project submitted",
        f"{project['title']} has been submitted for judging",
        SubmissionStatusMetadata(project_title=project["title"], new_status="submitted"),
        actor_id=user["user_id"],
    )
    return submission


async def get_submission(
    zerodb_client: ZeroDBClient, submission_id: str, user: Dict[str, Any]
) -> Dict[str, Any]:
    """Visible to the project team, judges and admins; to everyone once judging has ended."""
    submission = await get_submission_record(zerodb_client, submission_id)
    if is_judge(user):
        return submission

    project = await _load_project(zerodb_client, submission["project_id"])
    if project_rules.is_team_member(project, user["user_id"]):
        return submission

    hackathon = await find_one(
        zerodb_client, "hackathons", {"hackathon_id": submission["hackathon_id"]}
    )
    if hackathon and schedule.judging_finished(hackathon):
        return submission

    raise HTTPException(
        status_code=http_status.HTTP_403_FORBIDDEN,
        detail="Not authorized to view this submission",
    )


async def update_submission(
    zerodb_client: ZeroDBClient,
    submission_id: str,
    user: Dict[str, Any],
    updates: Dict[str, Any],
) -> Dict[str, Any]:
    """Edit the content, keeping the previous content in ``previous_versions``."""
    submission = await get_submission_record(zerodb_client, submission_id)
    project = await _load_project(zerodb_client, submission["project_id"])
    check_project_member(project, user["user_id"], "Not authorized to update this submission")

    if submission.get("status") not in scoring.EDITABLE_STATUSES:
        raise _bad_request("Submission can no longer be edited")

    changes = {k: v for k, v in updates.items() if k in scoring.VERSIONED_FIELDS}
    if not changes:
        return submission

    now = utcnow()
    scoring.snapshot_version(submission, now)
    submission.update(changes)
    await zerodb_client.tables.update_row(
        TABLE,
        submission_id,
        data={
            **changes,
            "version": submission["version"],
            "previous_versions": submission["previous_versions"],
            "updated_at": now.isoformat(),
        },
    )
    logger.info(f"Submission {submission_id} updated to version {submission['version']}")
    return submission


async def add_judge_evaluation(
    zerodb_client: ZeroDBClient,
    submission_id: str,
    judge: Dict[str, Any],
    scores: Dict[str, Any],
    comments: Optional[str] = None,
    feedback: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Record one judge's score vector and recompute the aggregate.

    Raises:
        HTTPException: 403 for non-judges
        DomainError: Duplicate evaluation or invalid scores (400)
    """
    check_judge(judge)
    submission = await get_submission_record(zerodb_client, submission_id)
    if submission.get("disqualified"):
        raise _bad_request("Cannot evaluate a disqualified submission")

    scoring.record_evaluation(submission, judge["user_id"], scores, comments, feedback)
    now = utcnow().isoformat()
    await zerodb_client.tables.update_row(
        TABLE,
        submission_id,
        data={
            "judges": submission["judges"],
            "scores": submission["scores"],
            "total_score": submission["total_score"],
            "average_score": submission["average_score"],
            "status": submission["status"],
            "reviewed_at": submission.get("reviewed_at"),
            "updated_at": now,
        },
    )
    logger.info(
        f"Judge {judge['user_id']} evaluated submission {submission_id}: "
        f"average {submission['average_score']:.2f} over {len(submission['judges'])} judges"
    )

    project = await _load_project(zerodb_client, submission["project_id"])
    project_changes: Dict[str, Any] = {
        "average_score": submission["average_score"],
        "updated_at": now,
    }
    if submission["status"] == "under_review" and project.get("status") == "submitted":
        project_changes["status"] = "under_review"
    await zerodb_client.tables.update_row("projects", project["project_id"], data=project_changes)

    await _notify_team(
        zerodb_client,
        project,
        "judging_result",
        "New evaluation received",
        f"{project['title']} received a judge evaluation",
        JudgingResultMetadata(
            project_title=project["title"],
            average_score=round(submission["average_score"], 2),
            judge_count=len(submission["judges"]),
        ),
    )
    return submission


async def update_submission_status(
    zerodb_client: ZeroDBClient,
    submission_id: str,
    judge: Dict[str, Any],
    status: str,
    feedback: Optional[str] = None,
) -> Dict[str, Any]:
    check_judge(judge)
    submission = await get_submission_record(zerodb_client, submission_id)
    old_status = submission.get("status")

    scoring.set_status(submission, status)
    now = utcnow().isoformat()
    await zerodb_client.tables.update_row(
        TABLE,
        submission_id,
        data={
            "status": submission["status"],
            "submitted_at": submission.get("submitted_at"),
            "reviewed_at": submission.get("reviewed_at"),
            "updated_at": now,
        },
    )
    logger.info(f"Submission {submission_id} status {old_status} -> {status}")

    project = await _load_project(zerodb_client, submission["project_id"])
    project_status = scoring.PROJECT_STATUS_FOR.get(status)
    if project_status:
        project_rules.set_status(project, project_status)
        await zerodb_client.tables.update_row(
            "projects",
            project["project_id"],
            data={
                "status": project["status"],
                "submission_date": project.get("submission_date"),
                "updated_at": now,
            },
        )

    await _notify_team(
        zerodb_client,
        project,
        "submission_status",
        "Submission status updated",
        f"{project['title']} is now {status.replace('_', ' ')}",
        SubmissionStatusMetadata(
            project_title=project["title"],
            old_status=old_status,
            new_status=status,
            feedback=feedback,
        ),
        actor_id=judge["user_id"],
    )
    return submission


async def get_hackathon_leaderboard(
    zerodb_client: ZeroDBClient, hackathon_id: str, limit: int = 10
) -> List[Dict[str, Any]]:
    """Ranked submissions, highest total score first, earliest submission breaking ties."""
    rows = await find_all(
        zerodb_client,
        TABLE,
        {"hackathon_id": hackathon_id, "status": {"$in": list(scoring.RANKED_STATUSES)}},
    )
    ranked = sorted(rows, key=scoring.leaderboard_key)[:limit]

    projects = await find_all(
        zerodb_client, "projects", {"project_id": {"$in": [s["project_id"] for s in ranked]}}
    ) if ranked else []
    title_of = {p["project_id"]: p.get("title") for p in projects}

    return [
        {
            "rank": rank,
            "submission_id": s["submission_id"],
            "project_id": s["project_id"],
            "project_title": title_of.get(s["project_id"]),
            "status": s["status"],
            "total_score": s.get("total_score", 0),
            "average_score": s.get("average_score", 0),
            "scores": s.get("scores"),
            "judge_count": len(s.get("judges") or []),
            "submitted_at": s.get("submitted_at"),
        }
        for rank, s in enumerate(ranked, start=1)
    ]


async def get_user_submissions(zerodb_client: ZeroDBClient, user_id: str) -> List[Dict[str, Any]]:
    projects = await find_all(zerodb_client, "projects", {"team.user_id": user_id})
    project_ids = [p["project_id"] for p in projects if not p.get("is_deleted")]
    if not project_ids:
        return []
    rows = await find_all(zerodb_client, TABLE, {"project_id": {"$in": project_ids}})
    return sort_rows(rows, "-submitted_at")


async def delete_submission(
    zerodb_client: ZeroDBClient,
    submission_id: str,
    admin: Dict[str, Any],
    reason: str = "Removed by an administrator",
) -> Dict[str, Any]:
    """Disqualify a submission. The row stays, marked rejected."""
    check_admin(admin)
    submission = await get_submission_record(zerodb_client, submission_id)
    changes = {
        "status": "rejected",
        "disqualified": True,
        "disqualification_reason": reason,
        "updated_at": utcnow().isoformat(),
    }
    await zerodb_client.tables.update_row(TABLE, submission_id, data=changes)
    submission.update(changes)
    logger.info(f"Submission {submission_id} disqualified by {admin['user_id']}: {reason}")
    return submission
