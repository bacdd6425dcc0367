"""
Submission scoring and version history.

Each judge contributes one score vector over the five criteria. The aggregate
is an average of averages: every criterion is averaged across judges, then
the five criterion means are averaged into ``average_score``. ``total_score``
is the sum of the criterion means and is what leaderboards sort by.
"""

import copy
from datetime import datetime
from typing import Any, Optional

from models.common import DomainError, utcnow

CRITERIA = ("innovation", "execution", "presentation", "impact", "completeness")

SUBMISSION_STATUSES = (
    "draft",
    "submitted",
    "under_review",
    "accepted",
    "rejected",
    "winner",
    "runner_up",
    "honorable_mention",
)
RANKED_STATUSES = ("accepted", "winner", "runner_up", "honorable_mention")
EDITABLE_STATUSES = ("draft", "submitted")

MIN_SCORE = 0
MAX_SCORE = 10

# Fields that belong to the submission content and are snapshotted on edit
VERSIONED_FIELDS = (
    "title",
    "summary",
    "description",
    "repo_url",
    "demo_url",
    "video_url",
    "presentation_url",
    "assets",
    "deployment",
    "technologies",
)

# Project status that follows a submission status change
PROJECT_STATUS_FOR = {
    "submitted": "submitted",
    "under_review": "under_review",
    "accepted": "selected",
    "winner": "winner",
    "runner_up": "completed",
    "honorable_mention": "completed",
    "rejected": "rejected",
}


def empty_scores() -> dict[str, float]:
    return {criterion: 0.0 for criterion in CRITERIA}


def validate_score_vector(scores: dict[str, Any]) -> dict[str, int]:
    missing = [c for c in CRITERIA if c not in scores]
    if missing:
        raise DomainError(f"Missing scores for: {', '.join(missing)}")

    vector = {}
    for criterion in CRITERIA:
        value = scores[criterion]
        if isinstance(value, bool) or not isinstance(value, int):
            raise DomainError(f"Score for {criterion} must be an integer")
        if not MIN_SCORE <= value <= MAX_SCORE:
            raise DomainError(f"Score for {criterion} must be between {MIN_SCORE} and {MAX_SCORE}")
        vector[criterion] = value
    return vector


def calculate_scores(judges: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Aggregate judge score vectors.

    Args:
        judges: Judge entries, each with a ``scores`` dict over CRITERIA

    Returns:
        Dict with ``scores`` (per-criterion means), ``total_score`` and
        ``average_score``. All zero when there are no judges.

    Example:
        >>> calculate_scores([
        ...     {"scores": dict(zip(CRITERIA, (8, 7, 9, 6, 8)))},
        ...     {"scores": dict(zip(CRITERIA, (6, 9, 7, 8, 7)))},
        ... ])["average_score"]
        7.5
    """
    if not judges:
        return {"scores": empty_scores(), "total_score": 0.0, "average_score": 0.0}

    means = {
        criterion: sum(j["scores"][criterion] for j in judges) / len(judges)
        for criterion in CRITERIA
    }
    total = sum(means.values())
    return {
        "scores": means,
        "total_score": total,
        "average_score": total / len(CRITERIA),
    }


def record_evaluation(
    submission: dict[str, Any],
    judge_id: str,
    scores: dict[str, Any],
    comments: Optional[str] = None,
    feedback: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Append a judge entry and recompute the aggregate in place.

    The first evaluation of a submitted entry moves it to under_review.
    """
    judges = submission.setdefault("judges", [])
    if any(j["judge_id"] == judge_id for j in judges):
        raise DomainError("You have already evaluated this submission")

    now = now or utcnow()
    entry = {
        "judge_id": judge_id,
        "scores": validate_score_vector(scores),
        "comments": comments,
        "feedback": feedback,
        "judged_at": now.isoformat(),
    }
    judges.append(entry)
    submission.update(calculate_scores(judges))

    if submission.get("status") == "submitted":
        submission["status"] = "under_review"
        submission["reviewed_at"] = now.isoformat()
    return entry


def snapshot_version(submission: dict[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
    """Append the current content to ``previous_versions`` and bump ``version``."""
    now = now or utcnow()
    version = int(submission.get("version") or 1)
    entry = {
        "version": version,
        "data": {f: copy.deepcopy(submission.get(f)) for f in VERSIONED_FIELDS},
        "saved_at": now.isoformat(),
    }
    submission.setdefault("previous_versions", []).append(entry)
    submission["version"] = version + 1
    return entry


def set_status(
    submission: dict[str, Any], status: str, now: Optional[datetime] = None
) -> None:
    if status not in SUBMISSION_STATUSES:
        raise DomainError("Invalid status")

    now = now or utcnow()
    submission["status"] = status
    if status == "submitted" and not submission.get("submitted_at"):
        submission["submitted_at"] = now.isoformat()
    if status in RANKED_STATUSES or status == "rejected":
        submission["reviewed_at"] = submission.get("reviewed_at") or now.isoformat()


def leaderboard_key(submission: dict[str, Any]) -> tuple:
    """Sort key: highest total first, earliest submission breaks ties."""
    return (-float(submission.get("total_score") or 0), submission.get("submitted_at") or "")


def completeness(submission: dict[str, Any]) -> dict[str, Any]:
    checks = {
        "has_title": bool(submission.get("title")),
        "has_summary": bool(submission.get("summary")),
        "has_repository": bool(submission.get("repo_url")),
        "has_demo": bool(submission.get("demo_url") or submission.get("video_url")),
        "has_assets": bool(submission.get("assets")),
    }
    done = sum(checks.values())
    return {**checks, "percentage": round(done / len(checks) * 100)}
