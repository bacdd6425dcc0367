"""
Submission API Routes

Project submissions, judge evaluations, status changes and the
submission leaderboard.
"""

from typing import Any, Dict

from api.dependencies import get_current_user, get_zerodb_client, require_admin, require_judge
from api.responses import success_response
from api.schemas.common import SuccessResponse, error_responses
from api.schemas.submissions import (
    EvaluationRequest,
    StatusUpdateRequest,
    SubmissionCreateRequest,
    SubmissionUpdateRequest,
)
from fastapi import APIRouter, Depends, Query, status
from integrations.zerodb.client import ZeroDBClient
from services import submission_service

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 401, 403, 404),
    summary="Create Submission",
    description="""
    Submit a project for judging. One submission per project.

    **Authorization:** project team members
    """,
)
async def create_submission_endpoint(
    request: SubmissionCreateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    submission = await submission_service.create_submission(
        zerodb_client, current_user, request.model_dump()
    )
    return success_response(submission)


@router.get(
    "/mine",
    response_model=SuccessResponse,
    responses=error_responses(401),
    summary="My Submissions",
)
async def get_my_submissions_endpoint(
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    submissions = await submission_service.get_user_submissions(
        zerodb_client, current_user["user_id"]
    )
    return success_response({"submissions": submissions})


@router.get(
    "/hackathon/{hackathon_id}/leaderboard",
    response_model=SuccessResponse,
    summary="Submission Leaderboard",
    description="Ranked submissions by total score; earlier submission breaks ties.",
)
async def get_leaderboard_endpoint(
    hackathon_id: str,
    limit: int = Query(10, ge=1, le=100),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    leaderboard = await submission_service.get_hackathon_leaderboard(
        zerodb_client, hackathon_id, limit
    )
    return success_response({"leaderboard": leaderboard})


@router.get(
    "/{submission_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Get Submission",
)
async def get_submission_endpoint(
    submission_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    return success_response(
        await submission_service.get_submission(zerodb_client, submission_id, current_user)
    )


@router.put(
    "/{submission_id}",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Update Submission",
    description="Editable while draft or submitted. The previous content is kept as a version.",
)
async def update_submission_endpoint(
    submission_id: str,
    request: SubmissionUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    submission = await submission_service.update_submission(
        zerodb_client, submission_id, current_user, request.model_dump(exclude_unset=True)
    )
    return success_response(submission)


@router.post(
    "/{submission_id}/evaluate",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Evaluate Submission",
    description="**Authorization:** judges and admins, one evaluation each",
)
async def evaluate_submission_endpoint(
    submission_id: str,
    request: EvaluationRequest,
    current_user: Dict[str, Any] = Depends(require_judge),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    submission = await submission_service.add_judge_evaluation(
        zerodb_client,
        submission_id,
        current_user,
        request.scores.model_dump(),
        comments=request.comments,
        feedback=request.feedback,
    )
    return success_response(submission, message="Evaluation recorded")


@router.put(
    "/{submission_id}/status",
    response_model=SuccessResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Update Submission Status",
    description="**Authorization:** judges and admins. The project status follows.",
)
async def update_submission_status_endpoint(
    submission_id: str,
    request: StatusUpdateRequest,
    current_user: Dict[str, Any] = Depends(require_judge),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    submission = await submission_service.update_submission_status(
        zerodb_client, submission_id, current_user, request.status, feedback=request.feedback
    )
    return success_response(submission)


@router.delete(
    "/{submission_id}",
    response_model=SuccessResponse,
    responses=error_responses(401, 403, 404),
    summary="Disqualify Submission",
    description="**Authorization:** admin only. The submission is kept and marked rejected.",
)
async def delete_submission_endpoint(
    submission_id: str,
    reason: str = Query("Removed by an administrator", min_length=1, max_length=500),
    current_user: Dict[str, Any] = Depends(require_admin),
    zerodb_client: ZeroDBClient = Depends(get_zerodb_client),
) -> Dict[str, Any]:
    submission = await submission_service.delete_submission(
        zerodb_client, submission_id, current_user, reason=reason
    )
    return success_response(submission, message="Submission disqualified")
