"""
Pydantic schemas for submission endpoints.

Defines request models for submitting projects, editing submissions and
judge evaluations.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

SubmissionStatus = Literal[
    "draft",
    "submitted",
    "under_review",
    "accepted",
    "rejected",
    "winner",
    "runner_up",
    "honorable_mention",
]


class Deployment(BaseModel):
    platform: Optional[str] = Field(None, max_length=100)
    url: Optional[str] = Field(None, max_length=500)
    status: Optional[str] = Field(None, max_length=50)


class SubmissionCreateRequest(BaseModel):
    """
    Request schema for submitting a project.

    Attributes:
        project_id: Project being submitted (one submission per project)
        team_id: Optional matchmaking team that built it
        title: Submission title
        summary: Short summary for judges
        description: Long-form write-up
        repo_url / demo_url / video_url / presentation_url: Material links
        assets: Extra files ({name, url, type})
        technologies: Technologies used
    """
    project_id: str = Field(..., description="Project UUID")
    team_id: Optional[str] = Field(None, description="Team UUID")
    title: str = Field(..., min_length=1, max_length=200)
    summary: str = Field(..., min_length=1, max_length=1000)
    description: Optional[str] = Field(None, max_length=10000)
    repo_url: Optional[str] = Field(None, max_length=500)
    demo_url: Optional[str] = Field(None, max_length=500)
    video_url: Optional[str] = Field(None, max_length=500)
    presentation_url: Optional[str] = Field(None, max_length=500)
    assets: List[Dict[str, Any]] = Field(default_factory=list)
    deployment: Optional[Deployment] = None
    technologies: List[str] = Field(default_factory=list)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class SubmissionUpdateRequest(BaseModel):
    """All fields optional; the previous content is kept as a version."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    summary: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=10000)
    repo_url: Optional[str] = Field(None, max_length=500)
    demo_url: Optional[str] = Field(None, max_length=500)
    video_url: Optional[str] = Field(None, max_length=500)
    presentation_url: Optional[str] = Field(None, max_length=500)
    assets: Optional[List[Dict[str, Any]]] = None
    deployment: Optional[Deployment] = None
    technologies: Optional[List[str]] = None


class ScoreVector(BaseModel):
    """One judge's scores, integers from 0 to 10 per criterion."""
    innovation: int = Field(..., ge=0, le=10)
    execution: int = Field(..., ge=0, le=10)
    presentation: int = Field(..., ge=0, le=10)
    impact: int = Field(..., ge=0, le=10)
    completeness: int = Field(..., ge=0, le=10)


class EvaluationRequest(BaseModel):
    scores: ScoreVector
    comments: Optional[str] = Field(None, max_length=2000)
    feedback: Optional[str] = Field(None, max_length=2000)


class StatusUpdateRequest(BaseModel):
    status: SubmissionStatus
    feedback: Optional[str] = Field(None, max_length=2000)
