"""
Pydantic schemas for hackathon endpoints.

Defines request models for creating and updating hackathons. Window
ordering across fields is checked again by the service against the merged
record on update.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

Visibility = Literal["public", "private", "invite_only"]
StoredStatus = Literal["upcoming", "cancelled"]
ResourceType = Literal["documentation", "tutorial", "tool", "template"]


class Prize(BaseModel):
    place: str = Field(..., max_length=50)
    title: Optional[str] = Field(None, max_length=200)
    amount: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=1000)


class JudgingCriterion(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    weight: Optional[float] = Field(None, ge=0, le=100)


class Resource(BaseModel):
    type: ResourceType
    title: str = Field(..., max_length=200)
    url: str = Field(..., max_length=500)
    description: Optional[str] = Field(None, max_length=500)


class HackathonCreateRequest(BaseModel):
    """
    Request schema for creating a hackathon.

    Attributes:
        name: Hackathon name (3-200 chars)
        tagline: One-line pitch
        description: Detailed description
        registration_start / registration_end: Registration window
        hackathon_start / hackathon_end: Run window (submissions open)
        judging_start / judging_end: Judging window
        results_announcement: When results are published
        max_participants: Participant limit, 0 for none
        min_team_size / max_team_size: Team size bounds
        allow_late_submissions: Accept flagged submissions after the run window
    """
    name: str = Field(..., min_length=3, max_length=200, description="Hackathon name")
    tagline: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=10000)
    registration_start: datetime
    registration_end: datetime
    hackathon_start: datetime
    hackathon_end: datetime
    judging_start: Optional[datetime] = None
    judging_end: Optional[datetime] = None
    results_announcement: Optional[datetime] = None
    visibility: Visibility = "public"
    max_participants: int = Field(0, ge=0, description="0 means unlimited")
    min_team_size: int = Field(1, ge=1, le=10)
    max_team_size: int = Field(4, ge=1, le=10)
    location: Optional[str] = Field("virtual", max_length=200)
    categories: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list)
    prizes: List[Prize] = Field(default_factory=list)
    submission_requirements: List[str] = Field(default_factory=list)
    judging_criteria: List[JudgingCriterion] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    allow_late_submissions: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @model_validator(mode="after")
    def validate_team_sizes(self) -> "HackathonCreateRequest":
        if self.min_team_size > self.max_team_size:
            raise ValueError("min_team_size must not exceed max_team_size")
        return self


class HackathonUpdateRequest(BaseModel):
    """
    Request schema for updating a hackathon.

    All fields are optional. Only provided fields will be updated. Setting
    ``status`` to ``cancelled`` overrides the schedule-derived status.
    """
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    tagline: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=10000)
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    hackathon_start: Optional[datetime] = None
    hackathon_end: Optional[datetime] = None
    judging_start: Optional[datetime] = None
    judging_end: Optional[datetime] = None
    results_announcement: Optional[datetime] = None
    status: Optional[StoredStatus] = None
    visibility: Optional[Visibility] = None
    max_participants: Optional[int] = Field(None, ge=0)
    min_team_size: Optional[int] = Field(None, ge=1, le=10)
    max_team_size: Optional[int] = Field(None, ge=1, le=10)
    location: Optional[str] = Field(None, max_length=200)
    categories: Optional[List[str]] = None
    tech_stack: Optional[List[str]] = None
    prizes: Optional[List[Prize]] = None
    submission_requirements: Optional[List[str]] = None
    judging_criteria: Optional[List[JudgingCriterion]] = None
    resources: Optional[List[Resource]] = None
    allow_late_submissions: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
