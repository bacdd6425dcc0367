"""
Pydantic schemas for team management endpoints.

Defines request models for team CRUD operations, invitations, join
requests and roster changes.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

CommitmentLevel = Literal["casual", "moderate", "serious", "competitive"]
LeaderSettableStatus = Literal["forming", "active", "completed"]


# Team Create/Update Schemas
class TeamCreateRequest(BaseModel):
    """
    Request schema for creating a new team.

    Attributes:
        hackathon_id: Hackathon this team belongs to
        name: Team name (required, non-empty)
        description: Optional team description
        max_members: Capacity, 2 to 10 (default 4)
        looking_for: Skills the team wants to recruit
        required_skills: Skills every member should have
        commitment_level: Expected time commitment
    """
    hackathon_id: str = Field(..., description="Hackathon UUID")
    name: str = Field(..., min_length=1, max_length=50, description="Team name")
    description: Optional[str] = Field(None, max_length=500, description="Team description")
    max_members: int = Field(4, ge=2, le=10, description="Maximum accepted members")
    looking_for: List[str] = Field(default_factory=list)
    required_skills: List[str] = Field(default_factory=list)
    commitment_level: CommitmentLevel = "moderate"
    availability: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    is_public: bool = True
    is_open_to_members: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Team name cannot be empty or whitespace")
        return v.strip()


class TeamUpdateRequest(BaseModel):
    """
    Request schema for updating team details.

    All fields are optional - only provided fields will be updated.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=50, description="Team name")
    description: Optional[str] = Field(None, max_length=500, description="Team description")
    max_members: Optional[int] = Field(None, ge=2, le=10)
    looking_for: Optional[List[str]] = None
    required_skills: Optional[List[str]] = None
    commitment_level: Optional[CommitmentLevel] = None
    availability: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    is_public: Optional[bool] = None
    is_open_to_members: Optional[bool] = None
    project_id: Optional[str] = None
    status: Optional[LeaderSettableStatus] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        """Ensure name is not just whitespace if provided."""
        if v is not None and not v.strip():
            raise ValueError("Team name cannot be empty or whitespace")
        return v.strip() if v else v


# Roster Schemas
class TeamInviteRequest(BaseModel):
    """
    Request schema for inviting an account, by id or by email.

    Attributes:
        user_id: Account to invite
        email: Email of the account to invite (when the id is unknown)
        role: Role offered on the team
    """
    user_id: Optional[str] = None
    email: Optional[EmailStr] = None
    role: str = Field("Member", min_length=1, max_length=50)

    @model_validator(mode="after")
    def validate_target(self) -> "TeamInviteRequest":
        if not self.user_id and not self.email:
            raise ValueError("Either user_id or email is required")
        return self


class InvitationResponseRequest(BaseModel):
    accept: bool = Field(..., description="True to join, false to decline")


class JoinRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=500)


class JoinRequestReview(BaseModel):
    approve: bool
