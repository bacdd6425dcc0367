"""
Pydantic schemas for project endpoints.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ProjectStatus = Literal[
    "draft",
    "in_progress",
    "submitted",
    "under_review",
    "selected",
    "winner",
    "completed",
    "rejected",
]

# Members may move their own project between these; later states are set by judging
MemberSettableStatus = Literal["draft", "in_progress"]


class ProjectCreateRequest(BaseModel):
    """
    Request schema for creating a project.

    Attributes:
        hackathon_id: Hackathon the project is built for
        title: Project title
        description: What the project does
        problem_statement / solution: Pitch
        tech_stack / tags / category: Discovery metadata
        repo_url / demo_url / video_url / screenshots: Submission material
        is_public: Listed publicly (default true)
    """
    hackathon_id: str = Field(..., description="Hackathon UUID")
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=5000)
    problem_statement: Optional[str] = Field(None, max_length=2000)
    solution: Optional[str] = Field(None, max_length=2000)
    tech_stack: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = Field(None, max_length=100)
    repo_url: Optional[str] = Field(None, max_length=500)
    demo_url: Optional[str] = Field(None, max_length=500)
    video_url: Optional[str] = Field(None, max_length=500)
    screenshots: List[str] = Field(default_factory=list)
    is_public: bool = True

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class ProjectUpdateRequest(BaseModel):
    """All fields optional; only provided fields are changed."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    problem_statement: Optional[str] = Field(None, max_length=2000)
    solution: Optional[str] = Field(None, max_length=2000)
    tech_stack: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = Field(None, max_length=100)
    repo_url: Optional[str] = Field(None, max_length=500)
    demo_url: Optional[str] = Field(None, max_length=500)
    video_url: Optional[str] = Field(None, max_length=500)
    screenshots: Optional[List[str]] = None
    is_public: Optional[bool] = None
    status: Optional[MemberSettableStatus] = None


class ProjectMemberAddRequest(BaseModel):
    user_id: str = Field(..., description="Account to add")
    role: str = Field("Member", min_length=1, max_length=50)
    contribution: Optional[str] = Field(None, max_length=500)
