"""
Pydantic schemas for account endpoints.

Registration, login, profile updates, password changes and account
deletion.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import clean_skills

ExperienceLevel = Literal["beginner", "intermediate", "advanced", "expert"]


class RegisterRequest(BaseModel):
    """
    Request schema for registering an account.

    Attributes:
        email: Email address (unique, case-insensitive)
        password: Password, at least 8 characters
        name: Display name
        skills: Optional skill list
        experience_level: Self-reported experience
    """
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    skills: Optional[List[str]] = Field(None, max_length=50, description="Skills")
    experience_level: ExperienceLevel = Field("beginner", description="Experience level")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @field_validator('skills')
    @classmethod
    def validate_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return clean_skills(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    """
    Request schema for updating the caller's profile.

    All fields are optional; only provided fields are changed.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = Field(None, max_length=500)
    skills: Optional[List[str]] = Field(None, max_length=50)
    experience_level: Optional[ExperienceLevel] = None
    location: Optional[str] = Field(None, max_length=100)
    github: Optional[str] = Field(None, max_length=200)
    linkedin: Optional[str] = Field(None, max_length=200)
    portfolio: Optional[str] = Field(None, max_length=200)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator('skills')
    @classmethod
    def validate_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return clean_skills(v)


class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class DeleteAccountRequest(BaseModel):
    password: str = Field(..., min_length=1, description="Current password, to confirm")
