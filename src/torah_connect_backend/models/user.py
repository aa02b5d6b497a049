# In models/user.py

import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..database.db_enums import UserRole, Gender, ApprovalStatus


# --- Profile Read Models ---

class ProfileRead(BaseModel):
    """
    Base Pydantic model for reading a profile.
    Corresponds to the db_models.Profiles ORM model.
    """
    id: UUID
    email: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    bio: Optional[str] = None
    time_zone: Optional[str] = None
    subjects: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    audiences: list[str] = Field(default_factory=list)
    is_active: bool

    model_config = ConfigDict(from_attributes=True)

class TeacherRead(ProfileRead):
    """
    Pydantic model for reading a Teacher, including approval fields.
    """
    hourly_rate: Optional[int] = None
    approval_status: Optional[ApprovalStatus] = None
    approved_at: Optional[datetime.datetime] = None

class StudentRead(ProfileRead):
    """
    Pydantic model for reading a Student, including trial counters.
    """
    trial_lessons_used: int
    max_trial_lessons: int

class PartnerRead(BaseModel):
    """Public subset of a student shown in study-partner search."""
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    subjects: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

class AdminRead(ProfileRead):
    pass


# --- Write Models ---

class SignupBase(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str
    last_name: str
    gender: Optional[Gender] = None
    time_zone: Optional[str] = None
    languages: list[str] = Field(default_factory=list)

class StudentSignup(SignupBase):
    """
    Pydantic model for validating the JSON payload when a student signs up.
    """
    subjects: list[str] = Field(default_factory=list)

class TeacherSignup(SignupBase):
    """
    Pydantic model for validating the JSON payload when a teacher signs up.
    Teachers start in the pending approval state.
    """
    bio: Optional[str] = None
    subjects: list[str] = Field(default_factory=list)
    audiences: list[str] = Field(default_factory=list)
    hourly_rate: Optional[int] = Field(None, ge=0)

class ProfileUpdate(BaseModel):
    """
    Self-service profile edits. All fields are optional to allow for partial updates.
    Role, approval fields and trial counters are deliberately absent.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    bio: Optional[str] = None
    time_zone: Optional[str] = None
    subjects: Optional[list[str]] = None
    languages: Optional[list[str]] = None
    audiences: Optional[list[str]] = None
    hourly_rate: Optional[int] = Field(None, ge=0) # teachers only

class RoleChange(BaseModel):
    role: UserRole

class AudienceLabels(BaseModel):
    audiences: list[str]
