'''
Pydantic models for Teacher (Asatidz) accounts.
'''
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .base import PartialUpdate


class TeacherProfileFields(BaseModel):
    """Profile fields shared by the create and repair payloads."""
    full_name: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class TeacherCreate(TeacherProfileFields):
    """
    Payload for provisioning a new teacher account.
    The password length policy is enforced by the identity provider, not here,
    so that a short password surfaces as IdentityInvalid.
    """
    password: str


class TeacherRepair(TeacherProfileFields):
    """
    Payload for re-running the role grant and profile steps for an
    identity that already exists.
    """
    pass


class TeacherUpdate(PartialUpdate):
    """
    Partial profile update. All fields are optional (PATCH).
    email and phone may be cleared with null.
    """
    non_nullable = ("full_name", "username")

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class TeacherRead(BaseModel):
    """
    Snapshot of a teacher profile.
    Corresponds to db_models.Profiles.
    """
    id: UUID
    full_name: str
    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    active: bool

    model_config = ConfigDict(from_attributes=True)


class TeacherWithStats(BaseModel):
    teacher: TeacherRead
    circle_count: int = 0
