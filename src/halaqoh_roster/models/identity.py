'''
Read models for identities and the authenticated caller.
'''
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..database.db_enums import RoleEnum


class IdentityRead(BaseModel):
    """
    What the identity provider hands back for a signed-up user.
    The password hash never leaves the service.
    """
    id: UUID
    email: str
    user_metadata: dict = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenPayload(BaseModel):
    """Claims of the access token. The subject is the identity's email."""
    sub: EmailStr
    exp: datetime


class CurrentUser(BaseModel):
    """The acting user resolved from a bearer token."""
    id: UUID
    email: str
    roles: list[RoleEnum] = Field(default_factory=list)

    def has_any_role(self, *roles: RoleEnum) -> bool:
        return any(role in self.roles for role in roles)
