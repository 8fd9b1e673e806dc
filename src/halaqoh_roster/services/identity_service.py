'''
The identity provider: credentials and role grants for every account.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import RoleEnum
from ..common.exceptions import IdentityConflict, StorageError
from ..common.logger import log
from ..common.security_utils import HashedPassword, check_password_policy, normalize_email
from ..models import identity as identity_models


class IdentityService:
    """
    Creates and looks up identities.

    create_identity commits on its own: once it returns, the identity exists
    regardless of what the caller does next.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def get_identity_by_email(self, email: str) -> db_models.Identities | None:
        log.info(f"Fetching identity for email: {email}")
        try:
            stmt = select(db_models.Identities).filter(db_models.Identities.email == email.lower())
            result = await self.db.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as e:
            log.error(f"Database error fetching identity by email {email}: {e}", exc_info=True)
            raise StorageError("Could not read identities.") from e

    async def get_identity_by_id(self, identity_id: UUID) -> db_models.Identities | None:
        try:
            return await self.db.get(db_models.Identities, identity_id)
        except SQLAlchemyError as e:
            log.error(f"Database error fetching identity {identity_id}: {e}", exc_info=True)
            raise StorageError("Could not read identities.") from e

    async def get_roles(self, identity_id: UUID) -> list[RoleEnum]:
        stmt = select(db_models.UserRoles.role).filter(db_models.UserRoles.user_id == identity_id)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            log.error(f"Database error fetching roles for {identity_id}: {e}", exc_info=True)
            raise StorageError("Could not read role grants.") from e
        return [RoleEnum(role) for role in result.scalars().all()]

    async def create_identity(
        self,
        email: str,
        password: str,
        metadata: Optional[dict] = None
    ) -> identity_models.IdentityRead:
        """
        Signs up a new identity.
        - IdentityInvalid when the email is malformed or the password is too short.
        - IdentityConflict when the email is already registered.
        """
        check_password_policy(password)
        normalized_email = normalize_email(email)
        log.info(f"Creating identity for {normalized_email}.")

        if await self.get_identity_by_email(normalized_email):
            log.warning(f"Identity creation refused, email already registered: {normalized_email}")
            raise IdentityConflict("Email already registered.")

        new_identity = db_models.Identities(
            email=normalized_email,
            password=HashedPassword.get_hash(password),
            user_metadata=dict(metadata or {})
        )
        self.db.add(new_identity)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # lost a race against a concurrent sign-up with the same email
            await self.db.rollback()
            log.warning(f"Identity creation hit a uniqueness violation for {normalized_email}: {e}")
            raise IdentityConflict("Email already registered.") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Database error creating identity {normalized_email}: {e}", exc_info=True)
            raise StorageError("Could not create identity.") from e

        log.info(f"Identity {new_identity.id} created for {normalized_email}.")
        return identity_models.IdentityRead.model_validate(new_identity)

    async def authenticate(self, email: str, password: str) -> db_models.Identities | None:
        """Returns the identity when the credentials match, otherwise None."""
        identity = await self.get_identity_by_email(email)
        if not identity or not HashedPassword.verify(password, identity.password):
            return None
        return identity

    async def ensure_role(self, identity_id: UUID, role: RoleEnum):
        """Grants a role if the identity does not hold it yet. Flushes, does not commit."""
        existing = await self.db.get(db_models.UserRoles, (identity_id, role.value))
        if existing is None:
            self.db.add(db_models.UserRoles(user_id=identity_id, role=role.value))
            await self.db.flush()

    async def is_deactivated(self, identity_id: UUID) -> bool:
        """True when the identity has a profile and that profile was soft-deleted."""
        profile = await self.db.get(db_models.Profiles, identity_id)
        return profile is not None and not profile.active
