'''
Teacher account lifecycle: provisioning, repair, profile updates and deactivation.
'''
from typing import Annotated
from uuid import UUID
from fastapi import Depends
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import RoleEnum
from ..common.exceptions import NotFound, ProvisioningIncomplete, StorageError
from ..common.logger import log
from ..models import teacher as teacher_models
from .identity_service import IdentityService


class ProvisioningService:
    """
    Turns a set of teacher fields into a usable account: an identity,
    the Asatidz role grant and a profile row.

    The three writes cannot share a transaction (the identity lives with the
    provider), so they run as ordered steps that each commit:
        1. create identity  - not retriable, runs first
        2. grant role       - insert-or-ignore
        3. upsert profile   - keyed by the identity id
    A failure after step 1 leaves an identity without role/profile. That state
    is reported as ProvisioningIncomplete and repaired with complete_provisioning.
    """
    PROVISIONED_ROLE = RoleEnum.ASATIDZ

    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        identity_service: Annotated[IdentityService, Depends(IdentityService)]
    ):
        self.db = db
        self.identity_service = identity_service

    # --- Steps ---

    async def _grant_teacher_role(self, identity_id: UUID):
        """Step 2. Inserts the role grant unless it is already there."""
        try:
            existing = await self.db.get(db_models.UserRoles, (identity_id, self.PROVISIONED_ROLE.value))
            if existing is None:
                self.db.add(db_models.UserRoles(user_id=identity_id, role=self.PROVISIONED_ROLE.value))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Failed to grant role {self.PROVISIONED_ROLE.value} to {identity_id}: {e}", exc_info=True)
            raise StorageError("Could not write the role grant.") from e
        log.info(f"Role {self.PROVISIONED_ROLE.value} granted to {identity_id}.")

    async def _upsert_profile(
        self,
        identity_id: UUID,
        fields: teacher_models.TeacherProfileFields,
        email: str
    ) -> db_models.Profiles:
        """Step 3. Writes the profile row keyed by the identity id, always active."""
        try:
            profile = await self.db.merge(db_models.Profiles(
                id=identity_id,
                full_name=fields.full_name,
                username=fields.username,
                email=email,
                phone=fields.phone or None,
                active=True
            ))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Failed to upsert profile {identity_id}: {e}", exc_info=True)
            raise StorageError("Could not write the teacher profile.") from e
        log.info(f"Profile {identity_id} written.")
        return profile

    async def _grant_and_upsert(
        self,
        identity_id: UUID,
        fields: teacher_models.TeacherProfileFields,
        email: str
    ) -> db_models.Profiles:
        try:
            await self._grant_teacher_role(identity_id)
        except StorageError as e:
            raise ProvisioningIncomplete(identity_id, failed_step="role_grant") from e

        try:
            return await self._upsert_profile(identity_id, fields, email)
        except StorageError as e:
            raise ProvisioningIncomplete(identity_id, failed_step="profile") from e

    # --- Public API ---

    async def provision_teacher(
        self,
        data: teacher_models.TeacherCreate,
        acting_user_id: UUID
    ) -> teacher_models.TeacherRead:
        """
        Creates a teacher account. Returns the profile (whose id is the
        identity id) only once all three steps have committed.
        Raises IdentityConflict / IdentityInvalid from step 1 and
        ProvisioningIncomplete from steps 2-3.
        """
        log.info(f"User {acting_user_id} provisioning teacher {data.email}.")

        identity = await self.identity_service.create_identity(
            data.email,
            data.password,
            metadata={"full_name": data.full_name, "username": data.username}
        )
        profile = await self._grant_and_upsert(identity.id, data, identity.email)

        log.info(f"Teacher {identity.id} provisioned by {acting_user_id}.")
        return teacher_models.TeacherRead.model_validate(profile)

    async def complete_provisioning(
        self,
        identity_id: UUID,
        data: teacher_models.TeacherRepair,
        acting_user_id: UUID
    ) -> teacher_models.TeacherRead:
        """
        Repair path: re-runs the role grant and profile steps for an identity
        that already exists. Idempotent, and also reactivates a deactivated teacher.
        """
        log.info(f"User {acting_user_id} completing provisioning for identity {identity_id}.")

        identity = await self.identity_service.get_identity_by_id(identity_id)
        if identity is None:
            log.warning(f"Cannot complete provisioning, identity {identity_id} does not exist.")
            raise NotFound("Identity not found.")

        profile = await self._grant_and_upsert(identity_id, data, identity.email)
        return teacher_models.TeacherRead.model_validate(profile)

    async def update_teacher(
        self,
        teacher_id: UUID,
        data: teacher_models.TeacherUpdate,
        acting_user_id: UUID
    ) -> teacher_models.TeacherRead:
        """
        Partial update of a teacher profile. Email changes are accepted here;
        keeping it in step with the identity is left to the caller.
        """
        log.info(f"User {acting_user_id} attempting to update teacher {teacher_id}.")

        profile = await self.db.get(db_models.Profiles, teacher_id)
        if profile is None:
            raise NotFound("Teacher not found.")

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, key, value)

        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Failed to update teacher {teacher_id}: {e}", exc_info=True)
            raise StorageError("Could not update the teacher profile.") from e

        return teacher_models.TeacherRead.model_validate(profile)

    async def deactivate_teacher(self, teacher_id: UUID, acting_user_id: UUID) -> bool:
        """
        Revokes the Asatidz role, then marks the profile inactive.
        Both steps are no-ops when already applied, so this is safe to repeat.
        Circles pointing at the teacher keep their reference.
        """
        log.info(f"User {acting_user_id} attempting to deactivate teacher {teacher_id}.")

        identity = await self.identity_service.get_identity_by_id(teacher_id)
        profile = await self.db.get(db_models.Profiles, teacher_id)
        if identity is None and profile is None:
            raise NotFound("Teacher not found.")

        try:
            await self.db.execute(
                delete(db_models.UserRoles)
                .where(db_models.UserRoles.user_id == teacher_id)
                .where(db_models.UserRoles.role == self.PROVISIONED_ROLE.value)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Failed to revoke role from teacher {teacher_id}: {e}", exc_info=True)
            raise StorageError("Could not revoke the teacher role.") from e

        try:
            await self.db.execute(
                update(db_models.Profiles)
                .where(db_models.Profiles.id == teacher_id)
                .values(active=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Failed to deactivate profile {teacher_id}: {e}", exc_info=True)
            raise StorageError("Could not deactivate the teacher profile.") from e

        log.info(f"Teacher {teacher_id} deactivated by {acting_user_id}.")
        return True
