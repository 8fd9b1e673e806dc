'''
Recitation (setoran) and attendance (absensi) logs.
'''
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..common.exceptions import NotFound, StorageError
from ..common.logger import log
from ..models import roster as roster_models


class _StudentLogService:
    """Shared plumbing for the per-student log tables."""
    model = None
    label = "log"

    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _check_student_exists(self, student_id: UUID):
        if await self.db.get(db_models.Students, student_id) is None:
            log.warning(f"Attempted to write a {self.label} for non-existent student {student_id}")
            raise NotFound("Student not found.")

    async def _get_internal(self, entry_id: UUID):
        entry = await self.db.get(self.model, entry_id)
        if entry is None:
            log.warning(f"Tried to fetch non-existing {self.label}: {entry_id}")
            raise NotFound(f"{self.label.capitalize()} not found.")
        return entry

    async def _flush(self, action: str):
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Database error while trying to {action} a {self.label}: {e}", exc_info=True)
            raise StorageError(f"Could not {action} the {self.label}.") from e

    def _apply(self, entry, update_dict: dict):
        for key, value in update_dict.items():
            if key == "status" and value is not None:
                value = value.value
            setattr(entry, key, value)

    async def delete(self, entry_id: UUID, acting_user_id: UUID) -> bool:
        log.info(f"User {acting_user_id} attempting to delete {self.label} {entry_id}.")
        entry = await self._get_internal(entry_id)
        await self.db.delete(entry)
        await self._flush("delete")
        return True


class RecitationService(_StudentLogService):
    """
    Recitations are observations: once saved they only change through an
    explicit correction (update). The evaluator is always the acting user.
    """
    model = db_models.Recitations
    label = "recitation"

    async def _check_active_evaluator(self, acting_user_id: UUID):
        """Only an active teacher profile can be stamped as the evaluator."""
        evaluator = await self.db.get(db_models.Profiles, acting_user_id)
        if evaluator is None or not evaluator.active:
            log.warning(f"User {acting_user_id} has no active teacher profile and cannot evaluate recitations.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only an active teacher can evaluate recitations."
            )

    async def create_recitation(
        self,
        data: roster_models.RecitationCreate,
        acting_user_id: UUID
    ) -> roster_models.RecitationRead:
        log.info(f"User {acting_user_id} recording a recitation for student {data.student_id}.")
        await self._check_active_evaluator(acting_user_id)
        await self._check_student_exists(data.student_id)

        new_recitation = db_models.Recitations(
            student_id=data.student_id,
            recited_on=data.recited_on,
            juz=data.juz,
            verse_from=data.verse_from,
            verse_to=data.verse_to,
            fluency_score=data.fluency_score,
            status=data.status.value,
            evaluator_id=acting_user_id,
            notes=data.notes
        )
        self.db.add(new_recitation)
        await self._flush("create")
        return roster_models.RecitationRead.model_validate(new_recitation)

    async def update_recitation(
        self,
        recitation_id: UUID,
        data: roster_models.RecitationUpdate,
        acting_user_id: UUID
    ) -> roster_models.RecitationRead:
        """Correction of a saved recitation. The corrector becomes the evaluator."""
        log.info(f"User {acting_user_id} correcting recitation {recitation_id}.")
        await self._check_active_evaluator(acting_user_id)
        recitation = await self._get_internal(recitation_id)

        update_dict = data.model_dump(exclude_unset=True)
        verse_from = update_dict.get("verse_from", recitation.verse_from)
        verse_to = update_dict.get("verse_to", recitation.verse_to)
        if verse_to < verse_from:
            # same rule the create payload enforces, checked against the merged values
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="verse_to must not be smaller than verse_from."
            )

        self._apply(recitation, update_dict)
        recitation.evaluator_id = acting_user_id
        await self._flush("update")
        return roster_models.RecitationRead.model_validate(recitation)


class AttendanceService(_StudentLogService):
    """
    Attendance rows. Nothing stops two rows for the same student and date;
    both are kept.
    """
    model = db_models.Attendance
    label = "attendance"

    async def create_attendance(
        self,
        data: roster_models.AttendanceCreate,
        acting_user_id: UUID
    ) -> roster_models.AttendanceRead:
        log.info(f"User {acting_user_id} recording attendance for student {data.student_id} on {data.attended_on}.")
        await self._check_student_exists(data.student_id)

        new_attendance = db_models.Attendance(
            student_id=data.student_id,
            attended_on=data.attended_on,
            status=data.status.value,
            notes=data.notes
        )
        self.db.add(new_attendance)
        await self._flush("create")
        return roster_models.AttendanceRead.model_validate(new_attendance)

    async def update_attendance(
        self,
        attendance_id: UUID,
        data: roster_models.AttendanceUpdate,
        acting_user_id: UUID
    ) -> roster_models.AttendanceRead:
        log.info(f"User {acting_user_id} updating attendance {attendance_id}.")
        attendance = await self._get_internal(attendance_id)
        self._apply(attendance, data.model_dump(exclude_unset=True))
        await self._flush("update")
        return roster_models.AttendanceRead.model_validate(attendance)
