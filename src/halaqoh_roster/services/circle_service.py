'''
Single-entity operations on circles and students.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import RoleEnum, StudentStatusEnum
from ..common.exceptions import NotFound, StorageError
from ..common.logger import log
from ..models import roster as roster_models


async def _flush_or_raise(db: AsyncSession, action: str):
    try:
        await db.flush()
    except SQLAlchemyError as e:
        await db.rollback()
        log.error(f"Database error while trying to {action}: {e}", exc_info=True)
        raise StorageError(f"Could not {action}.") from e


class CircleService:
    """
    Service for circles (halaqoh).
    A circle's teacher is a weak reference: it must point at an active
    teacher when assigned, and is left alone if that teacher is later deactivated.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _get_circle_internal(self, circle_id: UUID) -> db_models.Circles:
        circle = await self.db.get(db_models.Circles, circle_id)
        if circle is None:
            log.warning(f"Tried to fetch non-existing circle: {circle_id}")
            raise NotFound("Circle not found.")
        return circle

    async def _check_assignable_teacher(self, teacher_id: UUID):
        """The teacher must have an active profile and hold the Asatidz role."""
        stmt = select(db_models.Profiles.id).join(
            db_models.UserRoles, db_models.UserRoles.user_id == db_models.Profiles.id
        ).filter(
            db_models.Profiles.id == teacher_id,
            db_models.Profiles.active.is_(True),
            db_models.UserRoles.role == RoleEnum.ASATIDZ.value
        )
        if (await self.db.execute(stmt)).scalars().first() is None:
            log.warning(f"Teacher {teacher_id} is missing, inactive or not an Asatidz.")
            raise NotFound("Teacher not found.")

    async def get_circle(self, circle_id: UUID) -> roster_models.CircleRead:
        return roster_models.CircleRead.model_validate(await self._get_circle_internal(circle_id))

    async def create_circle(
        self,
        data: roster_models.CircleCreate,
        acting_user_id: UUID
    ) -> roster_models.CircleRead:
        log.info(f"User {acting_user_id} creating circle '{data.name}'.")
        if data.teacher_id:
            await self._check_assignable_teacher(data.teacher_id)

        new_circle = db_models.Circles(name=data.name, teacher_id=data.teacher_id, level=data.level)
        self.db.add(new_circle)
        await _flush_or_raise(self.db, "create the circle")
        return roster_models.CircleRead.model_validate(new_circle)

    async def update_circle(
        self,
        circle_id: UUID,
        data: roster_models.CircleUpdate,
        acting_user_id: UUID
    ) -> roster_models.CircleRead:
        log.info(f"User {acting_user_id} updating circle {circle_id}.")
        circle = await self._get_circle_internal(circle_id)

        update_dict = data.model_dump(exclude_unset=True)
        if update_dict.get("teacher_id"):
            await self._check_assignable_teacher(update_dict["teacher_id"])

        for key, value in update_dict.items():
            setattr(circle, key, value)

        await _flush_or_raise(self.db, "update the circle")
        return roster_models.CircleRead.model_validate(circle)

    async def delete_circle(self, circle_id: UUID, acting_user_id: UUID) -> bool:
        """Deletes a circle. Its students stay, unassigned."""
        log.info(f"User {acting_user_id} attempting to delete circle {circle_id}.")
        circle = await self._get_circle_internal(circle_id)

        try:
            await self.db.execute(
                update(db_models.Students)
                .where(db_models.Students.circle_id == circle_id)
                .values(circle_id=None)
            )
            await self.db.delete(circle)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Database error deleting circle {circle_id}: {e}", exc_info=True)
            raise StorageError("Could not delete the circle.") from e

        log.info(f"Successfully deleted circle {circle_id}.")
        return True


class StudentService:
    """Service for students (santri)."""

    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def _get_student_internal(self, student_id: UUID) -> db_models.Students:
        student = await self.db.get(db_models.Students, student_id)
        if student is None:
            log.warning(f"Tried to fetch non-existing student: {student_id}")
            raise NotFound("Student not found.")
        return student

    async def _check_circle_exists(self, circle_id: UUID):
        if await self.db.get(db_models.Circles, circle_id) is None:
            raise NotFound("Circle not found.")

    async def get_student(self, student_id: UUID) -> roster_models.StudentRead:
        return roster_models.StudentRead.model_validate(await self._get_student_internal(student_id))

    async def get_all(
        self,
        status: Optional[StudentStatusEnum] = None,
        circle_id: Optional[UUID] = None
    ) -> list[roster_models.StudentRead]:
        """Students ordered by name. The recitation and attendance forms ask for Active ones only."""
        stmt = select(db_models.Students).order_by(db_models.Students.name, db_models.Students.id)
        if status:
            stmt = stmt.filter(db_models.Students.status == status.value)
        if circle_id:
            stmt = stmt.filter(db_models.Students.circle_id == circle_id)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            log.error(f"Database error listing students: {e}", exc_info=True)
            raise StorageError("Could not read students.") from e
        return [roster_models.StudentRead.model_validate(s) for s in result.scalars().all()]

    async def create_student(
        self,
        data: roster_models.StudentCreate,
        acting_user_id: UUID
    ) -> roster_models.StudentRead:
        log.info(f"User {acting_user_id} creating student '{data.name}'.")
        if data.circle_id:
            await self._check_circle_exists(data.circle_id)

        new_student = db_models.Students(
            name=data.name,
            student_number=data.student_number,
            status=data.status.value,
            circle_id=data.circle_id
        )
        self.db.add(new_student)
        await _flush_or_raise(self.db, "create the student")
        return roster_models.StudentRead.model_validate(new_student)

    async def update_student(
        self,
        student_id: UUID,
        data: roster_models.StudentUpdate,
        acting_user_id: UUID
    ) -> roster_models.StudentRead:
        log.info(f"User {acting_user_id} updating student {student_id}.")
        student = await self._get_student_internal(student_id)

        update_dict = data.model_dump(exclude_unset=True)
        if update_dict.get("circle_id"):
            await self._check_circle_exists(update_dict["circle_id"])

        for key, value in update_dict.items():
            if key == "status" and value is not None:
                value = StudentStatusEnum(value).value
            setattr(student, key, value)

        await _flush_or_raise(self.db, "update the student")
        return roster_models.StudentRead.model_validate(student)

    async def delete_student(self, student_id: UUID, acting_user_id: UUID) -> bool:
        """Deletes a student together with their recitation and attendance rows."""
        log.info(f"User {acting_user_id} attempting to delete student {student_id}.")
        student = await self._get_student_internal(student_id)

        try:
            await self.db.execute(delete(db_models.Recitations).where(db_models.Recitations.student_id == student_id))
            await self.db.execute(delete(db_models.Attendance).where(db_models.Attendance.student_id == student_id))
            await self.db.delete(student)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Database error deleting student {student_id}: {e}", exc_info=True)
            raise StorageError("Could not delete the student.") from e

        log.info(f"Successfully deleted student {student_id}.")
        return True
