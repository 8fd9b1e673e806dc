'''
Derived roster statistics, recomputed from storage on every call.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends
from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import RoleEnum, RecitationStatusEnum, AttendanceStatusEnum
from ..common.config import settings
from ..common.exceptions import NotFound, StorageError
from ..common.logger import log
from ..models import roster as roster_models
from ..models import teacher as teacher_models


class RosterService:
    """
    Read-only aggregation across circles, teachers, students and their logs.

    There is no cache: each listing is a fixed number of statements against
    current storage, however many rows come back. The statements of one call
    do not share a snapshot, so counts are approximately current.

    A missing join target (unassigned circle, deleted student, evaluator id
    left empty) is never an error; it is rendered with the display placeholder.
    Evaluator names of deactivated teachers still resolve: the log is history.
    """
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    @property
    def placeholder(self) -> str:
        return settings.DISPLAY_PLACEHOLDER

    async def _student_counts_by_circle(self) -> dict[UUID, int]:
        stmt = select(
            db_models.Students.circle_id,
            func.count(db_models.Students.id)
        ).filter(
            db_models.Students.circle_id.is_not(None)
        ).group_by(db_models.Students.circle_id)
        result = await self.db.execute(stmt)
        return {circle_id: count for circle_id, count in result.all()}

    async def _profiles_by_id(self, profile_ids: set[UUID]) -> dict[UUID, db_models.Profiles]:
        """One batched lookup, inactive profiles included."""
        if not profile_ids:
            return {}
        stmt = select(db_models.Profiles).filter(db_models.Profiles.id.in_(profile_ids))
        result = await self.db.execute(stmt)
        return {profile.id: profile for profile in result.scalars().all()}

    async def list_circles_with_stats(self) -> list[roster_models.CircleWithStats]:
        """
        Every circle ordered by name (then id), with its student count and
        teacher. Student status is not filtered: inactive students still count.
        """
        log.info("Listing circles with stats.")
        try:
            circles_result = await self.db.execute(
                select(db_models.Circles).order_by(db_models.Circles.name, db_models.Circles.id)
            )
            circles = circles_result.scalars().all()
            counts = await self._student_counts_by_circle()
            teachers = await self._profiles_by_id({c.teacher_id for c in circles if c.teacher_id})
        except SQLAlchemyError as e:
            log.error(f"Database error listing circles: {e}", exc_info=True)
            raise StorageError("Could not read circles.") from e

        rows = []
        for circle in circles:
            teacher = teachers.get(circle.teacher_id) if circle.teacher_id else None
            teacher_active = bool(teacher and teacher.active)
            rows.append(roster_models.CircleWithStats(
                circle=roster_models.CircleRead.model_validate(circle),
                teacher_name=teacher.full_name if teacher else None,
                teacher_active=teacher_active,
                teacher_display_name=teacher.full_name if teacher_active else self.placeholder,
                student_count=counts.get(circle.id, 0)
            ))
        return rows

    async def list_teachers_with_stats(self) -> list[teacher_models.TeacherWithStats]:
        """
        Active profiles holding the Asatidz role, ordered by full name (then id),
        each with the number of circles that reference it.
        """
        log.info("Listing teachers with stats.")
        circle_counts = select(
            db_models.Circles.teacher_id.label('teacher_id'),
            func.count(db_models.Circles.id).label('circle_count')
        ).filter(
            db_models.Circles.teacher_id.is_not(None)
        ).group_by(db_models.Circles.teacher_id).subquery()

        stmt = select(
            db_models.Profiles,
            func.coalesce(circle_counts.c.circle_count, 0)
        ).join(
            db_models.UserRoles,
            and_(
                db_models.UserRoles.user_id == db_models.Profiles.id,
                db_models.UserRoles.role == RoleEnum.ASATIDZ.value
            )
        ).outerjoin(
            circle_counts, circle_counts.c.teacher_id == db_models.Profiles.id
        ).filter(
            db_models.Profiles.active.is_(True)
        ).order_by(db_models.Profiles.full_name, db_models.Profiles.id)

        try:
            result = await self.db.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as e:
            log.error(f"Database error listing teachers: {e}", exc_info=True)
            raise StorageError("Could not read teachers.") from e

        return [
            teacher_models.TeacherWithStats(
                teacher=teacher_models.TeacherRead.model_validate(profile),
                circle_count=count
            )
            for profile, count in rows
        ]

    async def list_recitations_enriched(
        self,
        student_id: Optional[UUID] = None
    ) -> list[roster_models.RecitationEnriched]:
        """Most recent first, with student name/number and evaluator name."""
        log.info(f"Listing recitations (student filter: {student_id}).")
        stmt = select(
            db_models.Recitations,
            db_models.Students.name,
            db_models.Students.student_number,
            db_models.Profiles.full_name
        ).outerjoin(
            db_models.Students, db_models.Students.id == db_models.Recitations.student_id
        ).outerjoin(
            db_models.Profiles, db_models.Profiles.id == db_models.Recitations.evaluator_id
        ).order_by(
            db_models.Recitations.recited_on.desc(),
            db_models.Recitations.created_at.desc(),
            db_models.Recitations.id
        )
        if student_id:
            stmt = stmt.filter(db_models.Recitations.student_id == student_id)

        try:
            result = await self.db.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as e:
            log.error(f"Database error listing recitations: {e}", exc_info=True)
            raise StorageError("Could not read recitations.") from e

        return [
            roster_models.RecitationEnriched(
                recitation=roster_models.RecitationRead.model_validate(recitation),
                student_name=student_name or self.placeholder,
                student_number=student_number or self.placeholder,
                evaluator_name=evaluator_name or self.placeholder
            )
            for recitation, student_name, student_number, evaluator_name in rows
        ]

    async def list_attendance_enriched(
        self,
        student_id: Optional[UUID] = None
    ) -> list[roster_models.AttendanceEnriched]:
        """Most recent first, with student name/number."""
        log.info(f"Listing attendance (student filter: {student_id}).")
        stmt = select(
            db_models.Attendance,
            db_models.Students.name,
            db_models.Students.student_number
        ).outerjoin(
            db_models.Students, db_models.Students.id == db_models.Attendance.student_id
        ).order_by(
            db_models.Attendance.attended_on.desc(),
            db_models.Attendance.created_at.desc(),
            db_models.Attendance.id
        )
        if student_id:
            stmt = stmt.filter(db_models.Attendance.student_id == student_id)

        try:
            result = await self.db.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as e:
            log.error(f"Database error listing attendance: {e}", exc_info=True)
            raise StorageError("Could not read attendance.") from e

        return [
            roster_models.AttendanceEnriched(
                attendance=roster_models.AttendanceRead.model_validate(attendance),
                student_name=student_name or self.placeholder,
                student_number=student_number or self.placeholder
            )
            for attendance, student_name, student_number in rows
        ]

    async def get_student_summary(self, student_id: UUID) -> roster_models.StudentSummary:
        """
        Recitation and attendance totals for one student.
        Every status appears in the breakdowns, zero when unused.
        """
        log.info(f"Building summary for student {student_id}.")
        try:
            student = await self.db.get(db_models.Students, student_id)
            if student is None:
                raise NotFound("Student not found.")

            totals = (await self.db.execute(
                select(
                    func.count(db_models.Recitations.id),
                    func.avg(db_models.Recitations.fluency_score),
                    func.max(db_models.Recitations.recited_on),
                    func.max(db_models.Recitations.juz)
                ).filter(db_models.Recitations.student_id == student_id)
            )).one()

            recitation_statuses = (await self.db.execute(
                select(db_models.Recitations.status, func.count(db_models.Recitations.id))
                .filter(db_models.Recitations.student_id == student_id)
                .group_by(db_models.Recitations.status)
            )).all()

            attendance_statuses = (await self.db.execute(
                select(db_models.Attendance.status, func.count(db_models.Attendance.id))
                .filter(db_models.Attendance.student_id == student_id)
                .group_by(db_models.Attendance.status)
            )).all()
        except SQLAlchemyError as e:
            log.error(f"Database error building summary for student {student_id}: {e}", exc_info=True)
            raise StorageError("Could not read the student summary.") from e

        count, average, latest, highest_juz = totals

        recitations_by_status = {status: 0 for status in RecitationStatusEnum}
        for status, status_count in recitation_statuses:
            recitations_by_status[RecitationStatusEnum(status)] = status_count

        attendance_by_status = {status: 0 for status in AttendanceStatusEnum}
        for status, status_count in attendance_statuses:
            attendance_by_status[AttendanceStatusEnum(status)] = status_count

        return roster_models.StudentSummary(
            student=roster_models.StudentRead.model_validate(student),
            recitation_count=count,
            average_fluency_score=round(float(average), 2) if average is not None else None,
            latest_recitation_on=latest,
            highest_juz=highest_juz,
            recitations_by_status=recitations_by_status,
            attendance_by_status=attendance_by_status
        )
