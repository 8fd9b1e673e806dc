import pytest
from uuid import uuid4
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.halaqoh_roster.database import models as db_models
from src.halaqoh_roster.database.db_enums import StudentStatusEnum
from src.halaqoh_roster.services.circle_service import CircleService, StudentService
from src.halaqoh_roster.models import roster as roster_models
from src.halaqoh_roster.common.exceptions import NotFound
from tests.database import factories
from tests.constants import TEST_UNKNOWN_ID

ACTING_ADMIN_ID = uuid4()


@pytest.mark.anyio
class TestCircleService:

    async def test_create_circle_with_active_teacher(
        self,
        circle_service: CircleService,
        test_teacher_orm: db_models.Profiles
    ):
        circle = await circle_service.create_circle(
            roster_models.CircleCreate(name="Halaqoh Ali bin Abi Thalib", teacher_id=test_teacher_orm.id, level="Menengah"),
            ACTING_ADMIN_ID
        )

        assert isinstance(circle, roster_models.CircleRead)
        assert circle.teacher_id == test_teacher_orm.id
        assert circle.level == "Menengah"

    async def test_create_circle_without_teacher(self, circle_service: CircleService):
        circle = await circle_service.create_circle(roster_models.CircleCreate(name="Halaqoh Baru"), ACTING_ADMIN_ID)

        assert circle.teacher_id is None

    async def test_create_circle_with_inactive_teacher(
        self,
        db_session: AsyncSession,
        circle_service: CircleService
    ):
        """A deactivated teacher can no longer be assigned."""
        inactive = factories.create_teacher_account(active=False)
        await db_session.commit()

        with pytest.raises(NotFound):
            await circle_service.create_circle(
                roster_models.CircleCreate(name="Halaqoh X", teacher_id=inactive.id), ACTING_ADMIN_ID
            )

    async def test_create_circle_with_unknown_teacher(self, circle_service: CircleService):
        with pytest.raises(NotFound):
            await circle_service.create_circle(
                roster_models.CircleCreate(name="Halaqoh X", teacher_id=TEST_UNKNOWN_ID), ACTING_ADMIN_ID
            )

    async def test_update_circle_unassigns_teacher(
        self,
        circle_service: CircleService,
        test_circle_orm: db_models.Circles
    ):
        updated = await circle_service.update_circle(
            test_circle_orm.id, roster_models.CircleUpdate(teacher_id=None), ACTING_ADMIN_ID
        )

        assert updated.teacher_id is None
        assert updated.name == test_circle_orm.name

    async def test_update_circle_not_found(self, circle_service: CircleService):
        with pytest.raises(NotFound):
            await circle_service.update_circle(TEST_UNKNOWN_ID, roster_models.CircleUpdate(name="X"), ACTING_ADMIN_ID)

    async def test_delete_circle_keeps_students(
        self,
        db_session: AsyncSession,
        circle_service: CircleService,
        test_circle_orm: db_models.Circles,
        test_student_orm: db_models.Students
    ):
        result = await circle_service.delete_circle(test_circle_orm.id, ACTING_ADMIN_ID)

        assert result is True
        assert await db_session.get(db_models.Circles, test_circle_orm.id) is None
        student = await db_session.get(db_models.Students, test_student_orm.id)
        assert student is not None
        assert student.circle_id is None

    async def test_get_circle_not_found(self, circle_service: CircleService):
        with pytest.raises(NotFound):
            await circle_service.get_circle(TEST_UNKNOWN_ID)


@pytest.mark.anyio
class TestStudentService:

    async def test_create_student_defaults_to_active(
        self,
        student_service: StudentService,
        test_circle_orm: db_models.Circles
    ):
        student = await student_service.create_student(
            roster_models.StudentCreate(name="Ahmad Fauzi", student_number="S002", circle_id=test_circle_orm.id),
            ACTING_ADMIN_ID
        )

        assert student.status == StudentStatusEnum.ACTIVE
        assert student.circle_id == test_circle_orm.id

    async def test_create_student_unknown_circle(self, student_service: StudentService):
        with pytest.raises(NotFound):
            await student_service.create_student(
                roster_models.StudentCreate(name="Ahmad Fauzi", circle_id=TEST_UNKNOWN_ID), ACTING_ADMIN_ID
            )

    async def test_get_all_filters_by_status(
        self,
        db_session: AsyncSession,
        student_service: StudentService
    ):
        factories.StudentFactory.create(name="Budi")
        factories.StudentFactory.create(name="Andi")
        factories.StudentFactory.create(name="Cahya", status=StudentStatusEnum.INACTIVE.value)
        await db_session.commit()

        everyone = await student_service.get_all()
        active = await student_service.get_all(status=StudentStatusEnum.ACTIVE)

        assert [s.name for s in everyone] == ["Andi", "Budi", "Cahya"]
        assert [s.name for s in active] == ["Andi", "Budi"]

    async def test_update_student_status(
        self,
        student_service: StudentService,
        test_student_orm: db_models.Students
    ):
        updated = await student_service.update_student(
            test_student_orm.id,
            roster_models.StudentUpdate(status=StudentStatusEnum.INACTIVE),
            ACTING_ADMIN_ID
        )

        assert updated.status == StudentStatusEnum.INACTIVE
        assert updated.name == test_student_orm.name

    async def test_delete_student_removes_logs(
        self,
        db_session: AsyncSession,
        student_service: StudentService,
        test_student_orm: db_models.Students
    ):
        factories.RecitationFactory.create(student_id=test_student_orm.id)
        factories.AttendanceFactory.create(student_id=test_student_orm.id)
        await db_session.commit()

        await student_service.delete_student(test_student_orm.id, ACTING_ADMIN_ID)

        assert await db_session.get(db_models.Students, test_student_orm.id) is None
        assert await db_session.scalar(select(func.count()).select_from(db_models.Recitations)) == 0
        assert await db_session.scalar(select(func.count()).select_from(db_models.Attendance)) == 0

    async def test_delete_student_not_found(self, student_service: StudentService):
        with pytest.raises(NotFound):
            await student_service.delete_student(TEST_UNKNOWN_ID, ACTING_ADMIN_ID)
