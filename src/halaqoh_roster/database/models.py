from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Enum, ForeignKeyConstraint, Index, Integer, JSON, PrimaryKeyConstraint, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import datetime
import uuid

from .db_enums import RoleEnum, StudentStatusEnum, RecitationStatusEnum, AttendanceStatusEnum


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]

def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Base(DeclarativeBase):
    pass


class Identities(Base):
    """Login identity. The provider side of an account: credentials only."""
    __tablename__ = 'identities'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='identities_pkey'),
        UniqueConstraint('email', name='identities_email_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255))
    password: Mapped[str] = mapped_column(String(255))
    user_metadata: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    role_grants: Mapped[list['UserRoles']] = relationship('UserRoles', back_populates='identity')


class UserRoles(Base):
    __tablename__ = 'user_roles'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['identities.id'], ondelete='CASCADE', name='user_roles_user_id_fkey'),
        PrimaryKeyConstraint('user_id', 'role', name='user_roles_pkey')
    )

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    role: Mapped[str] = mapped_column(Enum(*_enum_values(RoleEnum), name='app_role'), primary_key=True)

    identity: Mapped['Identities'] = relationship('Identities', back_populates='role_grants')


class Profiles(Base):
    """Teacher profile. Shares its primary key with the identity it belongs to."""
    __tablename__ = 'profiles'
    __table_args__ = (
        ForeignKeyConstraint(['id'], ['identities.id'], ondelete='CASCADE', name='profiles_id_fkey'),
        PrimaryKeyConstraint('id', name='profiles_pkey'),
        Index('idx_profiles_full_name', 'full_name')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    full_name: Mapped[str] = mapped_column(Text)
    username: Mapped[str] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    circles: Mapped[list['Circles']] = relationship(
        'Circles',
        back_populates='teacher',
        foreign_keys='[Circles.teacher_id]',
        passive_deletes=True
    )


class Circles(Base):
    __tablename__ = 'circles'
    __table_args__ = (
        ForeignKeyConstraint(['teacher_id'], ['profiles.id'], ondelete='SET NULL', name='circles_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='circles_pkey'),
        Index('idx_circles_teacher_id', 'teacher_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text)
    teacher_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    level: Mapped[Optional[str]] = mapped_column(Text)

    teacher: Mapped[Optional['Profiles']] = relationship(
        'Profiles',
        back_populates='circles',
        foreign_keys='[Circles.teacher_id]'
    )
    students: Mapped[list['Students']] = relationship('Students', back_populates='circle', passive_deletes=True)


class Students(Base):
    __tablename__ = 'students'
    __table_args__ = (
        ForeignKeyConstraint(['circle_id'], ['circles.id'], ondelete='SET NULL', name='students_circle_id_fkey'),
        PrimaryKeyConstraint('id', name='students_pkey'),
        Index('idx_students_circle_id', 'circle_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text)
    student_number: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Enum(*_enum_values(StudentStatusEnum), name='student_status_enum'),
        default=StudentStatusEnum.ACTIVE.value
    )
    circle_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    circle: Mapped[Optional['Circles']] = relationship('Circles', back_populates='students')


class Recitations(Base):
    __tablename__ = 'recitations'
    __table_args__ = (
        CheckConstraint('juz >= 1 AND juz <= 30', name='valid_juz'),
        CheckConstraint('verse_from >= 1 AND verse_to >= verse_from', name='valid_verse_range'),
        CheckConstraint('fluency_score >= 0 AND fluency_score <= 100', name='valid_fluency_score'),
        ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE', name='recitations_student_id_fkey'),
        ForeignKeyConstraint(['evaluator_id'], ['profiles.id'], ondelete='SET NULL', name='recitations_evaluator_id_fkey'),
        PrimaryKeyConstraint('id', name='recitations_pkey'),
        Index('idx_recitations_student_id', 'student_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    recited_on: Mapped[datetime.date] = mapped_column(Date)
    juz: Mapped[int] = mapped_column(Integer)
    verse_from: Mapped[int] = mapped_column(Integer)
    verse_to: Mapped[int] = mapped_column(Integer)
    fluency_score: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(
        Enum(*_enum_values(RecitationStatusEnum), name='recitation_status_enum'),
        default=RecitationStatusEnum.FLUENT.value
    )
    evaluator_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    student: Mapped['Students'] = relationship('Students')
    evaluator: Mapped[Optional['Profiles']] = relationship('Profiles')


class Attendance(Base):
    __tablename__ = 'attendance'
    __table_args__ = (
        ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE', name='attendance_student_id_fkey'),
        PrimaryKeyConstraint('id', name='attendance_pkey'),
        Index('idx_attendance_student_id', 'student_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    attended_on: Mapped[datetime.date] = mapped_column(Date)
    status: Mapped[str] = mapped_column(
        Enum(*_enum_values(AttendanceStatusEnum), name='attendance_status_enum'),
        default=AttendanceStatusEnum.PRESENT.value
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(True), default=_utcnow, server_default=func.now())

    student: Mapped['Students'] = relationship('Students')
