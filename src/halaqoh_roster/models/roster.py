'''
Pydantic models for circles, students, recitations and attendance,
plus the derived rows the roster aggregator returns.
'''
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..database.db_enums import StudentStatusEnum, RecitationStatusEnum, AttendanceStatusEnum
from .base import PartialUpdate


# --- Circles ---

class CircleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    teacher_id: Optional[UUID] = None
    level: Optional[str] = Field(None, max_length=100)


class CircleUpdate(PartialUpdate):
    """All fields optional. Sending teacher_id=null unassigns the circle."""
    non_nullable = ("name",)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    teacher_id: Optional[UUID] = None
    level: Optional[str] = Field(None, max_length=100)


class CircleRead(BaseModel):
    id: UUID
    name: str
    teacher_id: Optional[UUID] = None
    level: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CircleWithStats(BaseModel):
    """
    A circle with its resolved teacher and enrollment count.

    teacher_name is the raw profile lookup (kept even after deactivation);
    teacher_display_name falls back to the placeholder whenever the teacher
    is missing or inactive.
    """
    circle: CircleRead
    teacher_name: Optional[str] = None
    teacher_active: bool = False
    teacher_display_name: str
    student_count: int = 0


# --- Students ---

class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    student_number: Optional[str] = Field(None, max_length=50)
    status: StudentStatusEnum = StudentStatusEnum.ACTIVE
    circle_id: Optional[UUID] = None


class StudentUpdate(PartialUpdate):
    non_nullable = ("name", "status")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    student_number: Optional[str] = Field(None, max_length=50)
    status: Optional[StudentStatusEnum] = None
    circle_id: Optional[UUID] = None


class StudentRead(BaseModel):
    id: UUID
    name: str
    student_number: Optional[str] = None
    status: StudentStatusEnum
    circle_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


# --- Recitations ---

class RecitationBase(BaseModel):
    student_id: UUID
    recited_on: date
    juz: int = Field(..., ge=1, le=30)
    verse_from: int = Field(..., ge=1)
    verse_to: int = Field(..., ge=1)
    fluency_score: int = Field(100, ge=0, le=100)
    status: RecitationStatusEnum = RecitationStatusEnum.FLUENT
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_verse_range(self):
        if self.verse_to < self.verse_from:
            raise ValueError("verse_to must not be smaller than verse_from")
        return self


class RecitationCreate(RecitationBase):
    """
    'evaluator_id' is excluded and will be stamped by the service
    from the acting user.
    """
    pass


class RecitationUpdate(PartialUpdate):
    """Explicit correction of a saved recitation. Partial update."""
    non_nullable = ("recited_on", "juz", "verse_from", "verse_to", "fluency_score", "status")

    recited_on: Optional[date] = None
    juz: Optional[int] = Field(None, ge=1, le=30)
    verse_from: Optional[int] = Field(None, ge=1)
    verse_to: Optional[int] = Field(None, ge=1)
    fluency_score: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[RecitationStatusEnum] = None
    notes: Optional[str] = None


class RecitationRead(RecitationBase):
    id: UUID
    evaluator_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecitationEnriched(BaseModel):
    recitation: RecitationRead
    student_name: str
    student_number: str
    evaluator_name: str


# --- Attendance ---

class AttendanceCreate(BaseModel):
    student_id: UUID
    attended_on: date
    status: AttendanceStatusEnum = AttendanceStatusEnum.PRESENT
    notes: Optional[str] = None


class AttendanceUpdate(PartialUpdate):
    non_nullable = ("attended_on", "status")

    attended_on: Optional[date] = None
    status: Optional[AttendanceStatusEnum] = None
    notes: Optional[str] = None


class AttendanceRead(AttendanceCreate):
    id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceEnriched(BaseModel):
    attendance: AttendanceRead
    student_name: str
    student_number: str


# --- Per-student summary ---

class StudentSummary(BaseModel):
    student: StudentRead
    recitation_count: int = 0
    average_fluency_score: Optional[float] = None
    latest_recitation_on: Optional[date] = None
    highest_juz: Optional[int] = None
    recitations_by_status: dict[RecitationStatusEnum, int] = Field(default_factory=dict)
    attendance_by_status: dict[AttendanceStatusEnum, int] = Field(default_factory=dict)
