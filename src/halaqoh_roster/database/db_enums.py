'''
Static enums mirroring the database ENUM types.
'''
import enum


class RoleEnum(str, enum.Enum):
    ASATIDZ = "Asatidz"
    ADMIN = "Admin"


class StudentStatusEnum(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class RecitationStatusEnum(str, enum.Enum):
    FLUENT = "Fluent"
    REPEAT = "Repeat"
    INCORRECT = "Incorrect"


class AttendanceStatusEnum(str, enum.Enum):
    PRESENT = "Present"
    EXCUSED = "Excused"
    SICK = "Sick"
    ABSENT = "Absent"
