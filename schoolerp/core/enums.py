from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    teacher = "teacher"
    student = "student"
    parent = "parent"


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class EnrollmentStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    graduated = "graduated"
    transferred = "transferred"


class EmploymentStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    on_leave = "on_leave"
    terminated = "terminated"


class ClassLevel(str, Enum):
    """Grades in teaching order; declaration order is the sort order."""

    grade_1 = "grade_1"
    grade_2 = "grade_2"
    grade_3 = "grade_3"
    grade_4 = "grade_4"
    grade_5 = "grade_5"
    grade_6 = "grade_6"
    grade_7 = "grade_7"
    grade_8 = "grade_8"
    grade_9 = "grade_9"
    grade_10 = "grade_10"
    grade_11 = "grade_11"
    grade_12 = "grade_12"


CLASS_LEVEL_ORDER = {level: index for index, level in enumerate(ClassLevel)}
