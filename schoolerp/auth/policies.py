"""
Row-level access policies.

Each table has a list of permissive policies. For a command, a row is visible
when any policy covering that command passes its ``using`` predicate (a SQL
expression applied to queries), and a written row is accepted when any policy
covering that command passes its ``check`` predicate (evaluated on the ORM
object before flush). Tables with no applicable policy expose nothing.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List

from sqlalchemy import Select, and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import PolicyViolation
from schoolerp.core.models import (
    SchoolClass,
    StorageObject,
    Student,
    Subject,
    Teacher,
    TeacherSubject,
    UserProfile,
)

SELECT = "SELECT"
INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL: FrozenSet[str] = frozenset({SELECT, INSERT, UPDATE, DELETE})
READ_ONLY: FrozenSet[str] = frozenset({SELECT})


@dataclass(frozen=True)
class Policy:
    name: str
    commands: FrozenSet[str]
    using: Callable[[CurrentUser], ColumnElement]
    check: Callable[[CurrentUser, Any], bool]


def _admin_sql(user: CurrentUser) -> ColumnElement:
    return true() if user.is_admin else false()


def _everyone_sql(user: CurrentUser) -> ColumnElement:
    return true()


def _admin_policy(name: str) -> Policy:
    return Policy(name, ALL, _admin_sql, lambda user, row: user.is_admin)


def _read_all_policy(name: str) -> Policy:
    return Policy(name, READ_ONLY, _everyone_sql, lambda user, row: True)


def _own_or_admin_read_policy(name: str, column, attr: str) -> Policy:
    return Policy(
        name,
        READ_ONLY,
        lambda user: or_(column == user.id, _admin_sql(user)),
        lambda user, row: getattr(row, attr) == user.id or user.is_admin,
    )


def _bucket_read_policy(name: str, bucket_id: str) -> Policy:
    return Policy(
        name,
        READ_ONLY,
        lambda user: and_(
            StorageObject.bucket_id == bucket_id,
            or_(StorageObject.owner == user.id, _admin_sql(user)),
        ),
        lambda user, row: row.bucket_id == bucket_id and (row.owner == user.id or user.is_admin),
    )


def _bucket_admin_policy(name: str, bucket_id: str) -> Policy:
    return Policy(
        name,
        ALL,
        lambda user: and_(StorageObject.bucket_id == bucket_id, _admin_sql(user)),
        lambda user, row: row.bucket_id == bucket_id and user.is_admin,
    )


POLICIES: Dict[type, List[Policy]] = {
    UserProfile: [
        Policy(
            "users_manage_own_user_profiles",
            ALL,
            lambda user: UserProfile.id == user.id,
            lambda user, row: row.id == user.id,
        ),
        _admin_policy("admin_full_access_user_profiles"),
    ],
    SchoolClass: [
        _read_all_policy("public_can_read_classes"),
        _admin_policy("admin_manage_classes"),
    ],
    Subject: [
        _read_all_policy("public_can_read_subjects"),
        _admin_policy("admin_manage_subjects"),
    ],
    Student: [
        _own_or_admin_read_policy("users_view_own_students", Student.user_id, "user_id"),
        _admin_policy("admin_manage_students"),
    ],
    Teacher: [
        _own_or_admin_read_policy("users_view_own_teachers", Teacher.user_id, "user_id"),
        _admin_policy("admin_manage_teachers"),
    ],
    TeacherSubject: [
        _read_all_policy("view_teacher_subjects"),
        _admin_policy("admin_manage_teacher_subjects"),
    ],
    StorageObject: [
        _bucket_read_policy("users_view_own_student_photos", "student-photos"),
        _bucket_admin_policy("admin_manage_student_photos", "student-photos"),
        _bucket_read_policy("users_view_own_teacher_photos", "teacher-photos"),
        _bucket_admin_policy("admin_manage_teacher_photos", "teacher-photos"),
        _bucket_admin_policy("admin_manage_documents", "documents"),
    ],
}


def _policies_for(model: type, command: str) -> List[Policy]:
    return [p for p in POLICIES.get(model, []) if command in p.commands]


def visible(model: type, user: CurrentUser, command: str = SELECT) -> ColumnElement:
    """SQL predicate selecting the rows of ``model`` that ``user`` may target with ``command``."""
    policies = _policies_for(model, command)
    if not policies:
        return false()
    return or_(*[p.using(user) for p in policies])


def scoped(stmt: Select, model: type, user: CurrentUser, command: str = SELECT) -> Select:
    """Restrict ``stmt`` to rows of ``model`` visible to ``user`` for ``command``."""
    return stmt.where(visible(model, user, command))


def allows(model: type, user: CurrentUser, row: Any, command: str) -> bool:
    return any(p.check(user, row) for p in _policies_for(model, command))


def enforce(model: type, user: CurrentUser, row: Any, command: str) -> None:
    """Reject a new or modified row that no policy for ``command`` accepts."""
    if not allows(model, user, row, command):
        raise PolicyViolation(model.__tablename__)
