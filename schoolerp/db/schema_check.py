"""
Create the school schema on PostgreSQL if it is missing.

Run once against a fresh database (safe to re-run):
  python -m schoolerp.db.schema_check

Creates enum types, tables in dependency order, lookup indexes and the three
default storage buckets. Row-level policies and the new-identity hook live in
the application (schoolerp.auth.policies, schoolerp.auth.triggers).
"""
import asyncio
import json
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from schoolerp.core.enums import ClassLevel, EmploymentStatus, EnrollmentStatus, Gender, UserRole
from schoolerp.core.logging import configure_logging, get_logger
from schoolerp.db.session import engine

logger = get_logger(__name__)


ENUM_TYPES: List[Tuple[str, type]] = [
    ("user_role", UserRole),
    ("gender", Gender),
    ("enrollment_status", EnrollmentStatus),
    ("employment_status", EmploymentStatus),
    ("class_level", ClassLevel),
]


# id, name, public, file_size_limit (bytes), allowed_mime_types
DEFAULT_BUCKETS: List[Tuple[str, str, bool, int, List[str]]] = [
    ("student-photos", "student-photos", False, 5242880, ["image/jpeg", "image/png", "image/webp"]),
    ("teacher-photos", "teacher-photos", False, 5242880, ["image/jpeg", "image/png", "image/webp"]),
    ("documents", "documents", False, 10485760, ["application/pdf", "application/msword", "image/jpeg", "image/png"]),
]


def _create_enum_sql(name: str, enum_cls: type) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{name}') THEN
                CREATE TYPE {name} AS ENUM ({values});
            END IF;
        END $$;
    """


CREATE_TABLE_SQL: Dict[str, str] = {
    "auth_users": """
        CREATE TABLE IF NOT EXISTS auth_users (
            id UUID PRIMARY KEY,
            email VARCHAR(255) NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            raw_user_meta_data JSONB NOT NULL DEFAULT '{}'::jsonb,
            raw_app_meta_data JSONB NOT NULL DEFAULT '{}'::jsonb,
            last_sign_in_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        );
    """,
    "refresh_tokens": """
        CREATE TABLE IF NOT EXISTS refresh_tokens (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES auth_users(id) ON DELETE CASCADE,
            token VARCHAR(512) NOT NULL UNIQUE,
            expires_at TIMESTAMPTZ NOT NULL,
            revoked BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL
        );
    """,
    "user_profiles": """
        CREATE TABLE IF NOT EXISTS user_profiles (
            id UUID PRIMARY KEY REFERENCES auth_users(id) ON DELETE CASCADE,
            email VARCHAR(255) NOT NULL UNIQUE,
            full_name VARCHAR(255) NOT NULL,
            role user_role NOT NULL DEFAULT 'student',
            phone VARCHAR(50),
            address TEXT,
            date_of_birth DATE,
            gender gender,
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        );
    """,
    "classes": """
        CREATE TABLE IF NOT EXISTS classes (
            id UUID PRIMARY KEY,
            name VARCHAR(50) NOT NULL,
            level class_level NOT NULL,
            section VARCHAR(10) NOT NULL,
            capacity INTEGER DEFAULT 30,
            academic_year VARCHAR(20) NOT NULL,
            room_number VARCHAR(20),
            created_at TIMESTAMPTZ NOT NULL
        );
    """,
    "subjects": """
        CREATE TABLE IF NOT EXISTS subjects (
            id UUID PRIMARY KEY,
            name VARCHAR(255) NOT NULL UNIQUE,
            code VARCHAR(50) UNIQUE,
            description TEXT,
            created_at TIMESTAMPTZ NOT NULL
        );
    """,
    "students": """
        CREATE TABLE IF NOT EXISTS students (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES user_profiles(id) ON DELETE CASCADE,
            student_id VARCHAR(50) NOT NULL UNIQUE,
            class_id UUID REFERENCES classes(id) ON DELETE SET NULL,
            enrollment_status enrollment_status NOT NULL DEFAULT 'active',
            admission_date DATE NOT NULL,
            parent_name VARCHAR(255),
            parent_phone VARCHAR(50),
            parent_email VARCHAR(255),
            emergency_contact VARCHAR(255),
            medical_notes TEXT,
            photo_url TEXT,
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        );
    """,
    "teachers": """
        CREATE TABLE IF NOT EXISTS teachers (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES user_profiles(id) ON DELETE CASCADE,
            employee_id VARCHAR(50) NOT NULL UNIQUE,
            employment_status employment_status NOT NULL DEFAULT 'active',
            hire_date DATE NOT NULL,
            department VARCHAR(100),
            qualification VARCHAR(255),
            experience_years INTEGER DEFAULT 0,
            salary NUMERIC(10, 2),
            emergency_contact VARCHAR(255),
            photo_url TEXT,
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL
        );
    """,
    "teacher_subjects": """
        CREATE TABLE IF NOT EXISTS teacher_subjects (
            id UUID PRIMARY KEY,
            teacher_id UUID NOT NULL REFERENCES teachers(id) ON DELETE CASCADE,
            subject_id UUID NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
            class_id UUID NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            academic_year VARCHAR(20) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL,
            CONSTRAINT uq_teacher_subject_class_year UNIQUE (teacher_id, subject_id, class_id, academic_year)
        );
    """,
    "storage_buckets": """
        CREATE TABLE IF NOT EXISTS storage_buckets (
            id VARCHAR(100) PRIMARY KEY,
            name VARCHAR(100) NOT NULL UNIQUE,
            public BOOLEAN NOT NULL DEFAULT FALSE,
            file_size_limit BIGINT,
            allowed_mime_types JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """,
    "storage_objects": """
        CREATE TABLE IF NOT EXISTS storage_objects (
            id UUID PRIMARY KEY,
            bucket_id VARCHAR(100) NOT NULL REFERENCES storage_buckets(id),
            name VARCHAR(1024) NOT NULL,
            owner UUID REFERENCES auth_users(id) ON DELETE SET NULL,
            size BIGINT NOT NULL DEFAULT 0,
            mime_type VARCHAR(255),
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL,
            CONSTRAINT uq_storage_object_bucket_name UNIQUE (bucket_id, name)
        );
    """,
}


CREATE_INDEX_SQL: List[str] = [
    "CREATE INDEX IF NOT EXISTS idx_user_profiles_role ON user_profiles(role);",
    "CREATE INDEX IF NOT EXISTS idx_user_profiles_email ON user_profiles(email);",
    "CREATE INDEX IF NOT EXISTS idx_students_student_id ON students(student_id);",
    "CREATE INDEX IF NOT EXISTS idx_students_class_id ON students(class_id);",
    "CREATE INDEX IF NOT EXISTS idx_students_user_id ON students(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_teachers_employee_id ON teachers(employee_id);",
    "CREATE INDEX IF NOT EXISTS idx_teachers_user_id ON teachers(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_classes_level ON classes(level);",
    "CREATE INDEX IF NOT EXISTS idx_teacher_subjects_teacher_id ON teacher_subjects(teacher_id);",
    "CREATE INDEX IF NOT EXISTS idx_teacher_subjects_subject_id ON teacher_subjects(subject_id);",
    "CREATE INDEX IF NOT EXISTS idx_refresh_tokens_user_id ON refresh_tokens(user_id);",
]


INSERT_BUCKET_SQL = """
    INSERT INTO storage_buckets (id, name, public, file_size_limit, allowed_mime_types)
    VALUES (:id, :name, :public, :file_size_limit, CAST(:allowed_mime_types AS JSONB))
    ON CONFLICT (id) DO NOTHING;
"""


async def ensure_tables(db_engine: AsyncEngine) -> None:
    """
    Ensure that all enum types, tables, indexes and default buckets exist.
    Missing tables are created; existing ones are left untouched.
    """
    async with db_engine.begin() as conn:
        for name, enum_cls in ENUM_TYPES:
            await conn.execute(text(_create_enum_sql(name, enum_cls)))

        # Dict order is dependency order
        missing: List[str] = []
        for table, create_sql in CREATE_TABLE_SQL.items():
            result = await conn.execute(text("SELECT to_regclass(:relname)"), {"relname": table})
            if result.scalar() is None:
                missing.append(table)
                await conn.execute(text(create_sql))

        for ddl in CREATE_INDEX_SQL:
            await conn.execute(text(ddl))

        for bucket_id, name, public, size_limit, mime_types in DEFAULT_BUCKETS:
            await conn.execute(
                text(INSERT_BUCKET_SQL),
                {
                    "id": bucket_id,
                    "name": name,
                    "public": public,
                    "file_size_limit": size_limit,
                    "allowed_mime_types": json.dumps(mime_types),
                },
            )

    if missing:
        logger.info("tables_created", tables=missing)
    else:
        logger.info("tables_present", tables=list(CREATE_TABLE_SQL))


async def main() -> None:
    configure_logging()
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
