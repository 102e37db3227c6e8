"""Row hooks that mirror the database trigger wiring identities to profiles."""

from sqlalchemy import event, insert

from schoolerp.auth.models import AuthUser, UserProfile
from schoolerp.core.enums import UserRole
from schoolerp.core.logging import get_logger

logger = get_logger(__name__)


def default_full_name(email: str) -> str:
    return email.split("@", 1)[0]


@event.listens_for(AuthUser, "after_insert")
def handle_new_user(mapper, connection, target: AuthUser) -> None:
    """Create the user profile in the same transaction as the new identity."""
    meta = target.raw_user_meta_data or {}
    # Metadata is free-form JSON; the column is text
    full_name = meta.get("full_name")
    full_name = default_full_name(target.email) if full_name is None else str(full_name)
    role = UserRole(meta.get("role") or UserRole.student.value)
    connection.execute(
        insert(UserProfile).values(
            id=target.id,
            email=target.email,
            full_name=full_name,
            role=role,
        )
    )
    logger.info("user_profile_created", user_id=str(target.id), role=role.value)
