"""Use case for registering when a user was last seen."""

from sqlalchemy.orm import Session

from vakans.infrastructure.repositories import UserRepository


def record_activity(session: Session, user_id: int) -> None:
    """Persist the last seen timestamp for the given user."""

    UserRepository(session).touch_last_seen(user_id)
