"""Persistence layer for user data."""

from __future__ import annotations

from sqlalchemy.orm import Session

from vakans.domain.entities import User, UserRole
from vakans.infrastructure.models import UserModel
from vakans.utils import ensure_app_naive_datetime, now_in_app_timezone


class UserRepository:
    """Provide the user lookups needed by authentication and messaging."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        model = (
            self.session.query(UserModel)
            .filter(UserModel.email == email.strip().lower())
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel(
            email=user.email.strip().lower(),
            password=user.password,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            company_name=user.company_name,
            is_blocked=user.is_blocked,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_active_ids(self) -> list[int]:
        """Return identifiers of every user that is not blocked."""

        query = (
            self.session.query(UserModel.id)
            .filter(UserModel.is_blocked.is_(False))
            .order_by(UserModel.id)
        )
        return [user_id for (user_id,) in query.all()]

    def touch_last_seen(self, user_id: int) -> None:
        model = self.session.get(UserModel, user_id)
        if model is None:
            return
        model.last_seen_at = ensure_app_naive_datetime(now_in_app_timezone())
        self.session.commit()

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            password=model.password,
            first_name=model.first_name,
            last_name=model.last_name or "",
            role=UserRole(model.role),
            company_name=model.company_name,
            is_blocked=bool(model.is_blocked),
            created_at=model.created_at,
            last_seen_at=model.last_seen_at,
        )


__all__ = ["UserRepository"]
