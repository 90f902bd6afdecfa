"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """Roles a Vakans.uz account can hold."""

    CANDIDATE = "CANDIDATE"
    EMPLOYER = "EMPLOYER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """Core attributes describing an application user."""

    id: int | None
    email: str
    password: str
    first_name: str
    last_name: str
    role: UserRole
    company_name: str | None = None
    is_blocked: bool = False
    created_at: datetime | None = None
    last_seen_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        """Name shown to chat peers; employers appear under their company."""

        if self.role is UserRole.EMPLOYER and self.company_name:
            return self.company_name
        return self.full_name or self.email

    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


__all__ = ["User", "UserRole"]
