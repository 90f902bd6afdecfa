"""SQLAlchemy model for the user table."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import expression

from vakans.infrastructure.database import Base
from vakans.utils import now_in_app_naive_datetime


class UserModel(Base):
    """Database representation of a candidate, employer or admin account."""

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    first_name = Column(String(60), nullable=False)
    last_name = Column(String(60), nullable=False, default="")
    role = Column(String(20), nullable=False, index=True)
    company_name = Column(String(120), nullable=True)
    is_blocked = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
    )
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    last_seen_at = Column(DateTime, nullable=True)


__all__ = ["UserModel"]
