"""Use case for creating users."""

from sqlalchemy.orm import Session

from vakans.domain.entities import User, UserRole
from vakans.infrastructure.repositories import UserRepository
from vakans.infrastructure.security import get_password_hash


def create_user(
    session: Session,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str = "",
    role: UserRole = UserRole.CANDIDATE,
    company_name: str | None = None,
) -> User:
    """Create a new user ensuring unique email addresses."""

    repository = UserRepository(session)
    if repository.get_by_email(email):
        raise ValueError("Bu email allaqachon ro'yxatdan o'tgan")
    if role is UserRole.EMPLOYER and not company_name:
        raise ValueError("Kompaniya nomi kiritilishi shart")

    user = User(
        id=None,
        email=email,
        password=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        company_name=company_name,
    )
    return repository.create(user)
