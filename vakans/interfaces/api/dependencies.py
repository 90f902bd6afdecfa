"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, WebSocket, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from vakans.application.use_cases.notifications import NotificationDispatcher
from vakans.domain.entities import User
from vakans.infrastructure.database import get_db
from vakans.infrastructure.realtime import RealtimeGateway
from vakans.infrastructure.repositories import UserRepository
from vakans.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")

_CREDENTIALS_ERROR = "Avtorizatsiya talab qilinadi"


def resolve_user_from_token(token: str | None, db: Session) -> User:
    """Return the user a token belongs to or raise ``ValueError``.

    Blocked users are rejected the same way as unknown ones.
    """

    if not token:
        raise ValueError("Token topilmadi")

    payload = decode_access_token(token)
    email = payload.get("sub")
    if not isinstance(email, str):
        raise ValueError("Token yaroqsiz")

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise ValueError("Foydalanuvchi topilmadi")
    if user.is_blocked:
        raise ValueError("Hisobingiz bloklangan")
    return user


def websocket_token(websocket: WebSocket) -> str | None:
    """Read the token from the ``token`` query parameter or a bearer header."""

    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    try:
        return resolve_user_from_token(token, db)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_CREDENTIALS_ERROR,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Ruxsat yo'q",
        )
    return current_user


def get_gateway(request: Request) -> RealtimeGateway:
    return request.app.state.gateway


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
