"""Liveness and readiness check."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from vakans.config import get_settings
from vakans.infrastructure.database import check_database, get_db

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request, db: Session = Depends(get_db)) -> JSONResponse:
    settings = get_settings()
    database_ok = check_database(db)
    body = {
        "status": "ok" if database_ok else "degraded",
        "service": settings.app_name,
        "version": settings.app_version,
        "database": "ok" if database_ok else "unavailable",
        "online_users": request.app.state.gateway.manager.online_users_count(),
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )
