import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vakans.application.use_cases.notifications import NotificationDispatcher
from vakans.config import get_settings
from vakans.domain.exceptions import NotificationPersistenceError
from vakans.infrastructure.database import engine, initialize_database
from vakans.infrastructure.realtime import ConnectionManager, RealtimeGateway
from vakans.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and the realtime gateway; drop connections on shutdown."""

    initialize_database()
    manager = ConnectionManager()
    app.state.gateway = RealtimeGateway(manager)
    app.state.dispatcher = NotificationDispatcher(app.state.gateway)
    yield
    manager.clear()
    engine.dispose()


async def notification_persistence_handler(
    request: Request, exc: NotificationPersistenceError
) -> JSONResponse:
    logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Bildirishnomani saqlab bo'lmadi"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(NotificationPersistenceError, notification_persistence_handler)

    register_routes(app)
    return app


app = create_app()
