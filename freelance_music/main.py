# freelance_music/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from freelance_music import models  # noqa
from freelance_music.api.v1.endpoints import (
    admin,
    auth,
    availability,
    health,
    lessons,
    payments,
    profiles,
    recurring,
)
from freelance_music.core.config import settings
from freelance_music.core.exceptions import DomainException
from freelance_music.db.session import init_db

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.LOG_LEVEL,
    )

    app = FastAPI(title=settings.PROJECT_NAME)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        http_exc = exc.to_http_exception()
        if http_exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

    @app.on_event("startup")
    def on_startup():
        init_db()

    prefix = "/api/v1"
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(profiles.router, prefix=prefix)
    app.include_router(availability.router, prefix=prefix)
    app.include_router(lessons.router, prefix=prefix)
    app.include_router(recurring.router, prefix=prefix)
    app.include_router(payments.router, prefix=prefix)
    app.include_router(admin.router, prefix=prefix)
    app.include_router(health.router, prefix=f"{prefix}/health")
    return app


app = create_app()
