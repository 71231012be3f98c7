import os

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .db import Base, engine
from .errors import register_exception_handlers
from .logging import setup_logging, RequestIdMiddleware
from .auth.router import router as auth_router
from .routes.workspaces import router as workspaces_router
from .routes.projects import router as projects_router
from .routes.tasks import router as tasks_router
from .routes.calendar import router as calendar_router
from .routes.users import router as users_router
from .routes.stats import router as stats_router


logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(workspaces_router)
    app.include_router(projects_router)
    app.include_router(tasks_router)
    app.include_router(calendar_router)
    app.include_router(users_router)
    app.include_router(stats_router)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "environment": settings.environment}

    # Metrics
    if settings.enable_metrics:
        Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        if not settings.auto_create_db:
            return
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        Base.metadata.create_all(bind=engine)
        logger.info("database_ready", tables=len(Base.metadata.tables))

    return app


app = create_app()
