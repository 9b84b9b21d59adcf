import os

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import inspect

from .config import settings
from .db import Base, engine
from .errors import NotFound, register_exception_handlers
from .logging import setup_logging, RequestIdMiddleware
from .auth.router import router as auth_router
from .routes.field_tasks import router as field_tasks_router
from .routes.field_reports import router as field_reports_router
from .routes.analytics import router as analytics_router
from .routes.admin import router as admin_router


logger = structlog.get_logger(__name__)

NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def _mount_frontend(app: FastAPI, front_dist: str) -> None:
    """Serve the built SPA: hashed assets briefly cached, the shell never cached."""
    root = os.path.abspath(front_dist)
    index_path = os.path.join(root, "index.html")

    @app.get("/{full_path:path}", include_in_schema=False)
    def spa_fallback(full_path: str):
        if full_path.startswith("api/"):
            raise NotFound()
        asset_path = os.path.abspath(os.path.join(root, full_path))
        if full_path and asset_path.startswith(root + os.sep) and os.path.isfile(asset_path):
            if full_path in ("sw.js", "offline.html", "manifest.json"):
                return FileResponse(asset_path, headers=NO_CACHE)
            return FileResponse(asset_path, headers={"Cache-Control": "public, max-age=3600"})
        return FileResponse(index_path, headers=NO_CACHE)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
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
    app.include_router(field_tasks_router)
    app.include_router(field_reports_router)
    app.include_router(analytics_router)
    app.include_router(admin_router)

    @app.get("/healthz", include_in_schema=False)
    def healthz():
        return {"status": "ok"}

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            existing = set(inspect(engine).get_table_names())
            missing = set(Base.metadata.tables.keys()) - existing
            if missing:
                logger.info("creating_tables", tables=sorted(missing))
                Base.metadata.create_all(bind=engine)
        logger.info("startup_complete", app=settings.app_name, tz=settings.tz_default)

    # After all API routers, provide SPA catch-all for deep links
    if os.path.isdir(settings.frontend_dist):
        _mount_frontend(app, settings.frontend_dist)

    return app


app = create_app()
