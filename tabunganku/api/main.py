"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from tabunganku.api.middleware import RequestIDMiddleware, MetricsMiddleware
from tabunganku.api.v1 import auth, dashboard, students, transactions
from tabunganku.infrastructure.database.models import Base
from tabunganku.infrastructure.database.session import build_engine, build_session_factory
from tabunganku.infrastructure.observability.logging import setup_logging
from tabunganku.config import Settings, settings as default_settings


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app_settings = app_settings or default_settings

    # Setup structured logging
    setup_logging(app_settings.log_level, app_settings.service_name)

    app = FastAPI(
        title="TabunganKu SD",
        description="Sistem tabungan siswa sekolah dasar",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Store handles are per-app, reached through dependencies
    engine = build_engine(app_settings.database_url)
    if app_settings.auto_create_schema:
        Base.metadata.create_all(bind=engine)
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=app_settings.session_secret,
        same_site="lax",
        max_age=app_settings.session_max_age_seconds,
    )
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": app_settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])
    app.include_router(students.router, prefix="/v1", tags=["students"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app
