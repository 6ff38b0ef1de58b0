import logging

import uvicorn
from fastapi import FastAPI

from smartclass.core.config import Settings, get_settings
from smartclass.core.logging_middleware import LoggingMiddleware, unhandled_exception_handler
from smartclass.db.init_db import init_db
from smartclass.db.session import build_engine, build_session_factory
from smartclass.routers.assignments import router as assignments_router
from smartclass.routers.auth import router as auth_router
from smartclass.routers.classes import router as classes_router
from smartclass.routers.dashboard import router as dashboard_router
from smartclass.routers.submissions import router as submissions_router
from smartclass.services.storage import AttachmentStorage

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)

    # One engine per app, handed to requests through get_db
    engine = build_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.storage = AttachmentStorage(
        settings.UPLOAD_DIR,
        max_bytes=settings.MAX_ATTACHMENT_BYTES,
    )

    # Middleware
    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # Startup event
    @app.on_event("startup")
    def on_startup():
        init_db(engine)
        app.state.storage.ensure_dirs()
        logger.info("SmartClass started (db=%s, uploads=%s)", engine.url, settings.UPLOAD_DIR)

    @app.on_event("shutdown")
    def on_shutdown():
        engine.dispose()

    # Include routers
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(classes_router, prefix="/api/classes", tags=["classes"])
    app.include_router(assignments_router, prefix="/api/assignments", tags=["assignments"])
    app.include_router(submissions_router, prefix="/api/assignments", tags=["submissions"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("smartclass.main:app", host=settings.HOST, port=settings.PORT)
