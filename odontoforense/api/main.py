"""
FastAPI application
"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from odontoforense import __version__
from odontoforense.api.error_handler import register_exception_handlers
from odontoforense.api.middleware import LoggingMiddleware
from odontoforense.api.routers import auth, cases, dashboard, evidence, examiners, laudos, reports, victims
from odontoforense.db.connection import DatabaseManager
from odontoforense.services.audit_log import AuditLog
from odontoforense.services.blob_store import BlobStore
from odontoforense.services.content_generator import ContentGenerator
from odontoforense.services.document_renderer import DocumentRenderer
from odontoforense.services.prompt_builder import PromptBuilder
from odontoforense.services.report_pipeline import ReportPipeline
from odontoforense.utils.logger import setup_logging, get_logger

# Logging setup
setup_logging()
logger = get_logger(__name__)


def create_app(
    db_manager: Optional[DatabaseManager] = None,
    content_generator: Optional[ContentGenerator] = None,
) -> FastAPI:
    """
    Build the application

    Services are constructed on startup and held on app.state; passing a
    database manager or content generator replaces the default one.

    Args:
        db_manager: database to use (defaults to settings.database_url)
        content_generator: narrative generator (defaults to the HTTP client)

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Odonto-forensic case records API",
        description="Cases, victims, evidence, expert reports and laudos",
        version=__version__
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    @app.on_event("startup")
    async def startup_event():
        """Open the database and build the services"""
        logger.info("Application starting")

        manager = db_manager or DatabaseManager()
        manager.create_all()
        if manager.health_check():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed")

        prompt_builder = PromptBuilder()
        blob_store = BlobStore(manager)
        generator = content_generator or ContentGenerator(prompt_builder=prompt_builder)
        audit_log = AuditLog(manager)

        app.state.db_manager = manager
        app.state.blob_store = blob_store
        app.state.content_generator = generator
        app.state.audit_log = audit_log
        app.state.pipeline = ReportPipeline(
            db_manager=manager,
            blob_store=blob_store,
            content_generator=generator,
            renderer=DocumentRenderer(blob_store),
            audit_log=audit_log,
            prompt_builder=generator.prompt_builder,
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release the generator client and the database"""
        logger.info("Application shutting down")
        app.state.content_generator.close()
        app.state.db_manager.close()

    @app.get("/")
    async def root():
        """Service banner"""
        return {
            "message": "Odonto-forensic case records API",
            "version": __version__,
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """Database health"""
        db_healthy = app.state.db_manager.health_check()
        return {
            "status": "healthy" if db_healthy else "unhealthy",
            "database": "healthy" if db_healthy else "unhealthy"
        }

    for router in (
        auth.router,
        examiners.router,
        cases.router,
        victims.router,
        evidence.router,
        reports.router,
        laudos.router,
        dashboard.router,
        dashboard.audit_router,
    ):
        app.include_router(router)

    return app


app = create_app()
