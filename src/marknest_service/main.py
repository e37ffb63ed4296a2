"""Main FastAPI application for the Marknest document service."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config.settings import get_settings
from .infrastructure.database.client import DatabaseClient
from .core.errors import MarknestError
from .core.user_manager import UserManager
from .core.version_manager import VersionManager
from .core.document_manager import DocumentManager
from .core.folder_manager import FolderManager
from .core.tag_manager import TagManager
from .core.task_lock import TaskLock
from .core.trash_sweeper import DOCUMENTS_LOCK, TrashSweeper
from .scheduler import CleanupScheduler
from .api import dependencies
from .api.routes import documents, versions, folders, tags
from .models.requests import ErrorResponse, HealthResponse

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global instances
db_client: DatabaseClient = None
cleanup_scheduler: CleanupScheduler = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    global db_client, cleanup_scheduler

    settings = get_settings()
    logger.info(f"Starting {settings.service_name} v{__version__}")

    logger.info("Initializing database...")
    db_client = DatabaseClient(settings.database_url, echo=settings.database_echo)
    await db_client.initialize()

    versioning = settings.versioning()
    retention = settings.retention()
    version_mgr = VersionManager(db_client, versioning)
    doc_mgr = DocumentManager(db_client, version_mgr, versioning, retention)
    folder_mgr = FolderManager(db_client)

    # Set managers in route modules
    dependencies.set_user_manager(UserManager(db_client))
    documents.set_managers(doc_mgr)
    versions.set_managers(version_mgr)
    folders.set_managers(folder_mgr)
    tags.set_managers(TagManager(db_client))

    if settings.scheduler_enabled:
        sweeper = TrashSweeper(db_client, retention, settings.task_lock_expiry_minutes)
        cleanup_scheduler = CleanupScheduler(sweeper, settings)
        cleanup_scheduler.start()

    logger.info(f"{settings.service_name} is ready")

    yield

    # Cleanup
    logger.info("Shutting down...")
    if cleanup_scheduler is not None:
        cleanup_scheduler.shutdown()
        cleanup_scheduler = None
    await db_client.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Marknest Document Service",
    description="Markdown documents with version history, folders and trash retention",
    version=__version__,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarknestError)
async def marknest_error_handler(request: Request, exc: MarknestError):
    """Map domain errors to their HTTP status with a message/errors body."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = ErrorResponse(message=exc.message, errors=getattr(exc, "errors", None) or {})
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Reshape pydantic errors into field -> messages."""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        field = ".".join(loc) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    body = ErrorResponse(message="The given data was invalid.", errors=errors)
    return JSONResponse(status_code=422, content=body.model_dump())


# Include routers
app.include_router(documents.router)
app.include_router(versions.router)
app.include_router(folders.router)
app.include_router(tags.router)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    settings = get_settings()

    db_connected = False
    cleanup_in_progress = None
    if db_client is not None:
        try:
            await db_client.verify_connection()
            db_connected = True
            cleanup_in_progress = await TaskLock(db_client, DOCUMENTS_LOCK).is_held()
        except Exception as e:
            logger.warning(f"Health check could not reach the database: {e}")

    return HealthResponse(
        status="healthy" if db_connected else "degraded",
        service=settings.service_name,
        version=__version__,
        database_connected=db_connected,
        scheduler_running=cleanup_scheduler.running if cleanup_scheduler is not None else None,
        cleanup_in_progress=cleanup_in_progress,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "marknest-document-service",
        "version": __version__,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "marknest_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
