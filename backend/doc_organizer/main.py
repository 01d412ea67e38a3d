import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from doc_organizer.config import Settings, settings as default_settings
from doc_organizer.database import Database
from doc_organizer.errors import DocumentOrganizerError, PersistenceError, ValidationError
from doc_organizer.routers import documents
from doc_organizer.utils.filesystem import CategoryFileStore

logger = logging.getLogger("doc_organizer")


def _envelope(status_code: int, error: str, details: list | None = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def _domain_error_handler(request: Request, exc: DocumentOrganizerError):
    if isinstance(exc, ValidationError):
        return _envelope(exc.status_code, exc.message, exc.details)
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc, exc_info=exc)
    if isinstance(exc, PersistenceError) and exc.cleanup_error is not None:
        return _envelope(exc.status_code, exc.message, exc.details)
    return _envelope(exc.status_code, exc.message)


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _envelope(400, "Validation error", details)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    error = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return _envelope(exc.status_code, error)


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error("%s on %s (500): %s", type(exc).__name__, request.url.path, exc, exc_info=exc)
    return _envelope(500, "Internal server error")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level.upper())
        database = Database(settings.db_path)
        database.init()
        file_store = CategoryFileStore(settings.storage_path)
        file_store.ensure_directories()

        app.state.database = database
        app.state.file_store = file_store
        logger.info("Document store ready at %s", settings.storage_path)
        yield
        database.dispose()

    app = FastAPI(
        title="Document Organizer",
        description="Personal document storage organized by category",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DocumentOrganizerError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(documents.router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health():
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
