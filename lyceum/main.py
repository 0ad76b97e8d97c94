"""
Lyceum Learning Graph

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lyceum.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from lyceum.api.v1 import router as api_v1_router
from lyceum.config import get_settings
from lyceum.database import close_db, init_db
from lyceum.kernel.errors import LyceumError, StorageError
from lyceum.logging_config import configure_logging, get_logger
from lyceum.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Configure logging, create tables on startup; dispose the engine on shutdown."""
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Lyceum Learning Graph

    Prerequisite graph engine for lectures and philosophical concepts.

    ## Features

    - **Prerequisites**: Add edges between lectures with cycle rejection
    - **Readiness**: 70/30 weighted score over required and recommended prerequisites
    - **Availability**: LOCKED / AVAILABLE / IN_PROGRESS / COMPLETED per learner, with suggestions
    - **Learning paths**: Ordered study path to any concept
    - **Workflow**: Fixed lecture workflow from LOCKED to MASTERED
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
]

app.add_middleware(RequestIdMiddleware)
# Added last so it is outermost and error responses carry CORS headers too
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _headers(request: Request) -> dict:
    req_id = getattr(request.state, "request_id", None)
    return {REQUEST_ID_HEADER: req_id} if req_id else {}


@app.exception_handler(LyceumError)
async def lyceum_exception_handler(request: Request, exc: LyceumError):
    """Map domain errors to JSON bodies; storage failures stay opaque."""
    req_id = getattr(request.state, "request_id", None)
    if isinstance(exc, StorageError):
        content = {"detail": "Database operation failed", "code": exc.code}
    else:
        content = exc.to_dict()
    if req_id:
        content["request_id"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=_headers(request))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    req_id = getattr(request.state, "request_id", None)
    content = {"detail": exc.detail}
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=_headers(request))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })
    content = {"detail": "Validation error", "errors": errors}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        content["request_id"] = req_id
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
        headers=_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(status="ok", version=settings.version, database="connected")


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {"v1": settings.api_v1_prefix},
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lyceum.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
