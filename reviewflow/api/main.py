import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reviewflow import __version__
from reviewflow.api.middleware.logging import RequestLoggingMiddleware
from reviewflow.api.routers import field_comments, health, reviews
from reviewflow.api.schemas.common import ErrorResponse
from reviewflow.core.config import get_settings
from reviewflow.core.logger import setup_logger
from reviewflow.core.review.errors import (
    DocumentStoreError,
    PublishBlockedError,
    ReviewWorkflowError,
)

settings = get_settings()

setup_logger(
    "reviewflow",
    log_dir=settings.log_dir,
    level=settings.log_level,
    file_logging=settings.log_to_file,
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Review and publish gating for localized documents",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(ReviewWorkflowError)
async def review_workflow_error_handler(request: Request, exc: ReviewWorkflowError):
    logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    body = ErrorResponse(error=exc.code, detail=exc.message)
    if isinstance(exc, PublishBlockedError):
        body.verdict = exc.verdict.value
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(DocumentStoreError)
async def document_store_error_handler(request: Request, exc: DocumentStoreError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = ErrorResponse(error=exc.code, detail=str(exc))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


# Include routers
app.include_router(health.router)
app.include_router(reviews.router, prefix="/api")
app.include_router(field_comments.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
