"""
ClauseLens - Legal Document Clause Analysis
===========================================
Main FastAPI application entry point.

This application provides:
- PDF and plain text document upload
- OCR and text extraction
- Rule-based clause segmentation, classification and risk scoring
- Financial, date, notice-period and penalty extraction
- Optional generative summaries, questions and question answering

Version: 1.0.0
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import analyze_router, documents_router, upload_router
from core.config import get_settings
from schemas import HealthCheckResponse

# === Configuration ===
settings = get_settings()
API_VERSION = "1.0.0"


# === Logging Setup ===
def setup_logging():
    """Configure structured logging."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


setup_logging()
logger = structlog.get_logger(__name__)


# === Lifespan Management ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan management.

    Startup:
    - Report generative service configuration
    - Create upload directory
    """
    logger.info("Starting ClauseLens API", version=API_VERSION)

    if settings.generative_available:
        logger.info("Generative service configured", model=settings.llm_model)
    else:
        logger.warning(
            "Generative service not configured, using local summaries and questions",
            generative_enabled=settings.generative_enabled
        )

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory ready", path=str(settings.upload_dir))

    yield

    logger.info("Shutting down ClauseLens API")


# === Application Setup ===
app = FastAPI(
    title="ClauseLens API",
    description="""
    ## Legal Document Clause Analysis

    ClauseLens turns legal documents into structured, explainable results:

    - **Accepts** PDF (scanned or native) and plain text documents
    - **Segments** the text into at most 10 clauses
    - **Classifies** each clause into one of 16 types with a confidence score
    - **Scores** each clause's risk on a 1-5 scale with an explanation
    - **Extracts** amounts, dates, notice periods and penalties
    - **Summarizes** the document and suggests questions to ask

    ### API Flow

    1. `POST /upload` - Upload a document (or `POST /analyze/text` with raw text)
    2. `POST /analyze/{document_id}` - Analyze the document
    3. `GET /documents/{document_id}/clauses|terms|summary` - Retrieve results
    4. `POST /documents/{document_id}/ask` - Ask a question about the document
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)


# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:3001",
        "*",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Exception Handlers ===
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred. Please try again.",
            "details": {"path": request.url.path} if settings.debug else None
        }
    )


# === Health Check ===
@app.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check",
    description="Check if the API is running and how its services are configured."
)
async def health_check() -> HealthCheckResponse:
    """
    Health check endpoint.

    Returns the status of the API and dependent services.
    """
    services = {
        "api": "healthy",
        "ocr": "healthy",
        "llm": "configured" if settings.generative_available else "not_configured"
    }

    return HealthCheckResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=datetime.utcnow(),
        services=services
    )


@app.get(
    "/",
    tags=["Health"],
    summary="Root endpoint",
    description="Welcome message and API information."
)
async def root():
    """Root endpoint with welcome message."""
    return {
        "name": "ClauseLens API",
        "version": API_VERSION,
        "description": "Legal Document Clause Analysis",
        "docs": "/docs",
        "health": "/health"
    }


# === Register Routers ===
app.include_router(upload_router)
app.include_router(analyze_router)
app.include_router(documents_router)


# === Main Entry Point ===
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
