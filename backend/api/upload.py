"""
ClauseLens Upload API
=====================
Handles document upload, validation, and storage.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Annotated

import aiofiles
from fastapi import APIRouter, File, HTTPException, UploadFile, status

from core.config import SUPPORTED_CONTENT_TYPES, get_settings
from schemas import AnalysisStatusEnum, ErrorResponse, UploadResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/upload", tags=["Upload"])
settings = get_settings()

# In-memory document store (replace with database in production)
# Stores document metadata, extracted text and analysis results
DOCUMENT_STORE: dict[str, dict] = {}


def generate_document_id() -> str:
    """Generate a unique document ID."""
    unique_id = uuid.uuid4().hex[:12]
    return f"doc-{unique_id}"


def new_document_record(
    document_id: str,
    filename: str,
    content_type: str,
    file_path: Path | None = None,
    file_size_bytes: int = 0,
    text: str | None = None
) -> dict:
    """Create and register a store entry for a new document."""
    record = {
        "document_id": document_id,
        "filename": filename,
        "content_type": content_type,
        "file_path": str(file_path) if file_path else None,
        "file_size_bytes": file_size_bytes,
        "upload_timestamp": datetime.utcnow(),
        "status": AnalysisStatusEnum.PENDING,
        "analysis_started_at": None,
        "analysis_completed_at": None,
        "text": text,
        "analysis": None,
        "error_message": None
    }
    DOCUMENT_STORE[document_id] = record
    return record


def validate_file(file: UploadFile) -> str:
    """
    Validate uploaded file.

    Checks:
    - File type is PDF or plain text
    - Filename extension matches the type

    Returns:
        The file suffix to store the document under

    Raises:
        HTTPException: If validation fails
    """
    suffix = SUPPORTED_CONTENT_TYPES.get(file.content_type or "")
    if suffix is None:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail={
                "error": "UnsupportedMediaType",
                "message": "Only PDF and plain text files are accepted.",
                "details": {
                    "received_type": file.content_type,
                    "accepted_types": list(SUPPORTED_CONTENT_TYPES)
                }
            }
        )

    if not file.filename or not file.filename.lower().endswith(suffix):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "InvalidFilename",
                "message": f"File must have a {suffix} extension.",
                "details": {"filename": file.filename}
            }
        )

    return suffix


async def save_file(file: UploadFile, document_id: str, suffix: str) -> tuple[Path, int]:
    """
    Save uploaded file to disk.

    Args:
        file: Uploaded file
        document_id: Unique document identifier
        suffix: Extension matching the content type

    Returns:
        Tuple of (file_path, file_size_bytes)
    """
    upload_dir = settings.upload_dir
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_path = upload_dir / f"{document_id}{suffix}"

    # Stream file to disk
    file_size = 0
    async with aiofiles.open(file_path, 'wb') as out_file:
        while chunk := await file.read(1024 * 1024):  # 1MB chunks
            file_size += len(chunk)

            if file_size > settings.max_file_size_bytes:
                file_path.unlink(missing_ok=True)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail={
                        "error": "FileTooLarge",
                        "message": f"File exceeds maximum size of {settings.max_file_size_mb}MB.",
                        "details": {
                            "max_size_mb": settings.max_file_size_mb,
                            "received_bytes": file_size
                        }
                    }
                )

            await out_file.write(chunk)

    if file_size == 0:
        file_path.unlink(missing_ok=True)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "EmptyFile",
                "message": "Uploaded file is empty.",
                "details": {"filename": file.filename}
            }
        )

    return file_path, file_size


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        413: {"model": ErrorResponse, "description": "File too large"},
        415: {"model": ErrorResponse, "description": "Unsupported file type"},
        400: {"model": ErrorResponse, "description": "Invalid request"}
    },
    summary="Upload a legal document",
    description="""
    Upload a PDF or plain text legal document for analysis.

    The document will be validated and stored. Once uploaded, use the
    returned `document_id` to run analysis via the `/analyze/{document_id}` endpoint.

    **Accepted file types:** PDF, plain text
    """
)
async def upload_document(
    file: Annotated[UploadFile, File(description="PDF or text document to upload")]
) -> UploadResponse:
    """
    Upload a legal document for analysis.

    Returns a document_id that can be used for subsequent analysis.
    """
    logger.info(f"Received upload request: {file.filename}")

    suffix = validate_file(file)
    document_id = generate_document_id()
    file_path, file_size = await save_file(file, document_id, suffix)

    record = new_document_record(
        document_id,
        filename=file.filename or f"unknown{suffix}",
        content_type=file.content_type or "",
        file_path=file_path,
        file_size_bytes=file_size
    )

    logger.info(f"Document uploaded: {document_id} ({file_size} bytes)")

    return UploadResponse(
        document_id=document_id,
        filename=record["filename"],
        content_type=record["content_type"],
        file_size_bytes=file_size,
        upload_timestamp=record["upload_timestamp"],
        status=AnalysisStatusEnum.PENDING,
        message="Document uploaded successfully. Ready for analysis."
    )


@router.get(
    "/{document_id}",
    responses={
        404: {"model": ErrorResponse, "description": "Document not found"}
    },
    summary="Get upload status",
    description="Check the status of an uploaded document."
)
async def get_upload_status(document_id: str):
    """Get the status of an uploaded document."""
    doc = get_document_or_404(document_id)
    return {
        "document_id": doc["document_id"],
        "filename": doc["filename"],
        "content_type": doc["content_type"],
        "status": doc["status"],
        "upload_timestamp": doc["upload_timestamp"],
        "file_size_bytes": doc["file_size_bytes"]
    }


def get_document_store() -> dict:
    """Get the document store (for use by other modules)."""
    return DOCUMENT_STORE


def get_document_or_404(document_id: str) -> dict:
    """Look up a document record or raise a 404."""
    if document_id not in DOCUMENT_STORE:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "DocumentNotFound",
                "message": f"Document with ID '{document_id}' not found.",
                "details": {"document_id": document_id}
            }
        )
    return DOCUMENT_STORE[document_id]
