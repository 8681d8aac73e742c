"""
ClauseLens API Module
=====================
FastAPI routers for the ClauseLens API.
"""

from api.analyze import router as analyze_router
from api.documents import router as documents_router
from api.upload import router as upload_router

__all__ = ["upload_router", "analyze_router", "documents_router"]
