"""
Root and health routes for the recordhub application
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from recordhub.config import Config
from recordhub.resources import RESOURCE_KINDS

router = APIRouter()


@router.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to RecordHub",
        "version": Config.VERSION,
        "docs": Config.DOCS_URL,
        "endpoints": {
            "read": f"{Config.API_PATH}?action=getAccounts",
            "write": f"POST {Config.API_PATH}",
            "login": f"{Config.API_PATH}?action=login&accessCode=...&role=...",
        },
        "collections": {
            name: kind.read_action for name, kind in RESOURCE_KINDS.items()
        },
    }


@router.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint"""
    try:
        service = request.app.state.service
        return {
            "status": "healthy",
            "store": type(service.store).__name__,
            "message": "API is running"
        }
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e)
            }
        )
