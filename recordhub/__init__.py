"""
RecordHub application package
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import HTTPException

from recordhub.config import Config, get_service
from recordhub.errors import RecordHubError, ValidationError
from recordhub.models import ErrorResponse
from recordhub.routes.root import router as root_router
from recordhub.routes.api import router as api_router
from recordhub.service import RecordService

logger = logging.getLogger(__name__)


def create_app(service: Optional[RecordService] = None) -> FastAPI:
    """Create and configure FastAPI application"""

    # Initialize FastAPI app
    app = FastAPI(
        title=Config.TITLE,
        description=Config.DESCRIPTION,
        version=Config.VERSION,
        docs_url=Config.DOCS_URL,
        redoc_url=Config.REDOC_URL
    )
    app.state.service = service or get_service()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.ALLOW_ORIGINS,
        allow_credentials=Config.ALLOW_CREDENTIALS,
        allow_methods=Config.ALLOW_METHODS,
        allow_headers=Config.ALLOW_HEADERS,
    )

    # Include routers
    app.include_router(root_router)
    app.include_router(api_router)

    # Exception handlers
    @app.exception_handler(RecordHubError)
    async def record_error_handler(request, exc: RecordHubError):
        """Domain errors become the error envelope"""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        field_errors = exc.field_errors if isinstance(exc, ValidationError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=exc.message,
                field_errors=field_errors or None,
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """Custom HTTP exception handler"""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                message=str(exc.detail)
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                message="Invalid request format."
            ).model_dump(exclude_none=True)
        )

    return app
