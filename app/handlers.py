"""Exception handlers that turn service errors into ``{"error": ...}`` responses."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import NotFoundError, ShortenerError, StoreError
from app.logger import get_logger

__all__ = ["register_exception_handlers"]

logger = get_logger("handlers")

_NOT_FOUND_MESSAGE = "Short URL not found"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info(f"Unknown short code for {request.method} {request.url.path}")
        return _error(status.HTTP_404_NOT_FOUND, _NOT_FOUND_MESSAGE)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(f"Database error for {request.method} {request.url.path}: {exc}", exc_info=exc)
        message = "Error generating short URL" if request.method == "POST" else "Error retrieving URL"
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    @app.exception_handler(ShortenerError)
    async def shortener_error_handler(request: Request, exc: ShortenerError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"Unhandled service error for {request.method} {request.url.path}: {exc}", exc_info=exc)
            return _error(exc.status_code, "Internal server error")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"Validation error for {request.method} {request.url.path}: {exc.errors()}")
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
