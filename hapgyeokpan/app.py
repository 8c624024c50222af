"""
FastAPI application entry point for the community API.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hapgyeokpan.config import get_settings
from hapgyeokpan.errors import (
    INVALID_REQUEST_MESSAGE,
    SERVER_ERROR_MESSAGE,
    ApiError,
    AuthError,
    StoreError,
)
from hapgyeokpan.routes import api_router, health

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, extra: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **(extra or {})})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError):
        return _error_response(exc.status_code, str(exc.detail), exc.extra)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
        return _error_response(400, INVALID_REQUEST_MESSAGE)

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.warning("Store error on %s: %s", request.url.path, exc.message)
        return _error_response(400, exc.message)

    @app.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError):
        logger.info("Auth provider error on %s: %s", request.url.path, exc.message)
        return _error_response(400, exc.message)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _error_response(500, SERVER_ERROR_MESSAGE)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Hapgyeokpan Community API", version="0.1.0")
    register_exception_handlers(app)
    app.include_router(health.router)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "hapgyeokpan.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
