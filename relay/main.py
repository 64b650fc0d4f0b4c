"""Entry point for the relay service."""

import time
import uuid
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from common.exceptions import (
    TransferException,
    InvalidRequestError,
    InputReadError,
    StorageError,
    ManifestFetchError,
    ManifestFormatError,
    ChunkDownloadError,
    ArtifactNotFoundError,
)
from relay.config import RelaySettings, load_settings
from relay.routes.transfer_routes import router as transfer_router

logger = setup_logging('relay')


def _error_response(request: Request, exc: Exception, status_code: int, code: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    if status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=exc
        )
    else:
        logger.warning(
            f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code}
    )


async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST")


async def artifact_not_found_handler(request: Request, exc: ArtifactNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "ARTIFACT_NOT_FOUND")


async def input_read_handler(request: Request, exc: InputReadError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INPUT_READ_ERROR")


async def storage_error_handler(request: Request, exc: StorageError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "STORAGE_ERROR")


async def manifest_fetch_handler(request: Request, exc: ManifestFetchError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "MANIFEST_FETCH_ERROR")


async def manifest_format_handler(request: Request, exc: ManifestFormatError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "MANIFEST_FORMAT_ERROR")


async def chunk_download_handler(request: Request, exc: ChunkDownloadError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "CHUNK_DOWNLOAD_ERROR")


async def transfer_exception_handler(request: Request, exc: TransferException):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")


EXCEPTION_HANDLERS = {
    InvalidRequestError: invalid_request_handler,
    ArtifactNotFoundError: artifact_not_found_handler,
    InputReadError: input_read_handler,
    StorageError: storage_error_handler,
    ManifestFetchError: manifest_fetch_handler,
    ManifestFormatError: manifest_format_handler,
    ChunkDownloadError: chunk_download_handler,
    TransferException: transfer_exception_handler,
}


def create_app(
    settings: Optional[RelaySettings] = None,
    http_client: Optional[httpx.Client] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Process-wide settings; loaded from the environment if omitted
        http_client: Shared client for fetching remote manifests and chunks;
            each download creates its own client if omitted
    """
    settings = settings or load_settings()

    app = FastAPI(
        title="ChunkRelay",
        description="Content-chunked file transfer relay",
        version="1.0.0"
    )
    app.state.settings = settings
    app.state.http_client = http_client

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"Relay starting up: storage_root={settings.storage_root} "
            f"download_dir={settings.download_dir} chunk_size={settings.chunk_size}"
        )

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    app.include_router(transfer_router)

    @app.get("/")
    async def root():
        """
        Health check endpoint.
        """
        return {
            "status": "running",
            "service": "ChunkRelay",
            "version": "1.0.0",
            "chunk_size": settings.chunk_size,
        }

    return app


app = create_app()


def main() -> None:
    """Bootstrap relay service."""
    settings = app.state.settings
    logger.info(f"Starting relay on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
