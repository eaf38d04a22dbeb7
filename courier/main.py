"""Entry point for the Courier service."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from courier import messages
from courier.cleanup_task import PublicationReaper
from courier.config import (
    COURIER_HOST,
    COURIER_PORT,
    COURIER_REAPER_INTERVAL_SECONDS,
    CourierSettings,
    load_settings,
)
from courier.exceptions import (
    BackupNotFoundError,
    CooldownActiveError,
    CourierError,
    EmptyBackupError,
    InvalidTokenError,
    PublishError,
    SourceVanishedError,
    TokenSpaceExhaustedError,
    TransportError,
)
from courier.rate_limiter import RateLimiter
from courier.routes.backup_routes import router as backup_router
from courier.routes.publication_routes import router as publication_router
from courier.services.delivery_service import DeliveryService
from courier.transport import ChunkTransport, WebhookChunkTransport

logger = setup_logging('courier')


def create_app(
    settings: Optional[CourierSettings] = None,
    transport: Optional[ChunkTransport] = None,
) -> FastAPI:
    """
    Build the Courier application.

    Args:
        settings: Resolved settings (loaded from the environment when omitted)
        transport: Chat transport for chunked delivery (built from the
            webhook URL in settings when omitted)

    Returns:
        Configured FastAPI app
    """
    if settings is None:
        settings = load_settings()
    if transport is None and settings.chat_webhook_url:
        transport = WebhookChunkTransport(settings.chat_webhook_url)

    reaper = None
    if settings.publication_max_age is not None:
        reaper = PublicationReaper(
            publish_root=settings.publish_root,
            max_age=settings.publication_max_age,
            interval_seconds=COURIER_REAPER_INTERVAL_SECONDS,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Courier service starting up...")
        logger.info(
            f"Backup folder: {settings.backup_folder}, publish root: {settings.publish_root}, "
            f"chat transport: {'configured' if transport else 'none'}"
        )
        if reaper:
            await reaper.start()
        yield
        logger.info("Courier service shutting down...")
        if reaper:
            await reaper.stop()
        if transport:
            transport.close()

    app = FastAPI(
        title="Backup Courier",
        description="Publishes backup archives as token links or chunked chat uploads",
        version="1.0.0",
        lifespan=lifespan,
    )

    rate_limiter = RateLimiter(
        user_cooldown=settings.user_cooldown,
        global_cooldown=settings.global_cooldown,
    )
    app.state.delivery_service = DeliveryService(settings, rate_limiter)
    app.state.chunk_transport = transport

    app.include_router(backup_router)
    app.include_router(publication_router)
    app.middleware("http")(log_requests)
    _register_exception_handlers(app)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "running", "service": "courier"}

    return app


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


def _error_response(request: Request, exc: CourierError, status_code: int, code: str, headers=None, extra=None) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    if status_code >= 500:
        logger.error(f"{code}: {exc} [request_id={request_id}] path={request.url.path}", exc_info=exc)
    else:
        logger.warning(f"{code}: {exc} [request_id={request_id}] path={request.url.path}")
    content = {"detail": messages.message_for_error(exc), "code": code}
    if extra:
        content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
    )


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(BackupNotFoundError)
    async def backup_not_found_handler(request: Request, exc: BackupNotFoundError):
        return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "BACKUP_NOT_FOUND")

    @app.exception_handler(CooldownActiveError)
    async def cooldown_active_handler(request: Request, exc: CooldownActiveError):
        retry_after = max(int(exc.retry_after.total_seconds()), 1)
        return _error_response(
            request, exc, status.HTTP_429_TOO_MANY_REQUESTS, "COOLDOWN_ACTIVE",
            headers={"Retry-After": str(retry_after)},
            extra={"reason": exc.reason, "retry_after_seconds": retry_after},
        )

    @app.exception_handler(EmptyBackupError)
    async def empty_backup_handler(request: Request, exc: EmptyBackupError):
        return _error_response(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY, "EMPTY_BACKUP")

    @app.exception_handler(SourceVanishedError)
    async def source_vanished_handler(request: Request, exc: SourceVanishedError):
        return _error_response(request, exc, status.HTTP_409_CONFLICT, "SOURCE_CHANGED")

    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(request: Request, exc: InvalidTokenError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_TOKEN")

    @app.exception_handler(TransportError)
    async def transport_error_handler(request: Request, exc: TransportError):
        return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "TRANSPORT_FAILED")

    @app.exception_handler(TokenSpaceExhaustedError)
    async def token_space_exhausted_handler(request: Request, exc: TokenSpaceExhaustedError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "TOKEN_SPACE_EXHAUSTED")

    @app.exception_handler(PublishError)
    async def publish_error_handler(request: Request, exc: PublishError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "PUBLISH_FAILED")

    @app.exception_handler(CourierError)
    async def courier_error_handler(request: Request, exc: CourierError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "COURIER_ERROR")


app = create_app()


def main() -> None:
    """Run the service with uvicorn."""
    uvicorn.run(app, host=COURIER_HOST, port=COURIER_PORT)


if __name__ == "__main__":
    main()
