"""FastAPI application for the swapper.

Errors are returned as {"error": message}. Rate limiting and TLS belong to
the reverse proxy in front of the service.
"""

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from swapper import __version__
from swapper.api.endpoints import router
from swapper.config import Settings, load_settings
from swapper.errors import (
    ConfigurationError,
    NoLiquidityAvailable,
    RemoteCallError,
    ValidationError,
)
from swapper.log import configure_logging

logger = structlog.get_logger()

# Maximum request body size (64 KB)
MAX_REQUEST_SIZE = 64 * 1024


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Explicit configuration. If None, it is loaded from the
            environment on the first request.
    """
    app = FastAPI(
        title="UniswapV3 Swapper",
        description="Quote and execute UniswapV3 single-hop swaps",
        version=__version__,
    )
    app.state.settings = settings
    app.state.registry = None

    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Reject requests with body larger than MAX_REQUEST_SIZE."""
        content_length = request.headers.get("content-length")
        if content_length and not content_length.isdigit():
            return _error(400, "Invalid Content-Length header")
        if content_length and int(content_length) > MAX_REQUEST_SIZE:
            return _error(413, "Request too large")
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
            for err in exc.errors()
        )
        return _error(400, f"Invalid request body: {problems}")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(ValidationError)
    async def handle_validation_error(_request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("request_rejected", error=str(exc))
        return _error(400, str(exc))

    @app.exception_handler(NoLiquidityAvailable)
    async def handle_no_liquidity(_request: Request, exc: NoLiquidityAvailable) -> JSONResponse:
        return _error(500, str(exc))

    @app.exception_handler(RemoteCallError)
    async def handle_remote_error(_request: Request, exc: RemoteCallError) -> JSONResponse:
        logger.error("remote_call_error", operation=exc.operation, error=exc.detail)
        return _error(502, str(exc))

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(_request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("configuration_error", error=str(exc))
        return _error(500, str(exc))

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


def run(settings: Settings | None = None) -> None:
    """Run the API server.

    Configuration is validated before the server starts, so a missing
    RPC_URL fails immediately rather than on the first request.
    """
    settings = settings or load_settings()
    configure_logging(settings.debug)

    app.state.settings = settings
    logger.info("starting_server", host=settings.host, port=settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
