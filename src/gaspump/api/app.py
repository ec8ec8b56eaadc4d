"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from gaspump.config import get_settings
from gaspump.errors import ConfigurationError, RemoteServiceError, UnknownChain
from gaspump.ledger.database import close_db, init_db
from gaspump.utils.locks import LockTimeoutError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    await init_db()
    yield
    await close_db()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def register_error_handlers(app: FastAPI) -> None:
    """Map service errors to {ok: false, error} responses."""

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError):
        return _error(400, str(exc))

    @app.exception_handler(UnknownChain)
    async def unknown_chain(request: Request, exc: UnknownChain):
        return _error(400, str(exc))

    @app.exception_handler(ValueError)
    async def bad_value(request: Request, exc: ValueError):
        return _error(400, str(exc))

    @app.exception_handler(RemoteServiceError)
    async def remote_error(request: Request, exc: RemoteServiceError):
        logger.error(f"Remote service error on {request.url.path}: {exc}")
        return _error(502, str(exc))

    @app.exception_handler(LockTimeoutError)
    async def busy(request: Request, exc: LockTimeoutError):
        return _error(409, str(exc))

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return _error(500, "Internal server error")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="gaspump API",
        description="Custodial deposit address provisioning and sweeping",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    register_error_handlers(app)

    from gaspump.api.routes import health, sweep, wallets

    app.include_router(health.router, tags=["Health"])
    app.include_router(wallets.router, tags=["Wallets"])
    app.include_router(sweep.router, tags=["Sweep"])

    return app
