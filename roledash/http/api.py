from __future__ import annotations

"""FastAPI application factory for the roledash backend.

Every module under :mod:`roledash.http.routes` exposes an ``APIRouter`` named
``router``; ``create_app`` imports each one and registers it, so new route
modules are picked up without touching this file.  Every route shares the
per-client request limit configured in ``server.rate_window_ms`` and
``server.rate_max``; ``/health`` is exempt.
"""

from importlib import import_module
import pkgutil

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

import structlog

from ..config import AppConfig, load_config
from .rate_limit import WindowRateLimiter, rate_limit


logger = structlog.get_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and whether it succeeds or fails."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        logger.info("request.start", method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
            logger.info(
                "request.success",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
            return response
        except Exception as exc:
            logger.exception(
                "request.failure",
                method=request.method,
                path=request.url.path,
                error=str(exc),
            )
            raise


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    config = config or load_config()
    app = FastAPI(title="roledash")
    app.state.config = config
    app.state.rate_limiter = WindowRateLimiter(
        config.server.rate_window_ms / 1000, config.server.rate_max
    )
    app.add_middleware(RequestLoggingMiddleware)
    if config.server.cors_allow_all or config.server.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if config.server.cors_allow_all else config.server.cors_origins,
            allow_credentials=not config.server.cors_allow_all,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    from . import routes as routes_pkg

    for _, module_name, _ in pkgutil.iter_modules(routes_pkg.__path__):
        module = import_module(f"{routes_pkg.__name__}.{module_name}")
        router = getattr(module, "router", None)
        if router is not None:
            app.include_router(router, dependencies=[Depends(rate_limit)])

    return app
