"""FastAPI application factory.

Creates and configures the FastAPI application with all routes and middleware.

## Usage

```python
from athlete_sessions.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5174)
```

## Configuration

The app is configured via environment variables. See `athlete_sessions.config`
for available settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from athlete_sessions.config import Settings, get_settings
from athlete_sessions.context import AppContext
from athlete_sessions.errors import (
    ClientInputError,
    LoginFailed,
    StoreInvariantViolation,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClientInputError)
    async def client_input_error(request: Request, exc: ClientInputError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(LoginFailed)
    async def login_failed(request: Request, exc: LoginFailed) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, "Login failed")

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable) -> JSONResponse:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Service unavailable")

    @app.exception_handler(StoreInvariantViolation)
    async def store_invariant_violation(
        request: Request, exc: StoreInvariantViolation
    ) -> JSONResponse:
        logger.exception("Store invariant violated", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(
    settings: Settings | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (or loaded from the environment)
        context: Prebuilt application context (built at startup by default)

    Returns:
        Configured FastAPI application
    """
    settings = settings or (context.settings if context else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the application context on startup, dispose it on shutdown."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")

        app.state.context = context or AppContext.create(settings)
        if settings.database_create_tables:
            await app.state.context.database.create_tables()

        yield

        logger.info("Shutting down")
        await app.state.context.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Strava login and server-side sessions",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware; credentials are required for the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    from athlete_sessions.api.routes import auth, health

    app.include_router(health.router, prefix=settings.api_prefix, tags=["Health"])
    app.include_router(auth.router, prefix=settings.api_prefix, tags=["Authentication"])

    return app
