"""FastAPI application entrypoint.

Configures CORS, includes routers, maps access-control errors to JSON
responses and exposes a healthcheck endpoint.
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from .access.errors import AccessControlError  # noqa: E402
from .deps import get_settings  # noqa: E402
from .routers import auth as auth_router  # noqa: E402
from .routers import goals as goals_router  # noqa: E402
from .routers import invites as invites_router  # noqa: E402
from .routers import notifications as notifications_router  # noqa: E402
from .routers import projects as projects_router  # noqa: E402
from .routers import workspaces as workspaces_router  # noqa: E402
from . import schemas  # noqa: E402

# Import models so Alembic can discover metadata
from . import models  # noqa: E402,F401


def _allowed_origins() -> list:
    # BACKEND_CORS_ORIGINS can be a comma-separated list
    cors_origins_str = os.getenv("BACKEND_CORS_ORIGINS") or get_settings().BACKEND_CORS_ORIGINS
    origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
    if "http://localhost:3000" not in origins:
        origins.append("http://localhost:3000")
    return origins


def create_app() -> FastAPI:
    app = FastAPI(
        title="workhub API",
        description="""
        workhub is a multi-tenant project-management backend.

        ## Access model

        - **Workspaces** have exactly one owner plus admins and members.
        - **Projects** are `public` (any workspace member may open them) or
          `invite-only` (direct project role, or workspace owner/admin).
        - **Invites** bring existing users into a workspace and, optionally,
          into selected projects. They expire 24 hours after creation.

        ## Authentication

        JWT in an HTTP-only `access_token` cookie ("Bearer <jwt>"), or the
        same value in the `Authorization` header.
        """,
        version="1.0.0",
    )

    # Trust X-Forwarded-Proto so request.url.scheme is correct behind a proxy
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    allowed_origins = _allowed_origins()
    logger.info(f"[CORS] Allowed origins: {allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AccessControlError)
    async def access_control_error_handler(request: Request, exc: AccessControlError):
        if exc.status_code >= 500:
            logger.error("[ACCESS] %s %s -> %s", request.method, request.url.path, exc.message)
        else:
            logger.info("[ACCESS] %s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_user_message()})

    app.include_router(auth_router.router)
    app.include_router(workspaces_router.router)
    app.include_router(projects_router.router)
    app.include_router(invites_router.router)
    app.include_router(goals_router.router)
    app.include_router(goals_router.portfolios_router)
    app.include_router(notifications_router.router)

    @app.get(
        "/health",
        response_model=schemas.HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="Does not require authentication. Used for load balancer health checks.",
    )
    def health():
        return schemas.HealthResponse(status="ok")

    return app


app = create_app()
