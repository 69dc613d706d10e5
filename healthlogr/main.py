"""HealthLogr server entry point.

Serves the MCP tools over streamable HTTP next to a few plain JSON routes
(health check, API key registration and validation). Run with the
``healthlogr`` command or ``uvicorn --factory healthlogr.main:create_app``.

Environment Variables:
    PORT, HOST: Bind address (default: 0.0.0.0:8080)
    BASE_URL: Public URL used in the setup command returned on registration
    LOG_LEVEL: Root log level (default: INFO)
"""

import contextlib
import logging
import os
from typing import Optional

import uvicorn
from pydantic import BaseModel, ValidationError, field_validator
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from .shell.mcp_server import create_mcp, current_user_id
from .shell.services import HealthServices, build_services


logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = ["https://healthlogr.app", "http://localhost:5173"]


class Registration(BaseModel):
    email: str
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("Valid email is required")
        return value


def _services(request: Request) -> HealthServices:
    return request.app.state.services


def _setup_command(api_key: str) -> str:
    base_url = os.environ.get("BASE_URL", "http://localhost:8080")
    return (
        f"claude mcp add --transport http healthlogr {base_url}/mcp "
        f'--header "Authorization: Bearer {api_key}"'
    )


# ==================== Routes ====================


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "healthy", "service": "healthlogr-mcp"})


async def register_user(request: Request) -> JSONResponse:
    """Create an account and return its API key. The key is not retrievable later."""
    try:
        registration = Registration.model_validate(await request.json())
    except ValueError:
        # Covers malformed JSON as well as pydantic ValidationError
        return JSONResponse({"error": "Valid email is required"}, status_code=400)

    try:
        api_key, _ = _services(request).auth.register_user(registration.email, name=registration.name)
    except Exception:
        logger.exception("Registration failed")
        return JSONResponse({"error": "Registration failed."}, status_code=500)

    return JSONResponse({
        "api_key": api_key,
        "message": "Registration successful! Save your API key - it won't be shown again.",
        "claude_command": _setup_command(api_key),
    })


async def validate_key(request: Request) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        body = None
    api_key = body.get("api_key") if isinstance(body, dict) else None

    if not api_key:
        return JSONResponse({"valid": False, "error": "API key required"})

    try:
        user_id = _services(request).auth.validate_api_key(api_key)
    except Exception:
        logger.exception("Key validation failed")
        return JSONResponse({"valid": False, "error": "Validation failed"})

    return JSONResponse({"valid": user_id is not None})


class AuthMiddleware(BaseHTTPMiddleware):
    """Bind the caller's user_id for /mcp requests that carry a known bearer key.

    Requests without a valid key pass through unauthenticated; the tools
    refuse to run for them.
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/mcp"):
            scheme, _, api_key = request.headers.get("Authorization", "").partition(" ")
            if scheme == "Bearer" and api_key:
                user_id = _services(request).auth.validate_api_key(api_key)
                if user_id is not None:
                    current_user_id.set(user_id)
        return await call_next(request)


# ==================== App ====================


def create_app(services: HealthServices | None = None) -> Starlette:
    """Build the ASGI app around a HealthServices instance.

    Args:
        services: Collaborators to serve; built from the environment when
            omitted. Closed on shutdown.
    """
    services = services or build_services()
    mcp_app = create_mcp(services).streamable_http_app()

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        async with mcp_app.router.lifespan_context(app):
            try:
                yield
            finally:
                services.close()

    app = Starlette(
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Route("/auth/register", register_user, methods=["POST"]),
            Route("/auth/validate", validate_key, methods=["POST"]),
            # The MCP app serves /mcp itself
            Mount("/", app=mcp_app),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=ALLOWED_ORIGINS,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(AuthMiddleware),
        ],
        lifespan=lifespan,
    )
    app.state.services = services
    return app


def main() -> None:
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8080))
    logger.info("Starting HealthLogr on %s:%d", host, port)
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
