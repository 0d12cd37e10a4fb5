from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from coursehub.app import App
from coursehub.errors import ResourceExhaustionError, UserError
from coursehub.web.error_handlers import (
    general_exception_handler,
    request_validation_handler,
    resource_exhaustion_handler,
    user_error_handler,
)
from coursehub.web.openapi import SESSION_COOKIE_NAME, set_custom_openapi
from coursehub.web.routers import auth_router, page_visits_router, presence_router, profile_router, users_router


def create_fastapi_app(app_instance: App) -> FastAPI:
    """Create and configure FastAPI application."""
    config = app_instance.config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="CourseHub API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )
    app.state.app = app_instance
    app.state.config = config

    # Signed cookie carrying the session token; the token itself is validated server-side
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret_key,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=config.session_ttl_seconds,
        same_site="lax",
        https_only=config.is_production,
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(auth_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")
    app.include_router(presence_router, prefix="/api")
    app.include_router(page_visits_router, prefix="/api")
    app.include_router(users_router, prefix="/api")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ResourceExhaustionError, resource_exhaustion_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
