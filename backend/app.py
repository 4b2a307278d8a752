"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from api.deps import SESSION_SCOPE
from api.v1 import api_router
from core import configure_logging, settings
from services.sessions import ScopeConfig, scope_registry

logger = logging.getLogger(__name__)


def register_default_scopes() -> None:
    """Register the ``user`` scope unless the host already configured it."""
    if scope_registry.is_registered(SESSION_SCOPE):
        return
    scope_registry.register(
        ScopeConfig(
            name=SESSION_SCOPE,
            params_token="perishable",
        )
    )


def create_app() -> FastAPI:
    configure_logging()
    register_default_scopes()

    app = FastAPI(title="Session Service")
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        same_site="lax",
        https_only=settings.app_env.strip().lower() not in {"local", "test"}
        and not settings.allow_insecure_http_cookies,
    )
    app.include_router(api_router, prefix="/api/v1")
    logger.info("Application created", extra={"app_env": settings.app_env})
    return app


app = create_app()
