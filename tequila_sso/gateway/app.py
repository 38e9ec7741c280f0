# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
FastAPI Demo Application

Shows how to Tequila-protect a page:

    /               public, shows who is logged in
    /private        protected by TequilaMiddleware
    /logout         drop the local session only
    /globallogout   drop the local session and log out of Tequila

Sessions are kept in a signed cookie (Starlette SessionMiddleware). There is
no user database, so the complete Tequila profile is stored in the session.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from ..auth.protocol import TequilaClient
from ..core.settings import Settings, get_settings
from ..observability import configure_logging
from .request_context import RequestContextMiddleware
from .routes import router
from .strategy import TequilaMiddleware, TequilaStrategy

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    client: TequilaClient | None = None,
    protected_paths: list[str] | None = None,
    setup_logging: bool = True,
) -> FastAPI:
    """
    Build the demo application.

    Args:
        settings: Application settings; loaded from the environment if omitted
        client: Protocol client override (tests)
        protected_paths: Path prefixes requiring a Tequila login
        setup_logging: Configure the root logger from settings

    Raises:
        ConfigurationError: If the Tequila service name is missing
    """
    settings = settings or get_settings()

    if setup_logging:
        configure_logging(
            level=settings.observability.level,
            format=settings.observability.format,
        )

    client = client or TequilaClient(settings.tequila)
    strategy = TequilaStrategy(client, settings.tequila)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            f"Tequila service '{settings.tequila.service}' using {settings.tequila.base_url}"
        )
        yield
        await client.aclose()
        logger.info("Tequila client closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.tequila = strategy

    app.include_router(router)
    app.add_route("/logout", strategy.local_logout("/"), methods=["GET"])
    app.add_route("/globallogout", strategy.global_logout("/"), methods=["GET"])

    # Added first = innermost: the session must exist before the gate runs
    app.add_middleware(
        TequilaMiddleware,
        strategy=strategy,
        protected_paths=protected_paths if protected_paths is not None else ["/private"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session.secret_key,
        session_cookie=settings.session.cookie_name,
        max_age=settings.session.max_age,
        https_only=settings.session.https_only,
    )
    app.add_middleware(RequestContextMiddleware)

    return app
