# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tequila Authentication Gate

Drives the handshake for each incoming request:

    session has a user   -> pass through, no network call
    no ?key= parameter   -> createrequest, redirect browser to Tequila
    ?key= parameter      -> fetchattributes, store user, redirect (or continue)

Usage:
    strategy = TequilaStrategy(TequilaClient(settings.tequila), settings.tequila)

    app.add_middleware(TequilaMiddleware, strategy=strategy, protected_paths=["/private"])
    app.add_middleware(SessionMiddleware, secret_key=...)   # must wrap TequilaMiddleware

    app.add_route("/globallogout", strategy.global_logout("/"))
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from tequila_core.exceptions.hierarchy import NetworkError, TequilaError
from tequila_core.security.sanitization import remove_param

from ..auth.protocol import TequilaClient
from ..auth.users import UserIdentity, attributes_to_user
from ..core.settings import TequilaSettings
from ..observability.logging import audit_logger, set_request_context

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "tequila_user"
KEY_PARAM = "key"

ErrorHandler = Callable[[Request, TequilaError], Response | Awaitable[Response]]


# ============================================================
# SESSION HELPERS
# ============================================================


def get_session_user(request: Request) -> UserIdentity | None:
    """The authenticated user of this browser session, if any."""
    data = request.session.get(SESSION_USER_KEY)
    if not data:
        return None
    try:
        return UserIdentity.from_session(data)
    except ValueError:
        # Written by an older, incompatible version: treat as logged out
        logger.warning("Discarding unreadable session user")
        request.session.pop(SESSION_USER_KEY, None)
        return None


def login(request: Request, user: UserIdentity) -> None:
    request.session[SESSION_USER_KEY] = user.to_session()
    request.state.user = user


def logout(request: Request) -> UserIdentity | None:
    """Drop the user from the session. Never fails."""
    user = get_session_user(request)
    request.session.pop(SESSION_USER_KEY, None)
    request.state.user = None
    return user


# ============================================================
# STRATEGY
# ============================================================


class TequilaStrategy:
    """
    Tequila authentication for Starlette/FastAPI applications.

    Exposes ``ensure_authenticated`` (the gate) and ``global_logout``
    (a route endpoint factory).
    """

    name = "tequila"

    def __init__(self, client: TequilaClient, settings: TequilaSettings | None = None):
        """
        Initialize strategy.

        Args:
            client: Protocol client for the identity server
            settings: Post-authentication behaviour; defaults to the client's
        """
        self.client = client
        self.settings = settings or client.settings

    async def ensure_authenticated(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Let authenticated requests through; run the handshake for the rest.

        Raises:
            TequilaError: If a handshake step fails. The session is left
                untouched and ``call_next`` is not called.
        """
        user = get_session_user(request)
        if user is not None:
            request.state.user = user
            set_request_context(user_id=user.id)
            return await call_next(request)

        logger.debug(f"Not authenticated at {request.url.path}")

        # An empty ?key= still counts: Tequila gets to reject it
        if KEY_PARAM in request.query_params:
            return await self._complete_handshake(request, call_next)

        return await self._start_handshake(request)

    async def _start_handshake(self, request: Request) -> Response:
        logger.debug("Making first contact with Tequila")
        key = await self.client.create_request(request)
        logger.debug("Redirecting user to Tequila")
        return self.client.request_auth(key)

    async def _complete_handshake(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        logger.debug("User is back from Tequila with a key")
        key = request.query_params[KEY_PARAM]

        try:
            attributes = await self.client.fetch_attributes(key)
            user = attributes_to_user(attributes)
        except TequilaError as e:
            audit_logger.login(None, success=False, details={"error": type(e).__name__})
            raise

        login(request, user)
        set_request_context(user_id=user.id)
        audit_logger.login(user.id, success=True)

        if self.settings.redirect_after_auth:
            return RedirectResponse(
                url=self.client.redirect_url(request, request.url.path), status_code=302
            )
        if self.settings.strip_key_param:
            target = self.client.redirect_url(request, self.client.original_url(request))
            return RedirectResponse(url=remove_param(KEY_PARAM, target), status_code=302)
        return await call_next(request)

    # --------------------------------------------------------
    # LOGOUT
    # --------------------------------------------------------

    def local_logout(self, continuation_url: str) -> Callable[[Request], Awaitable[Response]]:
        """Endpoint that drops the local session and redirects to continuation_url."""

        async def endpoint(request: Request) -> Response:
            user = logout(request)
            audit_logger.logout(user.id if user else None, scope="local")
            return RedirectResponse(
                url=self.client.redirect_url(request, continuation_url), status_code=302
            )

        return endpoint

    def global_logout(self, continuation_url: str) -> Callable[[Request], Awaitable[Response]]:
        """
        Endpoint that logs the user out here and at Tequila.

        The local session is dropped first, so the user is logged out of
        this application even when Tequila is unreachable.
        """

        async def endpoint(request: Request) -> Response:
            user = logout(request)
            audit_logger.logout(user.id if user else None, scope="global")
            try:
                return self.client.logout(request, continuation_url)
            except Exception as e:
                # Remote leg is best effort only
                logger.warning(f"Tequila logout redirect failed: {type(e).__name__}: {e}")
                return RedirectResponse(
                    url=self.client.redirect_url(request, continuation_url), status_code=302
                )

        return endpoint


# ============================================================
# MIDDLEWARE
# ============================================================


def default_error_response(request: Request, error: TequilaError) -> Response:
    """JSON error for a failed handshake step."""
    status_code = 502 if isinstance(error, NetworkError) else 401
    return JSONResponse(status_code=status_code, content=error.to_dict())


class TequilaMiddleware(BaseHTTPMiddleware):
    """
    Middleware running ``TequilaStrategy.ensure_authenticated`` on protected paths.

    Handshake errors go to ``on_error``, which plays the part of the
    host's error handler.

    ``protected_paths`` is required. A ``"/"`` prefix also gates the logout
    routes.

    Usage:
        app.add_middleware(
            TequilaMiddleware,
            strategy=strategy,
            protected_paths=["/private"],
        )
    """

    def __init__(
        self,
        app,
        strategy: TequilaStrategy,
        protected_paths: list[str],
        on_error: ErrorHandler | None = None,
    ):
        super().__init__(app)
        self.strategy = strategy
        self.protected_paths = list(protected_paths)
        self.on_error = on_error or default_error_response

    def _is_protected(self, path: str) -> bool:
        for prefix in self.protected_paths:
            if prefix == "/" or path == prefix or path.startswith(prefix.rstrip("/") + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Gate protected requests behind a Tequila login."""
        if not self._is_protected(request.url.path):
            return await call_next(request)

        try:
            return await self.strategy.ensure_authenticated(request, call_next)
        except TequilaError as e:
            logger.error(
                f"Tequila handshake failed: {e.message}",
                extra={"error_type": type(e).__name__, "details": e.details},
            )
            response = self.on_error(request, e)
            if inspect.isawaitable(response):
                response = await response
            return response


__all__ = [
    "SESSION_USER_KEY",
    "KEY_PARAM",
    "TequilaStrategy",
    "TequilaMiddleware",
    "default_error_response",
    "get_session_user",
    "login",
    "logout",
]
