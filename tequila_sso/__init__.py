# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tequila SSO - Web Single Sign-On Client

Delegates authentication of a Starlette/FastAPI application to a Tequila
identity server:

    browser ──> app ──createrequest──> Tequila      (server to server)
    browser <── 302 to Tequila login page
    browser ──> Tequila, logs in, back to app with ?key=
    app ──fetchattributes──> Tequila                (server to server)
    app stores the user in the session, 302 to the clean URL

Quick Start:
    from tequila_sso import TequilaClient, TequilaStrategy, TequilaMiddleware

    client = TequilaClient(settings.tequila)
    strategy = TequilaStrategy(client)
    app.add_middleware(TequilaMiddleware, strategy=strategy, protected_paths=["/private"])

All imports are lazy: ``import tequila_sso`` does not pull in httpx or
starlette until one of the names below is used.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

__version__ = "1.0.0"

if TYPE_CHECKING:
    from .auth.protocol import (
        AuthenticationRequest as AuthenticationRequest,
    )
    from .auth.protocol import (
        TequilaClient as TequilaClient,
    )
    from .auth.users import (
        UserIdentity as UserIdentity,
    )
    from .auth.users import (
        attributes_to_user as attributes_to_user,
    )
    from .core.settings import Settings as Settings
    from .core.settings import TequilaSettings as TequilaSettings
    from .core.settings import get_settings as get_settings
    from .core.settings import load_settings as load_settings
    from .gateway.app import create_app as create_app
    from .gateway.strategy import (
        TequilaMiddleware as TequilaMiddleware,
    )
    from .gateway.strategy import (
        TequilaStrategy as TequilaStrategy,
    )

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    # Settings
    "Settings": (".core.settings", "Settings"),
    "TequilaSettings": (".core.settings", "TequilaSettings"),
    "get_settings": (".core.settings", "get_settings"),
    "load_settings": (".core.settings", "load_settings"),
    # Protocol
    "AuthenticationRequest": (".auth.protocol", "AuthenticationRequest"),
    "TequilaClient": (".auth.protocol", "TequilaClient"),
    # Users
    "UserIdentity": (".auth.users", "UserIdentity"),
    "attributes_to_user": (".auth.users", "attributes_to_user"),
    # Gate
    "TequilaStrategy": (".gateway.strategy", "TequilaStrategy"),
    "TequilaMiddleware": (".gateway.strategy", "TequilaMiddleware"),
    "create_app": (".gateway.app", "create_app"),
}

__all__ = [
    "__version__",
    *_LAZY_IMPORTS.keys(),
]


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path, __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
