# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

from .app import create_app
from .request_context import RequestContextMiddleware
from .strategy import (
    KEY_PARAM,
    SESSION_USER_KEY,
    TequilaMiddleware,
    TequilaStrategy,
    default_error_response,
    get_session_user,
)

__all__ = [
    "create_app",
    "RequestContextMiddleware",
    "KEY_PARAM",
    "SESSION_USER_KEY",
    "TequilaMiddleware",
    "TequilaStrategy",
    "default_error_response",
    "get_session_user",
]
