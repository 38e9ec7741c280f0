# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tequila Core - Shared Primitives

Framework-free pieces of the Tequila client:

Modules:
    exceptions: Structured exception hierarchy
    security: Redirect URL sanitization
"""

__version__ = "1.0.0"

from .exceptions.hierarchy import (
    ConfigurationError,
    NetworkError,
    ProtocolError,
    TequilaError,
)
from .security.sanitization import (
    is_same_origin,
    remove_param,
)

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "TequilaError",
    "ConfigurationError",
    "NetworkError",
    "ProtocolError",
    # Sanitization
    "remove_param",
    "is_same_origin",
]
