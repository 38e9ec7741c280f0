# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

from .protocol import (
    AuthenticationRequest,
    TequilaClient,
)
from .users import (
    PROVIDER,
    UserIdentity,
    UserName,
    attributes_to_user,
)

__all__ = [
    # Protocol
    "AuthenticationRequest",
    "TequilaClient",
    # Users
    "PROVIDER",
    "UserIdentity",
    "UserName",
    "attributes_to_user",
]
