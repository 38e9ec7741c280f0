# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

from .sanitization import is_same_origin, remove_param

__all__ = [
    "remove_param",
    "is_same_origin",
]
