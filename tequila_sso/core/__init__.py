# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Core Module

- Settings: Identity server, session and logging configuration
"""

from .settings import (
    ObservabilitySettings,
    SessionSettings,
    Settings,
    TequilaSettings,
    get_settings,
    load_settings,
)

__all__ = [
    "ObservabilitySettings",
    "SessionSettings",
    "Settings",
    "TequilaSettings",
    "get_settings",
    "load_settings",
]
