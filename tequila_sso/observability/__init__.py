# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Observability Module

- logging: Structured logging with request context and key masking
"""

from .logging import (
    AuditLogger,
    HumanFormatter,
    JSONFormatter,
    audit_logger,
    clear_request_context,
    configure_logging,
    get_request_context,
    mask_sensitive_data,
    mask_text,
    set_request_context,
)

__all__ = [
    "AuditLogger",
    "HumanFormatter",
    "JSONFormatter",
    "audit_logger",
    "clear_request_context",
    "configure_logging",
    "get_request_context",
    "mask_sensitive_data",
    "mask_text",
    "set_request_context",
]
