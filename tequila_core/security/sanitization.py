# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Redirect URL Sanitization

The identity server sends the browser back with ``?key=...`` appended to
the URL we gave it. Before redirecting the user once more we scrub that
parameter so the one-time key does not linger in the address bar, the
browser history or a Referer header.

The identity server only ever uses ``?``, ``&`` and ``=`` as delimiters,
so the work here is plain string surgery: no decoding, no re-encoding.
"""


def remove_param(name: str, url: str) -> str:
    """
    Remove every occurrence of a query parameter from a URL.

    Args:
        name: Parameter name, matched exactly (case-sensitive)
        url: Relative or absolute URL

    Returns:
        The URL without the parameter. Other parameters keep their
        relative order. If nothing is left, the ``?`` goes too.

    Examples:
        >>> remove_param("key", "/private?key=abc&foo=bar")
        '/private?foo=bar'
        >>> remove_param("key", "/private?key=abc")
        '/private'
    """
    path, sep, query = url.partition("?")
    if not sep or query == "":
        return path

    kept = [token for token in query.split("&") if token.split("=", 1)[0] != name]

    if not kept:
        return path
    return f"{path}?{'&'.join(kept)}"


def is_same_origin(url: str, origin: str) -> bool:
    """
    Check that a redirect target stays on our own origin.

    Args:
        url: Redirect target, absolute or relative
        origin: ``scheme://host[:port]`` of the relying application

    Returns:
        True for relative paths and for absolute URLs under ``origin``
    """
    if url.startswith("//") or url.startswith("/\\"):
        # Protocol-relative: the browser would leave our host
        return False
    if url.startswith("/"):
        return True
    origin = origin.rstrip("/")
    return url == origin or url.startswith(origin + "/") or url.startswith(origin + "?")


__all__ = [
    "remove_param",
    "is_same_origin",
]
