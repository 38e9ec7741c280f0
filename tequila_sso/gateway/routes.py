# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Demo routes.

``/private`` is protected by TequilaMiddleware; the others are public.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..auth.users import UserIdentity
from .strategy import get_session_user

router = APIRouter()


class WhoAmIResponse(BaseModel):
    authenticated: bool
    user: dict | None = None


def _profile(user: UserIdentity | None) -> dict | None:
    return user.to_session() if user else None


@router.get("/", response_model=WhoAmIResponse)
async def index(request: Request):
    """Current user, if logged in. Never triggers a login."""
    user = get_session_user(request)
    return WhoAmIResponse(authenticated=user is not None, user=_profile(user))


@router.get("/private", response_model=WhoAmIResponse)
async def private(request: Request):
    """Protected page: only reachable after a Tequila login."""
    user: UserIdentity = request.state.user
    return WhoAmIResponse(authenticated=True, user=_profile(user))
