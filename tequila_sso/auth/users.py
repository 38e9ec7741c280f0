# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tequila attributes to user identity.

The identity server answers a key exchange with a flat dict such as
``{"user": "lecom", "firstname": "Claude", "displayname": "Claude Lecommandeur"}``.
This module turns it into a profile shaped like the usual web-login
profiles (``provider``, ``id``, ``displayName``, ``name.givenName``...),
keeping a verbatim copy of every attribute under ``tequila``.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tequila_core.exceptions.hierarchy import ProtocolError

PROVIDER = "tequila"


class UserName(BaseModel):
    """Given and family name, as far as the identity server disclosed them."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    given_name: str | None = Field(default=None, alias="givenName")
    family_name: str | None = Field(default=None, alias="familyName")


class UserIdentity(BaseModel):
    """Canonical identity stored in the browser session."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    provider: str = PROVIDER
    id: str
    display_name: str | None = Field(default=None, alias="displayName")
    name: UserName | None = None
    tequila: dict[str, str] = Field(default_factory=dict)

    def to_session(self) -> dict[str, Any]:
        """JSON-ready dict; fields that were never set are left out."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_session(cls, data: dict[str, Any]) -> "UserIdentity":
        return cls.model_validate(data)


def attributes_to_user(result: dict[str, str]) -> UserIdentity:
    """
    Convert a Tequila attribute dict into a UserIdentity.

    Args:
        result: Attributes returned by fetchattributes

    Returns:
        The mapped identity

    Raises:
        ProtocolError: If the mandatory ``user`` attribute is missing
    """
    user_id = result.get("user")
    if not user_id:
        raise ProtocolError(
            "Identity server response has no 'user' attribute",
            endpoint="fetchattributes",
            details={"attributes": sorted(result)},
        )

    fields: dict[str, Any] = {"id": user_id, "tequila": dict(result)}

    if result.get("displayname"):
        fields["display_name"] = result["displayname"]

    given_name = result.get("firstname") or None
    family_name = result.get("name") or None
    if given_name or family_name:
        fields["name"] = UserName(given_name=given_name, family_name=family_name)

    return UserIdentity(**fields)


__all__ = [
    "PROVIDER",
    "UserName",
    "UserIdentity",
    "attributes_to_user",
]
