# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Application Settings

Configuration management using pydantic-settings.
Supports environment variables and .env files.

    TEQUILA_SERVICE="My app"
    TEQUILA_REQUEST='["displayname", "firstname", "name"]'
    TEQUILA_REDIRECT_AFTER_AUTH=true
    SESSION_SECRET_KEY=...
"""

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tequila_core.exceptions.hierarchy import ConfigurationError

DEFAULT_TEQUILA_HOST = "tequila.epfl.ch"
DEFAULT_TEQUILA_PATH = "/cgi-bin/tequila"


class TequilaSettings(BaseSettings):
    """Identity server endpoints and the authentication request we send it."""

    model_config = SettingsConfigDict(env_prefix="TEQUILA_", env_file=".env", extra="ignore")

    # Identity server
    scheme: str = Field(default="https")
    host: str = Field(default=DEFAULT_TEQUILA_HOST)
    port: int = Field(default=443, ge=1, le=65535)
    createrequest_path: str = Field(default=f"{DEFAULT_TEQUILA_PATH}/createrequest")
    requestauth_path: str = Field(default=f"{DEFAULT_TEQUILA_PATH}/requestauth")
    fetchattributes_path: str = Field(default=f"{DEFAULT_TEQUILA_PATH}/fetchattributes")
    logout_path: str = Field(default=f"{DEFAULT_TEQUILA_PATH}/logout")
    timeout: float = Field(default=10.0, gt=0, description="Seconds, per remote call")

    # Authentication request
    service: str = Field(
        default="", validate_default=True, description="Name shown to users on the login page"
    )
    request: list[str] = Field(default_factory=list, description="Attributes to fetch")
    require: str | None = Field(default=None, description="Filter, e.g. group=somegroup")
    allows: list[str] | None = Field(default=None, description="e.g. categorie=shibboleth")

    # Post-authentication behaviour
    redirect_after_auth: bool = Field(
        default=False, description="Drop the whole query string after login"
    )
    strip_key_param: bool = Field(
        default=True, description="Redirect once more to get rid of ?key= after login"
    )

    @field_validator("service")
    @classmethod
    def validate_service(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError(
                "TEQUILA_SERVICE must be set to the name of this application. "
                "The identity server shows it on its login page."
            )
        return v

    @field_validator("createrequest_path", "requestauth_path", "fetchattributes_path", "logout_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            return "/" + v
        return v

    @property
    def base_url(self) -> str:
        default_port = {"https": 443, "http": 80}.get(self.scheme)
        if self.port == default_port:
            return f"{self.scheme}://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"


class SessionSettings(BaseSettings):
    """Browser session cookie configuration."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    secret_key: str = Field(
        default="CHANGE_ME_IN_PRODUCTION", description="Secret used to sign the session cookie"
    )
    cookie_name: str = Field(default="tequila_session")
    max_age: int = Field(default=14 * 24 * 3600, ge=60, description="Seconds")
    https_only: bool = Field(default=False)


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="json")  # json or human

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "human"):
            raise ValueError("LOG_FORMAT must be 'json' or 'human'")
        return v


class Settings(BaseSettings):
    """
    Main application settings.

    Usage:
        settings = get_settings()
        print(settings.tequila.host)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(default="Tequila SSO")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")  # development, staging, production

    # Demo server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000)

    # Sub-settings
    tequila: TequilaSettings = Field(default_factory=TequilaSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.is_production and self.session.secret_key == "CHANGE_ME_IN_PRODUCTION":
            raise ValueError(
                "SESSION_SECRET_KEY is set to an insecure default. "
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
            )


def load_settings(**overrides) -> Settings:
    """
    Build settings, failing fast with a ConfigurationError.

    Keyword arguments override environment values, e.g.
    ``load_settings(tequila=TequilaSettings(service="My app"))``.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        errors = e.errors()
        config_key = ".".join(str(part) for part in errors[0]["loc"]) if errors else None
        raise ConfigurationError(f"Invalid configuration: {e}", config_key=config_key) from e
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    """
    return load_settings()


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Settings",
    "TequilaSettings",
    "SessionSettings",
    "ObservabilitySettings",
    "load_settings",
    "get_settings",
]
