from __future__ import annotations

import logging
import os
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import boto3
from botocore.exceptions import BotoCoreError
from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SECRETS_MANAGER_SERVICE = "secretsmanager"
IDENTITY_SERVICE = "sts"
DEFAULT_SECRET_TTL_MS = int(timedelta(days=30).total_seconds() * 1000)


def _discover_env_files() -> tuple[str, ...]:
    """Return the env file named by SECRETS_PROVIDER_ENV_FILE, if it exists."""
    custom_env = os.getenv("SECRETS_PROVIDER_ENV_FILE")
    if custom_env and Path(custom_env).is_file():
        return (custom_env,)
    return ()


@lru_cache(maxsize=1)
def known_regions() -> frozenset[str]:
    """Regions boto3's bundled endpoint data lists for Secrets Manager."""
    session = boto3.session.Session()
    regions: set[str] = set()
    for partition in session.get_available_partitions():
        regions.update(session.get_available_regions(SECRETS_MANAGER_SERVICE, partition_name=partition))
    return frozenset(regions)


class ProviderSettings(BaseSettings):
    """Settings accepted by the Secrets Manager config provider."""

    model_config = SettingsConfigDict(
        env_file=_discover_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    region: str = Field(
        alias="cloud.region",
        description="The cloud region, for example 'us-east-1'. Mandatory.",
    )
    access_key_id: str | None = Field(
        default=None,
        alias="cloud.access.key",
        description="Static access key. Use only when an instance or task role is not suitable.",
    )
    access_secret: SecretStr | None = Field(
        default=None,
        alias="cloud.access.secret",
        description="Secret for 'cloud.access.key'. Required only when the key is set.",
    )
    secret_ttl_ms: int = Field(
        default=DEFAULT_SECRET_TTL_MS,
        ge=0,
        alias="cloud.secret.ttl.ms",
        description="Time in ms during which a resolved secret is considered valid. Default 30 days.",
    )
    secret_format: Literal["legacy", "json"] = Field(
        default="legacy",
        alias="cloud.secret.format",
        description="Parser used for secret bodies.",
    )

    @field_validator("region", mode="before")
    @classmethod
    def _validate_region(cls, value: Any) -> str:
        region = str(value or "").strip()
        if not region:
            raise ValueError("region must not be blank")
        if region not in known_regions():
            raise ValueError(f"invalid region '{region}' specified for 'cloud.region'")
        return region

    @field_validator("access_key_id", mode="before")
    @classmethod
    def _normalize_access_key(cls, value: Any) -> str | None:
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("access_secret", mode="before")
    @classmethod
    def _normalize_access_secret(cls, value: Any) -> Any:
        raw = value.get_secret_value() if isinstance(value, SecretStr) else value
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        return value

    @field_validator("secret_ttl_ms", mode="before")
    @classmethod
    def _reject_boolean_ttl(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be an integer number of milliseconds, not a boolean")
        return value

    @field_validator("secret_format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or "legacy"
        return value

    @model_validator(mode="after")
    def _check_credential_pair(self) -> "ProviderSettings":
        if (self.access_key_id is None) != (self.access_secret is None):
            raise ValueError("'cloud.access.key' and 'cloud.access.secret' must be set together")
        return self

    @property
    def uses_static_credentials(self) -> bool:
        return self.access_key_id is not None


def _format_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def load_provider_settings(raw: Mapping[str, Any]) -> ProviderSettings:
    """Validate raw host settings. Performs no network calls."""
    try:
        settings = ProviderSettings(
            _env_file=_discover_env_files(),
            **{str(key): value for key, value in raw.items()},
        )
    except ValidationError as exc:
        message = _format_validation_error(exc)
        logger.error("Invalid secrets provider configuration: %s", message)
        raise ConfigurationError(message) from exc

    logger.info("Secrets Manager provider region = '%s'", settings.region)
    return settings


def _build_session(settings: ProviderSettings) -> boto3.session.Session:
    if not settings.uses_static_credentials:
        logger.debug("Credentials will be resolved from the environment, instance or task role.")
        return boto3.session.Session(region_name=settings.region)

    logger.debug("Credentials for access key '%s' will be used.", settings.access_key_id)
    try:
        return boto3.session.Session(
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.access_secret.get_secret_value(),
            region_name=settings.region,
        )
    except (BotoCoreError, ValueError) as exc:
        logger.error("Unable to create static credentials: %s", exc)
        raise ConfigurationError(f"unable to create static credentials: {exc}") from exc


def _build_client(settings: ProviderSettings, service_name: str) -> Any:
    session = _build_session(settings)
    try:
        return session.client(service_name)
    except BotoCoreError as exc:
        logger.error("Unable to create %s client: %s", service_name, exc)
        raise ConfigurationError(f"unable to create {service_name} client: {exc}") from exc


def build_secret_client(settings: ProviderSettings) -> Any:
    """Return a Secrets Manager client bound to the configured region and credentials."""
    return _build_client(settings, SECRETS_MANAGER_SERVICE)


def build_identity_client(settings: ProviderSettings) -> Any:
    """Return an STS client; only used to report which principal is authenticating."""
    return _build_client(settings, IDENTITY_SERVICE)
