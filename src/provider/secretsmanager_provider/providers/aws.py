from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import (
    ProviderSettings,
    build_identity_client,
    build_secret_client,
    load_provider_settings,
)
from ..core.errors import ConfigurationError
from ..services.secrets import SecretLookupService
from .base import ConfigData, ConfigProvider

logger = logging.getLogger(__name__)


class AwsSecretsManagerProvider(ConfigProvider):
    """Resolve config placeholders against AWS Secrets Manager."""

    def __init__(self) -> None:
        self.settings: ProviderSettings | None = None
        self._lookup: SecretLookupService | None = None
        self.caller_identity: dict[str, str | None] | None = None

    @property
    def configured(self) -> bool:
        return self._lookup is not None

    def configure(self, configs: Mapping[str, Any]) -> None:
        self.close()
        self.settings = None
        self.caller_identity = None

        client = None
        try:
            settings = load_provider_settings(configs)
            client = build_secret_client(settings)
            lookup = SecretLookupService(
                client,
                ttl_ms=settings.secret_ttl_ms,
                secret_format=settings.secret_format,
            )
        except Exception:
            logger.exception("Exception while configuring %s", type(self).__name__)
            if client is not None:
                client.close()
            raise

        self.settings = settings
        self._lookup = lookup
        self._log_caller_identity(settings)

    def get(self, path: str, keys: Iterable[str] | None = None) -> ConfigData:
        lookup = self._lookup
        if lookup is None:
            raise ConfigurationError(f"{type(self).__name__} is not configured; call configure() first")

        resolved = lookup.fetch(path, keys)
        return ConfigData(data=resolved.entries, ttl=resolved.ttl_ms)

    def close(self) -> None:
        lookup, self._lookup = self._lookup, None
        if lookup is not None:
            lookup.close()

    def whoami(self) -> dict[str, str | None]:
        """Return the ARN and account of the principal the provider runs as."""
        if self.settings is None:
            raise ConfigurationError(f"{type(self).__name__} is not configured; call configure() first")

        client = build_identity_client(self.settings)
        try:
            caller = client.get_caller_identity()
        finally:
            client.close()
        return {"arn": caller.get("Arn"), "account": caller.get("Account")}

    def _log_caller_identity(self, settings: ProviderSettings) -> None:
        # Diagnostic only; a failure here must not abort configuration.
        try:
            identity = self.whoami()
        except (BotoCoreError, ClientError, ConfigurationError) as exc:
            logger.error("Unable to get information about caller identity - %s", exc, exc_info=True)
            return
        self.caller_identity = identity
        logger.info(
            "%s connected as %s to account %s in region %s",
            type(self).__name__,
            identity["arn"],
            identity["account"],
            settings.region,
        )
