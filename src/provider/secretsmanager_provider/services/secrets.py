from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import DEFAULT_SECRET_TTL_MS
from ..core.errors import (
    DecryptionError,
    NotFoundError,
    SecretFormatError,
    SecretLookupError,
    ServiceError,
    TransportError,
)
from .parsing import get_parser

logger = logging.getLogger(__name__)

NOT_FOUND_CODE = "ResourceNotFoundException"
DECRYPTION_FAILURE_CODE = "DecryptionFailure"


@dataclass(frozen=True)
class SecretPayload:
    path: str
    arn: str | None
    name: str | None
    secret_string: str | None
    secret_binary: bytes | None = None


@dataclass(frozen=True)
class ResolvedSecret:
    entries: dict[str, str] = field(default_factory=dict)
    ttl_ms: int = DEFAULT_SECRET_TTL_MS


class SecretLookupService:
    """Fetch secrets by path and reduce them to the requested keys.

    The client and TTL are fixed at construction time and only read
    afterwards, so one instance can serve concurrent lookups.
    """

    def __init__(self, client: Any, ttl_ms: int = DEFAULT_SECRET_TTL_MS, secret_format: str = "legacy") -> None:
        self._client = client
        self.ttl_ms = ttl_ms
        self.secret_format = secret_format
        self._parse = get_parser(secret_format)

    @property
    def closed(self) -> bool:
        return self._client is None

    def fetch(self, path: str, keys: Iterable[str] | None = None) -> ResolvedSecret:
        # A bare string is one key, not an iterable of characters.
        requested = {keys} if isinstance(keys, str) else set(keys or ())
        logger.debug("path = %s, count of keys = %d", path, len(requested))

        payload = self._get_payload(path)
        entries = self._parse_payload(payload)
        if not requested:
            return ResolvedSecret(entries=entries, ttl_ms=self.ttl_ms)

        reduced: dict[str, str] = {}
        for key in sorted(requested):
            if key not in entries:
                message = f"key '{key}' not found at path '{path}'"
                logger.error(message)
                raise NotFoundError(message, path=path)
            reduced[key] = entries[key]
        return ResolvedSecret(entries=reduced, ttl_ms=self.ttl_ms)

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()

    def _get_payload(self, path: str) -> SecretPayload:
        client = self._client
        if client is None:
            raise SecretLookupError(f"secret lookup service is closed; cannot fetch '{path}'", path=path)

        try:
            response = client.get_secret_value(SecretId=path)
        except ClientError as exc:
            raise self._map_client_error(path, exc) from exc
        except BotoCoreError as exc:
            logger.error("Client exception while querying for secret '%s': %s", path, exc)
            raise TransportError(f"unable to reach Secrets Manager for secret '{path}': {exc}", path=path) from exc

        logger.debug("Processing secret with ARN '%s' named '%s'", response.get("ARN"), response.get("Name"))
        return SecretPayload(
            path=path,
            arn=response.get("ARN"),
            name=response.get("Name"),
            secret_string=response.get("SecretString"),
            secret_binary=response.get("SecretBinary"),
        )

    def _parse_payload(self, payload: SecretPayload) -> dict[str, str]:
        try:
            secret_string = payload.secret_string
            if secret_string is None and payload.secret_binary is not None:
                secret_string = payload.secret_binary.decode("utf-8")
            return self._parse(secret_string)
        except ValueError as exc:
            logger.error("Unable to parse secret '%s': %s", payload.path, exc)
            raise SecretFormatError(f"unable to parse secret '{payload.path}': {exc}", path=payload.path) from exc

    @staticmethod
    def _map_client_error(path: str, exc: ClientError) -> SecretLookupError:
        error = exc.response.get("Error", {})
        code = error.get("Code")
        detail = error.get("Message") or str(exc)

        if code == NOT_FOUND_CODE:
            logger.error("Secret '%s' not found!", path)
            return NotFoundError(f"secret '{path}' not found: {detail}", path=path, error_code=code)
        if code == DECRYPTION_FAILURE_CODE:
            logger.error("Unable to decrypt secret '%s'! Please check KMS permissions.", path)
            return DecryptionError(
                f"unable to decrypt secret '{path}', check KMS permissions: {detail}",
                path=path,
                error_code=code,
            )
        logger.error("Service exception while querying for secret '%s': %s", path, exc)
        return ServiceError(f"Secrets Manager failed for secret '{path}' ({code}): {detail}", path=path, error_code=code)
