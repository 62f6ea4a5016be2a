from __future__ import annotations


class ProviderError(Exception):
    """Base error reported back to the host framework."""

    category = "provider"


class ConfigurationError(ProviderError):
    """Raised when provider settings are missing or invalid."""

    category = "configuration"


class SecretLookupError(ProviderError):
    """Raised when a single secret lookup fails."""

    category = "lookup"

    def __init__(self, message: str, *, path: str | None = None, error_code: str | None = None) -> None:
        self.path = path
        self.error_code = error_code
        super().__init__(message)


class NotFoundError(SecretLookupError):
    """The secret path, or a requested key inside it, does not exist."""

    category = "not_found"


class DecryptionError(SecretLookupError):
    """KMS refused to decrypt the secret value."""

    category = "decryption"


class ServiceError(SecretLookupError):
    """Secrets Manager reported a service-side failure."""

    category = "service"


class TransportError(SecretLookupError):
    """The request never got a usable answer from Secrets Manager."""

    category = "transport"


class SecretFormatError(SecretLookupError):
    """The secret body could not be decoded into a flat string mapping."""

    category = "format"
