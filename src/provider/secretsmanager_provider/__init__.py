"""
AWS Secrets Manager config provider for stream-processing workers.
"""

from importlib.metadata import version, PackageNotFoundError

from .core.errors import (
    ConfigurationError,
    DecryptionError,
    NotFoundError,
    ProviderError,
    SecretFormatError,
    SecretLookupError,
    ServiceError,
    TransportError,
)
from .providers import AwsSecretsManagerProvider, ConfigData, ConfigProvider

try:
    __version__ = version("secretsmanager-provider")
except PackageNotFoundError:  # pragma: no cover - package metadata optional
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AwsSecretsManagerProvider",
    "ConfigData",
    "ConfigProvider",
    "ConfigurationError",
    "DecryptionError",
    "NotFoundError",
    "ProviderError",
    "SecretFormatError",
    "SecretLookupError",
    "ServiceError",
    "TransportError",
]
