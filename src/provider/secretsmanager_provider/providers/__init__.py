"""Config provider plugins loaded by the host framework"""

from .aws import AwsSecretsManagerProvider
from .base import ConfigData, ConfigProvider

__all__ = [
    "AwsSecretsManagerProvider",
    "ConfigData",
    "ConfigProvider",
]
