from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def mask_secret(secret: str, visible: int = 4) -> str:
    value = secret.strip()
    shown = value[:visible] if len(value) > visible else ""
    return shown + "*" * (len(value) - len(shown))


class SecretMaskFilter(logging.Filter):
    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets: list[str] = []
        self.add_secrets(secrets)

    def add_secrets(self, secrets: Iterable[str]) -> None:
        for secret in secrets:
            secret_value = (secret or "").strip()
            if secret_value and secret_value not in self._secrets:
                self._secrets.append(secret_value)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        sanitized = message
        for secret in self._secrets:
            sanitized = sanitized.replace(secret, mask_secret(secret))
        if sanitized != message:
            record.msg = sanitized
            record.args = ()
        return True


def configure_logging(level: str | int = "INFO", secrets: Iterable[str] = ()) -> None:
    """Configure console logging for the command line and ad-hoc scripts."""
    if isinstance(level, int):
        level = logging.getLevelName(level)
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "mask_secrets": {"()": SecretMaskFilter, "secrets": list(secrets)},
            },
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["mask_secrets"],
                }
            },
            "root": {"level": str(level).upper(), "handlers": ["console"]},
        }
    )

    # botocore logs request details, including headers, at DEBUG.
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
