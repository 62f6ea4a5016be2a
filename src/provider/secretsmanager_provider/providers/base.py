"""Host-facing config provider contract"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional


@dataclass(frozen=True)
class ConfigData:
    """Values resolved for one path, plus how long the host may keep them"""

    data: dict[str, str] = field(default_factory=dict)
    ttl: Optional[int] = None  # Milliseconds; None means no expiry


class ConfigProvider(ABC):
    """Plugin the host framework calls to resolve indirect config references"""

    @abstractmethod
    def configure(self, configs: Mapping[str, Any]) -> None:
        """
        Prepare the provider from its settings block

        Args:
            configs: Raw key/value settings passed by the host
        """

    @abstractmethod
    def get(self, path: str, keys: Optional[Iterable[str]] = None) -> ConfigData:
        """
        Resolve the values stored at path

        Args:
            path: Identifier of the stored secret
            keys: Fields to return; empty or None returns every field

        Returns:
            ConfigData with the values and their TTL
        """

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call more than once."""

    def __enter__(self) -> "ConfigProvider":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
