"""Provider registries with per-provider failure tracking and a circuit breaker."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Generic, Literal, Optional, TypeVar

from releasepick import logger
from releasepick.providers.protocols import Indexer, MetadataProvider, TorrentClient

# Three strikes, then one hour out of rotation.
FAILURE_THRESHOLD = 3
COOLDOWN_SECONDS = 60 * 60

ProviderHealth = Literal["healthy", "degraded", "tripped"]
_P = TypeVar("_P")


@dataclass
class FailureState:
    failure_count: int = 0
    last_failure_at: float = 0.0
    cooldown_until: float = 0.0


@dataclass(frozen=True)
class ProviderEntry(Generic[_P]):
    id: str
    provider: _P


class ProviderRegistry(Generic[_P]):
    """
    Holds named provider instances for one category.

    Failure state lives in memory for the process lifetime. All reads and
    writes of the provider and failure maps go through one lock.
    """

    category = "provider"

    def __init__(
        self,
        failure_threshold: int = FAILURE_THRESHOLD,
        cooldown_seconds: float = COOLDOWN_SECONDS,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if cooldown_seconds <= 0:
            raise ValueError("cooldown_seconds must be > 0")
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = float(cooldown_seconds)
        self._providers: dict[str, _P] = {}
        self._failures: dict[str, FailureState] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _require_id(provider_id: str) -> str:
        if not provider_id:
            raise ValueError("provider id must be a non-empty string")
        return provider_id

    def register(self, provider_id: str, provider: _P) -> None:
        self._require_id(provider_id)
        with self._lock:
            self._providers[provider_id] = provider
        logger.get_logger().provider_registered(self.category, provider_id)

    def unregister(self, provider_id: str) -> None:
        with self._lock:
            self._providers.pop(provider_id, None)
            self._failures.pop(provider_id, None)
        logger.get_logger().provider_unregistered(self.category, provider_id)

    def get(self, provider_id: str) -> Optional[_P]:
        with self._lock:
            return self._providers.get(provider_id)

    def get_all(self) -> list[ProviderEntry[_P]]:
        with self._lock:
            return [ProviderEntry(key, provider) for key, provider in self._providers.items()]

    def record_failure(self, provider_id: str) -> FailureState:
        self._require_id(provider_id)
        tripped = False
        with self._lock:
            now = time.monotonic()
            record = self._failures.setdefault(provider_id, FailureState())
            record.failure_count += 1
            record.last_failure_at = now
            if record.failure_count >= self.failure_threshold:
                # A repeat trip extends the cooldown, never shortens it.
                record.cooldown_until = max(record.cooldown_until, now + self.cooldown_seconds)
                tripped = True
            snapshot = replace(record)
        if tripped:
            logger.get_logger().provider_cooldown(
                self.category, provider_id, snapshot.failure_count, self.cooldown_seconds
            )
        return snapshot

    def record_success(self, provider_id: str) -> None:
        with self._lock:
            record = self._failures.get(provider_id)
            if record is not None:
                record.failure_count = 0
                record.cooldown_until = 0.0

    def failure_state(self, provider_id: str) -> Optional[FailureState]:
        with self._lock:
            record = self._failures.get(provider_id)
            return replace(record) if record is not None else None

    def _available_locked(self, provider_id: str, now: float) -> bool:
        record = self._failures.get(provider_id)
        return record is None or now >= record.cooldown_until

    def is_available(self, provider_id: str) -> bool:
        with self._lock:
            return self._available_locked(provider_id, time.monotonic())

    def health(self, provider_id: str) -> ProviderHealth:
        with self._lock:
            record = self._failures.get(provider_id)
            if record is None:
                return "healthy"
            if time.monotonic() < record.cooldown_until:
                return "tripped"
            if 0 < record.failure_count < self.failure_threshold:
                return "degraded"
            return "healthy"

    def get_available(self) -> list[ProviderEntry[_P]]:
        """Registered providers outside cooldown, in registration order."""
        with self._lock:
            now = time.monotonic()
            return [
                ProviderEntry(key, provider)
                for key, provider in self._providers.items()
                if self._available_locked(key, now)
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)


class MetadataProviderRegistry(ProviderRegistry[MetadataProvider]):
    category = "metadata"

    def get_primary(self) -> Optional[ProviderEntry[MetadataProvider]]:
        available = self.get_available()
        return available[0] if available else None


class IndexerRegistry(ProviderRegistry[Indexer]):
    category = "indexer"


class TorrentClientRegistry(ProviderRegistry[TorrentClient]):
    category = "torrent-client"

    def get_primary(self) -> Optional[ProviderEntry[TorrentClient]]:
        available = self.get_available()
        return available[0] if available else None
