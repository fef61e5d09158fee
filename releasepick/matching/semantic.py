"""Lifecycle handle for the external pairwise relevance model."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import numpy as np

from releasepick import logger
from releasepick.matching.protocols import BatchPairScorer, PairScorer, ScorerFactory

DEFAULT_LOAD_TIMEOUT_SECONDS = 600.0

_T = TypeVar("_T")


class ScorerUnavailableError(RuntimeError):
    """The relevance model failed to load, timed out, or was never configured."""


class SemanticScorer:
    """
    Loads the model once on first use and hands out raw logits.

    A failed or timed-out load leaves the handle unavailable until reset();
    it is not retried automatically.
    """

    def __init__(
        self,
        factory: Optional[ScorerFactory],
        *,
        name: str = "cross-encoder",
        load_timeout_seconds: float = DEFAULT_LOAD_TIMEOUT_SECONDS,
    ) -> None:
        if load_timeout_seconds <= 0:
            raise ValueError("load_timeout_seconds must be > 0")
        self.name = name
        self.load_timeout_seconds = float(load_timeout_seconds)
        self._factory = factory
        self._backend: Optional[PairScorer] = None
        self._load_error: Optional[BaseException] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_backend(cls, backend: PairScorer, *, name: str = "cross-encoder") -> "SemanticScorer":
        """Wrap an already-loaded scorer."""
        return cls(lambda _progress: backend, name=name)

    @property
    def load_error(self) -> Optional[BaseException]:
        return self._load_error

    def is_ready(self) -> bool:
        return self._backend is not None

    def _unavailable(self) -> ScorerUnavailableError:
        error = ScorerUnavailableError(f"{self.name} unavailable: {self._load_error}")
        error.__cause__ = self._load_error
        return error

    def _report_progress(self, fraction: float) -> None:
        logger.get_logger().scorer_load("progress", model=self.name, percent=round(fraction * 100, 1))

    async def initialize(self) -> bool:
        """Load the model if needed. Returns False instead of raising on failure."""
        if self._backend is not None:
            return True
        if self._load_error is not None:
            return False

        async with self._lock:
            if self._backend is not None:
                return True
            if self._load_error is not None:
                return False

            log = logger.get_logger()
            if self._factory is None:
                self._load_error = RuntimeError("no relevance model configured")
                log.scorer_load("failed", model=self.name, error=str(self._load_error))
                return False

            log.scorer_load("initiate", model=self.name, timeout_s=self.load_timeout_seconds)
            started = time.monotonic()
            try:
                backend = await asyncio.wait_for(
                    asyncio.to_thread(self._factory, self._report_progress),
                    timeout=self.load_timeout_seconds,
                )
            except asyncio.TimeoutError:
                self._load_error = TimeoutError(f"model load timed out after {self.load_timeout_seconds:.0f}s")
                log.scorer_load("failed", model=self.name, error=str(self._load_error))
                return False
            except Exception as exc:
                self._load_error = exc
                log.scorer_load("failed", model=self.name, error=f"{type(exc).__name__}: {exc}")
                return False

            self._backend = backend
            log.scorer_load("loaded", model=self.name, elapsed_s=time.monotonic() - started)
            return True

    async def ensure_backend(self) -> PairScorer:
        backend = self._backend if await self.initialize() else None
        if backend is None:
            raise self._unavailable()
        return backend

    @staticmethod
    def _run_backend(backend: PairScorer, pairs: Sequence[tuple[str, str]]) -> list[float]:
        if isinstance(backend, BatchPairScorer):
            return list(backend.score_pairs(pairs))
        return [backend.score(a, b) for a, b in pairs]

    async def logits(self, pairs: Sequence[tuple[str, str]]) -> np.ndarray:
        """Raw logits for each (text_a, text_b) pair, in input order."""
        backend = await self.ensure_backend()
        if not pairs:
            return np.zeros(0, dtype=float)
        # Inference is CPU bound; keep it off the event loop.
        values = np.asarray(await asyncio.to_thread(self._run_backend, backend, pairs), dtype=float)
        if values.shape != (len(pairs),):
            raise ValueError(f"{self.name} returned {values.size} scores for {len(pairs)} pairs")
        if np.isnan(values).any():
            raise ValueError(f"{self.name} returned a NaN logit")
        return values

    def unload(self) -> None:
        """Drop the loaded model; the next scoring call loads it again."""
        if self._backend is None:
            logger.get_logger().debug(f"{self.name} not loaded, nothing to unload")
            return
        self._backend = None
        logger.get_logger().info(f"Unloaded {self.name} from memory")

    def reset(self) -> None:
        """Forget a failed load so the next call tries again."""
        self._load_error = None

    async def with_auto_load(self, work: Callable[[], Awaitable[_T]]) -> _T:
        """Run matching work, unloading the model afterwards either way."""
        try:
            return await work()
        finally:
            self.unload()
