#!/usr/bin/env python3
"""
Weight Store - the single owner of the active WeightVector.

Reads are served from a cached snapshot that expires after
refresh_seconds, so weights written by another process are picked up on
the next read after expiry. Writes go through update(), which holds a
process-wide lock and performs the whole read-modify-write inside one
unit of work, so concurrent learners never interleave partial updates.
Across processes the unique version number on matching_weight_versions
rejects the loser of a race.
"""

import logging
import threading
import time
from typing import Callable, Optional

from core.scorer.weights import WeightVector

logger = logging.getLogger(__name__)


class WeightStore:
    def __init__(
        self,
        uow_factory: Callable,
        refresh_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self._uow_factory = uow_factory
        self._refresh_seconds = refresh_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._cached: Optional[WeightVector] = None
        self._loaded_at = 0.0

    def _expired(self) -> bool:
        return self._clock() - self._loaded_at >= self._refresh_seconds

    def current(self) -> WeightVector:
        """Return the active weight vector, reloading it once the snapshot expires."""
        with self._lock:
            if self._cached is None or self._expired():
                with self._uow_factory() as repo:
                    active = repo.weights.get_active_weight_vector()
                loaded = active or WeightVector.default()
                if self._cached is None or loaded.version != self._cached.version:
                    logger.info(f"Loaded weight vector v{loaded.version} ({loaded.source})")
                self._cached = loaded
                self._loaded_at = self._clock()
            return self._cached

    def refresh(self) -> WeightVector:
        with self._lock:
            self._cached = None
            return self.current()

    def update(
        self,
        mutate: Callable[[WeightVector, object], Optional[WeightVector]]
    ) -> Optional[WeightVector]:
        """Atomically derive and persist the next weight version.

        Args:
            mutate: Called with (current vector, repository) inside the
                transaction; returns the new vector or None for no change.

        Returns:
            The persisted vector, or None when mutate made no change.
        """
        with self._lock:
            with self._uow_factory() as repo:
                current = repo.weights.get_active_weight_vector() or WeightVector.default()
                updated = mutate(current, repo)
                if updated is None:
                    return None
                repo.weights.save_weight_vector(updated)
            self._cached = updated
            self._loaded_at = self._clock()
            logger.info(f"Weight vector advanced to v{updated.version} ({updated.source})")
            return updated
