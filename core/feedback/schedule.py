#!/usr/bin/env python3
"""
Learning schedule policies.

The orchestrator asks its schedule after every batch whether the learner
should run. Policies are deterministic so tests can pin behavior.
"""

import threading
from abc import ABC, abstractmethod

from core.config_loader import LearningConfig


class LearningSchedule(ABC):
    @abstractmethod
    def should_run(self) -> bool:
        """Return True when the learner should run after the current batch."""
        pass


class NeverLearn(LearningSchedule):
    def should_run(self) -> bool:
        return False


class AlwaysLearn(LearningSchedule):
    def should_run(self) -> bool:
        return True


class EveryNthBatch(LearningSchedule):
    """Fires on the Nth, 2Nth, ... call. Thread-safe counter."""

    def __init__(self, n: int):
        if n < 1:
            raise ValueError("n must be >= 1")
        self.n = n
        self._count = 0
        self._lock = threading.Lock()

    @property
    def batches_seen(self) -> int:
        return self._count

    def should_run(self) -> bool:
        with self._lock:
            self._count += 1
            return self._count % self.n == 0


def schedule_from_config(config: LearningConfig) -> LearningSchedule:
    if not config.enabled or config.every_n_batches <= 0:
        return NeverLearn()
    if config.every_n_batches == 1:
        return AlwaysLearn()
    return EveryNthBatch(config.every_n_batches)
