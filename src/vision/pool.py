"""Process-wide pool of reusable element detectors."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from src.vision.detector import ElementDetector

logger = logging.getLogger(__name__)


class DetectorPool:
    """Free list of detectors; released detectors are reset before reuse."""

    def __init__(self):
        self._free: list[ElementDetector] = []
        self._lock = threading.Lock()
        self.created = 0

    def acquire(self) -> ElementDetector:
        with self._lock:
            if self._free:
                return self._free.pop()
            self.created += 1
        logger.debug("Creating new element detector (total %d)", self.created)
        return ElementDetector()

    def release(self, detector: ElementDetector) -> None:
        detector.reset()
        detector.enable()
        with self._lock:
            self._free.append(detector)

    @contextmanager
    def borrowed(self) -> Iterator[ElementDetector]:
        detector = self.acquire()
        try:
            yield detector
        finally:
            self.release(detector)

    def __len__(self) -> int:
        return len(self._free)


_default_pool = DetectorPool()


def default_pool() -> DetectorPool:
    return _default_pool
