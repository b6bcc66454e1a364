"""
Stage timing context manager.

Usage:
    with Timer("routing") as t:
        decision = await router.route(question)
    ctx.stage_timings["routing"] = t.elapsed_s
"""

from __future__ import annotations

import time
from typing import Any

from lectureqa.utils.logging import get_logger

logger = get_logger("lectureqa.timing")


class Timer:
    """Simple context-manager timer; works around awaited calls too."""

    def __init__(self, label: str = ""):
        self.label = label
        self._start: float = 0.0
        self.elapsed_s: float = 0.0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_s * 1000

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: Any) -> None:
        self.elapsed_s = time.perf_counter() - self._start
        if self.label:
            logger.debug(
                "%s completed in %.1fms", self.label, self.elapsed_ms
            )
