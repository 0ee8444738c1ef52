"""
Timing helper for recompute and page-fetch logging.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def timer() -> Iterator[dict[str, float]]:
    """Yield a dict whose ``elapsed_ms`` (3 decimals) is filled when the block exits."""
    timing: dict[str, float] = {"elapsed_ms": 0.0}
    started = time.perf_counter()
    try:
        yield timing
    finally:
        timing["elapsed_ms"] = round((time.perf_counter() - started) * 1000, 3)
