"""Metric helpers for assistant pipeline counters and latencies."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from app.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived Opik trace; no-op when Opik is off."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    with tracing.trace(f"metric:{name}", metadata=payload):
        pass


def log_counts(prefix: str, counts: Dict[str, int], metadata: Optional[Dict[str, Any]] = None) -> None:
    """Log one metric per entry of ``counts`` under ``prefix``."""
    for key, value in counts.items():
        log_metric(f"{prefix}.{key}", value, metadata=metadata)


@contextmanager
def timed(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """Log the wall time of the block in milliseconds as ``<name>.latency_ms``."""
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug("%s took %sms", name, elapsed_ms)
        log_metric(f"{name}.latency_ms", elapsed_ms, metadata=metadata)
