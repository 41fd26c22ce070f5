"""Counters and timings for feed, swipe, and progress activity."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from app.config import Settings, settings

try:  # pragma: no cover - optional dependency
    from statsd import StatsClient
except ModuleNotFoundError:  # pragma: no cover - statsd ships in the observability extra
    StatsClient = None  # type: ignore[assignment,misc]

logger = logging.getLogger("app.metrics")

METRIC_EVENT = "fundraise_swipe.metric"


class MetricsReporter:
    """Emit metrics as structured log events, mirrored to StatsD when configured."""

    def __init__(
        self,
        *,
        namespace: str = "fundraise_swipe",
        backend: str = "stdout",
        sample_rate: float = 1.0,
        disabled: bool = False,
        statsd_host: str = "localhost",
        statsd_port: int = 8125,
    ) -> None:
        self._disabled = disabled
        self._namespace = namespace.strip(".") or "fundraise_swipe"
        self._backend = backend.lower()
        self._sample_rate = max(0.0, min(sample_rate, 1.0))
        self._statsd = None
        if self._backend == "statsd" and not disabled:
            self._statsd = self._connect_statsd(statsd_host, statsd_port)

    @classmethod
    def from_settings(cls, config: Settings) -> MetricsReporter:
        return cls(
            namespace=config.metrics_namespace,
            backend=config.metrics_backend or "stdout",
            sample_rate=config.metrics_sample_rate,
            disabled=config.metrics_disable,
            statsd_host=config.metrics_statsd_host,
            statsd_port=config.metrics_statsd_port,
        )

    def timing(self, metric: str, value_ms: float, *, tags: dict[str, Any] | None = None) -> None:
        self._emit("timing", metric, value_ms, tags)

    def gauge(self, metric: str, value: float, *, tags: dict[str, Any] | None = None) -> None:
        self._emit("gauge", metric, value, tags)

    def increment(
        self, metric: str, value: float = 1.0, *, tags: dict[str, Any] | None = None
    ) -> None:
        self._emit("counter", metric, value, tags)

    @contextmanager
    def timer(self, metric: str, *, tags: dict[str, Any] | None = None) -> Iterator[None]:
        """Record the wall time of the block in milliseconds, even when it raises."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.timing(metric, (time.perf_counter() - started) * 1000, tags=tags)

    def qualified(self, metric: str) -> str:
        trimmed = metric.strip()
        if not trimmed:
            return self._namespace
        if trimmed.startswith(f"{self._namespace}."):
            return trimmed
        return f"{self._namespace}.{trimmed}"

    def _emit(
        self, metric_type: str, metric: str, value: float, tags: dict[str, Any] | None
    ) -> None:
        if self._disabled:
            return
        # Gauges are point-in-time values; sampling them would drop state.
        rate = 1.0 if metric_type == "gauge" else self._sample_rate
        if rate < 1.0 and secrets.randbelow(1_000_000) / 1_000_000 > rate:
            return
        name = self.qualified(metric)
        payload: dict[str, Any] = {
            "metric": name,
            "type": metric_type,
            "value": round(float(value), 4),
            "tags": dict(tags or {}),
        }
        if rate < 1.0:
            payload["sample_rate"] = round(rate, 4)
        logger.info(METRIC_EVENT, extra={"metrics": payload})
        if self._statsd is not None:
            self._forward(metric_type, name, value, rate)

    def _forward(self, metric_type: str, name: str, value: float, rate: float) -> None:
        try:
            if metric_type == "timing":
                self._statsd.timing(name, value, rate=rate)
            elif metric_type == "gauge":
                self._statsd.gauge(name, value)
            else:
                self._statsd.incr(name, int(value), rate=rate)
        except OSError as exc:  # pragma: no cover - UDP send failure
            logger.warning(
                "metrics.backend_error",
                extra={"metric": name, "backend": self._backend, "error": type(exc).__name__},
            )

    def _connect_statsd(self, host: str, port: int):
        if StatsClient is None:
            logger.warning("statsd backend requested but statsd package is not installed.")
            return None
        try:
            return StatsClient(host=host, port=port, prefix="")
        except OSError as exc:  # pragma: no cover - DNS or socket failure
            logger.warning(
                "metrics.backend_error",
                extra={"metric": "statsd.init", "backend": self._backend, "error": type(exc).__name__},
            )
            return None


metrics = MetricsReporter.from_settings(settings)
