"""Metrics hook protocol and no-op default implementation.

mediaingest emits counters, timings and gauges around uploads and collection
mutations.  A :class:`NoopMetricsHook` is used unless the configuration
supplies a backend satisfying :class:`MetricsHook`.

Emitted metric names:

* ``mediaingest.requests_total``              -- counter
* ``mediaingest.retries_total``               -- counter
* ``mediaingest.request_duration_ms``         -- timing
* ``mediaingest.upload_success_total``        -- counter
* ``mediaingest.upload_failure_total``        -- counter
* ``mediaingest.batch_duration_ms``           -- timing
* ``mediaingest.references_rejected_total``   -- counter
* ``mediaingest.collection_size``             -- gauge
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
