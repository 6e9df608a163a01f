"""
Prometheus metrics for the verifier endpoints.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from passgate.common.exceptions import VerificationRejected


class Metrics:
    """Request counts, rejections by reason and handler latency.

    Each instance owns its registry so several servers can live in one
    process.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.requests = Counter(
            "passgate_requests",
            "Requests received per endpoint",
            ["endpoint"],
            registry=self.registry,
        )
        self.errors = Counter(
            "passgate_errors",
            "Rejected requests per endpoint and reason",
            ["endpoint", "reason"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "passgate_request_duration_seconds",
            "Time spent handling a request",
            ["endpoint"],
            registry=self.registry,
        )

    def observe_request(self, endpoint: str) -> None:
        self.requests.labels(endpoint=endpoint).inc()

    def observe_error(self, endpoint: str, reason: str) -> None:
        self.errors.labels(endpoint=endpoint, reason=reason).inc()

    @contextmanager
    def track(self, endpoint: str) -> Iterator[None]:
        """Count and time one request; rejections are counted by reason."""
        self.observe_request(endpoint)
        with self.request_duration.labels(endpoint=endpoint).time():
            try:
                yield
            except VerificationRejected as e:
                self.observe_error(endpoint, e.reason)
                raise

    def render(self) -> bytes:
        return generate_latest(self.registry)
