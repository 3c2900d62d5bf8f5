# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for the letter queue and batch submissions.

All metrics use the ``ls_`` prefix and live in a registry owned by the
``LetterMetrics`` instance, so several clients in one process do not
collide.

Metrics exposed:
    - ``ls_letters_queued_total``: Counter of letters accepted into the queue.
    - ``ls_duplicates_skipped_total``: Counter of letters dropped as duplicates.
    - ``ls_batches_submitted_total``: Counter of batches accepted by the API.
    - ``ls_batch_errors_total``: Counter of failed flushes, by ``stage``.
    - ``ls_queue_letters``: Gauge of letters currently queued.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


class LetterMetrics:
    """Prometheus collector for the LetterStream client.

    Attributes:
        registry: The CollectorRegistry holding all metrics.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.queued = Counter(
            "ls_letters_queued_total",
            "Total letters accepted into the queue",
            registry=self.registry,
        )
        self.duplicates = Counter(
            "ls_duplicates_skipped_total",
            "Total letters skipped as duplicates",
            registry=self.registry,
        )
        self.submitted = Counter(
            "ls_batches_submitted_total",
            "Total batches accepted by the API",
            registry=self.registry,
        )
        self.errors = Counter(
            "ls_batch_errors_total",
            "Total failed flushes",
            ["stage"],
            registry=self.registry,
        )
        self.pending = Gauge(
            "ls_queue_letters",
            "Letters currently queued",
            registry=self.registry,
        )

    def inc_queued(self) -> None:
        self.queued.inc()

    def inc_duplicate(self) -> None:
        self.duplicates.inc()

    def inc_submitted(self) -> None:
        self.submitted.inc()

    def inc_error(self, stage: str) -> None:
        """Count a failed flush.

        Args:
            stage: ``packaging`` or ``submission``.
        """
        self.errors.labels(stage=stage).inc()

    def set_pending(self, value: int) -> None:
        self.pending.set(value)

    def generate_latest(self) -> bytes:
        """Export all metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
