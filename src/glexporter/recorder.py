"""glexporter.recorder

Change detection and metric recording for polled targets.

Each target moves through two states: *unseen* (no snapshot, no series
exported at all) and *seen* (a stored snapshot plus its four metric
families). A poll result drives one of three transitions:

- ``no_data``: nothing happens; an unseen target stays absent from /metrics.
- ``unchanged``: only ``time_since_last_run`` is refreshed, against the
  snapshot already stored.
- ``new_snapshot``: the run counter is bumped (unless this is the first
  snapshot), the snapshot is replaced and every gauge is rewritten.

The whole update for a target runs under that target's lock, so two
overlapping polls of the same target never leave a half-written status
gauge set behind. The last poll to take the lock wins.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from prometheus_client import CollectorRegistry

from .config import DEFAULT_TRACKED_STATUSES
from .logging_config import get_logger
from .metrics import PipelineMetrics
from .models import FetchOutcome, FetchResult, PipelineSnapshot, Target
from .state import SnapshotStore
from .utils import seconds_since

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricsRecorder:
    """Owns the snapshot store and the metric registry."""

    def __init__(
        self,
        tracked_statuses: Optional[Iterable[str]] = None,
        registry: Optional[CollectorRegistry] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self.tracked_statuses = list(tracked_statuses or DEFAULT_TRACKED_STATUSES)
        self.metrics = PipelineMetrics(registry)
        self.store = SnapshotStore()
        self._clock = clock

    @property
    def registry(self) -> CollectorRegistry:
        return self.metrics.registry

    def snapshot_for(self, target: Target) -> Optional[PipelineSnapshot]:
        return self.store.get(target)

    def record(self, target: Target, result: FetchResult) -> None:
        """Apply one fetch result for ``target``."""

        if result.outcome is FetchOutcome.NO_DATA:
            return

        with self.store.locked(target):
            if result.outcome is FetchOutcome.UNCHANGED:
                stored = self.store.get(target)
                if stored is not None:
                    self._refresh_age(target, stored)
                return

            snapshot = result.snapshot
            if snapshot is None:
                raise ValueError("new_snapshot result without a snapshot")

            self._record_new(target, snapshot)

    def _record_new(self, target: Target, snapshot: PipelineSnapshot) -> None:
        labels = {"project": target.name, "ref": target.ref}

        # An overlapping poll may already have stored this same pipeline
        current = self.store.get(target)
        if current is not None and not current.differs_from(snapshot.id, snapshot.status):
            self._refresh_age(target, current)
            return

        # Touch the counter so the series exists at 0 after the first snapshot
        run_count = self.metrics.run_count.labels(**labels)

        previous = self.store.put(target, snapshot)
        if previous is not None:
            run_count.inc()
            logger.info(
                "Pipeline change detected",
                extra={
                    "project": target.name,
                    "ref": target.ref,
                    "pipeline_id": snapshot.id,
                    "status": snapshot.status,
                    "previous_pipeline_id": previous.id,
                    "previous_status": previous.status,
                },
            )

        self.metrics.last_run_duration.labels(**labels).set(snapshot.duration)

        for status in self.tracked_statuses:
            value = 1 if status == snapshot.status else 0
            self.metrics.status.labels(status=status, **labels).set(value)

        self._refresh_age(target, snapshot)

    def _refresh_age(self, target: Target, snapshot: PipelineSnapshot) -> None:
        age = seconds_since(snapshot.created_at, self._clock())
        self.metrics.time_since_last_run.labels(project=target.name, ref=target.ref).set(age)
