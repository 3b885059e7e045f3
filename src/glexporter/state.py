from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, Optional, Tuple

from .models import PipelineSnapshot, Target

TargetKey = Tuple[str, str]


class SnapshotStore:
    """Last observed pipeline per (project, ref), with one lock per key."""

    def __init__(self) -> None:
        self._snapshots: Dict[TargetKey, PipelineSnapshot] = {}
        self._locks: Dict[TargetKey, Lock] = {}
        self._guard = Lock()

    def _lock_for(self, key: TargetKey) -> Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            return lock

    @contextmanager
    def locked(self, target: Target) -> Iterator[None]:
        """Hold the target's lock for a read-modify-write sequence."""
        with self._lock_for(target.key):
            yield

    def get(self, target: Target) -> Optional[PipelineSnapshot]:
        return self._snapshots.get(target.key)

    def put(self, target: Target, snapshot: PipelineSnapshot) -> Optional[PipelineSnapshot]:
        """Store ``snapshot`` and return the one it replaces (caller holds the lock)."""
        previous = self._snapshots.get(target.key)
        self._snapshots[target.key] = snapshot
        return previous

    def __len__(self) -> int:
        return len(self._snapshots)
