from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .config import WILDCARD


@dataclass(frozen=True)
class Target:
    """A (project, ref) pair being monitored."""

    name: str
    ref: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.ref)

    @property
    def is_wildcard(self) -> bool:
        return self.name == WILDCARD

    def __str__(self) -> str:
        return f"{self.name}:{self.ref}"


@dataclass(frozen=True)
class PipelineSnapshot:
    """Most recently observed pipeline run for a target."""

    id: int
    status: str
    duration: float
    created_at: datetime

    def differs_from(self, pipeline_id: int, status: str) -> bool:
        return self.id != pipeline_id or self.status != status


class FetchOutcome(str, Enum):
    NO_DATA = "no_data"
    UNCHANGED = "unchanged"
    NEW_SNAPSHOT = "new_snapshot"


@dataclass(frozen=True)
class FetchResult:
    outcome: FetchOutcome
    snapshot: Optional[PipelineSnapshot] = None

    @classmethod
    def no_data(cls) -> "FetchResult":
        return cls(FetchOutcome.NO_DATA)

    @classmethod
    def unchanged(cls) -> "FetchResult":
        return cls(FetchOutcome.UNCHANGED)

    @classmethod
    def new(cls, snapshot: PipelineSnapshot) -> "FetchResult":
        return cls(FetchOutcome.NEW_SNAPSHOT, snapshot)
