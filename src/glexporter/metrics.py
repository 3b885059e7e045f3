from __future__ import annotations

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge

from .config import METRIC_PREFIX

TARGET_LABELS = ["project", "ref"]


class PipelineMetrics:
    """The four exported metric families, bound to one registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.time_since_last_run = Gauge(
            f"{METRIC_PREFIX}_time_since_last_run_seconds",
            "Elapsed time since most recent GitLab CI pipeline run.",
            TARGET_LABELS,
            registry=self.registry,
        )

        self.last_run_duration = Gauge(
            f"{METRIC_PREFIX}_last_run_duration_seconds",
            "Duration of last pipeline run",
            TARGET_LABELS,
            registry=self.registry,
        )

        # Exposed as gitlab_ci_pipeline_run_count_total
        self.run_count = Counter(
            f"{METRIC_PREFIX}_run_count",
            "GitLab CI pipeline run count",
            TARGET_LABELS,
            registry=self.registry,
        )

        self.status = Gauge(
            f"{METRIC_PREFIX}_status",
            "GitLab CI pipeline current status",
            TARGET_LABELS + ["status"],
            registry=self.registry,
        )
