"""glexporter.fetcher

Notes (what this module does)
- Looks up the newest pipeline for one (project, ref) target.
- Compares its id and status against the snapshot the recorder holds.
- Fetches the full pipeline detail only when something changed.
- Never writes state; recording is the recorder's job.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .gitlab_client import GitLabClient, PlatformAPIError
from .logging_config import get_logger
from .models import FetchResult, PipelineSnapshot, Target
from .utils import parse_timestamp

logger = get_logger(__name__)


def snapshot_from_pipeline(pipeline: Dict[str, Any]) -> PipelineSnapshot:
    """Build a PipelineSnapshot from a GitLab pipeline detail payload."""

    created_at = parse_timestamp(pipeline.get("created_at"))
    if created_at is None:
        raise ValueError(f"Pipeline {pipeline.get('id')} has no created_at")

    return PipelineSnapshot(
        id=int(pipeline["id"]),
        status=str(pipeline["status"]),
        # GitLab reports null while the pipeline has not finished
        duration=float(pipeline.get("duration") or 0),
        created_at=created_at,
    )


def fetch_latest(
    client: GitLabClient,
    target: Target,
    stored: Optional[PipelineSnapshot],
) -> FetchResult:
    """Fetch the newest pipeline of ``target`` relative to ``stored``.

    Args:
        client: GitLab API client.
        target: Concrete (project, ref) pair; never the wildcard.
        stored: Snapshot currently recorded for the target, if any.

    Returns:
        FetchResult.no_data() when the ref has no pipeline yet,
        FetchResult.unchanged() when id and status match ``stored``,
        FetchResult.new(snapshot) otherwise.

    Raises:
        PlatformAPIError: on any GitLab API failure (ProjectNotFound included).
    """

    project = client.get_project(target.name)
    project_id = project["id"]
    logger.info("Polling ID: %s | %s:%s", project_id, target.name, target.ref)

    pipelines = client.list_pipelines(project_id, target.ref)
    if not pipelines:
        return FetchResult.no_data()

    # GitLab already sorts newest first
    latest = pipelines[0]
    latest_id = int(latest["id"])
    latest_status = str(latest["status"])

    if stored is not None and not stored.differs_from(latest_id, latest_status):
        return FetchResult.unchanged()

    detail = client.get_pipeline(project_id, latest_id)
    try:
        snapshot = snapshot_from_pipeline(detail)
    except (KeyError, TypeError, ValueError) as exc:
        raise PlatformAPIError(f"Malformed pipeline {latest_id} for {target}: {exc}") from exc

    return FetchResult.new(snapshot)
