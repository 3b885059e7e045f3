"""
api.main

Notes:
- FastAPI surface of the GitLab CI pipelines exporter.
- Endpoints:
  - GET /health  -> liveness (thread-count threshold)
  - GET /metrics -> Prometheus exposition of the pipeline metrics
- On startup the poll scheduler runs in a background daemon thread;
  on shutdown it is asked to stop (in-flight polls finish or die with the process).

Run locally:
  python -m scripts.run_exporter --config ~/.gitlab-ci-pipelines-exporter.yml
"""

from contextlib import asynccontextmanager  # App lifespan
from threading import Thread  # Background scheduler
from typing import Optional  # Type hints

from fastapi import FastAPI  # API framework

from api.routes.probes import router as probes_router
from src.glexporter.config import ExporterConfig  # Static configuration
from src.glexporter.gitlab_client import GitLabClient  # GitLab API access
from src.glexporter.recorder import MetricsRecorder  # Metric state
from src.glexporter.scheduler import PollScheduler  # Poll loop


def create_app(
    config: ExporterConfig,
    client: Optional[GitLabClient] = None,
    recorder: Optional[MetricsRecorder] = None,
    start_polling: bool = True,
) -> FastAPI:
    """Build the app and wire the scheduler to its lifecycle."""
    client = client or GitLabClient(
        base_url=config.gitlab.url,
        token=config.gitlab.token,
        timeout_seconds=config.request_timeout_seconds,
    )
    recorder = recorder or MetricsRecorder(tracked_statuses=config.tracked_statuses)
    scheduler = PollScheduler(config, client, recorder)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if start_polling:  # Poll in the background
            Thread(target=scheduler.run_forever, daemon=True, name="poll-scheduler").start()
        yield
        scheduler.stop()  # No new cycles after shutdown

    app = FastAPI(title="GitLab CI Pipelines Exporter", version="1.0.0", lifespan=lifespan)  # App instance
    app.state.recorder = recorder
    app.state.scheduler = scheduler
    app.state.liveness_thread_threshold = config.liveness_thread_threshold
    app.include_router(probes_router)

    return app
