"""
Pytest configuration.

Ensures the project root is on PYTHONPATH so that
imports like `from src.glexporter...` work in local
and CI environments, and provides an in-memory GitLab
stand-in plus a controllable clock.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from src.glexporter.gitlab_client import PlatformAPIError, ProjectNotFound  # noqa: E402

T0 = datetime(2024, 1, 2, 10, 0, 0, tzinfo=timezone.utc)


class FakeGitLabClient:
    """Serves projects and pipelines from dicts instead of HTTP."""

    def __init__(self):
        self.projects = {}  # path_with_namespace -> project id
        self.pipelines = {}  # (project id, ref) -> list, newest first
        self.details = {}  # (project id, pipeline id) -> detail payload
        self.owned = []  # projects returned for the wildcard
        self.failing_projects = set()
        self.fail_owned = False
        self.calls = []

    def add_project(self, name, project_id):
        self.projects[name] = project_id
        self.owned.append({"id": project_id, "path_with_namespace": name})

    def push_pipeline(self, name, ref, pipeline_id, status, duration=None, created_at=T0):
        """Make a pipeline the newest one for (name, ref)."""
        project_id = self.projects[name]
        summary = {"id": pipeline_id, "status": status, "ref": ref}
        runs = [p for p in self.pipelines.get((project_id, ref), []) if p["id"] != pipeline_id]
        self.pipelines[(project_id, ref)] = [summary] + runs
        self.details[(project_id, pipeline_id)] = {
            "id": pipeline_id,
            "status": status,
            "ref": ref,
            "duration": duration,
            "created_at": created_at.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        }

    def get_project(self, project):
        self.calls.append(("get_project", project))
        if project in self.failing_projects:
            raise PlatformAPIError(f"GitLab call for {project!r} failed with status 500", status_code=500)
        if project not in self.projects:
            raise ProjectNotFound(f"Unable to fetch project {project!r}", status_code=404)
        return {"id": self.projects[project], "path_with_namespace": project}

    def list_pipelines(self, project_id, ref):
        self.calls.append(("list_pipelines", project_id, ref))
        return list(self.pipelines.get((project_id, ref), []))

    def get_pipeline(self, project_id, pipeline_id):
        self.calls.append(("get_pipeline", project_id, pipeline_id))
        return dict(self.details[(project_id, pipeline_id)])

    def list_owned_projects(self):
        self.calls.append(("list_owned_projects",))
        if self.fail_owned:
            raise PlatformAPIError("GitLab call 'projects' failed with status 502", status_code=502)
        return list(self.owned)


class FrozenClock:
    def __init__(self, now=T0):
        self.now = now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)

    def __call__(self):
        return self.now


@pytest.fixture
def fake_client():
    return FakeGitLabClient()


@pytest.fixture
def clock():
    return FrozenClock()
