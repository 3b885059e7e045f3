"""glexporter.gitlab_client

Thin HTTP client for the GitLab REST API (v4).

Only the four calls the exporter needs are wrapped:

- resolve a project path (or numeric id) to its project record,
- list the pipelines of a project for a ref, newest first,
- fetch the detail of a single pipeline,
- list every project owned by the configured token (paginated).

Every failure (transport error, non-2xx status, undecodable body) is
raised as :class:`PlatformAPIError` so callers can isolate it per target.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests

from .config import DEFAULT_GITLAB_URL, DEFAULT_REQUEST_TIMEOUT_SECONDS
from .logging_config import get_logger

logger = get_logger(__name__)


class PlatformAPIError(Exception):
    """Raised when a GitLab API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProjectNotFound(PlatformAPIError):
    """Raised when a project does not exist or is not visible to the token."""


class GitLabClient:
    """GitLab API client over a shared ``requests.Session``.

    Parameters
    ----------
    base_url:
        Root URL of the GitLab instance, e.g. ``https://gitlab.example.com``.
    token:
        Personal/project access token sent as ``PRIVATE-TOKEN``.
    timeout_seconds:
        Per-request timeout.
    per_page:
        Page size used when listing owned projects.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_GITLAB_URL,
        token: str = "",
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        per_page: int = 100,
    ) -> None:
        self._api_url = f"{base_url.rstrip('/')}/api/v4"
        self._timeout_seconds = timeout_seconds
        self._per_page = per_page
        self._session = requests.Session()
        if token:
            self._session.headers["PRIVATE-TOKEN"] = token

    @property
    def api_url(self) -> str:
        return self._api_url

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self._api_url}/{path}"
        logger.debug("GitLabClient: GET %s params=%s", url, params)

        try:
            response = self._session.get(url, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            logger.error("GitLab request failed for %s: %s", path, exc)
            raise PlatformAPIError(f"GitLab request failed for {path!r}: {exc}") from exc

        if response.status_code >= 300:
            # Truncate body in logs to avoid huge messages.
            body_preview = response.text[:500]
            logger.error(
                "GitLab request failed: status=%s path=%s body=%s",
                response.status_code,
                path,
                body_preview,
            )
            raise PlatformAPIError(
                f"GitLab call {path!r} failed with status {response.status_code}",
                status_code=response.status_code,
            )

        return response

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self._get(path, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise PlatformAPIError(f"Invalid JSON in GitLab response for {path!r}") from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_project(self, project: Union[str, int]) -> Dict[str, Any]:
        """Fetch a project by path with namespace (``group/name``) or numeric id.

        Raises
        ------
        ProjectNotFound:
            If GitLab answers 404 for the project.
        PlatformAPIError:
            For any other failure.
        """

        path = f"projects/{quote(str(project), safe='')}"
        try:
            return self._get_json(path)
        except PlatformAPIError as exc:
            if exc.status_code == 404:
                raise ProjectNotFound(
                    f"Unable to fetch project {project!r} from the GitLab API: not found",
                    status_code=404,
                ) from exc
            raise

    def list_pipelines(self, project_id: int, ref: str) -> List[Dict[str, Any]]:
        """List pipelines of a project for ``ref`` in GitLab's order (newest first)."""

        return self._get_json(f"projects/{project_id}/pipelines", params={"ref": ref})

    def get_pipeline(self, project_id: int, pipeline_id: int) -> Dict[str, Any]:
        """Fetch the full record of a single pipeline."""

        return self._get_json(f"projects/{project_id}/pipelines/{pipeline_id}")

    def list_owned_projects(self) -> List[Dict[str, Any]]:
        """List every project owned by the token, following ``X-Next-Page``."""

        projects: List[Dict[str, Any]] = []
        page: Optional[str] = "1"

        while page:
            response = self._get(
                "projects",
                params={"owned": "true", "per_page": self._per_page, "page": page},
            )
            try:
                payload = response.json()
            except ValueError as exc:
                raise PlatformAPIError("Invalid JSON in GitLab response for 'projects'") from exc
            if not isinstance(payload, list):
                raise PlatformAPIError(
                    f"Expected a list of projects from GitLab, got {type(payload).__name__}"
                )
            projects.extend(payload)

            page = response.headers.get("X-Next-Page") or None

        logger.debug("GitLabClient.list_owned_projects: %d project(s)", len(projects))
        return projects
