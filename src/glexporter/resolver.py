"""glexporter.resolver

Notes (what this module does)
- Expands configured project entries into concrete (project, ref) targets.
- A literal project name passes through unchanged.
- The wildcard "*" becomes one target per project owned by the token, reusing the configured ref.
"""

from __future__ import annotations

from typing import Iterable, List

from .config import ProjectEntry
from .gitlab_client import GitLabClient, PlatformAPIError
from .logging_config import get_logger
from .models import Target

logger = get_logger(__name__)


class WildcardExpansionError(Exception):
    """Raised when the owned-projects listing fails for a wildcard entry."""

    def __init__(self, target: Target, cause: Exception) -> None:
        super().__init__(f"Unable to fetch all projects from the GitLab API for ref {target.ref!r}: {cause}")
        self.target = target


def targets_from_config(entries: Iterable[ProjectEntry]) -> List[Target]:
    """Turn configured entries into Targets, keeping their order."""

    return [Target(name=e.name, ref=e.ref) for e in entries]


def expand_wildcard(client: GitLabClient, target: Target) -> List[Target]:
    """Return one Target per owned project, each paired with ``target.ref``.

    Raises:
        WildcardExpansionError: if the owned-projects listing fails.
    """

    logger.info("Wildcard detected: pulling all owned projects with ref %s", target.ref)

    try:
        projects = client.list_owned_projects()
    except PlatformAPIError as exc:
        raise WildcardExpansionError(target, exc) from exc

    try:
        return [Target(name=str(p["path_with_namespace"]), ref=target.ref) for p in projects]
    except (KeyError, TypeError) as exc:
        raise WildcardExpansionError(target, PlatformAPIError(f"Malformed project entry: {exc!r}")) from exc


def resolve(client: GitLabClient, target: Target) -> List[Target]:
    """Concrete targets for one configured entry."""

    if target.is_wildcard:
        return expand_wildcard(client, target)
    return [target]
