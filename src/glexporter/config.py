"""glexporter.config

Notes (what this module does)
- Centralizes constants used across the resolver, fetcher, recorder and scheduler.
- Defines the configuration schema (pydantic) for the exporter YAML file.
- Loads and validates the configuration file; any problem surfaces as ConfigError.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Union

import yaml  # YAML config parsing
from pydantic import BaseModel, Field, ValidationError, field_validator  # Validation

# -----------------------------
# Defaults
# -----------------------------

# Where the config file lives unless --config says otherwise
DEFAULT_CONFIG_PATH = "~/.gitlab-ci-pipelines-exporter.yml"

# Address the HTTP surface binds to (":8080" means all interfaces)
DEFAULT_LISTEN_ADDRESS = ":8080"

# Public GitLab, used when the config does not name an instance
DEFAULT_GITLAB_URL = "https://gitlab.com"

# Environment variable consulted when the config file carries no token
GITLAB_TOKEN_ENV = "GITLAB_TOKEN"

# Seconds between two poll cycles
DEFAULT_POLLING_INTERVAL_SECONDS = 30

# Per-request timeout against the GitLab API
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30

# Liveness fails once more threads than this are alive
DEFAULT_LIVENESS_THREAD_THRESHOLD = 50

# -----------------------------
# Polling semantics
# -----------------------------

# Project name meaning "every project owned by the configured token"
WILDCARD = "*"

# Pipeline statuses exposed as gitlab_ci_pipeline_status series
DEFAULT_TRACKED_STATUSES = ["success", "failed", "running"]

# Prefix shared by every exported metric family
METRIC_PREFIX = "gitlab_ci_pipeline"


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or is invalid."""


class GitLabSettings(BaseModel):
    """Connection settings for the GitLab instance."""

    url: str = DEFAULT_GITLAB_URL
    token: str = ""


class ProjectEntry(BaseModel):
    """One configured (project, ref) pair; name may be the wildcard."""

    name: str = Field(..., min_length=1)
    ref: str = Field(..., min_length=1)


class ExporterConfig(BaseModel):
    """Static configuration available to the exporter at startup."""

    gitlab: GitLabSettings = Field(default_factory=GitLabSettings)
    polling_interval_seconds: int = Field(default=DEFAULT_POLLING_INTERVAL_SECONDS, ge=1)
    projects: List[ProjectEntry]
    tracked_statuses: List[str] = Field(default_factory=lambda: list(DEFAULT_TRACKED_STATUSES))
    skip_overlapping_polls: bool = False
    request_timeout_seconds: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)
    liveness_thread_threshold: int = Field(default=DEFAULT_LIVENESS_THREAD_THRESHOLD, ge=1)

    @field_validator("projects")
    @classmethod
    def _at_least_one_project(cls, value: List[ProjectEntry]) -> List[ProjectEntry]:
        if not value:
            raise ValueError("You need to configure at least one project/ref to poll, none given")
        return value

    @field_validator("tracked_statuses")
    @classmethod
    def _non_empty_statuses(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("tracked_statuses must name at least one pipeline status")
        # Keep the configured order but drop duplicates
        return list(dict.fromkeys(value))


def parse_config(raw: Optional[dict]) -> ExporterConfig:
    """Validate an already-parsed config mapping.

    Args:
        raw: Mapping loaded from YAML (None for an empty document).

    Returns:
        A validated ExporterConfig. The token falls back to $GITLAB_TOKEN.
    """

    if raw is None:
        raise ConfigError("Configuration is empty")
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(raw).__name__}")

    try:
        cfg = ExporterConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Unable to parse config file: {exc}") from exc

    if not cfg.gitlab.token:
        cfg.gitlab.token = os.getenv(GITLAB_TOKEN_ENV, "")

    return cfg


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> ExporterConfig:
    """Read, parse and validate the YAML config file at ``path``."""

    p = Path(os.path.expanduser(str(path)))

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Couldn't open config file {p}: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse config file {p}: {exc}") from exc

    return parse_config(raw)
