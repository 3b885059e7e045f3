"""Unit tests for the thin GitLab HTTP client.

These tests avoid real network access by mocking ``requests.Session``.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from src.glexporter.gitlab_client import GitLabClient, PlatformAPIError, ProjectNotFound


def _response(status_code=200, payload=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.headers = headers or {}
    response.text = "" if payload is None else str(payload)
    return response


@pytest.fixture
def session():
    with patch("src.glexporter.gitlab_client.requests.Session") as session_cls:
        mock_session = MagicMock()
        mock_session.headers = {}
        session_cls.return_value = mock_session
        yield mock_session


def test_token_is_sent_as_private_token_header(session):
    GitLabClient(base_url="https://gitlab.example.com/", token="secret")

    assert session.headers["PRIVATE-TOKEN"] == "secret"


def test_get_project_url_encodes_path(session):
    session.get.return_value = _response(payload={"id": 42, "path_with_namespace": "group/sub/proj"})
    client = GitLabClient(base_url="https://gitlab.example.com", token="t")

    project = client.get_project("group/sub/proj")

    assert project["id"] == 42
    url = session.get.call_args[0][0]
    assert url == "https://gitlab.example.com/api/v4/projects/group%2Fsub%2Fproj"


def test_get_project_404_raises_not_found(session):
    session.get.return_value = _response(status_code=404, payload={"message": "404 Project Not Found"})
    client = GitLabClient(token="t")

    with pytest.raises(ProjectNotFound) as excinfo:
        client.get_project("missing/proj")

    assert excinfo.value.status_code == 404


def test_server_error_raises_platform_error(session):
    session.get.return_value = _response(status_code=500, payload={"message": "boom"})
    client = GitLabClient(token="t")

    with pytest.raises(PlatformAPIError) as excinfo:
        client.list_pipelines(1, "main")

    assert not isinstance(excinfo.value, ProjectNotFound)
    assert excinfo.value.status_code == 500


def test_transport_error_raises_platform_error(session):
    session.get.side_effect = requests.ConnectionError("connection refused")
    client = GitLabClient(token="t")

    with pytest.raises(PlatformAPIError):
        client.get_pipeline(1, 2)


def test_invalid_json_raises_platform_error(session):
    response = _response(payload=None)
    response.json.side_effect = ValueError("not json")
    session.get.return_value = response
    client = GitLabClient(token="t")

    with pytest.raises(PlatformAPIError):
        client.get_pipeline(1, 2)


def test_list_pipelines_filters_by_ref(session):
    session.get.return_value = _response(payload=[{"id": 3, "status": "running"}, {"id": 2, "status": "success"}])
    client = GitLabClient(base_url="https://gitlab.example.com", token="t", timeout_seconds=7)

    pipelines = client.list_pipelines(9, "main")

    assert [p["id"] for p in pipelines] == [3, 2]
    args, kwargs = session.get.call_args
    assert args[0] == "https://gitlab.example.com/api/v4/projects/9/pipelines"
    assert kwargs["params"] == {"ref": "main"}
    assert kwargs["timeout"] == 7


def test_list_owned_projects_follows_pagination(session):
    session.get.side_effect = [
        _response(payload=[{"id": 1, "path_with_namespace": "me/a"}], headers={"X-Next-Page": "2"}),
        _response(payload=[{"id": 2, "path_with_namespace": "me/b"}], headers={"X-Next-Page": ""}),
    ]
    client = GitLabClient(token="t", per_page=1)

    projects = client.list_owned_projects()

    assert [p["path_with_namespace"] for p in projects] == ["me/a", "me/b"]
    assert session.get.call_count == 2
    first_params = session.get.call_args_list[0][1]["params"]
    assert first_params["owned"] == "true"
    assert session.get.call_args_list[1][1]["params"]["page"] == "2"


def test_list_owned_projects_rejects_non_list_payload(session):
    session.get.return_value = _response(payload={"message": "unexpected"})
    client = GitLabClient(token="t")

    with pytest.raises(PlatformAPIError):
        client.list_owned_projects()
