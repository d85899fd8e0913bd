"""Tests for the GitHub REST client."""

from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from conftest import repository_payload, user_payload
from repo_dashboard.config import GitHubSettings
from repo_dashboard.github_client import (
    ForbiddenError,
    GitHubRestClient,
    GitHubStatusError,
    GitHubTransportError,
    NotFoundError,
    UnauthorizedError,
)
from repo_dashboard.models import CreateRepositoryPayload, UpdateRepositoryPayload


def _run(handler, scenario, token: str | None = "secret"):
    async def runner():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as async_client:
            settings = GitHubSettings(username="octocat", token=token, request_timeout=5.0)
            client = GitHubRestClient(settings, async_client)
            return await scenario(client)

    return asyncio.run(runner())


def test_list_repositories_sends_paging_and_sort_parameters():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[repository_payload(1, "demo")])

    repos = _run(handler, lambda client: client.list_repositories(page=3, per_page=50))

    assert [repo.name for repo in repos] == ["demo"]
    request = seen[0]
    assert request.url.path == "/users/octocat/repos"
    assert request.url.params["page"] == "3"
    assert request.url.params["per_page"] == "50"
    assert request.url.params["sort"] == "updated"
    assert request.url.params["direction"] == "desc"
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["Accept"] == "application/vnd.github.v3+json"


def test_requests_omit_authorization_without_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=user_payload())

    user = _run(handler, lambda client: client.get_user(), token=None)

    assert user.login == "octocat"
    assert "Authorization" not in seen[0].headers


@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (422, GitHubStatusError),
        (500, GitHubStatusError),
    ],
)
def test_status_codes_map_to_error_kinds(status, error_type):
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"message": "Nope"})

    with pytest.raises(error_type) as exc:
        _run(handler, lambda client: client.get_repository("demo"))

    assert exc.value.status_code == status
    assert exc.value.message == "Nope"


def test_rate_limited_forbidden_carries_retry_after():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"message": "API rate limit exceeded for 1.2.3.4."},
            headers={"Retry-After": "42"},
        )

    with pytest.raises(ForbiddenError) as exc:
        _run(handler, lambda client: client.get_user())

    assert exc.value.rate_limited is True
    assert exc.value.retry_after == 42.0


def test_transport_failure_is_normalized():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(GitHubTransportError) as exc:
        _run(handler, lambda client: client.get_user())

    assert exc.value.status_code is None


def test_client_does_not_retry():
    calls = 0

    def handler(_: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, json={"message": "Unavailable"})

    with pytest.raises(GitHubStatusError):
        _run(handler, lambda client: client.list_repositories())

    assert calls == 1


def test_readme_returns_raw_text():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="# Demo\n")

    readme = _run(handler, lambda client: client.get_readme("demo"))

    assert readme == "# Demo\n"
    assert seen[0].url.path == "/repos/octocat/demo/readme"
    assert seen[0].headers["Accept"] == "application/vnd.github.v3.raw"


def test_missing_readme_is_empty_string():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    assert _run(handler, lambda client: client.get_readme("demo")) == ""


def test_missing_readme_logs_nothing_above_debug(caplog):
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    with caplog.at_level("DEBUG", logger="repo_dashboard.github_client"):
        assert _run(handler, lambda client: client.get_readme("demo")) == ""

    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]
    assert "No README for demo" in caplog.text


def test_failed_request_is_not_logged_above_debug(caplog):
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "Server Error"})

    with caplog.at_level("DEBUG", logger="repo_dashboard.github_client"):
        with pytest.raises(GitHubStatusError):
            _run(handler, lambda client: client.get_repository("demo"))

    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]


def test_languages_mapping():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"Python": 3000, "Shell": 1000})

    languages = _run(handler, lambda client: client.get_languages("demo"))

    assert languages == {"Python": 3000, "Shell": 1000}


def test_create_repository_posts_payload():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json=repository_payload(7, "demo-1"))

    payload = CreateRepositoryPayload(name="demo-1", description="A demo")
    repository = _run(handler, lambda client: client.create_repository(payload))

    assert repository.id == 7
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/user/repos"
    assert json.loads(seen[0].content) == {
        "name": "demo-1",
        "description": "A demo",
        "private": False,
        "auto_init": True,
    }


def test_update_repository_sends_only_set_fields():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=repository_payload(7, "demo", description=""))

    payload = UpdateRepositoryPayload(description="")
    _run(handler, lambda client: client.update_repository("demo", payload))

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/repos/octocat/demo"
    assert json.loads(seen[0].content) == {"description": ""}


def test_delete_repository_accepts_no_content():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    assert _run(handler, lambda client: client.delete_repository("demo")) is None
    assert seen[0].method == "DELETE"


@pytest.mark.parametrize(
    "operation",
    [
        lambda client: client.create_repository(CreateRepositoryPayload(name="demo-1")),
        lambda client: client.update_repository("demo", UpdateRepositoryPayload(description="x")),
        lambda client: client.delete_repository("demo"),
    ],
)
def test_mutations_require_token(operation):
    calls = 0

    def handler(_: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be reached
        nonlocal calls
        calls += 1
        return httpx.Response(500)

    with pytest.raises(UnauthorizedError):
        _run(handler, operation, token=None)

    assert calls == 0


def test_rate_limit_headers_are_recorded():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=user_payload(),
            headers={
                "X-RateLimit-Limit": "60",
                "X-RateLimit-Remaining": "59",
                "X-RateLimit-Used": "1",
                "X-RateLimit-Reset": "1700000000",
            },
        )

    async def scenario(client: GitHubRestClient):
        await client.get_user()
        return client.rate_limit

    info = _run(handler, scenario)

    assert info is not None
    assert info.remaining == 59
    assert info.limit == 60
    assert info.reset_at.timestamp() == 1700000000


def test_search_is_scoped_to_owner():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"total_count": 1, "items": [repository_payload(1, "demo")]})

    result = _run(handler, lambda client: client.search_repositories("demo in:name", per_page=10))

    assert result.total_count == 1
    assert result.items[0].name == "demo"
    assert seen[0].url.path == "/search/repositories"
    assert seen[0].url.params["q"] == "user:octocat demo in:name"
    assert seen[0].url.params["per_page"] == "10"
