from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from repo_dashboard.models import Repository

BASE_TIME = datetime(2024, 1, 10, tzinfo=timezone.utc)


def repository_payload(repo_id: int, name: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": repo_id,
        "node_id": f"R_{repo_id}",
        "name": name,
        "full_name": f"octocat/{name}",
        "private": False,
        "owner": {"login": "octocat", "id": 1, "avatar_url": "", "html_url": "https://github.com/octocat"},
        "html_url": f"https://github.com/octocat/{name}",
        "description": None,
        "fork": False,
        "created_at": "2023-01-01T00:00:00Z",
        "updated_at": (BASE_TIME - timedelta(days=repo_id)).isoformat().replace("+00:00", "Z"),
        "pushed_at": "2024-01-01T00:00:00Z",
        "homepage": None,
        "size": 10,
        "stargazers_count": 0,
        "watchers_count": 0,
        "language": None,
        "forks_count": 0,
        "open_issues_count": 0,
        "default_branch": "main",
        "topics": [],
        "visibility": "public",
        "license": None,
    }
    payload.update(overrides)
    return payload


def user_payload(login: str = "octocat") -> dict[str, Any]:
    return {
        "login": login,
        "id": 1,
        "avatar_url": "https://avatars.githubusercontent.com/u/1",
        "html_url": f"https://github.com/{login}",
        "name": "The Octocat",
        "bio": None,
        "public_repos": 8,
        "followers": 100,
        "following": 9,
        "created_at": "2011-01-25T18:44:36Z",
    }


@pytest.fixture
def make_repo() -> Callable[..., Repository]:
    def factory(repo_id: int, name: str | None = None, **overrides: Any) -> Repository:
        return Repository.from_api(repository_payload(repo_id, name or f"repo-{repo_id}", **overrides))

    return factory
