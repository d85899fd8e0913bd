"""Schemas for GitHub REST payloads used by the dashboard."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

REPOSITORY_NAME_PATTERN = r"^[A-Za-z0-9._-]+$"


class RepositoryOwner(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    login: str
    id: int
    avatar_url: str = ""
    html_url: str = ""


class RepositoryLicense(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str
    name: str
    url: str | None = None


class Repository(BaseModel):
    """Normalized representation of a repository returned by the REST API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    node_id: str = ""
    name: str
    full_name: str = ""
    private: bool = False
    owner: RepositoryOwner
    html_url: str = ""
    description: str | None = None
    fork: bool = False
    created_at: datetime
    updated_at: datetime
    pushed_at: datetime | None = None
    homepage: str | None = None
    size: NonNegativeInt = 0
    stargazers_count: NonNegativeInt = 0
    watchers_count: NonNegativeInt = 0
    forks_count: NonNegativeInt = 0
    open_issues_count: NonNegativeInt = 0
    language: str | None = None
    default_branch: str = "main"
    topics: list[str] = Field(default_factory=list)
    visibility: str = "public"
    license: RepositoryLicense | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Repository":
        """Convert a REST repository object into a :class:`Repository`."""

        return cls.model_validate(payload)


class GitHubUser(BaseModel):
    """Profile of the repository owner."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    login: str
    id: int
    avatar_url: str = ""
    html_url: str = ""
    name: str | None = None
    company: str | None = None
    blog: str | None = None
    location: str | None = None
    email: str | None = None
    bio: str | None = None
    public_repos: NonNegativeInt = 0
    followers: NonNegativeInt = 0
    following: NonNegativeInt = 0
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.login


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    total_count: NonNegativeInt
    items: list[Repository] = Field(default_factory=list)


class CreateRepositoryPayload(BaseModel):
    """Body of ``POST /user/repos``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, pattern=REPOSITORY_NAME_PATTERN)
    description: str | None = None
    homepage: str | None = None
    private: bool = False
    auto_init: bool = True

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UpdateRepositoryPayload(BaseModel):
    """Partial body of ``PATCH /repos/{owner}/{repo}``; only set fields are sent."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str | None = Field(default=None, min_length=1, pattern=REPOSITORY_NAME_PATTERN)
    description: str | None = None
    homepage: str | None = None
    private: bool | None = None
    default_branch: str | None = Field(default=None, min_length=1)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


__all__ = [
    "CreateRepositoryPayload",
    "GitHubUser",
    "REPOSITORY_NAME_PATTERN",
    "Repository",
    "RepositoryLicense",
    "RepositoryOwner",
    "SearchResult",
    "UpdateRepositoryPayload",
]
