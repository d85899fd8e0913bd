"""Application configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt


UTC = timezone.utc

DEFAULT_USERNAME = "octocat"
DEFAULT_API_URL = "https://api.github.com"


class GitHubSettings(BaseModel):
    """Configuration options for the GitHub REST API."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(default=DEFAULT_USERNAME, min_length=1, description="Owner whose repositories are shown.")
    token: str | None = Field(default=None, description="Personal access token used as bearer credential.")
    api_url: str = Field(default=DEFAULT_API_URL)
    page_size: PositiveInt = Field(default=100, le=100, description="Number of repositories fetched per REST request.")
    request_timeout: float = Field(default=30.0, ge=1.0, description="Timeout for a single HTTP request in seconds.")


class DashboardSettings(BaseModel):
    """Presentation parameters for the repository list."""

    model_config = ConfigDict(frozen=True)

    page_size: PositiveInt = Field(default=20, description="Repositories shown per dashboard page.")
    notice_timeout: PositiveFloat = Field(
        default=5.0, description="Seconds before a success notice is cleared."
    )


class AppConfig(BaseModel):
    """Root configuration container."""

    model_config = ConfigDict(frozen=True)

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None, overrides: dict[str, Any] | None = None) -> "AppConfig":
        """Construct a configuration object from environment variables."""

        env = os.environ if env is None else env
        overrides = overrides or {}

        github = GitHubSettings(
            username=overrides.get("github_username") or env.get("GITHUB_USERNAME") or DEFAULT_USERNAME,
            token=overrides.get("github_token") or env.get("GITHUB_TOKEN") or env.get("GH_TOKEN") or None,
            api_url=overrides.get("github_api_url") or env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            page_size=int(overrides.get("github_page_size") or env.get("GITHUB_PAGE_SIZE", 100)),
            request_timeout=float(overrides.get("github_request_timeout") or env.get("GITHUB_REQUEST_TIMEOUT", 30.0)),
        )

        dashboard = DashboardSettings(
            page_size=int(overrides.get("dashboard_page_size") or env.get("DASHBOARD_PAGE_SIZE", 20)),
            notice_timeout=float(
                overrides.get("dashboard_notice_timeout")
                or env.get("DASHBOARD_NOTICE_TIMEOUT")
                or 5.0
            ),
        )

        return cls(github=github, dashboard=dashboard)


@dataclass(slots=True)
class RateLimitInfo:
    """Snapshot of GitHub's REST rate limit headers."""

    limit: int
    remaining: int
    used: int
    reset_at: datetime


__all__ = [
    "AppConfig",
    "GitHubSettings",
    "DashboardSettings",
    "RateLimitInfo",
    "UTC",
]
