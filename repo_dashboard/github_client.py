"""HTTP client for interacting with GitHub's REST API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import GitHubSettings, RateLimitInfo
from .models import (
    CreateRepositoryPayload,
    GitHubUser,
    Repository,
    SearchResult,
    UpdateRepositoryPayload,
)

LOGGER = logging.getLogger(__name__)

RAW_ACCEPT = "application/vnd.github.v3.raw"

ModelT = TypeVar("ModelT", bound=BaseModel)


class GitHubClientError(RuntimeError):
    """Raised when a REST request fails."""

    kind = "error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GitHubTransportError(GitHubClientError):
    """No response was received from GitHub."""

    kind = "network"


class UnauthorizedError(GitHubClientError):
    """The credential is missing or invalid."""

    kind = "unauthorized"


class ForbiddenError(GitHubClientError):
    """GitHub refused the request: rate limited or insufficient permissions."""

    kind = "forbidden"

    def __init__(
        self,
        message: str,
        status_code: int | None = 403,
        *,
        retry_after: float | None = None,
        rate_limited: bool = False,
    ) -> None:
        super().__init__(message, status_code)
        self.retry_after = retry_after
        self.rate_limited = rate_limited


class NotFoundError(GitHubClientError):
    """The requested resource does not exist."""

    kind = "not_found"


class GitHubStatusError(GitHubClientError):
    """Any other non-success HTTP status."""

    kind = "status"


class GitHubRestClient:
    """Thin REST client scoped to a single repository owner. Does not retry."""

    def __init__(self, settings: GitHubSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._username = settings.username
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
            "User-Agent": "repo-dashboard",
        }
        if settings.token:
            headers["Authorization"] = f"Bearer {settings.token}"
        self._base_url = settings.api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            headers=headers,
            timeout=settings.request_timeout,
        )
        self._headers = headers
        self._owns_client = client is None
        self._rate_limit: RateLimitInfo | None = None

    async def __aenter__(self) -> "GitHubRestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def rate_limit(self) -> RateLimitInfo | None:
        """Rate limit headers of the most recent response, if GitHub sent them."""

        return self._rate_limit

    async def get_user(self) -> GitHubUser:
        data = await self._request_json("GET", f"/users/{self._username}")
        return _parse(GitHubUser, data)

    async def list_repositories(self, page: int = 1, per_page: int | None = None) -> list[Repository]:
        """Fetch a single page of the owner's repositories, most recently updated first."""

        params = {
            "page": page,
            "per_page": per_page or self._settings.page_size,
            "sort": "updated",
            "direction": "desc",
        }
        data = await self._request_json("GET", f"/users/{self._username}/repos", params=params)
        if not isinstance(data, list):
            raise GitHubClientError("Expected a list of repositories")
        return [_parse(Repository, item) for item in data]

    async def get_repository(self, name: str) -> Repository:
        data = await self._request_json("GET", self._repo_path(name))
        return _parse(Repository, data)

    async def search_repositories(self, query: str, page: int = 1, per_page: int | None = None) -> SearchResult:
        params = {
            "q": f"user:{self._username} {query}".strip(),
            "page": page,
            "per_page": per_page or self._settings.page_size,
            "sort": "updated",
        }
        data = await self._request_json("GET", "/search/repositories", params=params)
        return _parse(SearchResult, data)

    async def create_repository(self, payload: CreateRepositoryPayload) -> Repository:
        self._require_token("create repositories")
        data = await self._request_json("POST", "/user/repos", json=payload.to_json())
        repository = _parse(Repository, data)
        LOGGER.info("Created repository %s", repository.full_name or repository.name)
        return repository

    async def update_repository(self, name: str, payload: UpdateRepositoryPayload) -> Repository:
        self._require_token("update repositories")
        data = await self._request_json("PATCH", self._repo_path(name), json=payload.to_json())
        repository = _parse(Repository, data)
        LOGGER.info("Updated repository %s", name)
        return repository

    async def delete_repository(self, name: str) -> None:
        self._require_token("delete repositories")
        await self._request("DELETE", self._repo_path(name))
        LOGGER.info("Deleted repository %s", name)

    async def get_languages(self, name: str) -> dict[str, int]:
        """Return the language to byte count mapping of a repository."""

        data = await self._request_json("GET", f"{self._repo_path(name)}/languages")
        if not isinstance(data, dict):
            raise GitHubClientError("Expected a language mapping")
        return {str(language): int(size) for language, size in data.items()}

    async def get_readme(self, name: str) -> str:
        """Return the raw README text, or an empty string when there is none."""

        try:
            response = await self._request(
                "GET",
                f"{self._repo_path(name)}/readme",
                headers={"Accept": RAW_ACCEPT},
            )
        except GitHubClientError as exc:
            LOGGER.debug("No README for %s: %s", name, exc)
            return ""
        return response.text

    def _repo_path(self, name: str) -> str:
        return f"/repos/{self._username}/{name}"

    def _require_token(self, action: str) -> None:
        if not self._settings.token:
            raise UnauthorizedError(f"A GitHub token is required to {action}")

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubClientError("GitHub returned a malformed JSON body", response.status_code) from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", None) or {})
        try:
            response = await self._client.request(method, f"{self._base_url}{path}", headers=headers, **kwargs)
        except httpx.RequestError as exc:
            LOGGER.debug("%s %s got no response: %s", method, path, exc)
            raise GitHubTransportError(f"No response from GitHub API: {exc}") from exc

        self._record_rate_limit(response)
        if response.is_success:
            return response
        error = _status_error(response)
        LOGGER.debug("%s %s failed with %s (%s): %s", method, path, response.status_code, error.kind, error.message)
        raise error

    def _record_rate_limit(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")
        if remaining is None or reset is None:
            return
        try:
            self._rate_limit = RateLimitInfo(
                limit=int(response.headers.get("X-RateLimit-Limit", 0)),
                remaining=int(remaining),
                used=int(response.headers.get("X-RateLimit-Used", 0)),
                reset_at=datetime.fromtimestamp(int(reset), tz=timezone.utc),
            )
        except ValueError:
            LOGGER.debug("Ignoring malformed rate limit headers: %s", dict(response.headers))


def _status_error(response: httpx.Response) -> GitHubClientError:
    status = response.status_code
    message = _error_message(response)

    if status == 401:
        return UnauthorizedError(message, status)
    if status == 403:
        rate_limited = "rate limit" in message.lower() or response.headers.get("X-RateLimit-Remaining") == "0"
        retry_after = _retry_after_seconds(response) if rate_limited else None
        return ForbiddenError(message, status, retry_after=retry_after, rate_limited=rate_limited)
    if status == 404:
        return NotFoundError(message, status)
    return GitHubStatusError(message, status)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value:
        try:
            return max(float(value), 0.0)
        except (TypeError, ValueError):
            pass
        try:
            retry_at = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            retry_at = None
        if retry_at is not None:
            if retry_at.tzinfo is None:
                retry_at = retry_at.replace(tzinfo=timezone.utc)
            return max((retry_at - datetime.now(timezone.utc)).total_seconds(), 0.0)

    reset = response.headers.get("X-RateLimit-Reset")
    if not reset:
        return None
    try:
        return max(float(reset) - datetime.now(timezone.utc).timestamp(), 0.0)
    except ValueError:
        return None


def _parse(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        LOGGER.debug("Unexpected %s payload from GitHub: %s", model.__name__, exc)
        raise GitHubClientError(f"Unexpected {model.__name__} payload from GitHub") from exc


__all__ = [
    "ForbiddenError",
    "GitHubClientError",
    "GitHubRestClient",
    "GitHubStatusError",
    "GitHubTransportError",
    "NotFoundError",
    "UnauthorizedError",
]
