"""View state for the repository dashboard."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Mapping

from pydantic import ValidationError

from .config import DashboardSettings
from .fetcher import DEFAULT_FETCH_PAGE_SIZE, fetch_all_repositories
from .github_client import GitHubClientError, GitHubRestClient
from .models import CreateRepositoryPayload, GitHubUser, Repository, UpdateRepositoryPayload
from .pagination import Pagination, calculate_pagination
from .pipeline import QueryState, SortKey, apply_query, unique_languages

LOGGER = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load repositories. Please check your configuration and try again."
CONFIRMATION_MISMATCH_MESSAGE = "Repository name does not match. Please type the exact repository name."

_ERROR_DESCRIPTIONS = {
    "network": "Network error: no response from GitHub API.",
    "unauthorized": "Unauthorized: invalid or missing GitHub token.",
    "forbidden": "Forbidden: rate limit exceeded or insufficient permissions.",
    "not_found": "Not found: the repository does not exist.",
}


class ControllerState(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


class ConfirmationMismatchError(ValueError):
    """The typed confirmation does not match the repository name."""


def confirm_deletion(repository: Repository, confirmation: str) -> None:
    """Require ``confirmation`` to equal the repository name exactly (case-sensitive, untrimmed)."""

    if confirmation != repository.name:
        raise ConfirmationMismatchError(CONFIRMATION_MISMATCH_MESSAGE)


def describe_error(exc: GitHubClientError) -> str:
    """User-facing description of a client failure."""

    description = _ERROR_DESCRIPTIONS.get(exc.kind)
    if description is None:
        return f"GitHub API error: {exc.message}"
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        description = f"{description} Retry in {int(retry_after)}s."
    return description


class DashboardController:
    """Owns the fetched repositories and the query state of the dashboard.

    CRUD confirmations from GitHub mutate the local collection directly; the
    collection is never re-fetched after :meth:`initialize`.
    """

    def __init__(
        self,
        client: GitHubRestClient,
        settings: DashboardSettings | None = None,
        *,
        fetch_page_size: int = DEFAULT_FETCH_PAGE_SIZE,
    ) -> None:
        self._client = client
        self._settings = settings or DashboardSettings()
        self._fetch_page_size = fetch_page_size
        self._repositories: list[Repository] = []
        self._notice_handle: asyncio.TimerHandle | None = None
        self.state = ControllerState.INITIALIZING
        self.user: GitHubUser | None = None
        self.error: str | None = None
        self.notice: str | None = None
        self.operation_error: str | None = None
        self.query = QueryState()

    async def initialize(self) -> ControllerState:
        """Fetch the owner profile and every repository concurrently."""

        self.state = ControllerState.INITIALIZING
        self.error = None
        try:
            user, repositories = await asyncio.gather(
                self._client.get_user(),
                fetch_all_repositories(self._client, self._fetch_page_size),
            )
        except GitHubClientError as exc:
            LOGGER.error("Error fetching dashboard data (%s): %s", exc.kind, exc)
            self.state = ControllerState.ERROR
            self.error = LOAD_ERROR_MESSAGE
            return self.state

        self.user = user
        self._repositories = list(repositories)
        self.query = QueryState()
        self.state = ControllerState.READY
        LOGGER.info("Dashboard ready with %s repositories for %s", len(self._repositories), user.login)
        return self.state

    async def retry(self) -> ControllerState:
        return await self.initialize()

    def teardown(self) -> None:
        if self._notice_handle is not None:
            self._notice_handle.cancel()
            self._notice_handle = None

    @property
    def repositories(self) -> list[Repository]:
        return list(self._repositories)

    @property
    def languages(self) -> list[str]:
        return unique_languages(self._repositories)

    @property
    def filtered(self) -> list[Repository]:
        return apply_query(self._repositories, self.query)

    @property
    def pagination(self) -> Pagination:
        return calculate_pagination(len(self.filtered), self.query.page, self._settings.page_size)

    @property
    def visible(self) -> list[Repository]:
        filtered = self.filtered
        pagination = calculate_pagination(len(filtered), self.query.page, self._settings.page_size)
        return pagination.slice(filtered)

    def set_search(self, search: str) -> None:
        self.query = self.query.with_search(search)

    def set_language(self, language: str) -> None:
        self.query = self.query.with_language(language)

    def set_sort(self, sort: SortKey | str) -> None:
        self.query = self.query.with_sort(sort)

    def set_page(self, page: int) -> None:
        total_pages = self.pagination.total_pages
        self.query = self.query.with_page(min(max(page, 1), max(total_pages, 1)))

    def on_create_success(self, repository: Repository) -> None:
        self._repositories.insert(0, repository)
        self._show_notice(f'Repository "{repository.name}" created successfully!')

    def on_update_success(self, repository: Repository) -> None:
        self._repositories = [
            repository if existing.id == repository.id else existing for existing in self._repositories
        ]
        self._show_notice(f'Repository "{repository.name}" updated successfully!')

    def on_delete_success(self, name: str) -> None:
        self._repositories = [existing for existing in self._repositories if existing.name != name]
        if self.query.page > 1 and self.query.page > self.pagination.total_pages:
            self.query = self.query.with_page(max(self.pagination.total_pages, 1))
        self._show_notice(f'Repository "{name}" deleted successfully!')

    def dismiss_notice(self) -> None:
        if self._notice_handle is not None:
            self._notice_handle.cancel()
            self._notice_handle = None
        self.notice = None

    def clear_operation_error(self) -> None:
        self.operation_error = None

    async def create_repository(
        self, payload: CreateRepositoryPayload | Mapping[str, Any]
    ) -> Repository | None:
        self._require_ready()
        self.operation_error = None
        try:
            if not isinstance(payload, CreateRepositoryPayload):
                payload = CreateRepositoryPayload.model_validate(dict(payload))
        except ValidationError as exc:
            self._fail_validation("create", exc)
            return None

        try:
            repository = await self._client.create_repository(payload)
        except GitHubClientError as exc:
            self._fail("create", exc)
            return None
        self.on_create_success(repository)
        return repository

    async def update_repository(
        self, repository: Repository, payload: UpdateRepositoryPayload | Mapping[str, Any]
    ) -> Repository | None:
        self._require_ready()
        self.operation_error = None
        try:
            if not isinstance(payload, UpdateRepositoryPayload):
                payload = UpdateRepositoryPayload.model_validate(dict(payload))
        except ValidationError as exc:
            self._fail_validation("update", exc)
            return None

        try:
            updated = await self._client.update_repository(repository.name, payload)
        except GitHubClientError as exc:
            self._fail("update", exc)
            return None
        self.on_update_success(updated)
        return updated

    async def delete_repository(self, repository: Repository, confirmation: str) -> bool:
        self._require_ready()
        self.operation_error = None
        try:
            confirm_deletion(repository, confirmation)
        except ConfirmationMismatchError as exc:
            LOGGER.warning("Refusing to delete %s: confirmation mismatch", repository.name)
            self.operation_error = str(exc)
            return False

        try:
            await self._client.delete_repository(repository.name)
        except GitHubClientError as exc:
            self._fail("delete", exc)
            return False
        self.on_delete_success(repository.name)
        return True

    def find(self, name: str) -> Repository | None:
        return next((repo for repo in self._repositories if repo.name == name), None)

    def _require_ready(self) -> None:
        if self.state is not ControllerState.READY:
            raise RuntimeError(f"Dashboard is {self.state.value}, not ready")

    def _fail(self, action: str, exc: GitHubClientError) -> None:
        level = logging.WARNING if getattr(exc, "rate_limited", False) else logging.ERROR
        LOGGER.log(level, "Error trying to %s repository (%s): %s", action, exc.kind, exc)
        self.operation_error = f"Failed to {action} repository. {describe_error(exc)}"

    def _fail_validation(self, action: str, exc: ValidationError) -> None:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}"
            for error in exc.errors()
        )
        LOGGER.warning("Invalid %s request: %s", action, problems)
        self.operation_error = f"Invalid repository details: {problems}"

    def _show_notice(self, message: str) -> None:
        self.dismiss_notice()
        self.notice = message
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._notice_handle = loop.call_later(self._settings.notice_timeout, self.dismiss_notice)


__all__ = [
    "CONFIRMATION_MISMATCH_MESSAGE",
    "ConfirmationMismatchError",
    "ControllerState",
    "DashboardController",
    "LOAD_ERROR_MESSAGE",
    "confirm_deletion",
    "describe_error",
]
