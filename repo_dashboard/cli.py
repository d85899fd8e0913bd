"""Command line interface for the repository dashboard."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import typer

from .config import AppConfig, GitHubSettings, RateLimitInfo
from .controller import ControllerState, DashboardController
from .detail import load_repository_detail
from .formatting import format_date, format_number, relative_time
from .github_client import GitHubClientError, GitHubRestClient, NotFoundError
from .models import GitHubUser, Repository
from .pagination import Pagination
from .pipeline import ALL_LANGUAGES, SortKey

LOGGER = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Browse and manage a user's GitHub repositories.")

README_PREVIEW_LINES = 20


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _build_client(settings: GitHubSettings) -> GitHubRestClient:
    return GitHubRestClient(settings)


def _load_config(username: Optional[str], token: Optional[str]) -> AppConfig:
    overrides: dict[str, Any] = {}
    if username:
        overrides["github_username"] = username
    if token:
        overrides["github_token"] = token
    return AppConfig.from_env(overrides=overrides)


async def _ready_controller(config: AppConfig, client: GitHubRestClient) -> DashboardController:
    controller = DashboardController(client, config.dashboard, fetch_page_size=config.github.page_size)
    if await controller.initialize() is ControllerState.ERROR:
        typer.secho(controller.error or "Failed to load repositories.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return controller


def _finish_operation(controller: DashboardController) -> None:
    if controller.operation_error:
        typer.secho(controller.operation_error, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if controller.notice:
        typer.secho(controller.notice, fg=typer.colors.GREEN)
    controller.teardown()


UsernameOption = typer.Option(None, "--username", "-u", help="Repository owner (defaults to GITHUB_USERNAME)")
TokenOption = typer.Option(None, "--token", envvar="GITHUB_TOKEN", help="GitHub token")
LogLevelOption = typer.Option("WARNING", help="Logging level")


@app.command("list")
def list_repositories(
    search: str = typer.Option("", "--search", "-s", help="Match name or description"),
    language: str = typer.Option(ALL_LANGUAGES, "--language", "-l", help="Exact primary language"),
    sort: SortKey = typer.Option(SortKey.UPDATED, help="Sort order"),
    page: int = typer.Option(1, min=1, help="Page to show"),
    username: Optional[str] = UsernameOption,
    token: Optional[str] = TokenOption,
    log_level: str = LogLevelOption,
) -> None:
    """Show one page of the owner's repositories."""

    configure_logging(log_level)
    config = _load_config(username, token)

    async def runner() -> None:
        async with _build_client(config.github) as client:
            controller = await _ready_controller(config, client)
            if language != ALL_LANGUAGES and language not in controller.languages:
                raise typer.BadParameter(
                    f"Unknown language {language!r}; choose from: {', '.join(controller.languages) or 'none'}"
                )
            controller.set_search(search)
            controller.set_language(language)
            controller.set_sort(sort)
            controller.set_page(page)

            if controller.user is not None:
                _echo_user_header(controller.user)
            visible = controller.visible
            if not visible:
                typer.echo("No repositories found.")
            for repository in visible:
                _echo_repository_line(repository)
            _echo_footer(controller.pagination, len(controller.filtered), client.rate_limit)

    asyncio.run(runner())


@app.command("languages")
def list_languages(
    username: Optional[str] = UsernameOption,
    token: Optional[str] = TokenOption,
    log_level: str = LogLevelOption,
) -> None:
    """List the distinct primary languages across the owner's repositories."""

    configure_logging(log_level)
    config = _load_config(username, token)

    async def runner() -> None:
        async with _build_client(config.github) as client:
            controller = await _ready_controller(config, client)
            for language in controller.languages:
                typer.echo(language)

    asyncio.run(runner())


@app.command("show")
def show_repository(
    name: str = typer.Argument(..., help="Repository name"),
    username: Optional[str] = UsernameOption,
    token: Optional[str] = TokenOption,
    log_level: str = LogLevelOption,
) -> None:
    """Show details, language breakdown and README of a repository."""

    configure_logging(log_level)
    config = _load_config(username, token)

    async def runner() -> None:
        async with _build_client(config.github) as client:
            try:
                detail = await load_repository_detail(client, name)
            except NotFoundError:
                LOGGER.error("Repository %s not found", name)
                typer.secho(f"Repository {name!r} not found.", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=1)
            except GitHubClientError as exc:
                LOGGER.error("Error loading repository %s (%s): %s", name, exc.kind, exc)
                typer.secho(f"Failed to load repository details: {exc}", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=1)

        repo = detail.repository
        typer.secho(repo.full_name or repo.name, bold=True)
        if repo.description:
            typer.echo(repo.description)
        typer.echo(
            f"Stars {format_number(repo.stargazers_count)} | Forks {format_number(repo.forks_count)} | "
            f"Open issues {format_number(repo.open_issues_count)} | Watchers {format_number(repo.watchers_count)}"
        )
        typer.echo(f"Visibility: {'private' if repo.private else 'public'}  Default branch: {repo.default_branch}")
        typer.echo(f"Created {format_date(repo.created_at)}, updated {relative_time(repo.updated_at)}")
        if repo.pushed_at:
            typer.echo(f"Last push {format_date(repo.pushed_at)}")
        if repo.homepage:
            typer.echo(f"Homepage: {repo.homepage}")
        if repo.license:
            typer.echo(f"License: {repo.license.name}")
        if repo.topics:
            typer.echo(f"Topics: {', '.join(repo.topics)}")

        shares = detail.language_shares
        if shares:
            typer.echo("")
            typer.secho("Languages", bold=True)
            for share in shares:
                typer.echo(f"  {share.language:<20} {share.percentage:5.1f}%  {format_number(share.bytes)} bytes")

        typer.echo("")
        typer.secho("README", bold=True)
        if detail.readme:
            lines = detail.readme.splitlines()
            typer.echo("\n".join(lines[:README_PREVIEW_LINES]))
            if len(lines) > README_PREVIEW_LINES:
                typer.echo(f"... ({len(lines) - README_PREVIEW_LINES} more lines)")
        else:
            typer.echo("No README found.")

    asyncio.run(runner())


@app.command("create")
def create_repository(
    name: str = typer.Argument(..., help="Name of the new repository"),
    description: Optional[str] = typer.Option(None, help="Short description"),
    homepage: Optional[str] = typer.Option(None, help="Homepage URL"),
    private: bool = typer.Option(False, "--private", help="Create a private repository"),
    auto_init: bool = typer.Option(True, "--auto-init/--no-auto-init", help="Initialize with a README"),
    username: Optional[str] = UsernameOption,
    token: Optional[str] = TokenOption,
    log_level: str = LogLevelOption,
) -> None:
    """Create a repository for the authenticated user."""

    configure_logging(log_level)
    config = _load_config(username, token)
    fields: dict[str, Any] = {"name": name, "private": private, "auto_init": auto_init}
    if description is not None:
        fields["description"] = description
    if homepage is not None:
        fields["homepage"] = homepage

    async def runner() -> None:
        async with _build_client(config.github) as client:
            controller = await _ready_controller(config, client)
            await controller.create_repository(fields)
            _finish_operation(controller)

    asyncio.run(runner())


@app.command("update")
def update_repository(
    name: str = typer.Argument(..., help="Repository to update"),
    new_name: Optional[str] = typer.Option(None, "--name", help="Rename the repository"),
    description: Optional[str] = typer.Option(None, help="New description"),
    homepage: Optional[str] = typer.Option(None, help="New homepage URL"),
    private: Optional[bool] = typer.Option(None, "--private/--public", help="Change visibility"),
    username: Optional[str] = UsernameOption,
    token: Optional[str] = TokenOption,
    log_level: str = LogLevelOption,
) -> None:
    """Update fields of an existing repository."""

    configure_logging(log_level)
    config = _load_config(username, token)
    fields = {
        key: value
        for key, value in {
            "name": new_name,
            "description": description,
            "homepage": homepage,
            "private": private,
        }.items()
        if value is not None
    }
    if not fields:
        raise typer.BadParameter("Nothing to update; pass at least one option")

    async def runner() -> None:
        async with _build_client(config.github) as client:
            controller = await _ready_controller(config, client)
            repository = _require_repository(controller, name)
            await controller.update_repository(repository, fields)
            _finish_operation(controller)

    asyncio.run(runner())


@app.command("delete")
def delete_repository(
    name: str = typer.Argument(..., help="Repository to delete"),
    confirm: str = typer.Option(..., prompt="Type the repository name to confirm", help="Repository name, typed again"),
    username: Optional[str] = UsernameOption,
    token: Optional[str] = TokenOption,
    log_level: str = LogLevelOption,
) -> None:
    """Delete a repository after the name is typed again exactly."""

    configure_logging(log_level)
    config = _load_config(username, token)

    async def runner() -> None:
        async with _build_client(config.github) as client:
            controller = await _ready_controller(config, client)
            repository = _require_repository(controller, name)
            await controller.delete_repository(repository, confirm)
            _finish_operation(controller)

    asyncio.run(runner())


def _require_repository(controller: DashboardController, name: str) -> Repository:
    repository = controller.find(name)
    if repository is None:
        typer.secho(f"Repository {name!r} not found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return repository


def _echo_user_header(user: GitHubUser) -> None:
    typer.secho(user.display_name, bold=True)
    if user.bio:
        typer.echo(user.bio)
    typer.echo(
        f"{user.public_repos} repositories • {user.followers} followers • {user.following} following"
    )
    typer.echo("")


def _echo_repository_line(repository: Repository) -> None:
    visibility = " [private]" if repository.private else ""
    language = repository.language or "-"
    typer.echo(
        f"{repository.name}{visibility}  {language}  "
        f"★ {format_number(repository.stargazers_count)}  "
        f"forks {format_number(repository.forks_count)}  "
        f"updated {relative_time(repository.updated_at)}"
    )
    if repository.description:
        typer.echo(f"    {repository.description}")


def _echo_footer(pagination: Pagination, total: int, rate_limit: RateLimitInfo | None) -> None:
    typer.echo("")
    if pagination.total_pages:
        typer.echo(
            f"Showing {pagination.start_index + 1}-{pagination.end_index} of {total} "
            f"(page {pagination.current_page}/{pagination.total_pages})"
        )
    if rate_limit is not None:
        typer.echo(f"Rate limit remaining: {rate_limit.remaining}/{rate_limit.limit}")


def main() -> None:
    app()


__all__ = ["app", "main"]
