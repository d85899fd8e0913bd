"""Loading the per-repository detail view."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Mapping

from .github_client import GitHubRestClient
from .models import Repository

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LanguageShare:
    language: str
    bytes: int
    percentage: float


@dataclass(slots=True)
class RepositoryDetail:
    repository: Repository
    languages: dict[str, int] = field(default_factory=dict)
    readme: str = ""

    @property
    def language_shares(self) -> list[LanguageShare]:
        return language_breakdown(self.languages)


async def load_repository_detail(client: GitHubRestClient, name: str) -> RepositoryDetail:
    """Fetch a repository, its languages and its README concurrently.

    A missing README yields an empty string; any other failure propagates.
    """

    repository, languages, readme = await asyncio.gather(
        client.get_repository(name),
        client.get_languages(name),
        client.get_readme(name),
    )
    LOGGER.debug("Loaded detail for %s (%s languages, readme %s chars)", name, len(languages), len(readme))
    return RepositoryDetail(repository=repository, languages=languages, readme=readme)


def language_breakdown(languages: Mapping[str, int]) -> list[LanguageShare]:
    """Share of each language in bytes, rounded to one decimal, in mapping order."""

    total = sum(languages.values())
    if total <= 0:
        return [LanguageShare(language, size, 0.0) for language, size in languages.items()]
    return [
        LanguageShare(language, size, round(size / total * 100, 1))
        for language, size in languages.items()
    ]


__all__ = ["LanguageShare", "RepositoryDetail", "language_breakdown", "load_repository_detail"]
