"""Search, language filter and sort over the fetched repository collection."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Sequence

from .models import Repository

ALL_LANGUAGES = "all"


class SortKey(str, Enum):
    UPDATED = "updated"
    NAME = "name"
    STARS = "stars"
    FORKS = "forks"


@dataclass(slots=True, frozen=True)
class QueryState:
    """What the user is currently looking at."""

    search: str = ""
    language: str = ALL_LANGUAGES
    sort: SortKey = SortKey.UPDATED
    page: int = 1

    def with_search(self, search: str) -> "QueryState":
        return replace(self, search=search, page=1)

    def with_language(self, language: str) -> "QueryState":
        return replace(self, language=language, page=1)

    def with_sort(self, sort: SortKey | str) -> "QueryState":
        return replace(self, sort=SortKey(sort), page=1)

    def with_page(self, page: int) -> "QueryState":
        return replace(self, page=page)


def search_repositories(repositories: Iterable[Repository], query: str) -> list[Repository]:
    """Keep repositories whose name or description contains ``query``, ignoring case."""

    needle = query.strip().lower()
    if not needle:
        return list(repositories)
    return [
        repo
        for repo in repositories
        if needle in repo.name.lower()
        or (repo.description is not None and needle in repo.description.lower())
    ]


def filter_by_language(repositories: Iterable[Repository], language: str | None) -> list[Repository]:
    """Keep repositories whose primary language is exactly ``language``."""

    if not language or language == ALL_LANGUAGES:
        return list(repositories)
    return [repo for repo in repositories if repo.language == language]


def sort_repositories(repositories: Iterable[Repository], sort: SortKey | str) -> list[Repository]:
    """Stable sort; equal keys keep their input order."""

    sort = SortKey(sort)
    if sort is SortKey.NAME:
        return sorted(repositories, key=lambda repo: collation_key(repo.name))
    if sort is SortKey.STARS:
        return sorted(repositories, key=lambda repo: repo.stargazers_count, reverse=True)
    if sort is SortKey.FORKS:
        return sorted(repositories, key=lambda repo: repo.forks_count, reverse=True)
    return sorted(repositories, key=lambda repo: repo.updated_at, reverse=True)


def apply_query(repositories: Sequence[Repository], query: QueryState) -> list[Repository]:
    """Search, then filter by language, then sort. Never mutates ``repositories``."""

    result = search_repositories(repositories, query.search)
    result = filter_by_language(result, query.language)
    return sort_repositories(result, query.sort)


def unique_languages(repositories: Iterable[Repository]) -> list[str]:
    return sorted({repo.language for repo in repositories if repo.language is not None})


def collation_key(value: str) -> tuple:
    """Sort key approximating a locale-aware string comparison.

    Case and accents only break ties: whitespace and punctuation sort before
    digits, digits before letters, unaccented before accented and lower case
    before upper case.
    """

    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    primary = tuple((_char_class(char), char.casefold()) for char in base)
    return primary, decomposed.casefold(), value.swapcase()


def _char_class(char: str) -> int:
    if char.isspace():
        return 0
    if char.isdigit():
        return 2
    if char.isalpha():
        return 3
    return 1


__all__ = [
    "ALL_LANGUAGES",
    "QueryState",
    "SortKey",
    "apply_query",
    "collation_key",
    "filter_by_language",
    "search_repositories",
    "sort_repositories",
    "unique_languages",
]
