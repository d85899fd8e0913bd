"""Exhaustive retrieval of a user's repositories."""

from __future__ import annotations

import logging
from typing import Protocol

from .models import Repository

LOGGER = logging.getLogger(__name__)

DEFAULT_FETCH_PAGE_SIZE = 100


class RepositoryPageSource(Protocol):
    async def list_repositories(self, page: int = 1, per_page: int | None = None) -> list[Repository]:
        ...


async def fetch_all_repositories(
    client: RepositoryPageSource, page_size: int = DEFAULT_FETCH_PAGE_SIZE
) -> list[Repository]:
    """Request pages 1, 2, 3, ... until a page comes back shorter than ``page_size``.

    Pages are requested one after another and concatenated in the order
    GitHub returns them. A failing page request propagates to the caller and
    the repositories collected so far are discarded.
    """

    if page_size <= 0:
        raise ValueError("page_size must be positive")

    repositories: list[Repository] = []
    page = 1
    while True:
        batch = await client.list_repositories(page=page, per_page=page_size)
        LOGGER.debug("Fetched page %s with %s repositories", page, len(batch))
        repositories.extend(batch)
        if len(batch) < page_size:
            break
        page += 1

    LOGGER.info("Fetched %s repositories in %s pages", len(repositories), page)
    return repositories


__all__ = ["DEFAULT_FETCH_PAGE_SIZE", "RepositoryPageSource", "fetch_all_repositories"]
