"""Minimal GitHub REST client for listing the authenticated user's repositories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from dotsetup import __version__
from dotsetup.config import DEFAULT_GITHUB_API_URL
from dotsetup.core.errors import GitHubApiError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
PER_PAGE = 100
USER_AGENT = f"dotsetup/{__version__}"


@dataclass(frozen=True)
class GitHubRepo:
    """Repository as returned by ``GET /user/repos`` (fields we use)."""

    full_name: str
    clone_url: str

    @classmethod
    def from_payload(cls, payload: Any) -> GitHubRepo | None:
        if not isinstance(payload, dict):
            return None
        full_name = payload.get("full_name")
        clone_url = payload.get("clone_url")
        if not isinstance(full_name, str) or not isinstance(clone_url, str):
            return None
        return cls(full_name=full_name, clone_url=clone_url)


class GitHubClient:
    """Token-authenticated client; pages are fetched strictly one after another."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_GITHUB_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_repo_page(self, page: int) -> list[Any]:
        """Return the raw entries of one page; an empty list ends pagination."""
        params = {
            "visibility": "all",
            "affiliation": "owner",
            "per_page": PER_PAGE,
            "page": page,
            "sort": "full_name",
        }
        try:
            response = self._client.get("/user/repos", params=params)
        except httpx.HTTPError as exc:
            logger.warning("GitHub request failed on page %s: %s", page, exc)
            raise GitHubApiError(f"request failed: {exc}") from exc

        if not response.is_success:
            raise GitHubApiError(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            logger.debug("page %s returned a non-JSON body", page)
            return []
        if not isinstance(payload, list):
            logger.debug("page %s returned %s instead of a list", page, type(payload).__name__)
            return []
        return payload

    def list_user_repos(self) -> list[GitHubRepo]:
        """All repositories owned by the token's user, deduplicated by full name.

        Paging stops at an empty page or at a page that adds no new
        repository, which covers servers that ignore the ``page`` parameter.
        """
        repos: list[GitHubRepo] = []
        seen: set[str] = set()
        page = 1
        while True:
            entries = self.fetch_repo_page(page)
            if not entries:
                break
            added = 0
            for entry in entries:
                repo = GitHubRepo.from_payload(entry)
                if repo is None or repo.full_name in seen:
                    continue
                seen.add(repo.full_name)
                repos.append(repo)
                added += 1
            if not added:
                logger.debug("page %s added no new repositories; stopping", page)
                break
            page += 1
        logger.debug("fetched %d repositories over %d pages", len(repos), page - 1)
        return repos
