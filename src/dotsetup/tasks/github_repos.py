"""Clone every repository owned by the authenticated GitHub user."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from dotsetup.config import resolve_clone_dir
from dotsetup.core.errors import CloneError, GitHubApiError
from dotsetup.core.task import EmptyPlan, ItemPlan, Task, TaskPlan, TokenConsumer
from dotsetup.core.types import TaskCheckResult
from dotsetup.github import GitHubClient, GitHubRepo

if TYPE_CHECKING:
    from dotsetup.core.context import ExecutionContext

ClientFactory = Callable[[str, str], GitHubClient]


def _default_client(token: str, api_url: str) -> GitHubClient:
    return GitHubClient(token, api_url=api_url)


def clone_argv(repo: GitHubRepo, target: Path, token: str) -> list[str]:
    """git clone with the token sent as an HTTP header, never embedded in the URL."""
    return [
        "git",
        "-c",
        f"http.extraHeader=Authorization: Bearer {token}",
        "clone",
        repo.clone_url,
        str(target),
    ]


def is_cloned(target: Path) -> bool:
    return (target / ".git").is_dir()


class GitHubClonePlan(ItemPlan[GitHubRepo]):
    """Repositories to clone under ``clone_dir``; all are selected by default."""

    nothing_to_do = "No GitHub repositories available to clone."

    def __init__(self, result: TaskCheckResult, repos: Sequence[GitHubRepo], *, clone_dir: Path, token: str):
        super().__init__(result, repos)
        self.clone_dir = clone_dir
        self._token = token

    @staticmethod
    def item_key(item: GitHubRepo) -> str:
        return item.full_name

    def target_for(self, repo: GitHubRepo) -> Path:
        return self.clone_dir.joinpath(*repo.full_name.split("/"))

    def _apply_items(self, context: ExecutionContext, items: list[GitHubRepo]) -> None:
        log = context.logger
        failed: list[str] = []
        cloned = 0
        for repo in items:
            target = self.target_for(repo)
            if is_cloned(target):
                log.log(f"Already cloned, skipping: {repo.full_name}")
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                log.error(f"Cannot create {target.parent}: {exc}")
                failed.append(repo.full_name)
                continue
            if context.stream(clone_argv(repo, target, self._token)):
                cloned += 1
            else:
                log.error(f"Clone failed: {repo.full_name}")
                failed.append(repo.full_name)
        if failed:
            raise CloneError(failed, total=len(items))
        log.success(f"Cloned {cloned} repositories into {self.clone_dir}.")


class GitHubReposCloneTask(Task, TokenConsumer):
    task_id = "github-repos"
    name = "Clone GitHub Repositories"
    description = "Paste your GitHub token, then select repositories to clone."
    badge = "token required"

    def __init__(self, *, client_factory: ClientFactory = _default_client):
        self._token = ""
        self._client_factory = client_factory

    def set_auth_token(self, token: str) -> None:
        self._token = token.strip()

    def check(self, context: ExecutionContext) -> TaskPlan:
        clone_dir = context.config.clone_dir or resolve_clone_dir()

        if not context.has_tool("git"):
            return EmptyPlan(
                TaskCheckResult(warnings=("git is not installed. Repository cloning will be skipped.",))
            )
        if not self._token:
            return EmptyPlan(
                TaskCheckResult(warnings=("GitHub token is not provided. Repository cloning will be skipped.",))
            )

        try:
            with self._client_factory(self._token, context.config.github_api_url) as client:
                repos = client.list_user_repos()
        except GitHubApiError as exc:
            return EmptyPlan(TaskCheckResult(warnings=(f"Failed to fetch GitHub repository list: {exc}",)))

        if not repos:
            return EmptyPlan(TaskCheckResult(warnings=("No repositories found for the authenticated user.",)))

        result = TaskCheckResult(
            to_install=tuple(repo.full_name for repo in repos),
            warnings=(f"Repositories will be cloned into {clone_dir}.",),
        )
        return GitHubClonePlan(result, repos, clone_dir=clone_dir, token=self._token)
