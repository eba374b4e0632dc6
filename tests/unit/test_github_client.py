"""Tests for the GitHub REST client using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from dotsetup.core.errors import GitHubApiError
from dotsetup.github import GitHubClient, GitHubRepo


def _repos(page: int, count: int) -> list[dict]:
    return [
        {"full_name": f"octo/p{page}-r{i}", "clone_url": f"https://github.com/octo/p{page}-r{i}.git"}
        for i in range(count)
    ]


def _paged_transport(sizes: list[int], seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        page = int(request.url.params["page"])
        count = sizes[page - 1] if page <= len(sizes) else 0
        return httpx.Response(200, json=_repos(page, count))

    return httpx.MockTransport(handler)


def test_pagination_stops_at_first_empty_page() -> None:
    seen: list[httpx.Request] = []
    with GitHubClient("tok", transport=_paged_transport([100, 100, 37, 0], seen)) as client:
        repos = client.list_user_repos()

    assert len(repos) == 237
    assert [int(r.url.params["page"]) for r in seen] == [1, 2, 3, 4]


def test_request_shape() -> None:
    seen: list[httpx.Request] = []
    with GitHubClient("tok", api_url="https://ghe.example/api/v3/", transport=_paged_transport([], seen)) as client:
        assert client.list_user_repos() == []

    request = seen[0]
    assert request.url.path == "/api/v3/user/repos"
    assert request.url.params["visibility"] == "all"
    assert request.url.params["affiliation"] == "owner"
    assert request.url.params["per_page"] == "100"
    assert request.url.params["sort"] == "full_name"
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.headers["Accept"] == "application/vnd.github+json"


def test_error_status_raises() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "Bad credentials"}))
    with GitHubClient("bad", transport=transport) as client:
        with pytest.raises(GitHubApiError) as excinfo:
            client.list_user_repos()
    assert excinfo.value.status_code == 401
    assert "401" in str(excinfo.value)


def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with GitHubClient("tok", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(GitHubApiError) as excinfo:
            client.list_user_repos()
    assert excinfo.value.status_code is None


def test_non_list_body_ends_pagination() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"message": "odd"}))
    with GitHubClient("tok", transport=transport) as client:
        assert client.list_user_repos() == []


def test_duplicates_and_malformed_entries_are_dropped() -> None:
    pages = {
        1: [
            {"full_name": "octo/a", "clone_url": "https://github.com/octo/a.git"},
            {"full_name": "octo/b"},
            "junk",
        ],
        2: [{"full_name": "octo/a", "clone_url": "https://github.com/octo/a.git"}],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages.get(int(request.url.params["page"]), []))

    with GitHubClient("tok", transport=httpx.MockTransport(handler)) as client:
        repos = client.list_user_repos()
    assert repos == [GitHubRepo("octo/a", "https://github.com/octo/a.git")]


def test_server_ignoring_page_parameter_does_not_loop() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_repos(1, 1))

    with GitHubClient("tok", transport=httpx.MockTransport(handler)) as client:
        repos = client.list_user_repos()

    assert [r.full_name for r in repos] == ["octo/p1-r0"]
    assert len(seen) == 2
