"""Unit tests for the repos command."""

from __future__ import annotations

import io

import pytest

from gh_subissue.commands.repos import ReposCommand, ReposOptions, fetch_repositories
from gh_subissue.errors import SubissueError, classify_api_error
from gh_subissue.github.api import (
    CreatedIssue,
    GitHubAPI,
    Issue,
    IssueDraft,
    Project,
    Repository,
    User,
)


def _repo(name: str, *, has_issues: bool = True, archived: bool = False) -> Repository:
    return Repository(name=name, full_name=f"acme/{name}", has_issues=has_issues, archived=archived)


class PagedRepos(GitHubAPI):
    """Serves a fixed list of repositories honouring `per_page` and `page`."""

    def __init__(self, repos: list[Repository], *, login: str = "octocat") -> None:
        self.repos = repos
        self.login = login
        self.pages: list[tuple[str, int, int]] = []

    def list_repositories(self, owner: str, *, per_page: int, page: int) -> list[Repository]:
        self.pages.append((owner, per_page, page))
        start = (page - 1) * per_page
        return self.repos[start : start + per_page]

    def get_authenticated_user(self) -> User:
        if not self.login:
            raise classify_api_error(401, "Bad credentials", "get authenticated user")
        return User(login=self.login)

    def create_issue(self, owner: str, repo: str, draft: IssueDraft) -> CreatedIssue:
        raise NotImplementedError

    def link_sub_issue(self, owner: str, repo: str, parent_number: int, sub_issue_id: int) -> None:
        raise NotImplementedError

    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        raise NotImplementedError

    def list_issues(self, owner: str, repo: str, *, state: str = "open", per_page: int = 30) -> list[Issue]:
        raise NotImplementedError

    def list_sub_issues(self, owner: str, repo: str, parent_number: int) -> list[Issue]:
        raise NotImplementedError

    def list_projects(self, owner: str, repo: str) -> list[Project]:
        raise NotImplementedError

    def get_issue_node_id(self, owner: str, repo: str, number: int) -> str:
        raise NotImplementedError

    def add_issue_to_project(self, project_id: str, issue_node_id: str) -> None:
        raise NotImplementedError


def test_limit_truncates_output() -> None:
    api = PagedRepos([_repo(f"r{i}") for i in range(5)])
    out = io.StringIO()

    ReposCommand(client=api, out=out).run(ReposOptions(owner="acme", limit=3))

    lines = out.getvalue().splitlines()
    assert len(lines) == 4
    assert lines[0] == "REPOSITORY          SUB-ISSUES"
    assert lines[1] == "acme/r0             enabled"
    assert api.pages == [("acme", 3, 1)]


def test_pagination_stops_on_short_page() -> None:
    api = PagedRepos([_repo(f"r{i}") for i in range(150)])

    repos = fetch_repositories(api, "acme", 500)

    assert len(repos) == 150
    assert api.pages == [("acme", 100, 1), ("acme", 100, 2)]


def test_pagination_stops_on_empty_page() -> None:
    api = PagedRepos([_repo(f"r{i}") for i in range(100)])

    repos = fetch_repositories(api, "acme", 300)

    assert len(repos) == 100
    assert api.pages == [("acme", 100, 1), ("acme", 100, 2)]


def test_pagination_truncates_to_limit_across_pages() -> None:
    api = PagedRepos([_repo(f"r{i}") for i in range(250)])

    repos = fetch_repositories(api, "acme", 120)

    assert len(repos) == 120
    assert api.pages == [("acme", 100, 1), ("acme", 100, 2)]


def test_owner_defaults_to_authenticated_user() -> None:
    api = PagedRepos([_repo("solo")])
    out = io.StringIO()

    ReposCommand(client=api, out=out).run(ReposOptions())

    assert api.pages[0][0] == "octocat"


def test_unknown_user_fails_with_example() -> None:
    api = PagedRepos([], login="")

    with pytest.raises(SubissueError, match="could not determine user") as excinfo:
        ReposCommand(client=api, out=io.StringIO()).run(ReposOptions())

    assert "gh subissue repos <owner>" in str(excinfo.value)


def test_status_column_and_filters() -> None:
    repos = [
        _repo("live"),
        _repo("frozen", archived=True),
        _repo("quiet", has_issues=False),
    ]

    out = io.StringIO()
    ReposCommand(client=PagedRepos(repos), out=out).run(ReposOptions(owner="acme", no_header=True))
    assert out.getvalue().splitlines() == [
        "acme/live           enabled",
        "acme/frozen         disabled (archived)",
        "acme/quiet          disabled (issues off)",
    ]

    out = io.StringIO()
    ReposCommand(client=PagedRepos(repos), out=out).run(
        ReposOptions(owner="acme", enabled=True, no_header=True)
    )
    assert out.getvalue().splitlines() == ["acme/live           enabled"]

    out = io.StringIO()
    ReposCommand(client=PagedRepos(repos), out=out).run(
        ReposOptions(owner="acme", disabled=True, no_header=True)
    )
    assert [line.split()[0] for line in out.getvalue().splitlines()] == ["acme/frozen", "acme/quiet"]


def test_enabled_and_disabled_together_match_nothing() -> None:
    out = io.StringIO()

    ReposCommand(client=PagedRepos([_repo("live"), _repo("gone", archived=True)]), out=out).run(
        ReposOptions(owner="acme", enabled=True, disabled=True)
    )

    assert out.getvalue() == "No matching repositories found for acme\n"


def test_no_repositories_message() -> None:
    out = io.StringIO()

    ReposCommand(client=PagedRepos([]), out=out).run(ReposOptions(owner="ghost"))

    assert out.getvalue() == "No repositories found for ghost\n"
