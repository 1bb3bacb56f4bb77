"""The API client contract the commands are written against.

`GitHubClient` is the production implementation; tests provide their own fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class IssueDraft:
    """Everything needed to create an issue. Consumed once by `create_issue`."""

    title: str
    body: str = ""
    labels: tuple[str, ...] = field(default_factory=tuple)
    assignees: tuple[str, ...] = field(default_factory=tuple)
    milestone: int | None = None

    @classmethod
    def build(
        cls,
        *,
        title: str,
        body: str = "",
        labels: list[str] | None = None,
        assignees: list[str] | None = None,
        milestone: int | None = None,
    ) -> IssueDraft:
        """Build a draft, de-duplicating labels and assignees in order."""

        return cls(
            title=title,
            body=body,
            labels=tuple(dict.fromkeys(labels or [])),
            assignees=tuple(dict.fromkeys(assignees or [])),
            milestone=milestone if milestone else None,
        )


@dataclass(frozen=True, slots=True)
class CreatedIssue:
    """Result of creating an issue.

    `internal_id` is what the sub-issue link call needs; `number` is what people see.
    """

    internal_id: int
    number: int
    url: str


@dataclass(frozen=True, slots=True)
class Issue:
    internal_id: int
    number: int
    title: str
    url: str


@dataclass(frozen=True, slots=True)
class Project:
    """A GitHub Project (v2). `id` is the GraphQL node id used by mutations."""

    id: str
    title: str
    number: int


@dataclass(frozen=True, slots=True)
class Repository:
    name: str
    full_name: str
    has_issues: bool
    archived: bool

    @property
    def sub_issues_enabled(self) -> bool:
        return self.has_issues and not self.archived

    @property
    def status(self) -> str:
        if self.archived:
            return "disabled (archived)"
        if not self.has_issues:
            return "disabled (issues off)"
        return "enabled"


@dataclass(frozen=True, slots=True)
class User:
    login: str


class GitHubAPI(ABC):
    """Operations the commands need from GitHub.

    Every method raises a `SubissueError` subclass on failure: `APIError` for
    HTTP failures, `TransportError` when nothing usable came back.
    """

    @abstractmethod
    def create_issue(self, owner: str, repo: str, draft: IssueDraft) -> CreatedIssue:
        """Create an issue from `draft`."""

    @abstractmethod
    def link_sub_issue(self, owner: str, repo: str, parent_number: int, sub_issue_id: int) -> None:
        """Link the issue with internal id `sub_issue_id` under issue `parent_number`."""

    @abstractmethod
    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Fetch a single issue by number."""

    @abstractmethod
    def list_issues(
        self, owner: str, repo: str, *, state: str = "open", per_page: int = 30
    ) -> list[Issue]:
        """List the first page of issues in a repository."""

    @abstractmethod
    def list_sub_issues(self, owner: str, repo: str, parent_number: int) -> list[Issue]:
        """List the children of a parent issue, in API order."""

    @abstractmethod
    def list_projects(self, owner: str, repo: str) -> list[Project]:
        """List the projects linked to a repository."""

    @abstractmethod
    def get_issue_node_id(self, owner: str, repo: str, number: int) -> str:
        """Return the GraphQL node id of an issue."""

    @abstractmethod
    def add_issue_to_project(self, project_id: str, issue_node_id: str) -> None:
        """Add an issue (by node id) to a project (by node id)."""

    @abstractmethod
    def list_repositories(self, owner: str, *, per_page: int, page: int) -> list[Repository]:
        """List one page of repositories for an organisation or user."""

    @abstractmethod
    def get_authenticated_user(self) -> User:
        """Return the user the token belongs to."""

    def close(self) -> None:
        """Release any held connections. The default holds none."""
