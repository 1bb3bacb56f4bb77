"""`create`: create an issue and link it under a parent.

Steps, in order:

1. resolve the parent (prompt from open issues when not given)
2. resolve the title (prompt when not given)
3. resolve the body (`--body-file`, `-` meaning stdin)
4. optionally check the parent exists
5. create the issue
6. link it as a sub-issue; failure here is reported but does not fail the command
7. add it to a project when `--project` was given and the link succeeded
8. print the URL, optionally open it in a browser
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from gh_subissue.commands.projects import ProjectAssignmentError, add_to_project
from gh_subissue.errors import SubissueError, UsageError
from gh_subissue.github.api import CreatedIssue, GitHubAPI, IssueDraft
from gh_subissue.interaction import Prompter, select_parent_issue
from gh_subissue.options import OptionValue
from gh_subissue.repository import TargetRepository

logger = logging.getLogger(__name__)

PARENT_PAGE_SIZE = 30


@dataclass(frozen=True, slots=True)
class CreateOptions:
    parent: int = 0
    title: str = ""
    body: str = ""
    body_file: str = ""
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    milestone: int = 0
    web: bool = False
    project: OptionValue = field(default_factory=OptionValue.unset)


def read_body(path: str, stdin: TextIO | None) -> str:
    """Read the issue body from `path`, or from `stdin` when `path` is `-`."""

    if path == "-":
        if stdin is None:
            raise SubissueError("failed to read from stdin: stdin is not available")
        try:
            return stdin.read()
        except OSError as e:
            raise SubissueError(f"failed to read from stdin: {e}") from e

    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SubissueError(f'failed to read file "{path}": {e}') from e


def resolve_parent(
    client: GitHubAPI,
    repository: TargetRepository,
    parent: int,
    prompter: Prompter | None,
    *,
    required_message: str,
    log: logging.Logger,
) -> int:
    """Return `parent` when given, else let the user pick one of the open issues."""

    if parent != 0:
        return parent

    if prompter is None:
        log.debug("Parent required but no prompter", extra={"reason": "no_prompter"})
        raise UsageError(required_message)

    try:
        issues = client.list_issues(
            repository.owner, repository.name, state="open", per_page=PARENT_PAGE_SIZE
        )
    except SubissueError as e:
        raise SubissueError(f"failed to list issues: {e}") from e

    log.debug("Open issues listed", extra={"count": len(issues)})
    return select_parent_issue(prompter, issues)


class CreateCommand:
    """Runs the create workflow against one repository."""

    def __init__(
        self,
        *,
        client: GitHubAPI,
        repository: TargetRepository,
        out: TextIO,
        stdin: TextIO | None = None,
        prompter: Prompter | None = None,
        validate_parent: bool = False,
        open_browser: Callable[[str], None] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._out = out
        self._stdin = stdin if stdin is not None else sys.stdin
        self._prompter = prompter
        self._validate_parent = validate_parent
        self._open_browser = open_browser
        self._log = log or logger

    def _warn(self, message: str) -> None:
        print(f"Warning: {message}", file=self._out)

    def _resolve_title(self, title: str) -> str:
        if title:
            title = title.strip()
            if not title:
                raise UsageError("title cannot be empty")
            return title

        if self._prompter is None:
            raise UsageError(
                "--title flag is required when not running interactively\n\n"
                "Tip: Run in a terminal for interactive input, "
                "or use --title to specify the issue title"
            )

        try:
            entered = self._prompter.input("Title", "")
        except SubissueError as e:
            raise SubissueError(f"failed to get title: {e}") from e

        entered = entered.strip()
        if not entered:
            raise UsageError("title cannot be empty")
        return entered

    def _link(self, parent: int, created: CreatedIssue) -> bool:
        repo = self._repository
        try:
            self._client.link_sub_issue(repo.owner, repo.name, parent, created.internal_id)
        except SubissueError as e:
            # The issue exists already; leave it and tell the user how to link it.
            self._log.debug(
                "Linking failed", extra={"error": str(e), "issue_url": created.url}
            )
            self._warn(f"Issue created but failed to link as sub-issue: {e}")
            print(f"Issue URL: {created.url}", file=self._out)
            print("To manually link, run:", file=self._out)
            print(
                f"  gh api repos/{repo.owner}/{repo.name}/issues/{parent}/sub_issues"
                f" -f sub_issue_id={created.internal_id}",
                file=self._out,
            )
            return False
        return True

    def run(self, opts: CreateOptions) -> CreatedIssue:
        repo = self._repository
        self._log.debug(
            "Create started",
            extra={
                "repository": repo.full_name,
                "parent": opts.parent,
                "title": opts.title,
                "has_prompter": self._prompter is not None,
            },
        )

        parent = resolve_parent(
            self._client,
            repo,
            opts.parent,
            self._prompter,
            required_message=(
                "--parent flag is required when not running interactively\n\n"
                "Tip: Run in a terminal for interactive parent selection, "
                "or use --parent to specify the parent issue number"
            ),
            log=self._log,
        )
        title = self._resolve_title(opts.title)

        body = opts.body
        if opts.body_file:
            body = read_body(opts.body_file, self._stdin)

        if self._validate_parent:
            try:
                self._client.get_issue(repo.owner, repo.name, parent)
            except SubissueError as e:
                raise SubissueError(f"parent issue #{parent} not found: {e}") from e

        draft = IssueDraft.build(
            title=title,
            body=body,
            labels=opts.labels,
            assignees=opts.assignees,
            milestone=opts.milestone,
        )
        created = self._client.create_issue(repo.owner, repo.name, draft)

        linked = self._link(parent, created)

        if linked and opts.project.present:
            try:
                add_to_project(
                    self._client,
                    repo,
                    created.number,
                    opts.project,
                    prompter=self._prompter,
                    log=self._log,
                )
            except ProjectAssignmentError as e:
                self._warn(str(e))

        print(created.url, file=self._out)

        if opts.web and self._open_browser is not None:
            try:
                self._open_browser(created.url)
            except SubissueError as e:
                self._warn(f"failed to open browser: {e}")

        self._log.debug("Create finished", extra={"url": created.url})
        return created
