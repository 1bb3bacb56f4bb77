"""`list`: show the sub-issues of a parent issue."""

from __future__ import annotations

import logging
from typing import TextIO

from gh_subissue.commands.create import resolve_parent
from gh_subissue.github.api import GitHubAPI, Issue
from gh_subissue.interaction import Prompter
from gh_subissue.repository import TargetRepository

logger = logging.getLogger(__name__)


class ListCommand:
    def __init__(
        self,
        *,
        client: GitHubAPI,
        repository: TargetRepository,
        out: TextIO,
        prompter: Prompter | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        self._out = out
        self._prompter = prompter
        self._log = log or logger

    def run(self, parent: int = 0) -> list[Issue]:
        parent = resolve_parent(
            self._client,
            self._repository,
            parent,
            self._prompter,
            required_message="--parent flag is required when not running interactively",
            log=self._log,
        )

        repo = self._repository
        children = self._client.list_sub_issues(repo.owner, repo.name, parent)
        self._log.debug("Sub-issues listed", extra={"parent": parent, "count": len(children)})

        if not children:
            print(f"No sub-issues found for issue #{parent}", file=self._out)
            return []

        for issue in children:
            print(f"#{issue.number}\t{issue.title}", file=self._out)
        return children
