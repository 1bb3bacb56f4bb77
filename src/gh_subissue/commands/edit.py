"""`edit`: change an existing issue. Only project assignment is supported."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TextIO

from gh_subissue.commands.projects import add_to_project
from gh_subissue.errors import UsageError
from gh_subissue.github.api import GitHubAPI, Project
from gh_subissue.interaction import Prompter
from gh_subissue.options import OptionValue
from gh_subissue.repository import TargetRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EditOptions:
    issue_number: int
    project: OptionValue = field(default_factory=OptionValue.unset)


def parse_issue_number(value: str | None) -> int:
    if value is None or value == "":
        raise UsageError("issue number is required")
    if not (value.isascii() and value.isdecimal()) or int(value) <= 0:
        raise UsageError(f"invalid issue number: {value}")
    return int(value)


class EditCommand:
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

    def run(self, opts: EditOptions) -> Project:
        self._log.debug(
            "Edit started",
            extra={
                "issue": opts.issue_number,
                "project": opts.project.value,
                "project_was_set": opts.project.present,
            },
        )

        # Edit has no default action.
        if opts.project.is_unset:
            raise UsageError("no edit options specified (use --project to add to a project)")

        project = add_to_project(
            self._client,
            self._repository,
            opts.issue_number,
            opts.project,
            prompter=self._prompter,
            log=self._log,
        )
        print(f'Added issue #{opts.issue_number} to project "{project.title}"', file=self._out)
        return project
