"""Interactive prompting.

`InteractionGate` decides whether prompting is allowed. When it is, commands get
a `Prompter`; when it is not, they get `None`, and every command treats that
absence as "not running interactively".
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TextIO, TypeVar

import questionary

from gh_subissue.errors import PromptAborted, SubissueError
from gh_subissue.github.api import Issue, Project

logger = logging.getLogger(__name__)

T = TypeVar("T")

TITLE_DISPLAY_LIMIT = 50


class Prompter(ABC):
    """Interactive prompts. Both operations block until the user answers."""

    @abstractmethod
    def select(self, prompt: str, options: Sequence[str]) -> int:
        """Ask the user to pick one of `options`; return its index.

        Raises:
            PromptAborted: If the user aborts.
        """

    @abstractmethod
    def input(self, prompt: str, default: str = "") -> str:
        """Ask the user for free text.

        Raises:
            PromptAborted: If the user aborts.
        """


class QuestionaryPrompter(Prompter):
    """`Prompter` backed by questionary."""

    def select(self, prompt: str, options: Sequence[str]) -> int:
        # The choice value is the index, so labels that collide after truncation stay distinct.
        choices = [questionary.Choice(title=label, value=idx) for idx, label in enumerate(options)]
        answer = questionary.select(prompt, choices=choices).ask()
        if answer is None:
            raise PromptAborted(f"{prompt}: selection aborted")
        return int(answer)

    def input(self, prompt: str, default: str = "") -> str:
        answer = questionary.text(prompt, default=default).ask()
        if answer is None:
            raise PromptAborted(f"{prompt}: input aborted")
        return str(answer)


def _isatty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


@dataclass(frozen=True, slots=True)
class InteractionGate:
    """Whether both ends of the terminal are interactive."""

    stdin_is_terminal: bool
    stdout_is_terminal: bool

    @classmethod
    def from_streams(cls, stdin: TextIO, stdout: TextIO, *, force_tty: bool = False) -> InteractionGate:
        """Inspect the streams; `force_tty` makes the output side count as a terminal."""

        gate = cls(
            stdin_is_terminal=_isatty(stdin),
            stdout_is_terminal=force_tty or _isatty(stdout),
        )
        logger.debug(
            "Terminal detection",
            extra={
                "stdin_is_terminal": gate.stdin_is_terminal,
                "output_is_terminal": gate.stdout_is_terminal,
                "force_tty": force_tty,
            },
        )
        return gate

    @property
    def interactive(self) -> bool:
        return self.stdin_is_terminal and self.stdout_is_terminal

    def prompter(self, factory: Callable[[], Prompter] = QuestionaryPrompter) -> Prompter | None:
        if not self.interactive:
            logger.debug("Prompter disabled")
            return None
        logger.debug("Prompter enabled")
        return factory()


@dataclass(frozen=True, slots=True)
class SelectionList(Generic[T]):
    """Labels paired by index with the items they describe."""

    labels: tuple[str, ...]
    items: tuple[T, ...]

    @classmethod
    def build(cls, items: Sequence[T], render: Callable[[T], str]) -> SelectionList[T]:
        return cls(labels=tuple(render(item) for item in items), items=tuple(items))

    def __len__(self) -> int:
        return len(self.items)

    def choose(self, prompter: Prompter, prompt: str) -> T:
        idx = prompter.select(prompt, list(self.labels))
        if not 0 <= idx < len(self.items):
            raise SubissueError(f"{prompt}: invalid selection {idx}")
        return self.items[idx]


def truncate_title(title: str, limit: int = TITLE_DISPLAY_LIMIT) -> str:
    if len(title) > limit:
        return title[: limit - 3] + "..."
    return title


def issue_label(issue: Issue) -> str:
    return f"#{issue.number} {truncate_title(issue.title)}"


def project_label(project: Project) -> str:
    return f"{project.title} (#{project.number})"


def select_parent_issue(prompter: Prompter, issues: Sequence[Issue]) -> int:
    """Prompt for a parent among `issues`; return the chosen issue number."""

    if not issues:
        raise SubissueError(
            "no open issues found in repository\n\n"
            "To create a parent issue first:\n"
            "  gh issue create\n\n"
            "Or use --parent with an existing issue number"
        )

    selection = SelectionList.build(issues, issue_label)
    chosen = selection.choose(prompter, "Select parent issue")
    logger.debug("Parent selected", extra={"number": chosen.number})
    return chosen.number


def select_project(prompter: Prompter, projects: Sequence[Project]) -> Project:
    if not projects:
        raise SubissueError("no projects found for this repository")

    selection = SelectionList.build(projects, project_label)
    chosen = selection.choose(prompter, "Select project")
    logger.debug("Project selected", extra={"project": chosen.title})
    return chosen
