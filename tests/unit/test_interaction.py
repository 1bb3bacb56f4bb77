from __future__ import annotations

import io
from collections.abc import Sequence
from unittest.mock import Mock

import pytest

from gh_subissue import interaction
from gh_subissue.errors import PromptAborted, SubissueError
from gh_subissue.github.api import Issue, Project
from gh_subissue.interaction import (
    InteractionGate,
    Prompter,
    QuestionaryPrompter,
    SelectionList,
    issue_label,
    select_parent_issue,
    select_project,
    truncate_title,
)


class TTY(io.StringIO):
    def isatty(self) -> bool:
        return True


class FixedPrompter(Prompter):
    def __init__(self, index: int) -> None:
        self.index = index

    def select(self, prompt: str, options: Sequence[str]) -> int:
        return self.index

    def input(self, prompt: str, default: str = "") -> str:
        return default


@pytest.mark.parametrize(
    ("stdin", "stdout", "force_tty", "expected"),
    [
        (TTY(), TTY(), False, True),
        (TTY(), io.StringIO(), False, False),
        (io.StringIO(), TTY(), False, False),
        (TTY(), io.StringIO(), True, True),
        (io.StringIO(), io.StringIO(), True, False),
    ],
)
def test_gate_requires_both_terminals(
    stdin: io.StringIO, stdout: io.StringIO, force_tty: bool, expected: bool
) -> None:
    gate = InteractionGate.from_streams(stdin, stdout, force_tty=force_tty)

    assert gate.interactive is expected


def test_gate_withholds_prompter_when_not_interactive() -> None:
    factory = Mock()

    assert InteractionGate(stdin_is_terminal=False, stdout_is_terminal=True).prompter(factory) is None
    factory.assert_not_called()


def test_gate_builds_prompter_when_interactive() -> None:
    made = FixedPrompter(0)

    assert InteractionGate(True, True).prompter(lambda: made) is made


def test_truncate_title() -> None:
    assert truncate_title("x" * 50) == "x" * 50
    assert truncate_title("x" * 51) == "x" * 47 + "..."


def test_issue_label_truncates() -> None:
    issue = Issue(internal_id=1, number=7, title="y" * 60, url="")

    assert issue_label(issue) == "#7 " + "y" * 47 + "..."


def test_selection_list_rejects_out_of_range_index() -> None:
    selection = SelectionList.build(["a", "b"], str)

    with pytest.raises(SubissueError, match="invalid selection 5"):
        selection.choose(FixedPrompter(5), "Pick")


def test_select_parent_issue_returns_number() -> None:
    issues = [Issue(internal_id=1, number=3, title="a", url=""), Issue(internal_id=2, number=9, title="b", url="")]

    assert select_parent_issue(FixedPrompter(1), issues) == 9


def test_select_project_requires_projects() -> None:
    with pytest.raises(SubissueError, match="no projects found"):
        select_project(FixedPrompter(0), [])

    project = Project(id="PVT_1", title="Backlog", number=1)
    assert select_project(FixedPrompter(0), [project]) is project


def test_questionary_select_returns_index(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_select(prompt, choices):
        captured["choices"] = choices
        return Mock(ask=Mock(return_value=1))

    monkeypatch.setattr(interaction.questionary, "select", fake_select)

    assert QuestionaryPrompter().select("Pick", ["same", "same"]) == 1
    assert [c.value for c in captured["choices"]] == [0, 1]


def test_questionary_abort_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        interaction.questionary, "text", lambda prompt, default="": Mock(ask=Mock(return_value=None))
    )

    with pytest.raises(PromptAborted):
        QuestionaryPrompter().input("Title")
