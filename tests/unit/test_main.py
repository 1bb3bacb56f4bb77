"""End-to-end tests for the CLI entrypoint with the API client mocked."""

from __future__ import annotations

import io
from unittest.mock import Mock

import pytest
import requests

from gh_subissue import __version__
from gh_subissue.config import SubissueSettings
from gh_subissue.errors import SubissueError
from gh_subissue.github.api import CreatedIssue, GitHubAPI
from gh_subissue.github.client import GitHubClient
from gh_subissue.logging import configure_logging
from gh_subissue.main import USAGE, App, main
from gh_subissue.repository import TargetRepository


def _no_ambient() -> TargetRepository:
    raise SubissueError("not a git repository with remotes")


@pytest.fixture
def hosts() -> list[str]:
    return []


@pytest.fixture
def app(client: Mock, hosts: list[str]) -> App:
    def factory(settings: SubissueSettings, host: str) -> GitHubAPI:
        hosts.append(host)
        return client

    return App(
        settings=SubissueSettings(_env_file=None),
        stdin=io.StringIO(),
        stdout=io.StringIO(),
        client_factory=factory,
        prompter=None,
        ambient=lambda: TargetRepository("octo-org", "octo-repo", "ghe.example.com"),
        open_browser=Mock(),
    )


@pytest.mark.parametrize("argv", [[], ["help"], ["--help"], ["create", "--help"]])
def test_usage(app: App, argv: list[str]) -> None:
    assert main(argv, app=app) == 0
    assert app.stdout.getvalue() == USAGE


def test_version(app: App) -> None:
    assert main(["--version"], app=app) == 0
    assert app.stdout.getvalue() == f"gh-subissue version {__version__}\n"


def test_unknown_command(app: App, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["frobnicate"], app=app) == 1
    assert capsys.readouterr().err == "error: unknown command: frobnicate\n"


def test_bad_flag_value(app: App, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["create", "--parent", "abc"], app=app) == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_create_with_explicit_repo(app: App, client: Mock, hosts: list[str]) -> None:
    client.create_issue.return_value = CreatedIssue(
        internal_id=12345, number=43, url="https://ghe.example.com/other/thing/issues/43"
    )

    code = main(["create", "-p", "42", "-t", "Task", "-R", "other/thing"], app=app)

    assert code == 0
    assert hosts == ["ghe.example.com"]
    client.link_sub_issue.assert_called_once_with("other", "thing", 42, 12345)
    client.close.assert_called_once_with()
    assert app.stdout.getvalue().endswith("https://ghe.example.com/other/thing/issues/43\n")


def test_list_uses_ambient_repository(app: App, client: Mock) -> None:
    client.list_sub_issues.return_value = []

    assert main(["list", "--parent", "42"], app=app) == 0

    client.list_sub_issues.assert_called_once_with("octo-org", "octo-repo", 42)
    assert app.stdout.getvalue() == "No sub-issues found for issue #42\n"


def test_edit_without_options_fails(app: App, client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["edit", "43"], app=app) == 1
    assert capsys.readouterr().err.startswith("error: no edit options specified")
    client.close.assert_called_once_with()


def test_missing_parent_is_reported(app: App, client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["create", "-t", "Task"], app=app) == 1

    assert "--parent flag is required" in capsys.readouterr().err
    client.create_issue.assert_not_called()


def test_unresolvable_repository(client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    app = App(
        settings=SubissueSettings(_env_file=None),
        stdin=io.StringIO(),
        stdout=io.StringIO(),
        client_factory=lambda settings, host: client,
        ambient=_no_ambient,
    )

    assert main(["list", "-p", "1"], app=app) == 1
    assert "use --repo" in capsys.readouterr().err


def test_repos_host_falls_back_to_public(client: Mock) -> None:
    hosts: list[str] = []

    def factory(settings: SubissueSettings, host: str) -> GitHubAPI:
        hosts.append(host)
        return client

    client.list_repositories.return_value = []
    app = App(
        settings=SubissueSettings(_env_file=None),
        stdin=io.StringIO(),
        stdout=io.StringIO(),
        client_factory=factory,
        ambient=_no_ambient,
    )

    assert main(["repos", "acme"], app=app) == 0
    assert hosts == ["github.com"]
    assert app.stdout.getvalue() == "No repositories found for acme\n"


def test_help_as_flag_value_is_not_help(app: App, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["create", "-p", "42", "-t", "T", "-b", "-h"], app=app) == 1

    assert "expected one argument" in capsys.readouterr().err
    assert app.stdout.getvalue() == ""


def test_blank_title_is_reported_not_raised(capsys: pytest.CaptureFixture[str]) -> None:
    session = Mock(spec=requests.Session, headers={})
    app = App(
        settings=SubissueSettings(_env_file=None),
        stdin=io.StringIO(),
        stdout=io.StringIO(),
        client_factory=lambda settings, host: GitHubClient(
            token="t", session=session, github_api=Mock()
        ),
        ambient=lambda: TargetRepository("octo-org", "octo-repo"),
    )

    assert main(["create", "-p", "42", "-t", "   "], app=app) == 1

    assert capsys.readouterr().err == "error: title cannot be empty\n"
    session.request.assert_not_called()


@pytest.fixture
def _quiet_logging():
    yield
    configure_logging(False)


@pytest.mark.usefixtures("_quiet_logging")
@pytest.mark.parametrize("debug", ["", "1"])
def test_debug_logging_does_not_change_outcome(
    client: Mock, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], debug: str
) -> None:
    monkeypatch.setenv("GH_DEBUG", debug)
    client.create_issue.return_value = CreatedIssue(
        internal_id=12345, number=43, url="https://github.com/octo-org/octo-repo/issues/43"
    )
    client.link_sub_issue.side_effect = SubissueError("link sub-issue: Validation Failed")
    app = App(
        settings=SubissueSettings(_env_file=None),
        stdin=io.StringIO(),
        stdout=io.StringIO(),
        client_factory=lambda settings, host: client,
        ambient=lambda: TargetRepository("octo-org", "octo-repo"),
    )

    code = main(["create", "-p", "42", "-t", "Task"], app=app)

    assert code == 0
    assert app.stdout.getvalue() == (
        "Warning: Issue created but failed to link as sub-issue: link sub-issue: Validation Failed\n"
        "Issue URL: https://github.com/octo-org/octo-repo/issues/43\n"
        "To manually link, run:\n"
        "  gh api repos/octo-org/octo-repo/issues/42/sub_issues -f sub_issue_id=12345\n"
        "https://github.com/octo-org/octo-repo/issues/43\n"
    )
    err = capsys.readouterr().err
    if debug:
        linking = [line for line in err.splitlines() if 'msg="Linking failed"' in line]
        assert len(linking) == 1
        assert "logger=gh_subissue.commands.create" in linking[0]
    else:
        assert err == ""
