"""CLI entrypoint: argument parsing and command dispatch."""

from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from collections.abc import Callable, Sequence
from typing import NoReturn, TextIO

import requests
from pydantic import ValidationError

from gh_subissue import __version__
from gh_subissue.commands.create import CreateCommand, CreateOptions
from gh_subissue.commands.edit import EditCommand, EditOptions, parse_issue_number
from gh_subissue.commands.list_cmd import ListCommand
from gh_subissue.commands.repos import DEFAULT_LIMIT, ReposCommand, ReposOptions
from gh_subissue.config import PUBLIC_HOST, SubissueSettings
from gh_subissue.errors import BrowserError, SubissueError, UsageError
from gh_subissue.github.api import GitHubAPI
from gh_subissue.github.client import GitHubClient, api_base_url
from gh_subissue.interaction import InteractionGate, Prompter
from gh_subissue.logging import configure_logging
from gh_subissue.options import OptionValueAction
from gh_subissue.repository import (
    TargetRepository,
    current_repository,
    resolve_repository,
)

logger = logging.getLogger(__name__)

USAGE = """gh-subissue - Create sub-issues in a single command

USAGE
  gh subissue <command> [flags]

COMMANDS
  create    Create an issue and link it as a sub-issue
  list      List the sub-issues of a parent issue
  edit      Add an existing issue to a project
  repos     List repositories and whether sub-issues work in them

CREATE FLAGS
  -p, --parent <number>    Parent issue number (interactive if omitted)
  -t, --title <string>     Issue title (interactive if omitted)
  -b, --body <string>      Issue body
      --body-file <file>   Read body from file (use - for stdin)
  -R, --repo <owner/repo>  Repository (defaults to current)
  -a, --assignee <user>    Assign users (can repeat)
  -l, --label <name>       Add labels (can repeat)
  -m, --milestone <number> Milestone number
  -P, --project [<name>]   Add to project (interactive if empty)
  -w, --web                Open in browser after creation

ENVIRONMENT VARIABLES
  GH_DEBUG                      Set to any value to enable debug logging (logfmt to stderr)
  GH_FORCE_TTY                  Treat output as a terminal
  GH_SUBISSUE_VALIDATE_PARENT   Check the parent issue exists before creating

EXAMPLES
  gh subissue create --title "New task"                           # Interactive parent selection
  gh subissue create --parent 42 --title "Implement feature"
  gh subissue create -p 42 -t "Fix bug" -l bug -a username
  echo "Details" | gh subissue create -p 42 -t "Task" --body-file -
  gh subissue create -p 42 -t "Task" --project "Roadmap"
  gh subissue list --parent 42
  gh subissue edit 43 --project ""
  gh subissue repos my-org --enabled
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as `UsageError` instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _add_repo_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-R", "--repo", default="", help="Repository in owner/repo format")


def _add_help_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-h", "--help", action="store_true", help="Show usage")


def _add_project_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-P",
        "--project",
        action=OptionValueAction,
        metavar="NAME",
        help="Add to project (interactive if empty)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="gh subissue", add_help=False)
    subparsers = parser.add_subparsers(dest="command", parser_class=_ArgumentParser)

    create = subparsers.add_parser(
        "create", add_help=False, help="Create an issue and link it as a sub-issue"
    )
    create.add_argument("-p", "--parent", type=int, default=0, help="Parent issue number")
    create.add_argument("-t", "--title", default="", help="Issue title")
    create.add_argument("-b", "--body", default="", help="Issue body")
    create.add_argument("--body-file", default="", help="Read body from file (use - for stdin)")
    _add_repo_flag(create)
    create.add_argument(
        "-a", "--assignee", dest="assignees", action="append", default=[], help="Assign users"
    )
    create.add_argument("-l", "--label", dest="labels", action="append", default=[], help="Add labels")
    create.add_argument("-m", "--milestone", type=int, default=0, help="Milestone number")
    _add_project_flag(create)
    create.add_argument("-w", "--web", action="store_true", help="Open in browser after creation")
    _add_help_flag(create)

    list_parser = subparsers.add_parser(
        "list", add_help=False, help="List the sub-issues of a parent issue"
    )
    list_parser.add_argument("-p", "--parent", type=int, default=0, help="Parent issue number")
    _add_repo_flag(list_parser)
    _add_help_flag(list_parser)

    edit = subparsers.add_parser(
        "edit", add_help=False, help="Add an existing issue to a project"
    )
    edit.add_argument("issue", nargs="?", default=None, help="Issue number")
    _add_project_flag(edit)
    _add_repo_flag(edit)
    _add_help_flag(edit)

    repos = subparsers.add_parser(
        "repos", add_help=False, help="List repositories and their sub-issue support"
    )
    repos.add_argument("owner", nargs="?", default="", help="User or organisation")
    repos.add_argument("-L", "--limit", type=int, default=DEFAULT_LIMIT, help="Maximum repos to list")
    repos.add_argument("--enabled", action="store_true", help="Show only repos where sub-issues work")
    repos.add_argument(
        "--disabled", action="store_true", help="Show only repos where sub-issues don't work"
    )
    repos.add_argument("--no-header", action="store_true", help="Omit table header from output")
    _add_help_flag(repos)

    return parser


def open_in_browser(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        raise BrowserError(str(e)) from e
    if not opened:
        raise BrowserError(f"no browser available to open {url}")


ClientFactory = Callable[[SubissueSettings, str], GitHubAPI]


def _default_client(settings: SubissueSettings, host: str) -> GitHubAPI:
    return GitHubClient(
        token=settings.token_for_host(host),
        base_url=api_base_url(host),
        timeout=settings.request_timeout,
    )


class App:
    """Wires settings, terminal detection and the API client into a command."""

    def __init__(
        self,
        *,
        settings: SubissueSettings,
        stdin: TextIO,
        stdout: TextIO,
        client_factory: ClientFactory = _default_client,
        prompter: Prompter | None = None,
        ambient: Callable[[], TargetRepository] | None = None,
        open_browser: Callable[[str], None] = open_in_browser,
        log: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.stdin = stdin
        self.stdout = stdout
        self.client_factory = client_factory
        self.prompter = prompter
        self.ambient = ambient or (lambda: current_repository(gh_repo=settings.default_repo))
        self.open_browser = open_browser
        self.log = log or logger

    @classmethod
    def from_environment(cls, settings: SubissueSettings, log: logging.Logger) -> App:
        gate = InteractionGate.from_streams(
            sys.stdin, sys.stdout, force_tty=settings.force_tty_enabled
        )
        return cls(
            settings=settings,
            stdin=sys.stdin,
            stdout=sys.stdout,
            prompter=gate.prompter(),
            log=log,
        )

    def _resolve(self, explicit: str) -> TargetRepository:
        repo = resolve_repository(explicit, ambient=self.ambient, prompter=self.prompter)
        self.log.debug(
            "Repository resolved",
            extra={"repository": repo.full_name, "host": repo.host, "base_url": repo.api_base_url},
        )
        return repo

    def _target(self, args: argparse.Namespace) -> TargetRepository | None:
        if args.command == "repos":
            return None
        if args.command == "edit":
            parse_issue_number(args.issue)
        return self._resolve(args.repo)

    def _host(self, repo: TargetRepository | None) -> str:
        if repo is not None:
            return repo.host
        try:
            return self.ambient().host
        except SubissueError:
            return PUBLIC_HOST

    def run(self, args: argparse.Namespace) -> int:
        if args.command not in ("create", "list", "edit", "repos"):
            raise UsageError(f"unknown command: {args.command}")

        repo = self._target(args)
        client = self.client_factory(self.settings, self._host(repo))
        try:
            self._dispatch(args, client, repo)
        finally:
            client.close()
        return 0

    def _dispatch(
        self, args: argparse.Namespace, client: GitHubAPI, repo: TargetRepository | None
    ) -> None:
        if args.command == "repos":
            ReposCommand(client=client, out=self.stdout).run(
                ReposOptions(
                    owner=args.owner,
                    limit=args.limit,
                    enabled=args.enabled,
                    disabled=args.disabled,
                    no_header=args.no_header,
                )
            )
            return

        assert repo is not None
        if args.command == "create":
            CreateCommand(
                client=client,
                repository=repo,
                out=self.stdout,
                stdin=self.stdin,
                prompter=self.prompter,
                validate_parent=self.settings.validate_parent,
                open_browser=self.open_browser,
            ).run(
                CreateOptions(
                    parent=args.parent,
                    title=args.title,
                    body=args.body,
                    body_file=args.body_file,
                    labels=args.labels,
                    assignees=args.assignees,
                    milestone=args.milestone,
                    web=args.web,
                    project=args.project,
                )
            )
        elif args.command == "list":
            ListCommand(
                client=client, repository=repo, out=self.stdout, prompter=self.prompter
            ).run(args.parent)
        else:
            EditCommand(
                client=client, repository=repo, out=self.stdout, prompter=self.prompter
            ).run(EditOptions(issue_number=parse_issue_number(args.issue), project=args.project))


def main(argv: Sequence[str] | None = None, *, app: App | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    try:
        settings = app.settings if app is not None else SubissueSettings()
    except ValidationError as e:
        print("error: invalid configuration:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 1

    log = configure_logging(settings.debug_enabled)
    log.debug("Starting", extra={"version": __version__, "argv": " ".join(argv)})

    stdout = app.stdout if app is not None else sys.stdout

    if not argv or argv[0] in ("help", "--help", "-h"):
        print(USAGE, end="", file=stdout)
        return 0
    if argv[0] in ("version", "--version"):
        print(f"gh-subissue version {__version__}", file=stdout)
        return 0
    if argv[0] not in ("create", "list", "edit", "repos"):
        print(f"error: unknown command: {argv[0]}", file=sys.stderr)
        return 1

    try:
        args = build_parser().parse_args(argv)
        if args.help:
            print(USAGE, end="", file=stdout)
            return 0
        app = app or App.from_environment(settings, log)
        return app.run(args)
    except SubissueError as e:
        log.debug("Command failed", extra={"error": str(e)})
        print(f"error: {e}", file=sys.stderr)
        return 1
    except requests.RequestException as e:
        log.debug("Request failed", extra={"error": str(e)})
        print(f"error: {e}", file=sys.stderr)
        return 1
