"""Target repository resolution.

Resolution order, strictly:

1. an explicit `owner/name` (`--repo`), with the host taken from the ambient
   context when it can be determined
2. the ambient context: `GH_REPO`, then the git remotes of the working directory
3. an interactive prompt
4. otherwise an error naming `--repo`
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from gh_subissue.config import PUBLIC_HOST
from gh_subissue.errors import RepositoryResolutionError, SubissueError, UsageError
from gh_subissue.github.client import api_base_url
from gh_subissue.interaction import Prompter

logger = logging.getLogger(__name__)

_REMOTE_PRIORITY = ("upstream", "github", "origin")

_SCP_LIKE = re.compile(r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


@dataclass(frozen=True, slots=True)
class TargetRepository:
    owner: str
    name: str
    host: str = PUBLIC_HOST

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def api_base_url(self) -> str:
        return api_base_url(self.host)


AmbientLookup = Callable[[], TargetRepository]


def parse_repo(value: str) -> tuple[str, str]:
    """Split `owner/name`; anything else is a format error."""

    if not value:
        raise UsageError("repository cannot be empty")

    parts = value.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise UsageError(f'invalid repository format: "{value}" (expected owner/repo)')
    return parts[0], parts[1]


def parse_remote_url(url: str) -> TargetRepository:
    """Parse a git remote URL (https, ssh:// or scp-like) into a repository."""

    url = url.strip()
    if "://" in url:
        parsed = re.match(r"^[a-z+]+://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+)$", url)
    else:
        parsed = _SCP_LIKE.match(url)
    if parsed is None:
        raise SubissueError(f"unrecognised remote URL: {url}")

    path = parsed.group("path").strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        raise SubissueError(f"remote URL does not point at a repository: {url}")

    host = parsed.group("host").lower()
    if host == "www.github.com":
        host = PUBLIC_HOST
    return TargetRepository(owner=parts[0], name=parts[1], host=host)


def parse_gh_repo(value: str) -> TargetRepository:
    """Parse `GH_REPO`, which is `[HOST/]OWNER/REPO`."""

    parts = value.strip().split("/")
    if len(parts) == 2 and all(parts):
        return TargetRepository(owner=parts[0], name=parts[1])
    if len(parts) == 3 and all(parts):
        return TargetRepository(owner=parts[1], name=parts[2], host=parts[0].lower())
    raise SubissueError(f'expected the "[HOST/]OWNER/REPO" format, got "{value}"')


def _git_remotes(cwd: Path | None) -> dict[str, str]:
    try:
        result = subprocess.run(
            ["git", "remote", "-v"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        raise SubissueError("not a git repository with remotes") from e

    remotes: dict[str, str] = {}
    for line in result.stdout.splitlines():
        fields = line.split()
        if len(fields) >= 2 and fields[0] not in remotes:
            remotes[fields[0]] = fields[1]
    return remotes


def current_repository(
    *,
    gh_repo: str | None = None,
    cwd: Path | None = None,
    remotes: Callable[[Path | None], dict[str, str]] = _git_remotes,
) -> TargetRepository:
    """Determine the repository from the ambient context.

    Raises:
        SubissueError: If neither `GH_REPO` nor a usable git remote is available.
    """

    env_repo = gh_repo if gh_repo is not None else os.environ.get("GH_REPO", "")
    if env_repo.strip():
        return parse_gh_repo(env_repo)

    found = remotes(cwd)
    if not found:
        raise SubissueError("no git remotes found")

    for name in _REMOTE_PRIORITY:
        if name in found:
            return parse_remote_url(found[name])
    return parse_remote_url(next(iter(found.values())))


def prompt_repository(prompter: Prompter) -> tuple[str, str]:
    answer = prompter.input("Repository (owner/repo)", "").strip()
    if not answer:
        raise UsageError("repository is required")
    return parse_repo(answer)


def resolve_repository(
    explicit: str,
    *,
    ambient: AmbientLookup,
    prompter: Prompter | None,
) -> TargetRepository:
    """Resolve the repository a command operates on. Exactly one branch runs."""

    if explicit:
        owner, name = parse_repo(explicit)
        # The host still comes from the ambient context, even for an explicit repo.
        try:
            host = ambient().host
            logger.debug("Host from current repository", extra={"host": host})
        except SubissueError as e:
            host = PUBLIC_HOST
            logger.debug("Host fallback", extra={"host": host, "error": str(e)})
        return TargetRepository(owner=owner, name=name, host=host or PUBLIC_HOST)

    try:
        repo = ambient()
    except SubissueError as e:
        logger.debug("No ambient repository", extra={"error": str(e)})
    else:
        logger.debug("Repository from current directory", extra={"repository": repo.full_name})
        return repo

    if prompter is not None:
        owner, name = prompt_repository(prompter)
        return TargetRepository(owner=owner, name=name)

    raise RepositoryResolutionError(
        "could not determine repository (use --repo to specify, e.g. --repo owner/repo)"
    )
