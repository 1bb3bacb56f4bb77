"""`repos`: list an owner's repositories and whether sub-issues work in them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TextIO

from gh_subissue.errors import SubissueError
from gh_subissue.github.api import GitHubAPI, Repository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_LIMIT = 30


@dataclass(frozen=True, slots=True)
class ReposOptions:
    owner: str = ""
    limit: int = DEFAULT_LIMIT
    enabled: bool = False
    disabled: bool = False
    no_header: bool = False


def fetch_repositories(client: GitHubAPI, owner: str, limit: int) -> list[Repository]:
    """Page through `owner`'s repositories until `limit` are collected or pages run out."""

    per_page = min(MAX_PAGE_SIZE, limit)
    collected: list[Repository] = []
    page = 1
    while len(collected) < limit:
        batch = client.list_repositories(owner, per_page=per_page, page=page)
        if not batch:
            break
        collected.extend(batch)
        page += 1
        if len(batch) < per_page:
            break
    return collected[:limit]


def filter_repositories(
    repos: list[Repository], *, enabled: bool, disabled: bool
) -> list[Repository]:
    """Apply `--enabled` / `--disabled` independently; both together match nothing."""

    filtered = []
    for repo in repos:
        if enabled and not repo.sub_issues_enabled:
            continue
        if disabled and repo.sub_issues_enabled:
            continue
        filtered.append(repo)
    return filtered


class ReposCommand:
    def __init__(
        self, *, client: GitHubAPI, out: TextIO, log: logging.Logger | None = None
    ) -> None:
        self._client = client
        self._out = out
        self._log = log or logger

    def _resolve_owner(self, owner: str) -> str:
        if owner:
            return owner
        try:
            return self._client.get_authenticated_user().login
        except SubissueError as e:
            raise SubissueError(
                f"could not determine user: {e}\n\nSpecify an owner:\n  gh subissue repos <owner>"
            ) from e

    def run(self, opts: ReposOptions) -> list[Repository]:
        if opts.limit <= 0:
            raise SubissueError(f"invalid limit: {opts.limit}")

        owner = self._resolve_owner(opts.owner)
        self._log.debug(
            "Listing repositories",
            extra={"owner": owner, "limit": opts.limit, "enabled": opts.enabled, "disabled": opts.disabled},
        )

        repos = fetch_repositories(self._client, owner, opts.limit)
        filtered = filter_repositories(repos, enabled=opts.enabled, disabled=opts.disabled)

        if not filtered:
            if opts.enabled or opts.disabled:
                print(f"No matching repositories found for {owner}", file=self._out)
            else:
                print(f"No repositories found for {owner}", file=self._out)
            return []

        if not opts.no_header:
            print(f"{'REPOSITORY':<19} SUB-ISSUES", file=self._out)
        for repo in filtered:
            print(f"{repo.full_name:<19} {repo.status}", file=self._out)
        return filtered
