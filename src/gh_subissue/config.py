"""Settings for gh-subissue.

Configuration is loaded from:
- environment variables (the same ones the `gh` CLI honours)
- and a local `.env` file (if present)

Only behaviour that is not a user-facing flag lives here.
"""

from __future__ import annotations

import logging
import subprocess

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gh_subissue.errors import SubissueError

logger = logging.getLogger(__name__)

PUBLIC_HOST = "github.com"

_FALSEY = {"", "0", "false", "no"}


class SubissueSettings(BaseSettings):
    """Settings for the gh-subissue CLI.

    Environment variables:
    - GH_TOKEN / GITHUB_TOKEN                         (optional, falls back to `gh auth token`)
    - GH_ENTERPRISE_TOKEN / GITHUB_ENTERPRISE_TOKEN   (optional)
    - GH_DEBUG                                        (optional, any value enables debug logs)
    - GH_FORCE_TTY                                    (optional)
    - GH_REPO                                         (optional)
    - GH_SUBISSUE_VALIDATE_PARENT                     (optional)
    - GH_SUBISSUE_TIMEOUT                             (optional)

    Notes:
        Tests can point at a specific env file via `SubissueSettings(_env_file=path)`.
    """

    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("GH_TOKEN", "GITHUB_TOKEN"),
        description="Token for github.com",
    )
    enterprise_token: str = Field(
        default="",
        validation_alias=AliasChoices("GH_ENTERPRISE_TOKEN", "GITHUB_ENTERPRISE_TOKEN"),
        description="Token for GitHub Enterprise Server hosts",
    )

    debug: str = Field(
        default="",
        validation_alias="GH_DEBUG",
        description="Any non-empty value turns on key=value debug logging on stderr",
    )
    force_tty: str = Field(
        default="",
        validation_alias="GH_FORCE_TTY",
        description="Treat standard output as a terminal even when it is not",
    )

    default_repo: str = Field(
        default="",
        validation_alias="GH_REPO",
        description="Repository in [HOST/]OWNER/REPO form used when --repo is not given",
    )
    validate_parent: bool = Field(
        default=False,
        validation_alias="GH_SUBISSUE_VALIDATE_PARENT",
        description="Fetch the parent issue before creating the sub-issue",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias="GH_SUBISSUE_TIMEOUT",
        description="Timeout in seconds for each API request",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def debug_enabled(self) -> bool:
        return self.debug.strip() != ""

    @property
    def force_tty_enabled(self) -> bool:
        return self.force_tty.strip().lower() not in _FALSEY

    def token_for_host(self, host: str) -> str:
        """Return the API token for `host`.

        Falls back to asking the `gh` CLI when no token is configured.

        Raises:
            SubissueError: If no token can be found.
        """

        if host != PUBLIC_HOST and self.enterprise_token.strip():
            return self.enterprise_token.strip()
        if self.github_token.strip():
            return self.github_token.strip()

        token = _gh_auth_token(host)
        if not token:
            raise SubissueError(
                f"no authentication token found for {host}\n\n"
                "Run 'gh auth login' or set GH_TOKEN"
            )
        return token


def _gh_auth_token(host: str) -> str:
    try:
        result = subprocess.run(
            ["gh", "auth", "token", "--hostname", host],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug("gh auth token unavailable", extra={"host": host, "error": str(e)})
        return ""
    return result.stdout.strip()
