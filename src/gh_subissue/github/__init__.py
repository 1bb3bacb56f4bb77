"""GitHub API access."""

from gh_subissue.github.api import (
    CreatedIssue,
    GitHubAPI,
    Issue,
    IssueDraft,
    Project,
    Repository,
    User,
)
from gh_subissue.github.client import GitHubClient, api_base_url

__all__ = [
    "CreatedIssue",
    "GitHubAPI",
    "GitHubClient",
    "Issue",
    "IssueDraft",
    "Project",
    "Repository",
    "User",
    "api_base_url",
]
