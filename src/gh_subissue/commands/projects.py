"""Adding an issue to a GitHub Project.

Shared by `create` (best effort: problems become warnings) and `edit`
(problems are errors).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from gh_subissue.errors import SubissueError
from gh_subissue.github.api import GitHubAPI, Project
from gh_subissue.interaction import Prompter, select_project
from gh_subissue.options import OptionValue
from gh_subissue.repository import TargetRepository

logger = logging.getLogger(__name__)


class ProjectAssignmentError(SubissueError):
    """A step of project assignment failed; `str()` is the user-facing reason."""


def _titles(projects: Sequence[Project]) -> str:
    return "[" + " ".join(p.title for p in projects) + "]"


def choose_project(
    option: OptionValue,
    projects: Sequence[Project],
    *,
    prompter: Prompter | None,
    repository: TargetRepository,
    issue_number: int,
) -> Project:
    """Pick the project named by `option`, or prompt for one when it is set-empty.

    Raises:
        ProjectAssignmentError: With a message suitable for a warning or an error.
    """

    if option.has_value:
        for project in projects:
            if project.title == option.value:
                return project
        raise ProjectAssignmentError(
            f'project "{option.value}" not found\nAvailable projects: {_titles(projects)}'
        )

    if not projects:
        raise ProjectAssignmentError(
            "no projects found for this repository\n"
            f"Create a project at: https://{repository.host}/{repository.full_name}/projects"
        )

    if prompter is None:
        raise ProjectAssignmentError(
            "--project requires a project name when not running interactively\n"
            f"Available projects: {_titles(projects)}\n"
            f'Example: gh subissue edit {issue_number} --project "{projects[0].title}"'
        )

    try:
        return select_project(prompter, projects)
    except SubissueError as e:
        raise ProjectAssignmentError(f"failed to select project: {e}") from e


def add_to_project(
    client: GitHubAPI,
    repository: TargetRepository,
    issue_number: int,
    option: OptionValue,
    *,
    prompter: Prompter | None,
    log: logging.Logger | None = None,
) -> Project:
    """List projects, choose one, then add the issue to it.

    `option` must be present (set-empty or set-value).

    Raises:
        ProjectAssignmentError: For any failing step.
    """

    log = log or logger
    try:
        projects = client.list_projects(repository.owner, repository.name)
    except SubissueError as e:
        log.debug("Listing projects failed", extra={"error": str(e)})
        raise ProjectAssignmentError(f"failed to list projects: {e}") from e

    project = choose_project(
        option,
        projects,
        prompter=prompter,
        repository=repository,
        issue_number=issue_number,
    )

    try:
        node_id = client.get_issue_node_id(repository.owner, repository.name, issue_number)
    except SubissueError as e:
        log.debug("Fetching issue node id failed", extra={"error": str(e)})
        raise ProjectAssignmentError(f"failed to get issue: {e}") from e

    try:
        client.add_issue_to_project(project.id, node_id)
    except SubissueError as e:
        log.debug("Adding issue to project failed", extra={"error": str(e)})
        raise ProjectAssignmentError(f"failed to add issue to project: {e}") from e

    log.debug("Issue added to project", extra={"issue": issue_number, "project": project.title})
    return project
