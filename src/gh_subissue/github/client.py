"""GitHub API client.

REST and GraphQL calls go through a `requests` session. The authenticated
identity comes from PyGithub.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse, urlunparse

import requests
from github import Auth, Github, GithubException

from gh_subissue.config import PUBLIC_HOST
from gh_subissue.errors import (
    APIError,
    GraphQLError,
    MissingResponseField,
    TransportError,
    UsageError,
    classify_api_error,
    is_not_found,
)
from gh_subissue.github.api import (
    CreatedIssue,
    GitHubAPI,
    Issue,
    IssueDraft,
    Project,
    Repository,
    User,
)

logger = logging.getLogger(__name__)

PUBLIC_API_URL = "https://api.github.com"

_LIST_PROJECTS_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    projectsV2(first: 20) {
      nodes {
        id
        title
        number
      }
    }
  }
}
"""

_ISSUE_NODE_ID_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    issue(number: $number) {
      id
    }
  }
}
"""

_ADD_TO_PROJECT_MUTATION = """
mutation($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
    item {
      id
    }
  }
}
"""


def api_base_url(host: str) -> str:
    """REST base URL for a host: the public API, or an Enterprise `/api/v3` root."""

    if not host or host == PUBLIC_HOST:
        return PUBLIC_API_URL
    return f"https://{host}/api/v3"


def graphql_url(rest_base_url: str) -> str:
    """Derive the GraphQL endpoint from a REST base URL.

    GitHub.com:
        REST: https://api.github.com
        GQL:  https://api.github.com/graphql

    GitHub Enterprise exposes REST as:
        https://github.example.com/api/v3
    and GraphQL as:
        https://github.example.com/api/graphql
    """

    parsed = urlparse(rest_base_url.rstrip("/"))
    path = parsed.path.rstrip("/")

    if path.endswith("/api/v3"):
        path = path[: -len("/api/v3")] + "/api/graphql"
    elif path.endswith("/api"):
        path = path[: -len("/api")] + "/api/graphql"
    elif path == "":
        path = "/graphql"
    else:
        path = path + "/graphql"

    return urlunparse(parsed._replace(path=path))


def _require(data: Any, key: str, path: str) -> Any:
    if not isinstance(data, dict) or data.get(key) is None:
        raise MissingResponseField(path)
    return data[key]


def _parse_issue(data: Any) -> Issue:
    if not isinstance(data, dict):
        raise MissingResponseField("issue")
    internal_id = data.get("id")
    number = data.get("number")
    if not isinstance(internal_id, int):
        raise MissingResponseField("issue.id")
    if not isinstance(number, int) or number <= 0:
        raise MissingResponseField("issue.number")
    title = data.get("title")
    url = data.get("html_url")
    return Issue(
        internal_id=internal_id,
        number=number,
        title=title if isinstance(title, str) else "",
        url=url if isinstance(url, str) else "",
    )


def _parse_repository(data: dict[str, Any]) -> Repository:
    name = data.get("name")
    full_name = data.get("full_name")
    if not isinstance(full_name, str) or not full_name:
        raise MissingResponseField("repository.full_name")
    return Repository(
        name=name if isinstance(name, str) else full_name.rsplit("/", 1)[-1],
        full_name=full_name,
        has_issues=bool(data.get("has_issues")),
        archived=bool(data.get("archived")),
    )


def parse_projects_payload(payload: dict[str, Any]) -> list[Project]:
    """Project `data.repository.projectsV2.nodes` into `Project` values."""

    data = _require(payload, "data", "data")
    repository = _require(data, "repository", "repository")
    projects_v2 = _require(repository, "projectsV2", "projectsV2")
    nodes = _require(projects_v2, "nodes", "nodes")
    if not isinstance(nodes, list):
        raise MissingResponseField("nodes")

    projects: list[Project] = []
    for node in nodes:
        if not isinstance(node, dict):
            continue
        project_id = node.get("id")
        title = node.get("title")
        number = node.get("number")
        projects.append(
            Project(
                id=project_id if isinstance(project_id, str) else "",
                title=title if isinstance(title, str) else "",
                number=number if isinstance(number, int) else 0,
            )
        )
    return projects


def parse_issue_node_id_payload(payload: dict[str, Any]) -> str:
    """Project `data.repository.issue.id` into the issue's node id."""

    data = _require(payload, "data", "data")
    repository = _require(data, "repository", "repository")
    issue = _require(repository, "issue", "issue")
    node_id = _require(issue, "id", "issue id")
    if not isinstance(node_id, str) or not node_id:
        raise MissingResponseField("issue id")
    return node_id


class GitHubClient(GitHubAPI):
    """`GitHubAPI` backed by the GitHub REST and GraphQL endpoints."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = PUBLIC_API_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._rest_base_url = base_url.rstrip("/")
        self._graphql_url = graphql_url(self._rest_base_url)
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "gh-subissue",
            }
        )
        self._github = github_api or Github(
            auth=Auth.Token(token), base_url=self._rest_base_url, timeout=int(timeout)
        )
        logger.debug(
            "GitHub client created",
            extra={"base_url": self._rest_base_url, "graphql_url": self._graphql_url},
        )

    @property
    def base_url(self) -> str:
        return self._rest_base_url

    def _repo_url(self, owner: str, repo: str, path: str = "") -> str:
        path = path.strip("/")
        url = f"{self._rest_base_url}/repos/{owner}/{repo}"
        return f"{url}/{path}" if path else url

    def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        expected: int,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        logger.debug("Sending request", extra={"method": method, "url": url, "operation": operation})
        try:
            resp = self._session.request(
                method, url, params=params, json=payload, timeout=self._timeout
            )
        except requests.RequestException as e:
            logger.debug("Request failed", extra={"operation": operation, "error": str(e)})
            raise TransportError(operation, f"failed to send request: {e}") from e

        logger.debug("Received response", extra={"operation": operation, "status": resp.status_code})
        if resp.status_code != expected:
            err = classify_api_error(resp.status_code, _error_message(resp), operation)
            logger.debug("API error", extra={"operation": operation, "status": resp.status_code})
            raise err

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(operation, f"failed to decode response: {e}") from e

    def _graphql(self, *, query: str, variables: dict[str, Any], operation: str) -> dict[str, Any]:
        payload = self._request(
            "POST",
            self._graphql_url,
            operation=operation,
            expected=200,
            payload={"query": query, "variables": variables},
        )
        if not isinstance(payload, dict):
            raise TransportError(operation, "unexpected response format")

        errors = payload.get("errors")
        if errors:
            messages = []
            if isinstance(errors, list):
                for item in errors:
                    if isinstance(item, dict):
                        msg = item.get("message")
                        if isinstance(msg, str):
                            messages.append(msg)
            raise GraphQLError("; ".join(messages) if messages else str(errors))
        return payload

    def create_issue(self, owner: str, repo: str, draft: IssueDraft) -> CreatedIssue:
        if not draft.title.strip():
            raise UsageError("title cannot be empty")

        payload: dict[str, Any] = {"title": draft.title}
        if draft.body:
            payload["body"] = draft.body
        if draft.labels:
            payload["labels"] = list(draft.labels)
        if draft.assignees:
            payload["assignees"] = list(draft.assignees)
        if draft.milestone:
            payload["milestone"] = draft.milestone

        data = self._request(
            "POST",
            self._repo_url(owner, repo, "issues"),
            operation="create issue",
            expected=201,
            payload=payload,
        )
        issue = _parse_issue(data)
        logger.debug(
            "Issue created",
            extra={"issue_id": issue.internal_id, "number": issue.number, "url": issue.url},
        )
        return CreatedIssue(internal_id=issue.internal_id, number=issue.number, url=issue.url)

    def link_sub_issue(self, owner: str, repo: str, parent_number: int, sub_issue_id: int) -> None:
        self._request(
            "POST",
            self._repo_url(owner, repo, f"issues/{parent_number}/sub_issues"),
            operation="link sub-issue",
            expected=201,
            payload={"sub_issue_id": sub_issue_id},
        )
        logger.debug(
            "Sub-issue linked", extra={"parent": parent_number, "sub_issue_id": sub_issue_id}
        )

    def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        data = self._request(
            "GET",
            self._repo_url(owner, repo, f"issues/{number}"),
            operation=f"get issue #{number}",
            expected=200,
        )
        return _parse_issue(data)

    def list_issues(
        self, owner: str, repo: str, *, state: str = "open", per_page: int = 30
    ) -> list[Issue]:
        data = self._request(
            "GET",
            self._repo_url(owner, repo, "issues"),
            operation="list issues",
            expected=200,
            params={"state": state, "per_page": per_page},
        )
        return _parse_issue_list(data, "list issues")

    def list_sub_issues(self, owner: str, repo: str, parent_number: int) -> list[Issue]:
        data = self._request(
            "GET",
            self._repo_url(owner, repo, f"issues/{parent_number}/sub_issues"),
            operation="list sub-issues",
            expected=200,
            params={"per_page": 100},
        )
        return _parse_issue_list(data, "list sub-issues")

    def list_projects(self, owner: str, repo: str) -> list[Project]:
        payload = self._graphql(
            query=_LIST_PROJECTS_QUERY,
            variables={"owner": owner, "repo": repo},
            operation="list projects",
        )
        projects = parse_projects_payload(payload)
        logger.debug("Projects listed", extra={"count": len(projects)})
        return projects

    def get_issue_node_id(self, owner: str, repo: str, number: int) -> str:
        payload = self._graphql(
            query=_ISSUE_NODE_ID_QUERY,
            variables={"owner": owner, "repo": repo, "number": number},
            operation="get issue node id",
        )
        return parse_issue_node_id_payload(payload)

    def add_issue_to_project(self, project_id: str, issue_node_id: str) -> None:
        self._graphql(
            query=_ADD_TO_PROJECT_MUTATION,
            variables={"projectId": project_id, "contentId": issue_node_id},
            operation="add issue to project",
        )
        logger.debug(
            "Issue added to project", extra={"project_id": project_id, "node_id": issue_node_id}
        )

    def list_repositories(self, owner: str, *, per_page: int, page: int) -> list[Repository]:
        params = {"per_page": per_page, "page": page}
        try:
            data = self._request(
                "GET",
                f"{self._rest_base_url}/orgs/{owner}/repos",
                operation="list org repositories",
                expected=200,
                params=params,
            )
        except APIError as e:
            if not is_not_found(e):
                raise
            logger.debug("Organisation not found, falling back to user", extra={"owner": owner})
            data = self._request(
                "GET",
                f"{self._rest_base_url}/users/{owner}/repos",
                operation="list user repositories",
                expected=200,
                params=params,
            )

        if not isinstance(data, list):
            raise TransportError("list repositories", "unexpected response format")
        return [_parse_repository(item) for item in data if isinstance(item, dict)]

    def get_authenticated_user(self) -> User:
        try:
            login = self._github.get_user().login
        except GithubException as e:
            message = ""
            if isinstance(e.data, dict):
                message = str(e.data.get("message") or "")
            raise classify_api_error(e.status, message, "get authenticated user") from e
        except requests.RequestException as e:
            raise TransportError("get authenticated user", f"failed to send request: {e}") from e

        if not login:
            raise MissingResponseField("login")
        logger.debug("Authenticated user resolved", extra={"login": login})
        return User(login=login)

    def close(self) -> None:
        self._session.close()
        self._github.close()


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.reason or ""
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return resp.reason or ""


def _parse_issue_list(data: Any, operation: str) -> list[Issue]:
    if not isinstance(data, list):
        raise TransportError(operation, "unexpected response format")
    return [_parse_issue(item) for item in data]
