"""Error taxonomy and API failure classification."""

from __future__ import annotations

from http import HTTPStatus

_HINTS: dict[int, str] = {
    HTTPStatus.UNAUTHORIZED: "Run 'gh auth login' to authenticate",
    HTTPStatus.FORBIDDEN: "Check that you have write access to this repository",
    HTTPStatus.NOT_FOUND: "Verify the repository exists and you have access to it",
    HTTPStatus.GONE: (
        "Issues are disabled for this repository. "
        "Enable them in repository Settings > Features"
    ),
    HTTPStatus.UNPROCESSABLE_ENTITY: "Check that all required fields are provided and valid",
    HTTPStatus.TOO_MANY_REQUESTS: "Rate limited by GitHub. Wait a moment and try again",
}


class SubissueError(Exception):
    """Base class for every error reported to the user."""


class UsageError(SubissueError):
    """Malformed command line input."""


class RepositoryResolutionError(SubissueError):
    """No target repository could be determined."""


class PromptAborted(SubissueError):
    """The user aborted an interactive prompt."""


class BrowserError(SubissueError):
    """The browser could not be launched."""


class TransportError(SubissueError):
    """A request could not be sent, or its response could not be decoded."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


class GraphQLError(SubissueError):
    """The GraphQL endpoint answered with a non-empty `errors` array."""

    def __init__(self, message: str) -> None:
        super().__init__(f"GraphQL error: {message}")
        self.message = message


class MissingResponseField(SubissueError):
    """A response lacked a field one of the typed projections depends on."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} not found in response")
        self.field = field


class APIError(SubissueError):
    """A GitHub API failure with the attempted operation and a remediation hint."""

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        operation: str,
        hint: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.operation = operation
        self.hint = hint
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.hint:
            return f"{self.operation}: {self.message}\n\nHint: {self.hint}"
        return f"{self.operation}: {self.message}"


def classify_api_error(status_code: int, message: str, operation: str) -> APIError:
    """Build an `APIError` carrying the hint that matches `status_code`.

    Unrecognised status codes get no hint.
    """

    return APIError(
        status_code=status_code,
        message=message,
        operation=operation,
        hint=_HINTS.get(status_code, ""),
    )


def _status_of(err: BaseException) -> int | None:
    if isinstance(err, APIError):
        return err.status_code
    return None


def is_not_found(err: BaseException) -> bool:
    return _status_of(err) == HTTPStatus.NOT_FOUND


def is_disabled(err: BaseException) -> bool:
    """True for 410 Gone, which GitHub returns when issues are turned off."""

    return _status_of(err) == HTTPStatus.GONE


def is_auth_error(err: BaseException) -> bool:
    return _status_of(err) in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN)


def is_rate_limited(err: BaseException) -> bool:
    return _status_of(err) == HTTPStatus.TOO_MANY_REQUESTS
