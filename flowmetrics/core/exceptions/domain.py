from flowmetrics.core.exceptions.base import AppException


class ConfigurationError(AppException):
    """Raised when settings or the workflow configuration are missing or invalid."""

    def __init__(self, message: str = "Invalid configuration"):
        super().__init__(message)


class TransientSourceError(AppException):
    """Raised when a page could not be fetched from the issue source.

    The checkpoint is left untouched so the next invocation retries the page.
    """

    def __init__(self, message: str = "Failed to fetch data from the issue source"):
        super().__init__(message)


class JiraConnectionError(TransientSourceError):
    """Raised when connection to Jira API fails."""

    def __init__(self, message: str = "Failed to connect to Jira"):
        super().__init__(message)


class JiraRateLimitError(TransientSourceError):
    """Raised when Jira API rate limit is exceeded."""

    def __init__(self, retry_after: int | None = None):
        message = "Jira API rate limit exceeded"
        if retry_after:
            message += f" - retry after {retry_after} seconds"
        self.retry_after = retry_after
        super().__init__(message)


class JiraAuthenticationError(AppException):
    """Raised when Jira API authentication fails (invalid token, etc.)."""

    def __init__(self, message: str = "Jira authentication failed - check your API token"):
        super().__init__(message)


class MalformedHistoryEntry(AppException):
    """Raised when a single changelog entry cannot be parsed.

    Callers skip the entry; the rest of the issue is still analyzed.
    """

    def __init__(self, message: str = "Malformed changelog entry"):
        super().__init__(message)


class PersistenceFailure(AppException):
    """Raised when a checkpoint, record or output write/read fails."""

    def __init__(self, message: str = "Failed to persist data"):
        super().__init__(message)
