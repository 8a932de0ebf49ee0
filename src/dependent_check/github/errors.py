"""GitHub API exception hierarchy."""

from dependent_check.errors import StatusQueryTransportError


class GitHubAPIError(StatusQueryTransportError):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class GitHubAuthenticationError(GitHubAPIError):
    """Raised when authentication fails (401)."""

    def __init__(self, message: str = "Authentication failed. Check DEPCHECK_GITHUB_TOKEN."):
        super().__init__(message, status_code=401)


class GitHubPermissionError(GitHubAPIError):
    """Raised when the token lacks permissions or the rate limit is exhausted (403)."""

    def __init__(self, message: str = "Permission denied."):
        super().__init__(message, status_code=403)


class GitHubNotFoundError(GitHubAPIError):
    """Raised when a repository or pull request does not exist (404)."""

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status_code=404)
