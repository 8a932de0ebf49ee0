from dependent_check.github.client import GitHubClient
from dependent_check.github.errors import (
    GitHubAPIError,
    GitHubAuthenticationError,
    GitHubNotFoundError,
    GitHubPermissionError,
)

__all__ = [
    "GitHubClient",
    "GitHubAPIError",
    "GitHubAuthenticationError",
    "GitHubNotFoundError",
    "GitHubPermissionError",
]
