"""Checks that a change does not break the projects depending on it."""

from dependent_check.github.client import GitHubClient
from dependent_check.orchestrator import DependentChecker
from dependent_check.settings import CheckSettings

__all__ = ["CheckSettings", "DependentChecker", "GitHubClient"]
