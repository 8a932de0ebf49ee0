"""Configuration settings loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class CheckSettings(BaseSettings):
    """Dependent check settings.

    All settings are loaded from environment variables prefixed with DEPCHECK_.
    The entry point (dependent_check/__main__.py) reads a local .env via
    load_dotenv() before the settings are instantiated. The ref name of the
    run is also picked up from GitLab's CI_COMMIT_REF_NAME.
    """

    model_config = {"env_prefix": "DEPCHECK_", "populate_by_name": True}

    # GitHub
    github_token: str | None = None
    github_api_url: str = "https://api.github.com"
    github_host: str = "github.com"
    org: str = "paritytech"

    # This project
    this_repo: str = "substrate"
    canonical_source: str = "git+https://github.com/paritytech/substrate"
    target_branch: str = "master"
    project_dir: Path = Field(default_factory=Path.cwd)

    # Dependents are checked unconditionally unless a companion supersedes them
    dependents: list[str] = Field(
        default_factory=lambda: ["polkadot", "cumulus", "grandpa-bridge-gadget"]
    )
    work_dir: Path = Field(default_factory=Path.cwd)

    commit_ref_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DEPCHECK_COMMIT_REF_NAME", "CI_COMMIT_REF_NAME"),
    )

    # External commands
    test_command: list[str] = Field(default_factory=lambda: ["cargo", "test", "--all"])
    git_user_name: str = "CI system"
    git_user_email: str = "<>"

    # Optional
    fail_on_companion_errors: bool = False
    timeout: int = 30
    command_timeout: float | None = None
    log_level: str = "INFO"

    @property
    def pr_number(self) -> int | None:
        """Pull request number of this run, if the ref name is one."""
        ref = self.commit_ref_name
        if ref and ref.isdigit():
            return int(ref)
        return None

    @property
    def patch_flag(self) -> str:
        return f"--{self.this_repo}"

    def clone_url(self, repository: str) -> str:
        return f"https://{self.github_host}/{self.org}/{repository}.git"
