"""Git operations on this project and on dependent checkouts."""

from __future__ import annotations

import logging
from pathlib import Path

from dependent_check.commands import CommandRunner

logger = logging.getLogger("dependent_check")


class GitRepository:
    """Thin wrapper over the git CLI. Every failure raises CommandError."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    async def configure_identity(self, name: str, email: str) -> None:
        """Set the committer identity so merges work on a bare CI machine."""
        await self.runner.run(["git", "config", "--global", "user.name", name])
        await self.runner.run(["git", "config", "--global", "user.email", email])
        await self.runner.run(["git", "config", "--global", "pull.rebase", "false"])

    async def merge_target_branch(self, project_dir: Path, branch: str) -> None:
        """Merge ``origin/<branch>`` so checks see the code as it will land."""
        logger.info("Merging origin/%s into %s", branch, project_dir)
        await self.runner.run(["git", "pull", "origin", branch], cwd=project_dir)

    async def ensure_clone(self, url: str, dest: Path) -> Path:
        """Shallow-clone ``url`` into ``dest`` unless it is already there."""
        if dest.exists():
            logger.info("Reusing existing checkout at %s", dest)
            return dest
        await self.runner.run(["git", "clone", "--depth", "1", url, str(dest)])
        return dest

    async def checkout_pull_request(
        self, repo_dir: Path, number: int, head_ref: str, head_sha: str
    ) -> None:
        await self.runner.run(
            ["git", "fetch", "origin", f"pull/{number}/head:{head_ref}"], cwd=repo_dir
        )
        await self.runner.run(["git", "checkout", head_sha], cwd=repo_dir)
