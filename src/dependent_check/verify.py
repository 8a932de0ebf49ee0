"""Patching a dependent to use our code and running its test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from dependent_check.commands import CommandRunner
from dependent_check.errors import CommandError, VerificationError


class Verifier:
    """Delegates patching to ``diener`` and verification to the configured test command."""

    def __init__(
        self,
        runner: CommandRunner,
        project_dir: Path,
        patch_flag: str,
        test_command: Sequence[str],
    ):
        self.runner = runner
        self.project_dir = project_dir
        self.patch_flag = patch_flag
        self.test_command = list(test_command)

    async def patch(self, dependent: str, dependent_dir: Path) -> None:
        args = [
            "diener",
            "patch",
            "--crates-to-patch",
            str(self.project_dir),
            self.patch_flag,
            "--path",
            "Cargo.toml",
        ]
        try:
            await self.runner.run(args, cwd=dependent_dir)
        except CommandError as e:
            raise VerificationError(dependent, f"patching failed: {e}") from e

    async def verify(self, dependent: str, dependent_dir: Path) -> None:
        try:
            await self.runner.run(self.test_command, cwd=dependent_dir, capture=False)
        except CommandError as e:
            raise VerificationError(dependent, str(e)) from e
