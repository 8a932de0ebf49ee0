"""Async subprocess runner for git, cargo and the patch tool."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from dependent_check.errors import CommandError

logger = logging.getLogger("dependent_check")


@dataclass(frozen=True)
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs external commands one at a time."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    async def run(
        self,
        args: Sequence[str],
        cwd: Path | None = None,
        check: bool = True,
        capture: bool = True,
    ) -> CommandResult:
        """Run ``args`` in ``cwd``.

        Args:
            args: Program and arguments.
            cwd: Working directory. Defaults to the current one.
            check: Raise CommandError on a non-zero exit.
            capture: Capture output instead of streaming it to the console.
                Test suites stream so their output shows up in the CI log.
        """
        args = list(args)
        logger.info("$ %s%s", " ".join(args), f"  (in {cwd})" if cwd else "")
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd) if cwd else None,
                stdout=asyncio.subprocess.PIPE if capture else None,
                stderr=asyncio.subprocess.PIPE if capture else None,
            )
        except OSError as e:
            # missing program, not executable, or a bad working directory
            raise CommandError(args, None, str(e)) from e
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise CommandError(args, None, f"timed out after {self.timeout}s")

        result = CommandResult(
            args=args,
            returncode=proc.returncode,
            stdout=(stdout or b"").decode("utf-8", errors="replace"),
            stderr=(stderr or b"").decode("utf-8", errors="replace"),
        )
        if check and result.returncode != 0:
            raise CommandError(args, result.returncode, result.stderr[-2000:])
        return result
