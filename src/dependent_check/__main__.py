"""Entry point for running the dependent check: python -m dependent_check"""

from __future__ import annotations

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from dependent_check.errors import DependentCheckError
from dependent_check.github.client import GitHubClient
from dependent_check.logging.logger import setup_logger
from dependent_check.models import CheckReport
from dependent_check.orchestrator import DependentChecker
from dependent_check.settings import CheckSettings

BANNER = """
check_dependent_projects
========================

This check ensures that this project's dependents do not suffer downstream breakages from new code
changes.
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dependent-check",
        description="Check this branch against the projects that depend on it.",
    )
    parser.add_argument("--pr", type=int, help="pull request number (overrides CI_COMMIT_REF_NAME)")
    parser.add_argument(
        "--no-merge",
        action="store_true",
        help="do not merge the target branch before checking (local runs)",
    )
    parser.add_argument("--log-level", help="overrides DEPCHECK_LOG_LEVEL")
    return parser.parse_args(argv)


def exit_code(report: CheckReport, settings: CheckSettings) -> int:
    if report.has_failures:
        return 1
    if report.companion_errors and settings.fail_on_companion_errors:
        return 1
    return 0


async def run(args: argparse.Namespace) -> int:
    try:
        settings = CheckSettings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    if args.pr is not None:
        settings = settings.model_copy(update={"commit_ref_name": str(args.pr)})

    logger = setup_logger(level=args.log_level or settings.log_level)
    print(BANNER)

    async with GitHubClient(
        base_url=settings.github_api_url,
        token=settings.github_token,
        timeout=settings.timeout,
    ) as github:
        checker = DependentChecker.from_settings(settings, github)
        try:
            report = await checker.run(merge=not args.no_merge)
        except DependentCheckError as e:
            logger.debug("Run aborted", exc_info=True)
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    summary = report.render()
    if summary:
        print(summary)
    return exit_code(report, settings)


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    sys.exit(asyncio.run(run(parse_args(argv))))


if __name__ == "__main__":
    main()
