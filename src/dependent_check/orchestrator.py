"""End-to-end run: merge, discover our crates, check companions and dependents."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Collection

from dependent_check.commands import CommandRunner
from dependent_check.companions import CompanionResolver, extract_references, parse_reference
from dependent_check.errors import CrateMatchError, VerificationError
from dependent_check.github.client import GitHubClient
from dependent_check.matching import match
from dependent_check.metadata import query_graph
from dependent_check.models import BuildUnit, CheckReport, CompanionResolution
from dependent_check.ownership import discover
from dependent_check.settings import CheckSettings
from dependent_check.vcs import GitRepository
from dependent_check.verify import Verifier

logger = logging.getLogger("dependent_check")

GraphQuery = Callable[[Path], Awaitable[list[BuildUnit]]]


class DependentChecker:
    """Checks every companion and unconditional dependent, one after the other.

    Fatal errors (DependentCheckError other than a crate mismatch or failed
    verification) propagate out of run() and abort the remaining work. Crate
    mismatches and verification failures only end the cycle of the dependent
    they happen in and are collected in the report.
    """

    def __init__(
        self,
        settings: CheckSettings,
        github: GitHubClient,
        git: GitRepository,
        verifier: Verifier,
        graph_query: GraphQuery,
    ):
        self.settings = settings
        self.github = github
        self.git = git
        self.verifier = verifier
        self.graph_query = graph_query
        self.resolver = CompanionResolver(github, settings.org)

    @classmethod
    def from_settings(cls, settings: CheckSettings, github: GitHubClient) -> DependentChecker:
        runner = CommandRunner(timeout=settings.command_timeout)

        async def graph_query(project_dir: Path) -> list[BuildUnit]:
            return await query_graph(project_dir, runner)

        return cls(
            settings=settings,
            github=github,
            git=GitRepository(runner),
            verifier=Verifier(
                runner,
                project_dir=settings.project_dir,
                patch_flag=settings.patch_flag,
                test_command=settings.test_command,
            ),
            graph_query=graph_query,
        )

    async def run(self, merge: bool = True) -> CheckReport:
        settings = self.settings
        report = CheckReport()

        if merge:
            await self.git.configure_identity(settings.git_user_name, settings.git_user_email)
            await self.git.merge_target_branch(settings.project_dir, settings.target_branch)

        owned = discover(await self.graph_query(settings.project_dir))
        logger.info("Discovered %d crates owned by %s", len(owned), settings.this_repo)

        found = await self.check_companions(owned, report)

        for dependent in settings.dependents:
            if dependent in found:
                logger.info("Skipping default branch of %s, already checked as a companion", dependent)
                continue
            logger.info("Running checks for the default branch of %s", dependent)
            repo_dir = await self.git.ensure_clone(
                settings.clone_url(dependent), settings.work_dir / dependent
            )
            await self.check_dependent(dependent, repo_dir, owned, report)

        return report

    async def check_companions(self, owned: Collection[str], report: CheckReport) -> set[str]:
        """Resolve and check the companions of this pull request.

        Returns the repositories that had a companion, mergeable or not.
        """
        number = self.settings.pr_number
        if number is None:
            logger.info("Not a pull request run, no companions to check")
            return set()

        logger.info("This is pull request number %d", number)
        description = await self.github.get_pull_request_body(
            self.settings.org, self.settings.this_repo, number
        )

        found: set[str] = set()
        for raw in extract_references(description):
            logger.info("Detected companion in PR description: %s", raw)
            repository = parse_reference(raw, self.settings.org).repository
            if repository in found:
                # the first companion already patched this checkout
                logger.warning("Ignoring companion %s, %s already has one", raw, repository)
                continue
            resolution = await self.resolver.resolve(raw)
            found.add(repository)
            report.found_companions.append(repository)

            if not resolution.checkout_ready:
                report.companion_errors.append(resolution.error)
                continue

            repo_dir = await self._checkout_companion(resolution)
            logger.info("Running checks for the companion %s of %s", raw, repository)
            await self.check_dependent(repository, repo_dir, owned, report)

        return found

    async def _checkout_companion(self, resolution: CompanionResolution) -> Path:
        reference, status = resolution.reference, resolution.status
        repo_dir = await self.git.ensure_clone(
            self.settings.clone_url(reference.repository),
            self.settings.work_dir / reference.repository,
        )
        await self.git.checkout_pull_request(
            repo_dir, reference.number, status.head_ref, status.head_sha
        )
        return repo_dir

    async def check_dependent(
        self, dependent: str, repo_dir: Path, owned: Collection[str], report: CheckReport
    ) -> None:
        """Match, patch and verify one dependent checkout."""
        start = time.monotonic()
        try:
            graph = await self.graph_query(repo_dir)
            match(graph, owned, self.settings.canonical_source, dependent)
            await self.verifier.patch(dependent, repo_dir)
            await self.verifier.verify(dependent, repo_dir)
        except (CrateMatchError, VerificationError) as e:
            logger.error("%s", e)
            report.failed_dependents[dependent] = str(e)
        else:
            report.checked.append(dependent)
        finally:
            logger.info("Checks for %s finished in %.1fs", dependent, time.monotonic() - start)
