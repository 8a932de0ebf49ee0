"""Tests for the end-to-end run using fake collaborators."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, call

import pytest

from dependent_check.errors import (
    CompanionFormatError,
    MetadataExtractionError,
    VerificationError,
)
from dependent_check.models import BuildUnit
from dependent_check.orchestrator import DependentChecker
from dependent_check.settings import CheckSettings

CANONICAL = "git+https://github.com/paritytech/substrate"
OURS = [BuildUnit(name="pallet-session"), BuildUnit(name="frame-support")]
GOOD_DEPENDENT = [
    BuildUnit(name="runtime"),
    BuildUnit(name="pallet-session", source=f"{CANONICAL}?branch=master#abc"),
]
BROKEN_DEPENDENT = [
    BuildUnit(name="runtime"),
    BuildUnit(name="pallet-removed", source=f"{CANONICAL}?branch=master#abc"),
]


def _pull(mergeable, ref="companion-branch", sha="f" * 40):
    return {"mergeable": mergeable, "head": {"ref": ref, "sha": sha}}


@pytest.fixture
def settings(tmp_path: Path):
    return CheckSettings(
        project_dir=tmp_path / "substrate",
        work_dir=tmp_path,
        commit_ref_name="9000",
        dependents=["polkadot", "cumulus", "grandpa-bridge-gadget"],
    )


@pytest.fixture
def github():
    client = AsyncMock()
    client.get_pull_request_body.return_value = ""
    return client


@pytest.fixture
def git():
    repo = AsyncMock()
    repo.ensure_clone.side_effect = lambda url, dest: dest
    return repo


@pytest.fixture
def verifier():
    return AsyncMock()


@pytest.fixture
def graphs(settings):
    return {settings.project_dir: OURS}


@pytest.fixture
def checker(settings, github, git, verifier, graphs):
    async def graph_query(project_dir: Path):
        return graphs.get(project_dir, GOOD_DEPENDENT)

    return DependentChecker(settings, github, git, verifier, graph_query)


@pytest.mark.asyncio
async def test_merges_before_checking(checker, git, settings):
    await checker.run()
    git.configure_identity.assert_awaited_once_with("CI system", "<>")
    git.merge_target_branch.assert_awaited_once_with(settings.project_dir, "master")


@pytest.mark.asyncio
async def test_no_merge(checker, git):
    await checker.run(merge=False)
    git.merge_target_branch.assert_not_awaited()


@pytest.mark.asyncio
async def test_default_branches_without_companions(checker, github, git, verifier, settings):
    report = await checker.run()

    github.get_pull_request_body.assert_awaited_once_with("paritytech", "substrate", 9000)
    assert report.checked == ["polkadot", "cumulus", "grandpa-bridge-gadget"]
    assert report.companion_errors == []
    assert not report.has_failures
    git.ensure_clone.assert_has_awaits(
        [
            call("https://github.com/paritytech/polkadot.git", settings.work_dir / "polkadot"),
            call("https://github.com/paritytech/cumulus.git", settings.work_dir / "cumulus"),
            call(
                "https://github.com/paritytech/grandpa-bridge-gadget.git",
                settings.work_dir / "grandpa-bridge-gadget",
            ),
        ]
    )
    git.checkout_pull_request.assert_not_awaited()
    assert verifier.verify.await_count == 3


@pytest.mark.asyncio
async def test_companion_supersedes_default_branch(checker, github, git, settings):
    github.get_pull_request_body.return_value = "Adds a thing.\n\ncompanion: polkadot#42\n"
    github.get_pull_request.return_value = _pull(True)

    report = await checker.run()

    github.get_pull_request.assert_awaited_once_with("paritytech", "polkadot", 42)
    git.checkout_pull_request.assert_awaited_once_with(
        settings.work_dir / "polkadot", 42, "companion-branch", "f" * 40
    )
    assert report.found_companions == ["polkadot"]
    assert report.checked == ["polkadot", "cumulus", "grandpa-bridge-gadget"]
    assert git.ensure_clone.await_count == 3


@pytest.mark.asyncio
async def test_unmergeable_companion_is_recorded_and_run_continues(checker, github, git):
    github.get_pull_request_body.return_value = "companion: polkadot#42\nCompanion: cumulus#7"
    github.get_pull_request.side_effect = [_pull(False), _pull(True)]

    report = await checker.run()

    assert len(report.companion_errors) == 1
    assert "polkadot#42 is not mergeable" in report.companion_errors[0]
    # polkadot had a companion, so its default branch is not checked either
    assert report.checked == ["cumulus", "grandpa-bridge-gadget"]
    git.checkout_pull_request.assert_awaited_once()
    assert not report.has_failures


@pytest.mark.asyncio
async def test_companion_outside_dependents_list(checker, github):
    github.get_pull_request_body.return_value = "companion: https://github.com/paritytech/bridges/pull/3"
    github.get_pull_request.return_value = _pull(True)

    report = await checker.run()

    assert report.checked == ["bridges", "polkadot", "cumulus", "grandpa-bridge-gadget"]


@pytest.mark.asyncio
async def test_crate_mismatch_only_fails_that_dependent(checker, graphs, settings, verifier):
    graphs[settings.work_dir / "polkadot"] = BROKEN_DEPENDENT

    report = await checker.run()

    assert report.has_failures
    assert list(report.failed_dependents) == ["polkadot"]
    assert "pallet-removed" in report.failed_dependents["polkadot"]
    assert report.checked == ["cumulus", "grandpa-bridge-gadget"]
    assert verifier.patch.await_count == 2


@pytest.mark.asyncio
async def test_verification_failure_is_recorded(checker, verifier):
    verifier.verify.side_effect = [VerificationError("polkadot", "cargo test failed"), None, None]

    report = await checker.run()

    assert list(report.failed_dependents) == ["polkadot"]
    assert report.checked == ["cumulus", "grandpa-bridge-gadget"]


@pytest.mark.asyncio
async def test_missing_ownership_aborts(checker, graphs, settings, git):
    graphs[settings.project_dir] = [BuildUnit(name="log", source="registry+crates.io")]

    with pytest.raises(MetadataExtractionError):
        await checker.run()
    git.ensure_clone.assert_not_awaited()


@pytest.mark.asyncio
async def test_malformed_companion_aborts(checker, github, git):
    github.get_pull_request_body.return_value = "companion: the polkadot one"

    with pytest.raises(CompanionFormatError):
        await checker.run()
    git.ensure_clone.assert_not_awaited()


@pytest.mark.asyncio
async def test_not_a_pull_request(settings, github, git, verifier, graphs):
    settings = settings.model_copy(update={"commit_ref_name": "master"})

    async def graph_query(project_dir: Path):
        return graphs.get(project_dir, GOOD_DEPENDENT)

    report = await DependentChecker(settings, github, git, verifier, graph_query).run()

    github.get_pull_request_body.assert_not_awaited()
    assert report.checked == ["polkadot", "cumulus", "grandpa-bridge-gadget"]


@pytest.mark.asyncio
async def test_repeated_companion_repository_is_checked_once(checker, github, git, verifier):
    github.get_pull_request_body.return_value = (
        "companion: polkadot#42\npolkadot companion: https://github.com/paritytech/polkadot/pull/43"
    )
    github.get_pull_request.return_value = _pull(True)

    report = await checker.run()

    github.get_pull_request.assert_awaited_once_with("paritytech", "polkadot", 42)
    git.checkout_pull_request.assert_awaited_once()
    assert report.found_companions == ["polkadot"]
    assert report.checked == ["polkadot", "cumulus", "grandpa-bridge-gadget"]
    assert verifier.patch.await_count == 3
