"""Exception hierarchy for the dependent check."""

from __future__ import annotations

from typing import Sequence


class DependentCheckError(Exception):
    """Base exception. Anything reaching the entry point aborts the run."""


class MetadataExtractionError(DependentCheckError):
    """Raised when a dependency graph query fails or yields no usable units."""


class CrateMatchError(DependentCheckError):
    """Raised when a dependent references crates of ours that we no longer own."""

    def __init__(self, dependent: str, unmatched: Sequence[str]):
        self.dependent = dependent
        self.unmatched = list(unmatched)
        lines = [f'Failed to detect our crate "{name}" referenced in {dependent}' for name in self.unmatched]
        hint = (
            "Note: this error generally happens if you have deleted or renamed a crate "
            f"and did not update it in {dependent}. Consider opening a companion pull "
            f"request on {dependent} and referencing it in this pull request's "
            f"description like:\n{dependent} companion: [your companion PR here]"
        )
        super().__init__("Errors during crate matching\n\n" + "\n".join(lines) + "\n\n" + hint)


class CompanionFormatError(DependentCheckError):
    """Raised when a companion reference is malformed or points outside the org."""

    def __init__(self, raw: str, org: str, reason: str = "invalid format"):
        self.raw = raw
        self.org = org
        self.reason = reason
        super().__init__(
            f"Companion PR description had invalid format or did not belong to "
            f"organization {org}: {raw} ({reason})"
        )


class CompanionNotMergeableError(DependentCheckError):
    """Soft failure: the companion pull request cannot be merged right now."""


class StatusQueryTransportError(DependentCheckError):
    """Raised when a GitHub status query cannot be completed."""


class UnknownStateError(DependentCheckError):
    """Raised when the companion state machine reaches a state it cannot leave."""

    def __init__(self, state: object):
        self.state = state
        super().__init__(f"Unknown companion resolution state: {state}")


class CommandError(DependentCheckError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int | None, stderr: str = ""):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Command `{' '.join(self.command)}` failed ({returncode}){detail}")


class VerificationError(DependentCheckError):
    """Raised when patching or testing a dependent fails."""

    def __init__(self, dependent: str, message: str):
        self.dependent = dependent
        super().__init__(f"Checks failed for {dependent}: {message}")
