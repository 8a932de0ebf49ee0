"""Companion pull requests: discovery in descriptions, parsing and resolution.

A pull request description may reference changes in dependent repositories
that must be checked together with it, one per line::

    polkadot companion: https://github.com/paritytech/polkadot/pull/123
    Companion: cumulus#45

Each reference goes through a small state machine: it is parsed, its status is
fetched from GitHub, and it either becomes ready for checkout or is recorded as
a soft failure when GitHub does not consider it mergeable.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterator, Union

from pydantic import ValidationError

from dependent_check.errors import (
    CompanionFormatError,
    CompanionNotMergeableError,
    StatusQueryTransportError,
    UnknownStateError,
)
from dependent_check.github.client import GitHubClient
from dependent_check.models import (
    TERMINAL_STATES,
    CompanionReference,
    CompanionResolution,
    CompanionState,
    CompanionStatus,
    InvalidReference,
)

logger = logging.getLogger("dependent_check")

_COMPANION_LINE = re.compile(r"companion:\s*(?P<reference>.+)", re.IGNORECASE)

# e.g. https://github.com/paritytech/polkadot/pull/123
_URL_FORM = re.compile(
    r"^https://(?P<host>[^/\s]+)/(?P<org>[^/\s]+)/(?P<repo>[^/\s]+)/pull/(?P<number>\d+)"
)
# e.g. polkadot#123 or paritytech/polkadot#123
_SHORT_FORM = re.compile(r"^(?:(?P<org>[^/#\s]+)/)?(?P<repo>[^/#\s]+)#(?P<number>\d+)")

ReferenceParse = Union[CompanionReference, InvalidReference]


class CompanionReferences:
    """Lazy, restartable iteration over the companion references of a description."""

    def __init__(self, description: str):
        self.description = description

    def __iter__(self) -> Iterator[str]:
        for line in self.description.splitlines():
            found = _COMPANION_LINE.search(line)
            if not found:
                continue
            reference = found.group("reference").strip()
            if reference:
                yield reference


def extract_references(description: str) -> CompanionReferences:
    return CompanionReferences(description)


def classify_reference(raw: str, expected_org: str) -> ReferenceParse:
    """Parse ``raw`` into a reference, or say why it cannot be one."""
    raw = raw.strip()
    for pattern in (_URL_FORM, _SHORT_FORM):
        found = pattern.match(raw)
        if not found:
            continue
        org = found.group("org")
        if org is not None and org != expected_org:
            return InvalidReference(
                raw=raw, reason=f"organization {org} is not {expected_org}"
            )
        return CompanionReference(repository=found.group("repo"), number=int(found.group("number")))
    return InvalidReference(raw=raw, reason="expected a pull request URL or <repo>#<number>")


def parse_reference(raw: str, expected_org: str) -> CompanionReference:
    parsed = classify_reference(raw, expected_org)
    if isinstance(parsed, InvalidReference):
        raise CompanionFormatError(parsed.raw, expected_org, parsed.reason)
    return parsed


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


_Step = Callable[[CompanionResolution], Awaitable[CompanionResolution]]


class CompanionResolver:
    """Resolves companion references of one organization against GitHub."""

    def __init__(self, client: GitHubClient, org: str, clock: Callable[[], str] = _utc_now):
        self.client = client
        self.org = org
        self._clock = clock
        self._steps: dict[CompanionState, _Step] = {
            CompanionState.PARSE: self._parse,
            CompanionState.STATUS_FETCHED: self._check_mergeable,
            CompanionState.MERGEABLE: self._ready,
            CompanionState.NOT_MERGEABLE: self._record_failure,
        }

    async def resolve_status(self, reference: CompanionReference) -> CompanionStatus:
        """Fetch mergeability and head coordinates. No retry: failures are fatal."""
        pull = await self.client.get_pull_request(self.org, reference.repository, reference.number)
        try:
            return CompanionStatus.model_validate(pull)
        except ValidationError as e:
            raise StatusQueryTransportError(
                f"Unexpected pull request payload for {self.org}/{reference}: {e}"
            ) from e

    async def resolve(self, raw: str) -> CompanionResolution:
        """Run ``raw`` through the state machine until it reaches a terminal state."""
        resolution = CompanionResolution(raw=raw)
        while resolution.state not in TERMINAL_STATES:
            step = self._steps.get(resolution.state)
            if step is None:
                raise UnknownStateError(resolution.state)
            resolution = await step(resolution)
        return resolution

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _parse(self, resolution: CompanionResolution) -> CompanionResolution:
        reference = parse_reference(resolution.raw, self.org)
        status = await self.resolve_status(reference)
        return resolution.model_copy(
            update={"reference": reference, "status": status, "state": CompanionState.STATUS_FETCHED}
        )

    async def _check_mergeable(self, resolution: CompanionResolution) -> CompanionResolution:
        mergeable = resolution.status is not None and resolution.status.mergeable
        state = CompanionState.MERGEABLE if mergeable else CompanionState.NOT_MERGEABLE
        return resolution.model_copy(update={"state": state})

    async def _ready(self, resolution: CompanionResolution) -> CompanionResolution:
        return resolution.model_copy(update={"state": CompanionState.CHECKOUT_READY})

    async def _record_failure(self, resolution: CompanionResolution) -> CompanionResolution:
        error = CompanionNotMergeableError(
            f"GitHub API says {resolution.raw} is not mergeable (checked at {self._clock()})"
        )
        logger.warning("%s", error)
        return resolution.model_copy(
            update={"state": CompanionState.RECORDED_SOFT_FAILURE, "error": str(error)}
        )
