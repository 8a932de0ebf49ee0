"""Matching a dependent's graph against the crates we own."""

from __future__ import annotations

from typing import Collection, Iterable

from dependent_check.errors import CrateMatchError
from dependent_check.models import BuildUnit

# ?branch=/?rev= pins and the resolved #commit suffix cargo appends to git sources
QUALIFIER_SEPARATORS = ("?", "#")


def is_canonical_source(source: str | None, canonical_source: str) -> bool:
    if source is None:
        return False
    if source == canonical_source:
        return True
    return any(source.startswith(canonical_source + sep) for sep in QUALIFIER_SEPARATORS)


def find_unmatched(
    graph: Iterable[BuildUnit], owned: Collection[str], canonical_source: str
) -> list[str]:
    """Names the dependent pulls from our repository that we do not own anymore."""
    owned = set(owned)
    unmatched: dict[str, None] = {}
    for unit in graph:
        if is_canonical_source(unit.source, canonical_source) and unit.name not in owned:
            unmatched.setdefault(unit.name)
    return list(unmatched)


def match(
    graph: Iterable[BuildUnit],
    owned: Collection[str],
    canonical_source: str,
    dependent: str,
) -> None:
    """Raise CrateMatchError listing every crate of ours ``dependent`` cannot find."""
    unmatched = find_unmatched(graph, owned, canonical_source)
    if unmatched:
        raise CrateMatchError(dependent, unmatched)
