"""Discovery of the crates this project owns."""

from __future__ import annotations

from typing import Iterable

from dependent_check.errors import MetadataExtractionError
from dependent_check.models import BuildUnit


def discover(graph: Iterable[BuildUnit]) -> tuple[str, ...]:
    """Return the names of locally defined units, first-seen order, no duplicates.

    A unit without a source is defined in this workspace rather than fetched
    from a registry or a git remote. Every project owns at least itself, so an
    empty result means the graph query went wrong.
    """
    owned = tuple(dict.fromkeys(unit.name for unit in graph if unit.is_local))
    if not owned:
        raise MetadataExtractionError("No local crates found in the dependency graph")
    return owned
