"""Dependency graph query backed by ``cargo metadata``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator

from dependent_check.commands import CommandRunner
from dependent_check.errors import CommandError, MetadataExtractionError
from dependent_check.models import BuildUnit

logger = logging.getLogger("dependent_check")

CARGO_METADATA = ["cargo", "metadata", "--quiet", "--format-version=1"]


def _walk(node: Any) -> Iterator[BuildUnit]:
    if isinstance(node, dict):
        if "source" in node and isinstance(node.get("name"), str):
            source = node["source"]
            if source is None or isinstance(source, str):
                yield BuildUnit(name=node["name"], source=source)
        for value in node.values():
            yield from _walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


def flatten_units(metadata: dict[str, Any]) -> list[BuildUnit]:
    """Collect every object with a ``name`` and a ``source`` in document order.

    Packages and the dependency declarations nested inside them both count, so a
    path dependency shows up as a local unit even before it appears as a package.
    """
    return list(_walk(metadata))


async def query_graph(project_dir: Path, runner: CommandRunner) -> list[BuildUnit]:
    """Return the dependency graph of the cargo workspace in ``project_dir``."""
    try:
        result = await runner.run(CARGO_METADATA, cwd=project_dir)
    except CommandError as e:
        raise MetadataExtractionError(f"cargo metadata failed for {project_dir}: {e}") from e

    try:
        metadata = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise MetadataExtractionError(
            f"cargo metadata for {project_dir} returned invalid JSON: {e}"
        ) from e

    units = flatten_units(metadata)
    if not units:
        raise MetadataExtractionError(
            f"No crates were read from cargo metadata of {project_dir} (some error probably occurred)"
        )
    logger.debug("Read %d graph nodes from %s", len(units), project_dir)
    return units
