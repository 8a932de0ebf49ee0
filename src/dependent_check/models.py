"""Pydantic models for build graphs, companions and the run report."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class BuildUnit(BaseModel):
    """A crate as seen in a dependency graph. ``source is None`` means it is defined locally."""

    name: str
    source: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_local(self) -> bool:
        return self.source is None


class CompanionReference(BaseModel):
    repository: str
    number: int

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.repository}#{self.number}"


class InvalidReference(BaseModel):
    """Tagged result for companion text that could not be parsed."""

    raw: str
    reason: str


class CompanionStatus(BaseModel):
    """Mergeability and checkout coordinates of a pull request."""

    mergeable: bool = False
    head_ref: str
    head_sha: str

    model_config = {"frozen": True}

    @field_validator("mergeable", mode="before")
    @classmethod
    def _unknown_is_not_mergeable(cls, value: Any) -> Any:
        # GitHub reports null while the merge commit is still being computed
        return False if value is None else value

    @model_validator(mode="before")
    @classmethod
    def _flatten_head(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("head"), dict):
            head = data["head"]
            return {
                "mergeable": data.get("mergeable"),
                "head_ref": head.get("ref"),
                "head_sha": head.get("sha"),
            }
        return data


class CompanionState(str, Enum):
    PARSE = "parse"
    STATUS_FETCHED = "status_fetched"
    MERGEABLE = "mergeable"
    NOT_MERGEABLE = "not_mergeable"
    CHECKOUT_READY = "checkout_ready"
    RECORDED_SOFT_FAILURE = "recorded_soft_failure"


TERMINAL_STATES = frozenset({CompanionState.CHECKOUT_READY, CompanionState.RECORDED_SOFT_FAILURE})


class CompanionResolution(BaseModel):
    """Progress of one companion reference through resolution."""

    raw: str
    state: CompanionState = CompanionState.PARSE
    reference: Optional[CompanionReference] = None
    status: Optional[CompanionStatus] = None
    error: Optional[str] = None

    @property
    def checkout_ready(self) -> bool:
        return self.state is CompanionState.CHECKOUT_READY


class CheckReport(BaseModel):
    """Aggregated outcome of a run."""

    companion_errors: list[str] = Field(default_factory=list)
    failed_dependents: dict[str, str] = Field(default_factory=dict)
    checked: list[str] = Field(default_factory=list)
    found_companions: list[str] = Field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_dependents)

    def render(self) -> str:
        """Human-readable summary printed at the end of the run."""
        lines: list[str] = []
        if self.companion_errors:
            lines.append("")
            lines.extend(self.companion_errors)
        if self.failed_dependents:
            lines.append("")
            for dependent, message in self.failed_dependents.items():
                lines.append(f"[{dependent}] {message}")
        return "\n".join(lines)
