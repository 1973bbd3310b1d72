"""Snapshot data model for relevant run tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class RunStatus:
    """Run statuses reported by the cloud service.

    The remote schema owns the full set; values not listed here are kept
    verbatim and compare like any other string.
    """

    RUNNING = "RUNNING"
    PASSED = "PASSED"
    FAILED = "FAILED"
    ERRORED = "ERRORED"
    TIMEDOUT = "TIMEDOUT"
    OVERLIMIT = "OVERLIMIT"
    CANCELLED = "CANCELLED"
    NOTESTS = "NOTESTS"


@dataclass(frozen=True)
class RunProgress:
    """Spec completion counts for one run."""

    run_number: int
    total_specs: int
    completed_specs: int


@dataclass(frozen=True)
class RelevantRun:
    """Run numbers currently of interest to the workspace."""

    current: int | None = None
    next: int | None = None

    @property
    def has_current(self) -> bool:
        return _is_positive_run_number(self.current)

    @property
    def has_next(self) -> bool:
        return _is_positive_run_number(self.next)

    @property
    def is_empty(self) -> bool:
        """True when neither slot holds a run worth polling."""
        return not self.has_current and not self.has_next


@dataclass(frozen=True)
class RunSpecs:
    current: RunProgress | None = None
    next: RunProgress | None = None


@dataclass(frozen=True)
class RunStatuses:
    current: str | None = None
    next: str | None = None


@dataclass(frozen=True)
class RunSpecReturn:
    """Spec progress and statuses for the tracked runs at one point in time."""

    run_specs: RunSpecs = field(default_factory=RunSpecs)
    statuses: RunStatuses = field(default_factory=RunStatuses)

    def __post_init__(self) -> None:
        # Progress without a known status is meaningless.
        for slot in ("current", "next"):
            if getattr(self.run_specs, slot) is not None and getattr(self.statuses, slot) is None:
                raise ValueError(f"run_specs.{slot} is set but statuses.{slot} is not")

    def to_dict(self) -> dict[str, Any]:
        """Render as plain dicts, omitting empty slots."""
        run_specs: dict[str, Any] = {}
        statuses: dict[str, Any] = {}
        for slot in ("current", "next"):
            progress = getattr(self.run_specs, slot)
            if progress is not None:
                run_specs[slot] = {
                    "runNumber": progress.run_number,
                    "totalSpecs": progress.total_specs,
                    "completedSpecs": progress.completed_specs,
                }
            status = getattr(self.statuses, slot)
            if status is not None:
                statuses[slot] = status
        return {"runSpecs": run_specs, "statuses": statuses}


SPECS_EMPTY_RETURN = RunSpecReturn()


def _is_positive_run_number(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
