"""Change detection between consecutive snapshots."""

from __future__ import annotations

from dataclasses import dataclass

from runwatch.models import RunSpecReturn


@dataclass(frozen=True)
class SnapshotDiff:
    """Which parts of a snapshot changed since the previous poll."""

    specs_changed: bool = False
    statuses_changed: bool = False

    @property
    def changed(self) -> bool:
        return self.specs_changed or self.statuses_changed


def diff_snapshots(previous: RunSpecReturn, next: RunSpecReturn) -> SnapshotDiff:
    """Compare spec progress and statuses independently.

    Slots compare structurally: absent vs absent is equal, present vs absent
    is not, and two progress values must match on every count.
    """
    return SnapshotDiff(
        specs_changed=next.run_specs != previous.run_specs,
        statuses_changed=next.statuses != previous.statuses,
    )
