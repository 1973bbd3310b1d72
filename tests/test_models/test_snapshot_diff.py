import pytest

from runwatch.diff import SnapshotDiff, diff_snapshots
from runwatch.models import (
    SPECS_EMPTY_RETURN,
    RelevantRun,
    RunProgress,
    RunSpecReturn,
    RunSpecs,
    RunStatus,
    RunStatuses,
)


def _snapshot(
    completed: int = 2,
    total: int = 10,
    status: str | None = RunStatus.RUNNING,
    run_number: int = 5,
) -> RunSpecReturn:
    progress = RunProgress(run_number=run_number, total_specs=total, completed_specs=completed)
    return RunSpecReturn(
        run_specs=RunSpecs(current=progress if status else None),
        statuses=RunStatuses(current=status),
    )


def test_empty_snapshots_are_equal():
    assert diff_snapshots(SPECS_EMPTY_RETURN, RunSpecReturn()) == SnapshotDiff()
    assert diff_snapshots(SPECS_EMPTY_RETURN, RunSpecReturn()).changed is False


def test_same_values_in_fresh_objects_do_not_change():
    diff = diff_snapshots(_snapshot(), _snapshot())
    assert diff.specs_changed is False
    assert diff.statuses_changed is False


def test_count_change_only_flags_specs():
    diff = diff_snapshots(_snapshot(completed=2), _snapshot(completed=3))
    assert diff.specs_changed is True
    assert diff.statuses_changed is False
    assert diff.changed is True


def test_status_change_only_flags_statuses():
    diff = diff_snapshots(_snapshot(), _snapshot(status=RunStatus.PASSED))
    assert diff.specs_changed is False
    assert diff.statuses_changed is True


def test_presence_versus_absence_flags_both():
    diff = diff_snapshots(_snapshot(), SPECS_EMPTY_RETURN)
    assert diff.specs_changed is True
    assert diff.statuses_changed is True


def test_status_without_progress_differs_only_in_specs():
    previous = _snapshot()
    current = RunSpecReturn(statuses=RunStatuses(current=RunStatus.RUNNING))
    diff = diff_snapshots(previous, current)
    assert diff.specs_changed is True
    assert diff.statuses_changed is False


def test_next_slot_is_compared_independently():
    previous = RunSpecReturn(statuses=RunStatuses(current=RunStatus.RUNNING, next=RunStatus.RUNNING))
    current = RunSpecReturn(statuses=RunStatuses(current=RunStatus.RUNNING, next=RunStatus.FAILED))
    assert diff_snapshots(previous, current).statuses_changed is True


def test_progress_requires_matching_status():
    with pytest.raises(ValueError):
        RunSpecReturn(run_specs=RunSpecs(next=RunProgress(run_number=1, total_specs=1, completed_specs=0)))


def test_unknown_status_is_kept_verbatim():
    snapshot = RunSpecReturn(statuses=RunStatuses(current="SOMETHING_NEW"))
    assert snapshot.to_dict() == {"runSpecs": {}, "statuses": {"current": "SOMETHING_NEW"}}


def test_to_dict_uses_wire_names():
    assert _snapshot().to_dict() == {
        "runSpecs": {"current": {"runNumber": 5, "totalSpecs": 10, "completedSpecs": 2}},
        "statuses": {"current": "RUNNING"},
    }


@pytest.mark.parametrize(
    ("runs", "has_current", "has_next", "is_empty"),
    [
        (RelevantRun(), False, False, True),
        (RelevantRun(current=5), True, False, False),
        (RelevantRun(next=6), False, True, False),
        (RelevantRun(current=5, next=6), True, True, False),
        (RelevantRun(current=0, next=-2), False, False, True),
    ],
)
def test_relevant_run_slots_of_interest(runs, has_current, has_next, is_empty):
    assert runs.has_current is has_current
    assert runs.has_next is has_next
    assert runs.is_empty is is_empty
