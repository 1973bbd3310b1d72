"""Polls the cloud for spec progress and status of the relevant runs.

Each tick fetches a fresh snapshot, compares it with the cached one and
notifies listeners only about what changed:

- spec counts changed -> ``relevant_run_spec_change``
- statuses changed    -> ``relevant_run_change`` (and, if the current run was
  RUNNING, the cached ``cloudProjectBySlug`` entry is invalidated first)
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable
from typing import Any

from runwatch.context import DataContext
from runwatch.diff import diff_snapshots
from runwatch.logging import get_logger
from runwatch.models import (
    SPECS_EMPTY_RETURN,
    RelevantRun,
    RunProgress,
    RunSpecReturn,
    RunSpecs,
    RunStatus,
    RunStatuses,
)
from runwatch.poller import PollHandle, Poller
from runwatch.queries import (
    RELEVANT_RUN_SPEC_OPERATION,
    RELEVANT_RUN_SPEC_OPERATION_NAME,
    build_operation_variables,
)
from runwatch.remote import RemoteQueryRequest, RequestPolicy

log = get_logger(__name__)

POLLER_NAME = "relevant_run_spec_change"


def _is_valid_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def format_cloud_run_info(cloud_run: dict[str, Any]) -> RunProgress | None:
    """Spec progress for a run payload, or None if any field is unusable."""
    run_number = cloud_run.get("runNumber")
    total = cloud_run.get("totalInstanceCount")
    completed = cloud_run.get("completedInstanceCount")

    if _is_valid_number(run_number) and run_number > 0 and _is_valid_number(total) and _is_valid_number(completed):
        return RunProgress(
            run_number=run_number,
            total_specs=total,
            completed_specs=completed,
        )
    return None


class RelevantRunSpecsDataSource:
    """Data source for spec counts and statuses of the current/next runs."""

    def __init__(
        self,
        ctx: DataContext,
        *,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.ctx = ctx
        self._polling_interval: float = ctx.config.polling.default_interval_seconds
        self._cached: RunSpecReturn = SPECS_EMPTY_RETURN
        self._poller: Poller[RunSpecReturn] | None = None
        self._sleep = sleep

    @property
    def specs(self) -> RunSpecs:
        return self._cached.run_specs

    @property
    def cached(self) -> RunSpecReturn:
        return self._cached

    @property
    def polling_interval(self) -> float:
        return self._polling_interval

    @property
    def poller(self) -> Poller[RunSpecReturn] | None:
        return self._poller

    async def get_relevant_run_specs(self, runs: RelevantRun) -> RunSpecReturn:
        """Fetch spec progress and statuses for ``runs``.

        Never raises for remote failures: a missing project, a transport or
        query error, and an unexpected payload all yield the empty snapshot.
        """
        project_slug = await self.ctx.project.project_id()

        if not project_slug:
            log.debug("No project detected")
            return SPECS_EMPTY_RETURN

        log.debug("Fetching specs", project=project_slug, current=runs.current, next=runs.next)

        result = await self.ctx.cloud.execute_remote_graphql(
            RemoteQueryRequest(
                field_name="cloudProjectBySlug",
                operation_name=RELEVANT_RUN_SPEC_OPERATION_NAME,
                operation=RELEVANT_RUN_SPEC_OPERATION,
                variables=build_operation_variables(project_slug, runs),
                # never served from the local response cache
                request_policy=RequestPolicy.NETWORK_ONLY,
                field_args={"slug": project_slug},
            )
        )

        if result.error:
            log.warning(
                "Error fetching relevant run specs",
                current=runs.current,
                next=runs.next,
                error=str(result.error),
            )
            return SPECS_EMPTY_RETURN

        data = result.data or {}
        cloud_project = data.get("cloudProjectBySlug")
        polling_intervals = data.get("pollingIntervals")
        polling_interval = (
            polling_intervals.get("runByNumber") if isinstance(polling_intervals, dict) else None
        )
        typename = cloud_project.get("__typename") if isinstance(cloud_project, dict) else None

        log.debug("Result returned", typename=typename, polling_interval=polling_interval)

        if _is_valid_number(polling_interval) and polling_interval > 0:
            self._polling_interval = polling_interval
            if self._poller is not None:
                self._poller.interval = polling_interval

        if typename != "CloudProject":
            return SPECS_EMPTY_RETURN

        run_specs: dict[str, RunProgress | None] = {}
        statuses: dict[str, str] = {}
        for slot in ("current", "next"):
            cloud_run = cloud_project.get(slot)
            if isinstance(cloud_run, dict) and cloud_run.get("status"):
                run_specs[slot] = format_cloud_run_info(cloud_run)
                statuses[slot] = cloud_run["status"]

        return RunSpecReturn(run_specs=RunSpecs(**run_specs), statuses=RunStatuses(**statuses))

    async def _poll_tick(self) -> None:
        runs = self.ctx.relevant_runs.runs

        log.debug("Polling for specs", current=runs.current, next=runs.next)

        if runs.is_empty:
            return

        specs = await self.get_relevant_run_specs(runs)

        was_watching_current = self._cached.statuses.current == RunStatus.RUNNING
        diff = diff_snapshots(self._cached, specs)

        self._cached = specs

        if diff.specs_changed:
            self.ctx.emitter.relevant_run_spec_change()

        if diff.statuses_changed:
            log.debug("Run statuses changed", statuses=specs.to_dict()["statuses"])
            project_slug = await self.ctx.project.project_id()

            if project_slug and was_watching_current:
                await self._invalidate_project(project_slug)

            self.ctx.emitter.relevant_run_change(runs)

    async def _invalidate_project(self, project_slug: str) -> None:
        log.debug("Invalidate cloudProjectBySlug", project=project_slug)
        try:
            await self.ctx.cloud.invalidate("Query", "cloudProjectBySlug", {"slug": project_slug})
        except Exception as e:
            log.warning("cloudProjectBySlug invalidation failed", project=project_slug, error=str(e))

    def poll_for_specs(self) -> PollHandle[RunSpecReturn]:
        """Start (or join) polling; the handle carries the cached snapshot."""
        log.debug("poll_for_specs called")
        if self._poller is None:
            kwargs: dict[str, Any] = {}
            if self._sleep is not None:
                kwargs["sleep"] = self._sleep
            self._poller = Poller(POLLER_NAME, self._polling_interval, self._poll_tick, **kwargs)

        return self._poller.start(initial_value=self._cached)

    def stop_polling(self) -> None:
        if self._poller is not None:
            self._poller.stop()
