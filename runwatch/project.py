"""Local workspace identity: which project and which runs are relevant."""

from __future__ import annotations

from abc import ABC, abstractmethod

from runwatch.models import RelevantRun


class ProjectResolver(ABC):
    """Resolves the cloud project slug for the local workspace."""

    @abstractmethod
    async def project_id(self) -> str | None:
        """Return the project slug, or None when no project is linked."""
        pass


class StaticProjectResolver(ProjectResolver):
    """Project slug fixed at construction time (e.g. from config)."""

    def __init__(self, slug: str | None = None):
        self.slug = (slug or "").strip() or None

    async def project_id(self) -> str | None:
        return self.slug


class RelevantRunsState:
    """Holds the run numbers the workspace currently cares about."""

    def __init__(self, runs: RelevantRun | None = None):
        self._runs = runs or RelevantRun()

    @property
    def runs(self) -> RelevantRun:
        return self._runs

    def set_runs(self, current: int | None = None, next: int | None = None) -> RelevantRun:
        self._runs = RelevantRun(current=current, next=next)
        return self._runs
