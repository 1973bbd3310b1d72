"""Event emitter for relevant run changes.

Listeners are plain callables. A failing listener is logged and never
interrupts the poll tick that emitted the event.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from runwatch.logging import get_logger
from runwatch.models import RelevantRun

log = get_logger(__name__)


class RunEvent:
    """Event names emitted by the relevant run data sources."""

    RELEVANT_RUN_SPEC_CHANGE = "relevant_run_spec_change"
    RELEVANT_RUN_CHANGE = "relevant_run_change"


class RunEventEmitter:
    """In-process fan-out of run events to registered listeners."""

    def __init__(self):
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    def on(self, event: str, listener: Callable[..., Any]) -> Callable[[], None]:
        """Register ``listener`` for ``event``. Returns an unsubscribe function."""
        self._listeners.setdefault(event, []).append(listener)

        def _unsubscribe() -> None:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

        return _unsubscribe

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def relevant_run_spec_change(self) -> None:
        """Spec counts changed; listeners re-read the data source cache."""
        self._emit(RunEvent.RELEVANT_RUN_SPEC_CHANGE)

    def relevant_run_change(self, runs: RelevantRun) -> None:
        """Run statuses changed for the given identifiers."""
        self._emit(RunEvent.RELEVANT_RUN_CHANGE, runs)

    def _emit(self, event: str, *args: Any) -> None:
        listeners = list(self._listeners.get(event, []))
        log.debug("emitting run event", run_event=event, listeners=len(listeners))
        for listener in listeners:
            try:
                listener(*args)
            except Exception as e:
                log.warning("run event listener failed", run_event=event, error=str(e))
