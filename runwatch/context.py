"""Shared collaborators for the cloud data sources."""

from __future__ import annotations

from dataclasses import dataclass, field

from runwatch.config import Config, get_config
from runwatch.events import RunEventEmitter
from runwatch.project import ProjectResolver, RelevantRunsState
from runwatch.remote import RemoteQueryExecutor


@dataclass
class DataContext:
    """Everything a data source needs to reach the cloud and notify listeners.

    Every data source receives a reference to this single context object
    instead of holding its own copies of the collaborators.
    """

    project: ProjectResolver
    cloud: RemoteQueryExecutor
    relevant_runs: RelevantRunsState = field(default_factory=RelevantRunsState)
    emitter: RunEventEmitter = field(default_factory=RunEventEmitter)
    config: Config = field(default_factory=get_config)
