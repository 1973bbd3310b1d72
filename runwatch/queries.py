"""GraphQL operation text for relevant run spec polling."""

from __future__ import annotations

from typing import Any

from runwatch.models import RelevantRun

RELEVANT_RUN_SPEC_OPERATION_NAME = "RelevantRunSpecsDataSource_Specs"

RELEVANT_RUN_SPEC_OPERATION = """
fragment RelevantRunSpecsDataSource_Runs on CloudRun {
  id
  runNumber
  status
  completedInstanceCount
  totalInstanceCount
  specs {
    id
    status
    groupIds
  }
}

query RelevantRunSpecsDataSource_Specs(
  $projectSlug: String!
  $currentRunNumber: Int!
  $hasCurrent: Boolean!
  $nextRunNumber: Int!
  $hasNext: Boolean!
) {
  cloudProjectBySlug(slug: $projectSlug) {
    __typename
    ... on CloudProject {
      id
      current: runByNumber(runNumber: $currentRunNumber) @include(if: $hasCurrent) {
        id
        ...RelevantRunSpecsDataSource_Runs
      }
      next: runByNumber(runNumber: $nextRunNumber) @include(if: $hasNext) {
        id
        ...RelevantRunSpecsDataSource_Runs
      }
    }
  }
  pollingIntervals {
    runByNumber
  }
}
""".strip()

# Sent when a slot is not tracked; @include keeps it out of the query.
UNSET_RUN_NUMBER = -1


def build_operation_variables(project_slug: str, runs: RelevantRun) -> dict[str, Any]:
    """Fixed variable shape covering neither/current/next/both runs."""
    return {
        "projectSlug": project_slug,
        "currentRunNumber": runs.current if runs.has_current else UNSET_RUN_NUMBER,
        "hasCurrent": runs.has_current,
        "nextRunNumber": runs.next if runs.has_next else UNSET_RUN_NUMBER,
        "hasNext": runs.has_next,
    }
