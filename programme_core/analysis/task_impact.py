"""
Single Task Impact Analysis.

Analyze the schedule impact of changing a single task's duration.
Used for what-if scenarios and sensitivity analysis. The change is applied
through ScheduleMutator, so successors cascade exactly as they would for a
real edit, and the input task set is never modified.
"""

import logging
from dataclasses import dataclass
from datetime import date

from programme_core.config.settings import settings
from programme_core.cpm.engine import calculate_critical_path
from programme_core.cpm.errors import MutationError
from programme_core.cpm.models import TaskCollection
from programme_core.mutator import ResizeEdge, ScheduleMutator

logger = logging.getLogger(__name__)


@dataclass
class TaskImpactResult:
    """Results from single task what-if analysis."""

    task_id: str
    task_name: str
    duration_delta_days: int
    original_finish: date
    new_finish: date
    slip_days: int
    affected_task_ids: list[str]
    original_critical_path: list[str]
    new_critical_path: list[str]
    critical_path_changed: bool

    def get_slip_summary(self) -> str:
        """Get human-readable slip summary."""
        if self.slip_days <= 0:
            return "No impact on project finish"
        return f"{self.slip_days} days slip"


def analyze_task_impact(
    tasks: TaskCollection,
    task_id: str,
    duration_delta_days: int,
) -> TaskImpactResult:
    """
    Calculate impact of changing one task's duration.

    Args:
        tasks: Task collection (will not be modified)
        task_id: ID of task to modify
        duration_delta_days: Change in duration (positive = increase)

    Returns:
        TaskImpactResult with original vs new finish dates and affected tasks

    Raises:
        MutationError: unknown task, or a milestone (which cannot be resized)
    """
    mutator = ScheduleMutator(tasks)
    baseline = calculate_critical_path(mutator.schedule)
    modified = mutator.resize_task(task_id, ResizeEdge.END, duration_delta_days)
    task = mutator.schedule.get(task_id)

    affected = sorted(
        tid for tid, timing in modified.critical_path.timings.items()
        if timing.early_finish != baseline.timings[tid].early_finish
    )

    return TaskImpactResult(
        task_id=task_id,
        task_name=task.name,
        duration_delta_days=duration_delta_days,
        original_finish=baseline.project_finish,
        new_finish=modified.critical_path.project_finish,
        slip_days=(modified.critical_path.project_finish - baseline.project_finish).days,
        affected_task_ids=affected,
        original_critical_path=baseline.critical_tasks,
        new_critical_path=modified.critical_path.critical_tasks,
        critical_path_changed=(set(baseline.critical_tasks)
                               != set(modified.critical_path.critical_tasks)),
    )


def analyze_task_sensitivity(
    tasks: TaskCollection,
    task_ids: list[str] = None,
    duration_delta_days: int = None,
) -> list[TaskImpactResult]:
    """
    Analyze sensitivity of multiple tasks.

    Tests the impact of increasing each task's duration by the same amount.
    Useful for identifying which tasks have the most schedule risk.

    Args:
        tasks: Task collection
        task_ids: Task IDs to analyze (default: incomplete non-milestone tasks)
        duration_delta_days: Duration increase to test (default from settings)

    Returns:
        List of TaskImpactResult sorted by slip_days (descending)
    """
    if duration_delta_days is None:
        duration_delta_days = settings.SENSITIVITY_DELTA_DAYS

    schedule = ScheduleMutator(tasks).schedule
    if task_ids is None:
        task_ids = [
            t.id for t in schedule.tasks
            if not t.is_completed and not t.is_milestone
        ]

    results = []
    for task_id in task_ids:
        try:
            results.append(analyze_task_impact(schedule, task_id, duration_delta_days))
        except MutationError as e:
            logger.debug(f"Skipping {task_id} in sensitivity analysis: {e}")
            continue

    results.sort(key=lambda r: (-r.slip_days, r.task_id))

    return results


def print_task_impact_report(result: TaskImpactResult) -> None:
    """Print a formatted single task impact report."""
    print("=" * 80)
    print("TASK IMPACT ANALYSIS")
    print("=" * 80)
    print(f"\nTask: {result.task_id} | {result.task_name}")
    print(f"Duration change: {result.duration_delta_days:+d} days")
    print(f"Project finish: {result.original_finish} -> {result.new_finish}")
    print(f"Impact: {result.get_slip_summary()}")
    print(f"Affected tasks: {len(result.affected_task_ids)}")
    if result.critical_path_changed:
        print("Critical path CHANGED")
        added = sorted(set(result.new_critical_path) - set(result.original_critical_path))
        removed = sorted(set(result.original_critical_path) - set(result.new_critical_path))
        if added:
            print(f"  Now critical: {', '.join(added)}")
        if removed:
            print(f"  No longer critical: {', '.join(removed)}")
    print("\n" + "=" * 80)


def print_sensitivity_report(results: list[TaskImpactResult], top_n: int = 20) -> None:
    """Print the tasks whose delay slips the project most."""
    print("=" * 80)
    print("SCHEDULE SENSITIVITY ANALYSIS")
    print("=" * 80)
    print(f"\nTasks analyzed: {len(results)}")
    impacting = [r for r in results if r.slip_days > 0]
    print(f"Tasks that slip the finish: {len(impacting)}")

    print(f"\n--- Top {top_n} ---")
    for i, r in enumerate(results[:top_n]):
        print(f"  {i+1:3d}. {r.task_id:20s} | {r.task_name[:35]:35s} | "
              f"{r.get_slip_summary()}")

    print("\n" + "=" * 80)
