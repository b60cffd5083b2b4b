"""
Critical Path Analysis.

Identifies critical and near-critical tasks, analyzes float distribution,
and identifies schedule risk areas.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Optional

from programme_core.config.settings import settings
from programme_core.cpm.engine import calculate_critical_path
from programme_core.cpm.models import CPMResult, Task, TaskCollection, TaskTiming, as_schedule


@dataclass
class CriticalPathResult:
    """Results from critical path analysis."""

    critical_path: list[Task]
    near_critical_tasks: list[Task]
    float_distribution: dict[str, int]  # float_bucket -> count
    project_finish: Optional[date]
    project_duration: int
    near_critical_threshold_days: int
    total_tasks: int
    timings: dict[str, TaskTiming]

    def get_critical_path_length(self) -> int:
        """Number of tasks on critical path."""
        return len(self.critical_path)

    def get_risk_summary(self) -> str:
        """Get summary of schedule risk."""
        critical = len(self.critical_path)
        near_critical = len(self.near_critical_tasks)
        return (f"{critical} critical tasks, {near_critical} near-critical "
                f"(<= {self.near_critical_threshold_days} days float)")


def _float_bucket(total_float: int) -> str:
    if total_float < 0:
        return 'negative (infeasible)'
    if total_float == 0:
        return '0 (critical)'
    if total_float <= 1:
        return '1 day'
    if total_float <= 5:
        return '2-5 days'
    if total_float <= 10:
        return '6-10 days'
    if total_float <= 20:
        return '11-20 days'
    return '> 20 days'


def analyze_critical_path(
    tasks: TaskCollection,
    near_critical_threshold_days: int = None,
    cpm_result: CPMResult = None,
) -> CriticalPathResult:
    """
    Analyze critical path and near-critical tasks.

    Args:
        tasks: Task collection to analyze
        near_critical_threshold_days: Float threshold for near-critical
                                      classification (default from settings)
        cpm_result: Precomputed CPM result for the same tasks

    Returns:
        CriticalPathResult with critical path, near-critical tasks, and statistics
    """
    if near_critical_threshold_days is None:
        near_critical_threshold_days = settings.NEAR_CRITICAL_THRESHOLD_DAYS

    schedule = as_schedule(tasks)
    result = cpm_result or calculate_critical_path(schedule)
    task_map = schedule.task_map()

    critical = []
    near_critical = []
    float_buckets = defaultdict(int)

    for task_id, timing in result.timings.items():
        float_buckets[_float_bucket(timing.total_float)] += 1
        if timing.total_float == 0:
            critical.append(task_map[task_id])
        elif 0 < timing.total_float <= near_critical_threshold_days:
            near_critical.append(task_map[task_id])

    # Critical path in execution order, near-critical by float
    critical.sort(key=lambda t: (result.timings[t.id].early_start, t.id))
    near_critical.sort(key=lambda t: (result.timings[t.id].total_float, t.id))

    return CriticalPathResult(
        critical_path=critical,
        near_critical_tasks=near_critical,
        float_distribution=dict(float_buckets),
        project_finish=result.project_finish,
        project_duration=result.project_duration,
        near_critical_threshold_days=near_critical_threshold_days,
        total_tasks=len(schedule.tasks),
        timings=result.timings,
    )


def identify_risk_tasks(
    tasks: TaskCollection,
    float_threshold_days: int = None,
    min_duration_days: int = 5,
) -> list[Task]:
    """
    Identify high-risk tasks that could become critical.

    Criteria:
    - Near-critical (0 < float <= threshold)
    - Significant duration (duration >= min_duration)
    - Not already completed

    Returns:
        List of risk tasks sorted by (float, duration desc)
    """
    if float_threshold_days is None:
        float_threshold_days = settings.NEAR_CRITICAL_THRESHOLD_DAYS

    result = calculate_critical_path(tasks)

    risk_tasks = []
    for task in as_schedule(tasks).tasks:
        if task.is_completed:
            continue
        total_float = result.float_by_task[task.id]
        if total_float <= 0:
            continue  # Already critical
        if total_float > float_threshold_days:
            continue
        if task.duration < min_duration_days:
            continue

        risk_tasks.append(task)

    risk_tasks.sort(key=lambda t: (result.float_by_task[t.id], -t.duration, t.id))

    return risk_tasks


def print_critical_path_report(result: CriticalPathResult) -> None:
    """Print a formatted critical path report."""
    print("=" * 80)
    print("CRITICAL PATH ANALYSIS REPORT")
    print("=" * 80)

    print(f"\nProject Finish: {result.project_finish}")
    print(f"Project Duration: {result.project_duration} days")
    print(f"Total Tasks: {result.total_tasks}")
    print(f"Critical Tasks: {len(result.critical_path)}")
    print(f"Near-Critical Tasks (<= {result.near_critical_threshold_days} days float): "
          f"{len(result.near_critical_tasks)}")

    if result.total_tasks:
        print("\n--- Float Distribution ---")
        for bucket, count in sorted(result.float_distribution.items()):
            pct = count / result.total_tasks * 100
            bar = '#' * int(pct / 2)
            print(f"  {bucket:25s}: {count:5d} ({pct:5.1f}%) {bar}")

    print("\n--- Critical Path (first 20 tasks) ---")
    for i, task in enumerate(result.critical_path[:20]):
        print(f"  {i+1:3d}. {task.id:20s} | {task.name[:40]:40s} | {task.duration}d")

    if len(result.critical_path) > 20:
        print(f"  ... and {len(result.critical_path) - 20} more critical tasks")

    print("\n--- Near-Critical Tasks (first 10) ---")
    for i, task in enumerate(result.near_critical_tasks[:10]):
        float_days = result.timings[task.id].total_float
        print(f"  {i+1:3d}. {task.id:20s} | Float: {float_days:3d}d | {task.name[:35]:35s}")

    print("\n" + "=" * 80)
