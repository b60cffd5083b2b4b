"""
CPM (Critical Path Method) Engine.

Implements forward and backward pass calculations over whole days.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from .errors import ErrorKind, InvalidTaskDatesError, ValidationIssue
from .models import (
    CPMResult,
    ConstraintType,
    DependencyType,
    Link,
    Schedule,
    Task,
    TaskCollection,
    TaskTiming,
    as_schedule,
)
from .network import TaskNetwork
from .validator import task_span_issues

logger = logging.getLogger(__name__)


def _days(n: int) -> timedelta:
    return timedelta(days=n)


class CPMEngine:
    """
    CPM calculation engine.

    Performs forward pass (early dates), backward pass (late dates),
    float calculation, and critical path identification. The engine never
    modifies the tasks it is given; computed dates live on the engine.
    """

    def __init__(self, network: TaskNetwork, project_start: Optional[date] = None):
        """
        Initialize CPM engine.

        Args:
            network: Task network to calculate
            project_start: Anchor for the project duration. Defaults to the
                           earliest early start.
        """
        self.network = network
        self.project_start = project_start
        self.early_start: dict[str, date] = {}
        self.early_finish: dict[str, date] = {}
        self.late_start: dict[str, date] = {}
        self.late_finish: dict[str, date] = {}
        self.total_float: dict[str, int] = {}
        self.free_float: dict[str, int] = {}
        self._order: list[str] = []

    def forward_pass(self) -> None:
        """
        Calculate early start and early finish for all tasks.

        Processes tasks in topological order. A task without predecessors
        starts on its own start date; otherwise early start is the latest
        date driven by any incoming link. Constraints are applied last.
        """
        self._order = self.network.topological_sort()

        for task_id in self._order:
            task = self.network.tasks[task_id]
            predecessors = self.network.get_predecessors(task_id)

            if predecessors:
                early_start = max(
                    self._get_driven_early_start(self.network.tasks[link.pred_task_id], link, task)
                    for link in predecessors
                )
            else:
                early_start = task.start

            constraint = task.constraint
            if constraint is not None:
                if constraint.constraint_type == ConstraintType.START_NO_EARLIER_THAN:
                    early_start = max(early_start, constraint.constraint_date)
                elif constraint.constraint_type == ConstraintType.MUST_START_ON:
                    early_start = constraint.constraint_date
                elif constraint.constraint_type == ConstraintType.MUST_FINISH_ON:
                    early_start = constraint.constraint_date - _days(task.duration)

            self.early_start[task_id] = early_start
            self.early_finish[task_id] = early_start + _days(task.duration)

    def _get_driven_early_start(self, pred: Task, link: Link, succ: Task) -> date:
        """
        Calculate the early start driven by a predecessor relationship.

        Handles FS, SS, FF, SF relationship types with lag (negative = lead).
        """
        lag = link.lag

        if link.type == DependencyType.FS:
            # FS: successor starts when predecessor finishes + lag
            return self.early_finish[pred.id] + _days(lag)

        elif link.type == DependencyType.SS:
            # SS: successor starts when predecessor starts + lag
            return self.early_start[pred.id] + _days(lag)

        elif link.type == DependencyType.FF:
            # FF: successor finishes when predecessor finishes + lag
            return self.early_finish[pred.id] + _days(lag - succ.duration)

        # SF: successor finishes when predecessor starts + lag
        return self.early_start[pred.id] + _days(lag - succ.duration)

    def backward_pass(self, project_end: date = None) -> None:
        """
        Calculate late start and late finish for all tasks.

        Processes tasks in reverse topological order. Every late finish is
        capped by the project end (the latest early finish).
        """
        if not self._order:
            self._order = self.network.topological_sort()

        if project_end is None:
            project_end = self._get_project_end()

        for task_id in reversed(self._order):
            task = self.network.tasks[task_id]

            late_finish = project_end
            for link in self.network.get_successors(task_id):
                succ = self.network.tasks[link.succ_task_id]
                driven = self._get_driven_late_finish(succ, link, task)
                if driven < late_finish:
                    late_finish = driven

            constraint = task.constraint
            if constraint is not None:
                if constraint.constraint_type in (ConstraintType.FINISH_NO_LATER_THAN,
                                                  ConstraintType.MUST_FINISH_ON):
                    late_finish = min(late_finish, constraint.constraint_date)
                elif constraint.constraint_type == ConstraintType.MUST_START_ON:
                    late_finish = min(late_finish,
                                      constraint.constraint_date + _days(task.duration))

            self.late_finish[task_id] = late_finish
            self.late_start[task_id] = late_finish - _days(task.duration)

    def _get_driven_late_finish(self, succ: Task, link: Link, pred: Task) -> date:
        """
        Calculate the late finish driven by a successor relationship.

        This is the reverse of _get_driven_early_start.
        """
        lag = link.lag

        if link.type == DependencyType.FS:
            # FS: pred finishes before successor's late start - lag
            return self.late_start[succ.id] - _days(lag)

        elif link.type == DependencyType.SS:
            # SS: pred starts before successor's late start - lag
            return self.late_start[succ.id] - _days(lag) + _days(pred.duration)

        elif link.type == DependencyType.FF:
            # FF: pred finishes before successor's late finish - lag
            return self.late_finish[succ.id] - _days(lag)

        # SF: pred starts before successor's late finish - lag
        return self.late_finish[succ.id] - _days(lag) + _days(pred.duration)

    def _get_project_end(self) -> date:
        """Get the latest early finish as project end."""
        if not self.early_finish:
            raise ValueError("No tasks have early_finish calculated - run forward_pass first")
        return max(self.early_finish.values())

    def calculate_float(self) -> list[ValidationIssue]:
        """
        Calculate total float and free float for all tasks.

        Total Float = Late Start - Early Start (days)
        Free Float = smallest gap between what this task drives and each
        successor's early start; project end - early finish without successors.

        Returns NegativeFloat warnings for infeasible constraints.
        """
        warnings = []
        project_end = self._get_project_end()

        for task_id in self._order:
            task = self.network.tasks[task_id]
            total_float = (self.late_start[task_id] - self.early_start[task_id]).days
            self.total_float[task_id] = total_float

            if total_float < 0:
                logger.warning(f"Task {task_id} has negative float ({total_float} days)")
                warnings.append(ValidationIssue(
                    ErrorKind.NEGATIVE_FLOAT,
                    f"Task {task_id} has negative total float of {total_float} day(s); "
                    f"its constraints cannot all be met",
                    (task_id,),
                ))

            successors = self.network.get_successors(task_id)
            if successors:
                free_float = min(
                    (self.early_start[link.succ_task_id]
                     - self._get_driven_early_start(task, link,
                                                    self.network.tasks[link.succ_task_id])).days
                    for link in successors
                )
            else:
                free_float = (project_end - self.early_finish[task_id]).days
            self.free_float[task_id] = max(0, free_float)

        return warnings

    def get_critical_path(self) -> list[str]:
        """
        Return task IDs on the critical path in execution order.

        Critical tasks are those with zero total float.
        """
        return [tid for tid in self._order if self.total_float.get(tid) == 0]

    def get_critical_dependencies(self) -> list[Link]:
        """Links between critical tasks that drive the successor with no slack."""
        critical = set(self.get_critical_path())
        links = []
        for link in self.network.dependencies:
            if link.pred_task_id not in critical or link.succ_task_id not in critical:
                continue
            pred = self.network.tasks[link.pred_task_id]
            succ = self.network.tasks[link.succ_task_id]
            if self._get_driven_early_start(pred, link, succ) == self.early_start[succ.id]:
                links.append(link)
        return sorted(links, key=lambda link: (link.pred_task_id, link.succ_task_id,
                                          link.type.value, link.lag))

    def get_project_start(self) -> Optional[date]:
        """Anchor date, or the earliest early start if the anchor is later or unset."""
        if not self.early_start:
            return self.project_start
        earliest = min(self.early_start.values())
        if self.project_start is None:
            return earliest
        return min(self.project_start, earliest)

    def run(self) -> CPMResult:
        """
        Execute full CPM calculation.

        Returns:
            CPMResult with all calculated values
        """
        if not self.network.tasks:
            return CPMResult(critical_tasks=[], project_duration=0, float_by_task={},
                             project_start=self.project_start)

        self.forward_pass()
        self.backward_pass()
        warnings = self.calculate_float()

        project_start = self.get_project_start()
        project_finish = self._get_project_end()
        critical_path = self.get_critical_path()

        timings = {}
        for tid in sorted(self.network.tasks):
            timings[tid] = TaskTiming(
                task_id=tid,
                early_start=self.early_start[tid],
                early_finish=self.early_finish[tid],
                late_start=self.late_start[tid],
                late_finish=self.late_finish[tid],
                total_float=self.total_float[tid],
                free_float=self.free_float[tid],
                is_critical=self.total_float[tid] == 0,
            )

        result = CPMResult(
            critical_tasks=critical_path,
            project_duration=(project_finish - project_start).days,
            float_by_task={tid: self.total_float[tid] for tid in sorted(self.total_float)},
            timings=timings,
            critical_dependencies=self.get_critical_dependencies(),
            project_start=project_start,
            project_finish=project_finish,
            warnings=warnings,
        )
        logger.debug(f"CPM over {len(timings)} tasks: {len(critical_path)} critical, "
                     f"duration {result.project_duration} days")
        return result


def calculate_critical_path(tasks: TaskCollection) -> CPMResult:
    """
    Run CPM over a task collection.

    Raises:
        DanglingReferenceError: an edge names a missing task
        CycleDetectedError: the dependency graph is not a DAG
        InvalidTaskDatesError: a task's dates disagree with its duration
        ScheduleError: duplicate task ids
    """
    schedule: Schedule = as_schedule(tasks)
    network = TaskNetwork.from_tasks(schedule, strict=True)

    issues = [issue for task in schedule.tasks for issue in task_span_issues(task)]
    if issues:
        raise InvalidTaskDatesError(
            f"{len(issues)} task(s) have inconsistent dates: {issues[0].message}",
            kind=issues[0].kind,
            task_ids=[tid for issue in issues for tid in issue.task_ids],
            issues=issues,
        )
    return CPMEngine(network, project_start=schedule.project_start).run()
