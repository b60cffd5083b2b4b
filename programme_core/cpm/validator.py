"""
Dependency and date validation.

Pure checks over a task collection. Nothing here raises for bad data;
every problem is returned as a ValidationIssue so the caller can decide
whether to block the edit or only warn.
"""

import logging
from collections import Counter
from typing import Optional

from .errors import CycleDetectedError, ErrorKind, ValidationIssue, ValidationResult
from .models import (
    ConstraintType,
    DependencyType,
    Task,
    TaskCollection,
    as_schedule,
)
from .network import TaskNetwork

logger = logging.getLogger(__name__)


def boundary_shortfall(pred: Task, succ: Task, dep_type: DependencyType, lag: int) -> int:
    """
    Days by which succ violates a link from pred (positive = violated).

    FS: succ.start >= pred.end + lag
    SS: succ.start >= pred.start + lag
    FF: succ.end   >= pred.end + lag
    SF: succ.end   >= pred.start + lag
    """
    dep_type = DependencyType(dep_type)
    if dep_type == DependencyType.FS:
        return (pred.end - succ.start).days + lag
    if dep_type == DependencyType.SS:
        return (pred.start - succ.start).days + lag
    if dep_type == DependencyType.FF:
        return (pred.end - succ.end).days + lag
    return (pred.start - succ.end).days + lag


def constraint_violation(task: Task) -> Optional[str]:
    """Describe how a task's dates break its own constraint, or None."""
    constraint = task.constraint
    if constraint is None or constraint.constraint_type == ConstraintType.ASAP:
        return None

    ctype, cdate = constraint.constraint_type, constraint.constraint_date
    if ctype == ConstraintType.START_NO_EARLIER_THAN and task.start < cdate:
        return f"starts {task.start} before start-no-earlier-than {cdate}"
    if ctype == ConstraintType.FINISH_NO_LATER_THAN and task.end > cdate:
        return f"finishes {task.end} after finish-no-later-than {cdate}"
    if ctype == ConstraintType.MUST_START_ON and task.start != cdate:
        return f"starts {task.start} but must start on {cdate}"
    if ctype == ConstraintType.MUST_FINISH_ON and task.end != cdate:
        return f"finishes {task.end} but must finish on {cdate}"
    return None


def task_span_issues(task: Task) -> list[ValidationIssue]:
    """
    Range and duration problems in a task's own dates.

    start must not be after end, and duration must equal the day span
    between them. Milestone and minimum-length rules are not checked here.
    """
    if task.start > task.end:
        return [ValidationIssue(ErrorKind.INVALID_DATE_RANGE,
                                f"Task {task.id} starts {task.start} after it ends {task.end}",
                                (task.id,))]
    if task.duration < 0:
        return [ValidationIssue(ErrorKind.INVALID_DURATION,
                                f"Task {task.id} has negative duration {task.duration}",
                                (task.id,))]
    span = (task.end - task.start).days
    if task.duration != span:
        return [ValidationIssue(ErrorKind.INVALID_DURATION,
                                f"Task {task.id} duration {task.duration} does not match "
                                f"its {span}-day date range", (task.id,))]
    return []


class DependencyValidator:
    """
    Certifies a task set's dependency edges.

    Checks, in order:
    - duplicate task ids
    - every edge references an existing task (DanglingReference)
    - no task depends on itself (SelfDependency)
    - the remaining edges form a DAG (CycleDetected)
    - each task's dates agree with its duration (InvalidDateRange, InvalidDuration)
    - current dates honour each edge (DateConstraintViolation, warning only)
    """

    def __init__(self, tasks: TaskCollection):
        self.schedule = as_schedule(tasks)

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        tasks = self.schedule.tasks

        counts = Counter(task.id for task in tasks)
        for task_id in sorted(tid for tid, n in counts.items() if n > 1):
            result.add_error(ErrorKind.DUPLICATE_TASK,
                             f"Task id {task_id} appears {counts[task_id]} times", [task_id])

        # (a) dangling references
        for task in tasks:
            for dep in task.dependencies:
                if dep.from_task_id not in counts:
                    result.add_error(
                        ErrorKind.DANGLING_REFERENCE,
                        f"Task {task.id} depends on missing task {dep.from_task_id}",
                        [task.id, dep.from_task_id])

        # (b) self dependencies
        for task in tasks:
            if task.id in task.predecessor_ids:
                result.add_error(ErrorKind.SELF_DEPENDENCY,
                                 f"Task {task.id} depends on itself", [task.id])

        # (c) cycles among the remaining edges
        network = TaskNetwork.from_tasks(
            [task.evolve(dependencies=tuple(
                d for d in task.dependencies if d.from_task_id != task.id))
             for task in tasks],
            strict=False,
        )
        try:
            network.topological_sort()
        except CycleDetectedError as e:
            result.add_error(ErrorKind.CYCLE_DETECTED, str(e), e.task_ids)

        # each task's own range and duration
        for task in tasks:
            result.errors.extend(task_span_issues(task))

        # (d) soft date checks against current dates
        for link in network.dependencies:
            pred = network.get_task(link.pred_task_id)
            succ = network.get_task(link.succ_task_id)
            shortfall = boundary_shortfall(pred, succ, link.type, link.lag)
            if shortfall > 0:
                result.add_warning(
                    ErrorKind.DATE_CONSTRAINT_VIOLATION,
                    f"{link.type.value} link {pred.id} -> {succ.id} (lag {link.lag}) "
                    f"violated by {shortfall} day(s)",
                    [succ.id, pred.id])

        logger.debug(f"Validated {len(tasks)} tasks: {len(result.errors)} errors, "
                     f"{len(result.warnings)} warnings")
        return result

    def validate_task_dates(self, task_id: str) -> ValidationResult:
        """
        Validate one task's own dates and all of its incoming edges.

        Here a broken edge or constraint is an error: the caller uses the
        result to block or force a date edit.
        """
        result = ValidationResult()
        task_map = self.schedule.task_map()
        task = task_map.get(task_id)
        if task is None:
            result.add_error(ErrorKind.TASK_NOT_FOUND, f"Task {task_id} not found", [task_id])
            return result

        span_issues = task_span_issues(task)
        result.errors.extend(span_issues)
        if not span_issues:
            if task.is_milestone and task.duration != 0:
                result.add_error(ErrorKind.INVALID_DURATION,
                                 f"Milestone {task_id} must have zero duration", [task_id])
            elif not task.is_milestone and task.duration == 0:
                result.add_error(ErrorKind.INVALID_DURATION,
                                 f"Task {task_id} has zero duration but is not a milestone",
                                 [task_id])

        for dep in task.dependencies:
            pred = task_map.get(dep.from_task_id)
            if pred is None:
                result.add_error(ErrorKind.DANGLING_REFERENCE,
                                 f"Task {task_id} depends on missing task {dep.from_task_id}",
                                 [task_id, dep.from_task_id])
                continue
            if pred.id == task_id:
                result.add_error(ErrorKind.SELF_DEPENDENCY,
                                 f"Task {task_id} depends on itself", [task_id])
                continue
            shortfall = boundary_shortfall(pred, task, dep.type, dep.lag)
            if shortfall > 0:
                result.add_error(
                    ErrorKind.DATE_CONSTRAINT_VIOLATION,
                    f"{dep.type.value} link {pred.id} -> {task_id} (lag {dep.lag}) "
                    f"violated by {shortfall} day(s)",
                    [task_id, pred.id])

        violation = constraint_violation(task)
        if violation:
            result.add_error(ErrorKind.DATE_CONSTRAINT_VIOLATION,
                             f"Task {task_id} {violation}", [task_id])

        return result


def validate_dependencies(tasks: TaskCollection) -> ValidationResult:
    """Validate the dependency edges of a task collection."""
    return DependencyValidator(tasks).validate()


def validate_task_dates(task_id: str, tasks: TaskCollection) -> ValidationResult:
    """Validate one task's dates against its duration, incoming edges and constraint."""
    return DependencyValidator(tasks).validate_task_dates(task_id)
