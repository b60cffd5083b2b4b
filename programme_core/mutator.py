"""
Schedule mutations.

Every edit goes through ScheduleMutator: it works on a private copy of the
task set, restores dependency consistency by cascading successors forward,
recomputes CPM over the whole set and returns a new Schedule. A rejected
edit raises MutationError and the caller's task set is left untouched.

Usage:
    from programme_core.mutator import move_task

    result = move_task(schedule, 'A', 2)
    result.schedule           # new Schedule
    result.critical_path      # fresh CPMResult
    result.shifted_tasks      # successors moved by the cascade
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Union

from programme_core.cpm.engine import calculate_critical_path
from programme_core.cpm.errors import (
    ErrorKind,
    MutationError,
    ScheduleError,
    ValidationIssue,
)
from programme_core.cpm.models import (
    MAX_LEVEL,
    CPMResult,
    ConstraintType,
    Dependency,
    DependencyType,
    Schedule,
    SchedulingConstraint,
    Task,
    TaskCollection,
    TaskStatus,
    TaskType,
    as_schedule,
    derive_status,
    parse_date,
    snap_to_days,
    status_consistent,
)
from programme_core.cpm.network import TaskNetwork
from programme_core.cpm.validator import (
    DependencyValidator,
    boundary_shortfall,
    constraint_violation,
    validate_dependencies,
)

logger = logging.getLogger(__name__)

# Fields update_task may change; everything else has a dedicated operation
DESCRIPTIVE_FIELDS = ('name', 'resource', 'budgeted_cost', 'actual_cost', 'is_expanded')

# Date errors that block set_task_dates even when forced
_ALWAYS_BLOCKING = (ErrorKind.INVALID_DATE_RANGE, ErrorKind.INVALID_DURATION,
                    ErrorKind.TASK_NOT_FOUND)


class ResizeEdge(str, Enum):
    START = 'start'
    END = 'end'


@dataclass
class MutationResult:
    """Outcome of an accepted edit."""

    schedule: Schedule
    critical_path: CPMResult
    shifted_tasks: list[str] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.schedule.tasks

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.schedule.get(task_id)


class ScheduleMutator:
    """
    Applies single logical edits to a task set.

    The mutator holds the (immutable) input schedule. Unless the caller set
    one, its project anchor is pinned to the earliest task start so that
    moving the first task does not silently rebase the project duration.
    Deleting tasks re-derives a pinned anchor from the tasks that remain.
    """

    def __init__(self, tasks: TaskCollection):
        schedule = as_schedule(tasks)
        duplicates = sorted(tid for tid, n in Counter(schedule.task_ids).items() if n > 1)
        if duplicates:
            raise MutationError(f"Duplicate task ids: {duplicates}",
                                kind=ErrorKind.DUPLICATE_TASK, task_ids=duplicates)
        self._anchor_pinned = schedule.project_start is None
        if self._anchor_pinned and schedule.tasks:
            schedule = Schedule(tasks=schedule.tasks,
                                project_start=min(task.start for task in schedule.tasks))
        self.schedule = schedule

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _working_copy(self) -> dict[str, Task]:
        return {task.id: task for task in self.schedule.tasks}

    def _reject(self, kind: ErrorKind, message: str, task_ids=(), issues=None):
        logger.warning(f"Rejected edit: {kind.value}: {message}")
        raise MutationError(message, kind=kind, task_ids=task_ids, issues=issues)

    def _get(self, tasks: dict[str, Task], task_id: str) -> Task:
        task = tasks.get(task_id)
        if task is None:
            self._reject(ErrorKind.TASK_NOT_FOUND, f"Task {task_id} not found", [task_id])
        return task

    def _network(self, tasks: dict[str, Task]) -> TaskNetwork:
        try:
            network = TaskNetwork.from_tasks(tasks.values(), strict=True)
            network.topological_sort()
        except ScheduleError as e:
            self._reject(e.kind, str(e), e.task_ids)
        return network

    def _commit(self, tasks: dict[str, Task], operation: str, task_id: str,
                shifted: list[str] = None, warnings: list[ValidationIssue] = None,
                rebase: bool = False) -> MutationResult:
        project_start = self.schedule.project_start
        if rebase and self._anchor_pinned:
            project_start = min((task.start for task in tasks.values()), default=None)
        schedule = Schedule(tasks=tuple(tasks.values()), project_start=project_start)
        try:
            critical_path = calculate_critical_path(schedule)
        except ScheduleError as e:
            self._reject(e.kind, str(e), e.task_ids, issues=e.issues)

        warnings = list(warnings or []) + list(critical_path.warnings)
        shifted = list(shifted or [])
        logger.info(f"{operation} {task_id}: {len(shifted)} successor(s) shifted, "
                    f"{len(warnings)} warning(s)")
        return MutationResult(schedule=schedule, critical_path=critical_path,
                              shifted_tasks=shifted, warnings=warnings)

    def _incoming_warnings(self, tasks: dict[str, Task], task: Task) -> list[ValidationIssue]:
        """Soft warnings for an edited task's own incoming links and constraint."""
        warnings = []
        for dep in task.dependencies:
            pred = tasks.get(dep.from_task_id)
            if pred is None or pred.id == task.id:
                continue
            shortfall = boundary_shortfall(pred, task, dep.type, dep.lag)
            if shortfall > 0:
                warnings.append(ValidationIssue(
                    ErrorKind.DATE_CONSTRAINT_VIOLATION,
                    f"{dep.type.value} link {pred.id} -> {task.id} violated by {shortfall} day(s)",
                    (task.id, pred.id)))
        violation = constraint_violation(task)
        if violation:
            warnings.append(ValidationIssue(ErrorKind.CONSTRAINT_CONFLICT,
                                            f"Task {task.id} {violation}", (task.id,)))
        return warnings

    def _check_own_constraint(self, task: Task) -> None:
        """An edit may not move a task off its own hard constraint."""
        if task.has_hard_constraint:
            violation = constraint_violation(task)
            if violation:
                self._reject(ErrorKind.CONSTRAINT_CONFLICT, f"Task {task.id} {violation}",
                             [task.id])

    def _cascade(self, tasks: dict[str, Task],
                 changed_id: str) -> tuple[list[str], list[ValidationIssue]]:
        """
        Shift transitive successors of changed_id forward until every link holds.

        Tasks are visited in topological order and each is moved by the
        largest shortfall over its incoming links, so a task is moved at
        most once. Updates `tasks` in place (it is the private working copy).
        """
        network = self._network(tasks)
        affected = network.get_all_successors(changed_id)
        shifted, warnings = [], []

        for tid in network.topological_sort():
            if tid not in affected:
                continue
            task = tasks[tid]
            shortfall = max(
                (boundary_shortfall(tasks[link.pred_task_id], task, link.type, link.lag)
                 for link in network.get_predecessors(tid)),
                default=0,
            )
            if shortfall <= 0:
                continue

            moved = task.shifted(shortfall)
            if task.has_hard_constraint:
                self._reject(
                    ErrorKind.CONSTRAINT_CONFLICT,
                    f"Cascade would move {tid} by {shortfall} day(s) off its "
                    f"{task.constraint.constraint_type.value} constraint",
                    [tid, changed_id])

            violation = constraint_violation(moved)
            if violation:
                warnings.append(ValidationIssue(ErrorKind.CONSTRAINT_CONFLICT,
                                                f"Task {tid} {violation}", (tid,)))
            tasks[tid] = moved
            shifted.append(tid)
            logger.debug(f"Cascade shifted {tid} by {shortfall} day(s)")

        return shifted, warnings

    def _siblings(self, tasks: dict[str, Task], parent_id: Optional[str],
                  exclude: str = None) -> list[str]:
        ids = [t.id for t in tasks.values() if t.parent_id == parent_id and t.id != exclude]
        return sorted(ids, key=lambda tid: (tasks[tid].position, tid))

    def _renumber(self, tasks: dict[str, Task], parent_id: Optional[str],
                  ordered_ids: list[str]) -> None:
        """Assign contiguous positions and sync the parent's children list."""
        for position, tid in enumerate(ordered_ids):
            if tasks[tid].position != position or tasks[tid].parent_id != parent_id:
                tasks[tid] = tasks[tid].evolve(position=position, parent_id=parent_id)
        if parent_id is not None and parent_id in tasks:
            tasks[parent_id] = tasks[parent_id].evolve(children=tuple(ordered_ids))

    def _descendants(self, tasks: dict[str, Task], task_id: str) -> list[str]:
        children_of: dict[Optional[str], list[str]] = {}
        for t in tasks.values():
            children_of.setdefault(t.parent_id, []).append(t.id)
        result, queue = [], list(children_of.get(task_id, []))
        while queue:
            current = queue.pop(0)
            result.append(current)
            queue.extend(children_of.get(current, []))
        return result

    def _shift_levels(self, tasks: dict[str, Task], task_id: str, delta: int) -> None:
        """Move a subtree by delta levels, rejecting anything outside [0, MAX_LEVEL]."""
        subtree = [task_id] + self._descendants(tasks, task_id)
        out_of_bounds = [tid for tid in subtree
                         if not 0 <= tasks[tid].level + delta <= MAX_LEVEL]
        if out_of_bounds:
            self._reject(ErrorKind.HIERARCHY_BOUNDS_EXCEEDED,
                         f"Moving {task_id} would put {len(out_of_bounds)} task(s) outside "
                         f"levels 0-{MAX_LEVEL}", out_of_bounds)
        if delta:
            for tid in subtree:
                tasks[tid] = tasks[tid].evolve(level=tasks[tid].level + delta)

    # ------------------------------------------------------------------
    # Date edits
    # ------------------------------------------------------------------

    def move_task(self, task_id: str, delta_days: Union[int, float]) -> MutationResult:
        """Shift a task by whole days and cascade its successors."""
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        delta = snap_to_days(delta_days)

        moved = task.shifted(delta)
        self._check_own_constraint(moved)
        tasks[task_id] = moved

        shifted, warnings = self._cascade(tasks, task_id)
        warnings = self._incoming_warnings(tasks, moved) + warnings
        return self._commit(tasks, 'move_task', task_id, shifted, warnings)

    def resize_task(self, task_id: str, edge: Union[ResizeEdge, str],
                    delta_days: Union[int, float]) -> MutationResult:
        """
        Move one edge of a task, changing its duration.

        Duration is floored at 1 day; milestones cannot be resized.
        """
        edge = ResizeEdge(edge)
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        if task.is_milestone:
            self._reject(ErrorKind.INVALID_DURATION,
                         f"Milestone {task_id} cannot be resized", [task_id])

        delta = snap_to_days(delta_days)
        if edge == ResizeEdge.END:
            duration = max(1, (task.end + timedelta(days=delta) - task.start).days)
            resized = task.evolve(end=task.start + timedelta(days=duration), duration=duration)
        else:
            duration = max(1, (task.end - task.start - timedelta(days=delta)).days)
            resized = task.evolve(start=task.end - timedelta(days=duration), duration=duration)

        self._check_own_constraint(resized)
        tasks[task_id] = resized

        shifted, warnings = self._cascade(tasks, task_id)
        warnings = self._incoming_warnings(tasks, resized) + warnings
        return self._commit(tasks, 'resize_task', task_id, shifted, warnings)

    def set_task_dates(self, task_id: str, start: date, end: date,
                       force: bool = False) -> MutationResult:
        """
        Set both dates of a task.

        The candidate dates are checked with validate_task_dates. Range and
        duration errors always block; broken links or constraints block
        unless force=True, in which case they are returned as warnings.
        """
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        start, end = parse_date(start), parse_date(end)

        candidate = task.evolve(start=start, end=end, duration=(end - start).days)
        tasks[task_id] = candidate
        check = DependencyValidator(tuple(tasks.values())).validate_task_dates(task_id)

        blocking = [issue for issue in check.errors
                    if issue.kind in _ALWAYS_BLOCKING or not force]
        if blocking:
            self._reject(blocking[0].kind, blocking[0].message, [task_id], issues=blocking)
        warnings = [issue for issue in check.errors if issue not in blocking]

        shifted, cascade_warnings = self._cascade(tasks, task_id)
        return self._commit(tasks, 'set_task_dates', task_id, shifted,
                            warnings + cascade_warnings)

    def set_constraint(self, task_id: str, constraint_type: Union[ConstraintType, str, None],
                       constraint_date: Optional[date] = None) -> MutationResult:
        """
        Apply a scheduling constraint, moving the task onto it if needed.

        ASAP (or None) clears the constraint.
        """
        tasks = self._working_copy()
        task = self._get(tasks, task_id)

        if constraint_type is None or ConstraintType(constraint_type) == ConstraintType.ASAP:
            tasks[task_id] = task.evolve(constraint=None)
            return self._commit(tasks, 'set_constraint', task_id)

        constraint = SchedulingConstraint(constraint_type=constraint_type,
                                          constraint_date=constraint_date)
        cdate = constraint.constraint_date
        ctype = constraint.constraint_type

        delta = 0
        if ctype == ConstraintType.START_NO_EARLIER_THAN and task.start < cdate:
            delta = (cdate - task.start).days
        elif ctype == ConstraintType.FINISH_NO_LATER_THAN and task.end > cdate:
            delta = (cdate - task.end).days
        elif ctype == ConstraintType.MUST_START_ON:
            delta = (cdate - task.start).days
        elif ctype == ConstraintType.MUST_FINISH_ON:
            delta = (cdate - task.end).days

        updated = task.shifted(delta).evolve(constraint=constraint)
        tasks[task_id] = updated

        shifted, warnings = self._cascade(tasks, task_id)
        warnings = self._incoming_warnings(tasks, updated) + warnings
        return self._commit(tasks, 'set_constraint', task_id, shifted, warnings)

    # ------------------------------------------------------------------
    # Dependency edits
    # ------------------------------------------------------------------

    def link(self, from_id: str, to_id: str,
             dep_type: Union[DependencyType, str] = DependencyType.FS,
             lag: Union[int, float] = 0) -> MutationResult:
        """
        Add a typed link from_id -> to_id, replacing any existing link
        between the same pair. Rejected if it would close a cycle.
        """
        tasks = self._working_copy()
        for tid in (from_id, to_id):
            if tid not in tasks:
                self._reject(ErrorKind.DANGLING_REFERENCE,
                             f"Cannot link {from_id} -> {to_id}: task {tid} not found", [tid])
        if from_id == to_id:
            self._reject(ErrorKind.SELF_DEPENDENCY, f"Task {from_id} cannot depend on itself",
                         [from_id])

        network = self._network(tasks)
        if network.would_create_cycle(from_id, to_id):
            on_cycle = (network.get_all_successors(to_id, include_self=True)
                        & network.get_all_predecessors(from_id, include_self=True))
            self._reject(ErrorKind.CYCLE_DETECTED,
                         f"Cannot link {from_id} -> {to_id}: {to_id} already leads to {from_id}",
                         sorted(on_cycle))

        dependency = Dependency(from_task_id=from_id, type=DependencyType(dep_type),
                                lag=snap_to_days(lag))
        succ = tasks[to_id]
        kept = tuple(d for d in succ.dependencies if d.from_task_id != from_id)
        tasks[to_id] = succ.evolve(dependencies=kept + (dependency,))

        check = validate_dependencies(tuple(tasks.values()))
        if not check.is_valid:
            issue = check.errors[0]
            self._reject(issue.kind, f"Cannot link {from_id} -> {to_id}: {issue.message}",
                         issue.task_ids, issues=check.errors)

        shifted, warnings = self._cascade(tasks, from_id)
        return self._commit(tasks, 'link', f"{from_id}->{to_id}", shifted, warnings)

    def unlink(self, from_id: str, to_id: str) -> MutationResult:
        """Remove the link from_id -> to_id."""
        tasks = self._working_copy()
        succ = self._get(tasks, to_id)
        if succ.get_dependency(from_id) is None:
            self._reject(ErrorKind.DANGLING_REFERENCE,
                         f"No link {from_id} -> {to_id} to remove", [to_id, from_id])

        tasks[to_id] = succ.evolve(dependencies=tuple(
            d for d in succ.dependencies if d.from_task_id != from_id))
        return self._commit(tasks, 'unlink', f"{from_id}->{to_id}")

    # ------------------------------------------------------------------
    # Hierarchy edits
    # ------------------------------------------------------------------

    def indent(self, task_id: str) -> MutationResult:
        """Re-parent a task under its preceding sibling, one level deeper."""
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        if task.level >= MAX_LEVEL:
            self._reject(ErrorKind.HIERARCHY_BOUNDS_EXCEEDED,
                         f"Task {task_id} is already at level {MAX_LEVEL}", [task_id])

        siblings = self._siblings(tasks, task.parent_id)
        index = siblings.index(task_id)
        if index == 0:
            self._reject(ErrorKind.INVALID_HIERARCHY_MOVE,
                         f"Task {task_id} has no preceding sibling to indent under", [task_id])
        new_parent_id = siblings[index - 1]

        self._shift_levels(tasks, task_id, 1)
        self._renumber(tasks, task.parent_id, [tid for tid in siblings if tid != task_id])
        self._renumber(tasks, new_parent_id,
                       self._siblings(tasks, new_parent_id) + [task_id])
        return self._commit(tasks, 'indent', task_id)

    def outdent(self, task_id: str) -> MutationResult:
        """Move a task up one level, placing it right after its old parent."""
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        if task.level == 0 or task.parent_id is None:
            self._reject(ErrorKind.HIERARCHY_BOUNDS_EXCEEDED,
                         f"Task {task_id} is already at the top level", [task_id])

        parent = self._get(tasks, task.parent_id)
        self._shift_levels(tasks, task_id, -1)
        self._renumber(tasks, parent.id, self._siblings(tasks, parent.id, exclude=task_id))

        grandparent_siblings = self._siblings(tasks, parent.parent_id, exclude=task_id)
        index = grandparent_siblings.index(parent.id)
        grandparent_siblings.insert(index + 1, task_id)
        self._renumber(tasks, parent.parent_id, grandparent_siblings)
        return self._commit(tasks, 'outdent', task_id)

    def move_in_hierarchy(self, task_id: str, target_id: str,
                          before: bool = False) -> MutationResult:
        """
        Place a task next to target_id (after it unless before=True),
        adopting the target's parent. Positions are renumbered contiguously.
        """
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        target = self._get(tasks, target_id)
        if task_id == target_id:
            self._reject(ErrorKind.INVALID_HIERARCHY_MOVE,
                         f"Task {task_id} cannot be moved relative to itself", [task_id])
        if target_id in self._descendants(tasks, task_id):
            self._reject(ErrorKind.INVALID_HIERARCHY_MOVE,
                         f"Task {task_id} cannot be moved into its own subtree", [task_id, target_id])

        self._shift_levels(tasks, task_id, target.level - task.level)

        old_parent_id = task.parent_id
        if old_parent_id != target.parent_id:
            self._renumber(tasks, old_parent_id, self._siblings(tasks, old_parent_id,
                                                                exclude=task_id))
        siblings = self._siblings(tasks, target.parent_id, exclude=task_id)
        index = siblings.index(target_id)
        siblings.insert(index if before else index + 1, task_id)
        self._renumber(tasks, target.parent_id, siblings)
        return self._commit(tasks, 'move_in_hierarchy', task_id)

    # ------------------------------------------------------------------
    # Task lifecycle and field edits
    # ------------------------------------------------------------------

    def add_task(self, start: date, name: str = '', duration: Optional[int] = None,
                 task_type: Union[TaskType, str] = TaskType.NORMAL,
                 parent_id: Optional[str] = None, task_id: Optional[str] = None,
                 **fields) -> MutationResult:
        """
        Create a task with no edges, appended as the last child of parent_id.

        Duration defaults to 1 day (0 for milestones).
        """
        structural = {'dependencies', 'children', 'level', 'position', 'end'} & set(fields)
        if structural:
            raise ValueError(f"add_task cannot set {sorted(structural)}")

        tasks = self._working_copy()
        task_id = task_id or f"task-{uuid.uuid4().hex[:12]}"
        if task_id in tasks:
            self._reject(ErrorKind.DUPLICATE_TASK, f"Task {task_id} already exists", [task_id])

        level = 0
        if parent_id is not None:
            parent = self._get(tasks, parent_id)
            level = parent.level + 1
            if level > MAX_LEVEL:
                self._reject(ErrorKind.HIERARCHY_BOUNDS_EXCEEDED,
                             f"Parent {parent_id} is at level {MAX_LEVEL}", [parent_id])

        siblings = self._siblings(tasks, parent_id)
        tasks[task_id] = Task(id=task_id, name=name, start=start, duration=duration,
                              task_type=task_type, parent_id=parent_id, level=level,
                              position=len(siblings), **fields)
        self._renumber(tasks, parent_id, siblings + [task_id])
        return self._commit(tasks, 'add_task', task_id)

    def delete_task(self, task_id: str) -> MutationResult:
        """Remove a task, its descendants and every link that references them."""
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        removed = {task_id, *self._descendants(tasks, task_id)}

        for tid in removed:
            del tasks[tid]
        for tid, other in list(tasks.items()):
            if any(d.from_task_id in removed for d in other.dependencies):
                tasks[tid] = other.evolve(dependencies=tuple(
                    d for d in other.dependencies if d.from_task_id not in removed))

        self._renumber(tasks, task.parent_id, self._siblings(tasks, task.parent_id))
        logger.debug(f"delete_task {task_id}: removed {len(removed)} task(s)")
        return self._commit(tasks, 'delete_task', task_id, rebase=True)

    def set_progress(self, task_id: str, percent_complete: Union[int, float],
                     status: Union[TaskStatus, str, None] = None) -> MutationResult:
        """Update percent complete, keeping status consistent with it."""
        tasks = self._working_copy()
        task = self._get(tasks, task_id)

        if (isinstance(percent_complete, bool)
                or not isinstance(percent_complete, (int, float))
                or percent_complete != int(percent_complete)
                or not 0 <= percent_complete <= 100):
            self._reject(ErrorKind.INVALID_PROGRESS,
                         f"Percent complete must be a whole number 0-100, got {percent_complete}",
                         [task_id])
        percent = int(percent_complete)

        if status is None:
            status = derive_status(percent)
        elif not status_consistent(percent, TaskStatus(status)):
            self._reject(ErrorKind.INVALID_PROGRESS,
                         f"Status {TaskStatus(status).value} is inconsistent with {percent}%",
                         [task_id])

        tasks[task_id] = task.evolve(percent_complete=percent, status=TaskStatus(status))
        return self._commit(tasks, 'set_progress', task_id)

    def update_task(self, task_id: str, **changes) -> MutationResult:
        """Change descriptive fields (name, resource, costs, is_expanded)."""
        not_allowed = sorted(set(changes) - set(DESCRIPTIVE_FIELDS))
        if not_allowed:
            raise ValueError(f"update_task cannot change {not_allowed}; "
                             f"use the dedicated operation instead")
        tasks = self._working_copy()
        task = self._get(tasks, task_id)
        tasks[task_id] = task.evolve(**changes)
        return self._commit(tasks, 'update_task', task_id)


def visible_tasks(tasks: TaskCollection) -> list[Task]:
    """
    Tasks in display order: depth-first by position, skipping the
    descendants of collapsed tasks.
    """
    schedule = as_schedule(tasks)
    children_of: dict[Optional[str], list[Task]] = {}
    known = set(schedule.task_ids)
    for task in schedule.tasks:
        parent = task.parent_id if task.parent_id in known else None
        children_of.setdefault(parent, []).append(task)
    for siblings in children_of.values():
        siblings.sort(key=lambda t: (t.position, t.id))

    result = []

    def walk(parent_id: Optional[str]) -> None:
        for task in children_of.get(parent_id, []):
            result.append(task)
            if task.is_expanded:
                walk(task.id)

    walk(None)
    return result


def move_task(tasks: TaskCollection, task_id: str, delta_days: Union[int, float]) -> MutationResult:
    """Shift a task by whole days and cascade its successors."""
    return ScheduleMutator(tasks).move_task(task_id, delta_days)


def resize_task(tasks: TaskCollection, task_id: str, edge: Union[ResizeEdge, str],
                delta_days: Union[int, float]) -> MutationResult:
    return ScheduleMutator(tasks).resize_task(task_id, edge, delta_days)


def set_task_dates(tasks: TaskCollection, task_id: str, start: date, end: date,
                   force: bool = False) -> MutationResult:
    return ScheduleMutator(tasks).set_task_dates(task_id, start, end, force=force)


def set_constraint(tasks: TaskCollection, task_id: str,
                   constraint_type: Union[ConstraintType, str, None],
                   constraint_date: Optional[date] = None) -> MutationResult:
    return ScheduleMutator(tasks).set_constraint(task_id, constraint_type, constraint_date)


def link_tasks(tasks: TaskCollection, from_id: str, to_id: str,
               dep_type: Union[DependencyType, str] = DependencyType.FS,
               lag: Union[int, float] = 0) -> MutationResult:
    return ScheduleMutator(tasks).link(from_id, to_id, dep_type, lag)


def unlink_tasks(tasks: TaskCollection, from_id: str, to_id: str) -> MutationResult:
    return ScheduleMutator(tasks).unlink(from_id, to_id)


def indent_task(tasks: TaskCollection, task_id: str) -> MutationResult:
    return ScheduleMutator(tasks).indent(task_id)


def outdent_task(tasks: TaskCollection, task_id: str) -> MutationResult:
    return ScheduleMutator(tasks).outdent(task_id)


def move_in_hierarchy(tasks: TaskCollection, task_id: str, target_id: str,
                      before: bool = False) -> MutationResult:
    return ScheduleMutator(tasks).move_in_hierarchy(task_id, target_id, before=before)


def add_task(tasks: TaskCollection, start: date, name: str = '', **kwargs) -> MutationResult:
    return ScheduleMutator(tasks).add_task(start, name=name, **kwargs)


def delete_task(tasks: TaskCollection, task_id: str) -> MutationResult:
    return ScheduleMutator(tasks).delete_task(task_id)


def set_progress(tasks: TaskCollection, task_id: str, percent_complete: Union[int, float],
                 status: Union[TaskStatus, str, None] = None) -> MutationResult:
    return ScheduleMutator(tasks).set_progress(task_id, percent_complete, status)


def update_task(tasks: TaskCollection, task_id: str, **changes) -> MutationResult:
    return ScheduleMutator(tasks).update_task(task_id, **changes)
