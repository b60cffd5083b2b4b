"""
Data models for the scheduling core.

Input models (Task, Dependency, SchedulingConstraint, Schedule, Project) are
frozen pydantic models: unknown fields are rejected and a task can only be
changed by building a new value. Results produced by the engine are plain
dataclasses.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import ValidationIssue


MAX_LEVEL = 5
DEFAULT_DURATION = 1


class DependencyType(str, Enum):
    """Typed dependency link between two tasks."""
    FS = 'FS'   # Finish-to-Start
    SS = 'SS'   # Start-to-Start
    FF = 'FF'   # Finish-to-Finish
    SF = 'SF'   # Start-to-Finish


class TaskStatus(str, Enum):
    NOT_STARTED = 'not-started'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'


class TaskType(str, Enum):
    NORMAL = 'normal'
    MILESTONE = 'milestone'


class ConstraintType(str, Enum):
    """Scheduling constraint types. must-start-on and must-finish-on are hard."""
    ASAP = 'asap'
    START_NO_EARLIER_THAN = 'start-no-earlier-than'
    FINISH_NO_LATER_THAN = 'finish-no-later-than'
    MUST_START_ON = 'must-start-on'
    MUST_FINISH_ON = 'must-finish-on'

    @property
    def is_hard(self) -> bool:
        return self in (ConstraintType.MUST_START_ON, ConstraintType.MUST_FINISH_ON)


def derive_status(percent_complete: int) -> TaskStatus:
    """Status implied by a completion percentage."""
    if percent_complete >= 100:
        return TaskStatus.COMPLETED
    if percent_complete <= 0:
        return TaskStatus.NOT_STARTED
    return TaskStatus.IN_PROGRESS


def status_consistent(percent_complete: int, status: TaskStatus) -> bool:
    """
    Check an explicit status against the completion percentage.

    100% must be completed and completed must be 100%; 0% must be
    not-started. Between the two, not-started and in-progress are both
    accepted so a task can be marked as not yet begun on site.
    """
    status = TaskStatus(status)
    if percent_complete == 100:
        return status == TaskStatus.COMPLETED
    if status == TaskStatus.COMPLETED:
        return False
    if percent_complete == 0:
        return status == TaskStatus.NOT_STARTED
    return True


def snap_to_days(value: Union[int, float]) -> int:
    """Snap a (possibly fractional) day offset to the nearest whole day, halves up."""
    if isinstance(value, bool):
        raise ValueError("Day offset must be a number")
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        raise ValueError(f"Day offset must be finite, got {value}")
    return int(math.floor(value + 0.5))


def _coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def parse_date(value: Any) -> date:
    """Parse a date, datetime or ISO string into a date."""
    parsed = _coerce_date(value)
    if parsed is None:
        raise ValueError(f"Not a calendar date: {value!r}")
    return parsed


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class Dependency(BaseModel):
    """Incoming dependency edge stored on the successor task."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    from_task_id: str = Field(description="Predecessor task id")
    type: DependencyType = Field(default=DependencyType.FS, description="Link type")
    lag: int = Field(default=0, description="Lag in days (negative = lead)")


class SchedulingConstraint(BaseModel):
    """Date constraint bounding a task in the CPM passes."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    constraint_type: ConstraintType = Field(description="Constraint type")
    constraint_date: Optional[date] = Field(default=None, description="Constraint date")

    @model_validator(mode='after')
    def _require_date(self) -> 'SchedulingConstraint':
        if self.constraint_type != ConstraintType.ASAP and self.constraint_date is None:
            raise ValueError(f"{self.constraint_type.value} constraint requires a constraint_date")
        return self

    @property
    def is_hard(self) -> bool:
        return self.constraint_type.is_hard


class Task(BaseModel):
    """
    Represents a schedule task.

    Dates are day-granular and intervals are half-open: a task starting on
    day 0 with duration 5 ends on day 5, and an FS successor with lag 0 may
    start that same day.

    Missing fields are derived at construction time:
    - duration from end - start, else 1 (0 for milestones)
    - end from start + duration
    - status from percent_complete
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    id: str = Field(description="Unique task identifier")
    name: str = Field(default='', description="Task name")
    start: date = Field(description="Start date")
    end: date = Field(description="End date (exclusive)")
    duration: int = Field(description="Duration in days")
    task_type: TaskType = Field(default=TaskType.NORMAL, description="normal or milestone")

    percent_complete: int = Field(default=0, ge=0, le=100, description="Progress 0-100")
    status: TaskStatus = Field(description="Progress status")

    parent_id: Optional[str] = Field(default=None, description="Parent task id (None for roots)")
    level: int = Field(default=0, ge=0, le=MAX_LEVEL, description="Hierarchy depth")
    position: int = Field(default=0, ge=0, description="Order among siblings")
    children: tuple[str, ...] = Field(default=(), description="Child ids ordered by position")
    is_expanded: bool = Field(default=True, description="Display flag for child rows")

    budgeted_cost: float = Field(default=0.0, ge=0, description="Planned value basis")
    actual_cost: float = Field(default=0.0, ge=0, description="Actual cost to date")
    resource: str = Field(default='', description="Assigned resource name")

    dependencies: tuple[Dependency, ...] = Field(default=(), description="Incoming typed links")
    constraint: Optional[SchedulingConstraint] = Field(default=None, description="Date constraint")

    @model_validator(mode='before')
    @classmethod
    def _derive_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        is_milestone = data.get('task_type') == TaskType.MILESTONE
        start = _coerce_date(data.get('start'))
        end = _coerce_date(data.get('end'))

        if data.get('duration') is None:
            if start is not None and end is not None:
                data['duration'] = (end - start).days
            else:
                data['duration'] = 0 if is_milestone else DEFAULT_DURATION

        duration = _coerce_int(data.get('duration'))
        if data.get('end') is None and start is not None and duration is not None:
            data['end'] = start + timedelta(days=duration)

        if data.get('status') is None:
            percent = _coerce_int(data.get('percent_complete', 0))
            if percent is not None:
                data['status'] = derive_status(percent)

        return data

    @property
    def is_milestone(self) -> bool:
        return self.task_type == TaskType.MILESTONE

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def predecessor_ids(self) -> tuple[str, ...]:
        """Legacy flat view of the typed incoming edges."""
        return tuple(dep.from_task_id for dep in self.dependencies)

    @property
    def has_hard_constraint(self) -> bool:
        return self.constraint is not None and self.constraint.is_hard

    def get_dependency(self, from_task_id: str) -> Optional[Dependency]:
        for dep in self.dependencies:
            if dep.from_task_id == from_task_id:
                return dep
        return None

    def evolve(self, **changes) -> 'Task':
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return Task.model_validate(data)

    def shifted(self, days: int) -> 'Task':
        """Return a copy moved by whole days, duration unchanged."""
        delta = timedelta(days=days)
        return self.evolve(start=self.start + delta, end=self.end + delta)


class Schedule(BaseModel):
    """
    Explicit task collection passed into and returned from core operations.

    project_start anchors the project duration; when unset, the earliest
    early start is used.
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    tasks: tuple[Task, ...] = Field(default=(), description="Tasks in display order")
    project_start: Optional[date] = Field(default=None, description="Project anchor date")

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def task_map(self) -> dict[str, Task]:
        return {task.id: task for task in self.tasks}

    @property
    def task_ids(self) -> list[str]:
        return [task.id for task in self.tasks]

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id: str) -> bool:
        return any(task.id == task_id for task in self.tasks)


class Project(BaseModel):
    """Project header consumed by the KPI roll-up."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    id: str = Field(description="Project identifier")
    name: str = Field(default='', description="Project name")
    start: Optional[date] = Field(default=None, description="Planned project start")


TaskCollection = Union[Schedule, Iterable[Task]]


def as_schedule(tasks: TaskCollection) -> Schedule:
    """Accept either a Schedule or any iterable of tasks."""
    if isinstance(tasks, Schedule):
        return tasks
    return Schedule(tasks=tuple(tasks))


@dataclass(frozen=True)
class Link:
    """A dependency edge with both ends resolved."""

    pred_task_id: str
    succ_task_id: str
    type: DependencyType = DependencyType.FS
    lag: int = 0

    def to_dict(self) -> dict:
        return {
            'from': self.pred_task_id,
            'to': self.succ_task_id,
            'type': self.type.value,
            'lag': self.lag,
        }


@dataclass
class TaskTiming:
    """CPM dates and float for one task."""

    task_id: str
    early_start: date
    early_finish: date
    late_start: date
    late_finish: date
    total_float: int
    free_float: int
    is_critical: bool

    def to_dict(self) -> dict:
        return {
            'task_id': self.task_id,
            'early_start': self.early_start.isoformat(),
            'early_finish': self.early_finish.isoformat(),
            'late_start': self.late_start.isoformat(),
            'late_finish': self.late_finish.isoformat(),
            'total_float': self.total_float,
            'free_float': self.free_float,
            'is_critical': self.is_critical,
        }


@dataclass
class CPMResult:
    """Results from a CPM calculation."""

    critical_tasks: list[str]            # task ids in topological order
    project_duration: int                # days from project_start to project_finish
    float_by_task: dict[str, int]
    timings: dict[str, TaskTiming] = field(default_factory=dict)
    critical_dependencies: list[Link] = field(default_factory=list)
    project_start: Optional[date] = None
    project_finish: Optional[date] = None
    warnings: list[ValidationIssue] = field(default_factory=list)

    def is_critical(self, task_id: str) -> bool:
        timing = self.timings.get(task_id)
        return timing is not None and timing.is_critical

    def get_tasks_by_float(self, max_float: int = None) -> list[TaskTiming]:
        """Get timings sorted by total float (ascending), ties by task id."""
        timings = list(self.timings.values())
        if max_float is not None:
            timings = [t for t in timings if t.total_float <= max_float]
        return sorted(timings, key=lambda t: (t.total_float, t.task_id))

    def to_dict(self) -> dict:
        return {
            'critical_tasks': list(self.critical_tasks),
            'project_duration': self.project_duration,
            'float_by_task': dict(sorted(self.float_by_task.items())),
            'project_start': self.project_start.isoformat() if self.project_start else None,
            'project_finish': self.project_finish.isoformat() if self.project_finish else None,
            'timings': {tid: self.timings[tid].to_dict() for tid in sorted(self.timings)},
            'critical_dependencies': [link.to_dict() for link in self.critical_dependencies],
            'warnings': [issue.to_dict() for issue in self.warnings],
        }
