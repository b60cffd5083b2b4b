"""
Error kinds, validation results and exceptions for the scheduling core.

Validators return a ValidationResult and never raise for data problems.
Exceptions are reserved for operations that cannot produce a result:
CPM over a cyclic or dangling graph, and rejected mutations.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class ErrorKind(str, Enum):
    DANGLING_REFERENCE = 'DanglingReference'
    SELF_DEPENDENCY = 'SelfDependency'
    CYCLE_DETECTED = 'CycleDetected'
    DATE_CONSTRAINT_VIOLATION = 'DateConstraintViolation'
    HIERARCHY_BOUNDS_EXCEEDED = 'HierarchyBoundsExceeded'
    CONSTRAINT_CONFLICT = 'ConstraintConflict'
    INVALID_DATE_RANGE = 'InvalidDateRange'
    INVALID_DURATION = 'InvalidDuration'
    DUPLICATE_TASK = 'DuplicateTask'
    TASK_NOT_FOUND = 'TaskNotFound'
    INVALID_PROGRESS = 'InvalidProgress'
    INVALID_HIERARCHY_MOVE = 'InvalidHierarchyMove'
    NEGATIVE_FLOAT = 'NegativeFloat'


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in a task set."""

    kind: ErrorKind
    message: str
    task_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'message': self.message,
            'task_ids': list(self.task_ids),
        }

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass
class ValidationResult:
    """Outcome of a validation pass. Warnings never make a result invalid."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def kinds(self) -> list[ErrorKind]:
        """Kinds of all issues, errors first."""
        return [issue.kind for issue in self.errors + self.warnings]

    @property
    def error_kinds(self) -> list[ErrorKind]:
        return [issue.kind for issue in self.errors]

    def has(self, kind: ErrorKind) -> bool:
        return kind in self.kinds

    def add_error(self, kind: ErrorKind, message: str, task_ids: Iterable[str] = ()) -> None:
        self.errors.append(ValidationIssue(kind, message, tuple(task_ids)))

    def add_warning(self, kind: ErrorKind, message: str, task_ids: Iterable[str] = ()) -> None:
        self.warnings.append(ValidationIssue(kind, message, tuple(task_ids)))

    def to_dict(self) -> dict:
        return {
            'is_valid': self.is_valid,
            'errors': [issue.to_dict() for issue in self.errors],
            'warnings': [issue.to_dict() for issue in self.warnings],
        }


class ScheduleError(Exception):
    """Base class for scheduling failures."""

    kind: ErrorKind = None

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        task_ids: Optional[Iterable[str]] = None,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.task_ids = tuple(task_ids or ())
        self.issues = list(issues or [])


class DanglingReferenceError(ScheduleError):
    """A dependency references a task that does not exist."""

    kind = ErrorKind.DANGLING_REFERENCE


class CycleDetectedError(ScheduleError):
    """The dependency graph contains a cycle."""

    kind = ErrorKind.CYCLE_DETECTED


class MutationError(ScheduleError):
    """A schedule edit was rejected. The input task set is unchanged."""


class InvalidTaskDatesError(ScheduleError):
    """A task's dates contradict each other or its duration."""

    kind = ErrorKind.INVALID_DATE_RANGE
