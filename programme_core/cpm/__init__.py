"""
CPM (Critical Path Method) core for day-granular schedules.

This module provides:
- Task, dependency and constraint models
- Task network construction with deterministic topological sorting
- Dependency and date validation
- Forward/backward pass CPM calculations with float and critical path
"""

from .errors import (
    ErrorKind,
    ValidationIssue,
    ValidationResult,
    ScheduleError,
    DanglingReferenceError,
    CycleDetectedError,
    InvalidTaskDatesError,
    MutationError,
)
from .models import (
    MAX_LEVEL,
    DEFAULT_DURATION,
    DependencyType,
    TaskStatus,
    TaskType,
    ConstraintType,
    Dependency,
    SchedulingConstraint,
    Task,
    Schedule,
    Project,
    Link,
    TaskTiming,
    CPMResult,
    as_schedule,
    derive_status,
    snap_to_days,
)
from .network import TaskNetwork
from .validator import (
    DependencyValidator,
    boundary_shortfall,
    task_span_issues,
    validate_dependencies,
    validate_task_dates,
)
from .engine import CPMEngine, calculate_critical_path

__all__ = [
    'ErrorKind',
    'ValidationIssue',
    'ValidationResult',
    'ScheduleError',
    'DanglingReferenceError',
    'CycleDetectedError',
    'InvalidTaskDatesError',
    'MutationError',
    'MAX_LEVEL',
    'DEFAULT_DURATION',
    'DependencyType',
    'TaskStatus',
    'TaskType',
    'ConstraintType',
    'Dependency',
    'SchedulingConstraint',
    'Task',
    'Schedule',
    'Project',
    'Link',
    'TaskTiming',
    'CPMResult',
    'as_schedule',
    'derive_status',
    'snap_to_days',
    'TaskNetwork',
    'DependencyValidator',
    'boundary_shortfall',
    'task_span_issues',
    'validate_dependencies',
    'validate_task_dates',
    'CPMEngine',
    'calculate_critical_path',
]
