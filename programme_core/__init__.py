"""
Project scheduling core.

Task dependency graph, Critical Path Method solver, schedule mutations
that keep dependencies consistent, and Earned Value Management metrics.
Every operation takes an explicit task collection and returns a new value.
"""

from .cpm import (
    ErrorKind,
    ValidationIssue,
    ValidationResult,
    ScheduleError,
    DanglingReferenceError,
    CycleDetectedError,
    InvalidTaskDatesError,
    MutationError,
    DependencyType,
    TaskStatus,
    TaskType,
    ConstraintType,
    Dependency,
    SchedulingConstraint,
    Task,
    Schedule,
    Project,
    CPMResult,
    TaskTiming,
    validate_dependencies,
    validate_task_dates,
    calculate_critical_path,
)
from .mutator import (
    MutationResult,
    ResizeEdge,
    ScheduleMutator,
    move_task,
    resize_task,
    indent_task,
    outdent_task,
    move_in_hierarchy,
    link_tasks,
    unlink_tasks,
    set_task_dates,
    set_constraint,
    set_progress,
    add_task,
    delete_task,
    update_task,
    visible_tasks,
)
from .analysis.earned_value import (
    EVMData,
    KPIMetrics,
    calculate_evm,
    calculate_kpis,
    summarize_evm,
    calculate_project_progress,
    generate_predictive_analysis,
    calculate_portfolio_metrics,
)

__version__ = '0.1.0'

__all__ = [
    'ErrorKind',
    'ValidationIssue',
    'ValidationResult',
    'ScheduleError',
    'DanglingReferenceError',
    'CycleDetectedError',
    'InvalidTaskDatesError',
    'MutationError',
    'DependencyType',
    'TaskStatus',
    'TaskType',
    'ConstraintType',
    'Dependency',
    'SchedulingConstraint',
    'Task',
    'Schedule',
    'Project',
    'CPMResult',
    'TaskTiming',
    'validate_dependencies',
    'validate_task_dates',
    'calculate_critical_path',
    'MutationResult',
    'ResizeEdge',
    'ScheduleMutator',
    'move_task',
    'resize_task',
    'indent_task',
    'outdent_task',
    'move_in_hierarchy',
    'link_tasks',
    'unlink_tasks',
    'set_task_dates',
    'set_constraint',
    'set_progress',
    'add_task',
    'delete_task',
    'update_task',
    'visible_tasks',
    'EVMData',
    'KPIMetrics',
    'calculate_evm',
    'calculate_kpis',
    'summarize_evm',
    'calculate_project_progress',
    'generate_predictive_analysis',
    'calculate_portfolio_metrics',
]
