"""
Schedule export and import.

Converts task collections to the TaskExportRow column contract and back,
using pandas for CSV I/O. Files are schema-checked in both directions.
"""

import logging
import math
from pathlib import Path
from typing import Optional

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from programme_core.cpm.models import (
    Dependency,
    DependencyType,
    Schedule,
    Task,
    TaskCollection,
    as_schedule,
)
from .schema import TaskExportRow
from .validator import (
    SchemaValidationError,
    pydantic_type_to_string,
    schema_columns,
    validate_dataframe,
    validated_df_to_csv,
)

logger = logging.getLogger(__name__)

DEPENDENCY_SEPARATOR = ';'


def format_dependencies(task: Task) -> str:
    """
    Render incoming links as FROM:TYPE:LAG entries joined by ';'.

    Raises ValueError for a predecessor id that could not be parsed back:
    one containing the separator or with surrounding whitespace.
    """
    for dep in task.dependencies:
        if DEPENDENCY_SEPARATOR in dep.from_task_id or dep.from_task_id != dep.from_task_id.strip():
            raise ValueError(f"Task {task.id}: predecessor id {dep.from_task_id!r} cannot be "
                             f"written to the dependencies column")
    return DEPENDENCY_SEPARATOR.join(
        f"{dep.from_task_id}:{dep.type.value}:{dep.lag}" for dep in task.dependencies
    )


def parse_dependencies(raw: Optional[str]) -> tuple[Dependency, ...]:
    """
    Parse FROM:TYPE:LAG entries. TYPE defaults to FS and LAG to 0.

    Raises ValueError on an unknown link type or a non-integer lag.
    """
    if raw is None or not str(raw).strip():
        return ()

    deps = []
    for chunk in str(raw).split(DEPENDENCY_SEPARATOR):
        chunk = chunk.strip()
        if not chunk:
            continue
        # rsplit so task ids may themselves contain ':'
        parts = chunk.rsplit(':', 2) if chunk.count(':') >= 2 else chunk.split(':')
        from_id = parts[0].strip()
        dep_type = parts[1].strip().upper() if len(parts) > 1 and parts[1].strip() else 'FS'
        lag = int(parts[2].strip()) if len(parts) > 2 and parts[2].strip() else 0
        deps.append(Dependency(from_task_id=from_id, type=DependencyType(dep_type), lag=lag))
    return tuple(deps)


def task_to_row(task: Task) -> TaskExportRow:
    constraint = task.constraint
    return TaskExportRow(
        task_id=task.id,
        name=task.name,
        start_date=task.start.isoformat(),
        end_date=task.end.isoformat(),
        duration=task.duration,
        percent_complete=task.percent_complete,
        status=task.status.value,
        resource=task.resource,
        budgeted_cost=task.budgeted_cost,
        actual_cost=task.actual_cost,
        level=task.level,
        parent_id=task.parent_id,
        position=task.position,
        task_type=task.task_type.value,
        constraint_type=constraint.constraint_type.value if constraint else None,
        constraint_date=(constraint.constraint_date.isoformat()
                         if constraint and constraint.constraint_date else None),
        dependencies=format_dependencies(task),
    )


def schedule_to_dataframe(tasks: TaskCollection) -> pd.DataFrame:
    """One row per task, columns in TaskExportRow order."""
    rows = [task_to_row(task).model_dump() for task in as_schedule(tasks).tasks]
    return pd.DataFrame(rows, columns=schema_columns(TaskExportRow))


def export_schedule_csv(tasks: TaskCollection, file_path: Path) -> Path:
    """
    Write a schedule to CSV after validating it against TaskExportRow.

    Raises:
        SchemaValidationError: If the frame does not match the schema
    """
    file_path = Path(file_path)
    df = schedule_to_dataframe(tasks)
    validated_df_to_csv(df, file_path, TaskExportRow, strict=True, index=False)
    logger.info(f"Exported {len(df)} tasks to {file_path}")
    return file_path


def _clean(value):
    """Map pandas missing values to None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def dataframe_to_schedule(df: pd.DataFrame) -> Schedule:
    """
    Build a Schedule from interchange rows.

    Children lists are rebuilt from parent_id and position.

    Raises:
        SchemaValidationError: missing or unexpected columns, bad types
        ValueError: a row fails row-level validation
    """
    errors = validate_dataframe(df, TaskExportRow, strict=True)
    if errors:
        raise SchemaValidationError(
            "Schedule file does not match the task interchange schema:\n"
            + "\n".join(f"  - {e}" for e in errors),
            missing_columns=sorted(set(schema_columns(TaskExportRow)) - set(df.columns)),
            extra_columns=sorted(set(df.columns) - set(schema_columns(TaskExportRow))),
        )

    rows = []
    for index, record in enumerate(df.to_dict(orient='records')):
        try:
            rows.append(TaskExportRow(**{k: _clean(v) for k, v in record.items()}))
        except PydanticValidationError as e:
            raise ValueError(f"Row {index + 1}: {e}") from e

    children: dict[str, list[TaskExportRow]] = {}
    for row in rows:
        if row.parent_id is not None:
            children.setdefault(row.parent_id, []).append(row)

    tasks = []
    for row in rows:
        constraint = None
        if row.constraint_type:
            constraint = {'constraint_type': row.constraint_type,
                          'constraint_date': row.constraint_date}
        kids = sorted(children.get(row.task_id, []), key=lambda r: (r.position, r.task_id))
        try:
            tasks.append(Task.model_validate({
                'id': row.task_id,
                'name': row.name or '',
                'start': row.start_date,
                'end': row.end_date,
                'duration': row.duration,
                'task_type': row.task_type,
                'percent_complete': row.percent_complete,
                'status': row.status,
                'parent_id': row.parent_id,
                'level': row.level,
                'position': row.position,
                'children': tuple(r.task_id for r in kids),
                'budgeted_cost': row.budgeted_cost,
                'actual_cost': row.actual_cost,
                'resource': row.resource or '',
                'dependencies': parse_dependencies(row.dependencies),
                'constraint': constraint,
            }))
        except PydanticValidationError as e:
            raise ValueError(f"Task {row.task_id}: {e}") from e

    return Schedule(tasks=tuple(tasks))


def load_schedule_csv(file_path: Path) -> Schedule:
    """
    Read a schedule CSV written by export_schedule_csv (or by hand).

    Raises:
        FileNotFoundError: If file doesn't exist
        SchemaValidationError: If the columns do not match the schema
        ValueError: If a row is invalid
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    # Text columns are read as text so ids like "001" survive
    str_columns = {
        name: str for name, info in TaskExportRow.model_fields.items()
        if pydantic_type_to_string(info.annotation) == 'str'
    }
    df = pd.read_csv(file_path, dtype=str_columns)
    schedule = dataframe_to_schedule(df)
    logger.info(f"Loaded {len(schedule)} tasks from {file_path}")
    return schedule
