"""
Schedule interchange data contract.

Usage:
    from programme_core.interchange import export_schedule_csv, load_schedule_csv

    export_schedule_csv(schedule, 'data/output/schedule.csv')
    schedule = load_schedule_csv('data/output/schedule.csv')
"""

from .schema import TaskExportRow
from .validator import validate_dataframe, validated_df_to_csv, SchemaValidationError
from .exporter import (
    format_dependencies,
    parse_dependencies,
    schedule_to_dataframe,
    dataframe_to_schedule,
    export_schedule_csv,
    load_schedule_csv,
)

__all__ = [
    'TaskExportRow',
    'validate_dataframe',
    'validated_df_to_csv',
    'SchemaValidationError',
    'format_dependencies',
    'parse_dependencies',
    'schedule_to_dataframe',
    'dataframe_to_schedule',
    'export_schedule_csv',
    'load_schedule_csv',
]
