"""
Schema validation utilities for interchange CSV files.

Validates that a DataFrame carries exactly the columns of a pydantic row
schema with compatible types before it is written, and before a loaded
file is turned back into tasks.
"""

import types
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

import pandas as pd
from pydantic import BaseModel


class SchemaValidationError(Exception):
    """Raised when schema validation fails."""

    def __init__(
        self,
        message: str,
        missing_columns: Optional[List[str]] = None,
        type_mismatches: Optional[Dict[str, Tuple[str, str]]] = None,
        extra_columns: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.missing_columns = missing_columns or []
        self.type_mismatches = type_mismatches or {}
        self.extra_columns = extra_columns or []


def pandas_dtype_to_python_type(dtype) -> str:
    """Convert pandas dtype to a simplified type string."""
    dtype_str = str(dtype)

    if dtype_str.startswith('int') or dtype_str.startswith('Int'):
        return 'int'
    elif dtype_str.startswith('float') or dtype_str.startswith('Float'):
        return 'float'
    elif dtype_str in ('object', 'string', 'str'):
        return 'str'
    elif dtype_str.startswith('datetime'):
        return 'datetime'
    elif dtype_str in ('bool', 'boolean'):
        return 'bool'
    else:
        return dtype_str


def pydantic_type_to_string(field_type) -> str:
    """Convert a pydantic field annotation to a simplified type string."""
    # Unwrap Optional[X] / X | None
    if get_origin(field_type) in (Union, getattr(types, 'UnionType', Union)):
        args = [arg for arg in get_args(field_type) if arg is not type(None)]
        if len(args) == 1:
            field_type = args[0]

    # bool before int: bool is an int subclass
    for python_type, name in ((bool, 'bool'), (int, 'int'), (float, 'float'),
                              (str, 'str'), (datetime, 'datetime'), (date, 'datetime')):
        if field_type is python_type:
            return name
    return str(field_type)


def types_compatible(pandas_type: str, pydantic_type: str) -> bool:
    """
    Check if pandas type is compatible with pydantic type.

    Lenient because CSV type inference is imprecise: pandas uses float64
    for nullable integers and for all-empty columns, and object for
    all-None columns.
    """
    if pandas_type == pydantic_type:
        return True

    # float in pandas can represent nullable int or an all-NaN column
    if pandas_type == 'float' and pydantic_type in ('int', 'str'):
        return True

    # Any numeric to numeric is generally ok
    if pandas_type in ('int', 'float') and pydantic_type in ('int', 'float'):
        return True

    # object dtype can hold all-None numeric columns
    if pandas_type == 'str' and pydantic_type in ('int', 'float'):
        return True

    return False


def get_column_name(field_name: str, field_info) -> str:
    """Get the CSV column name for a field, honouring an alias if set."""
    if getattr(field_info, 'alias', None):
        return field_info.alias
    return field_name


def schema_columns(schema: Type[BaseModel]) -> List[str]:
    """Column names of a schema in declaration order."""
    return [get_column_name(name, info) for name, info in schema.model_fields.items()]


def validate_dataframe(
    df: pd.DataFrame,
    schema: Type[BaseModel],
    strict: bool = False,
) -> List[str]:
    """
    Validate a DataFrame against a Pydantic schema.

    Args:
        df: DataFrame to validate
        schema: Pydantic model class defining expected columns
        strict: If True, fail on extra columns not in schema

    Returns:
        List of validation error messages (empty if valid)

    Note:
        This validates SCHEMA (columns and types), not individual row values.
    """
    errors = []

    schema_fields = schema.model_fields
    field_to_column = {
        name: get_column_name(name, info)
        for name, info in schema_fields.items()
    }
    expected_columns = set(field_to_column.values())
    actual_columns = set(df.columns)

    missing = expected_columns - actual_columns
    if missing:
        errors.append(f"Missing required columns: {sorted(missing)}")

    extra = actual_columns - expected_columns
    if extra and strict:
        errors.append(f"Unexpected columns (strict mode): {sorted(extra)}")

    column_to_field = {v: k for k, v in field_to_column.items()}
    type_mismatches = {}

    for col in sorted(expected_columns & actual_columns):
        pandas_type = pandas_dtype_to_python_type(df[col].dtype)
        pydantic_type = pydantic_type_to_string(schema_fields[column_to_field[col]].annotation)

        if not types_compatible(pandas_type, pydantic_type):
            type_mismatches[col] = (pandas_type, pydantic_type)

    if type_mismatches:
        mismatch_strs = [
            f"{col}: got {got}, expected {expected}"
            for col, (got, expected) in type_mismatches.items()
        ]
        errors.append(f"Type mismatches: {'; '.join(mismatch_strs)}")

    return errors


def validated_df_to_csv(
    df: pd.DataFrame,
    file_path: Path,
    schema: Type[BaseModel],
    strict: bool = True,
    **to_csv_kwargs,
) -> None:
    """
    Validate a DataFrame against its schema and write to CSV.

    Raises:
        SchemaValidationError: If validation fails
    """
    file_path = Path(file_path)
    errors = validate_dataframe(df, schema, strict=strict)

    if errors:
        error_msg = (
            f"Schema validation failed for '{file_path.name}':\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
        expected = set(schema_columns(schema))
        raise SchemaValidationError(
            error_msg,
            missing_columns=sorted(expected - set(df.columns)),
            extra_columns=sorted(set(df.columns) - expected),
        )

    file_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(file_path, **to_csv_kwargs)
