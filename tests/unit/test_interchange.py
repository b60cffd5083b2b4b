"""
Unit tests for the task interchange schema, validator and CSV exporter.

Uses tmp_path for file output; no fixture data files are needed.
"""

from typing import Optional

import pandas as pd
import pytest
from pydantic import BaseModel

from programme_core.cpm.models import ConstraintType, DependencyType, Schedule, SchedulingConstraint
from programme_core.interchange import (
    SchemaValidationError,
    TaskExportRow,
    dataframe_to_schedule,
    export_schedule_csv,
    format_dependencies,
    load_schedule_csv,
    parse_dependencies,
    schedule_to_dataframe,
    validate_dataframe,
    validated_df_to_csv,
)
from programme_core.interchange.validator import (
    pandas_dtype_to_python_type,
    pydantic_type_to_string,
    types_compatible,
)


@pytest.fixture
def rich_schedule(make_task, day):
    """Hierarchy, typed links, a constraint, a milestone and costs."""
    return Schedule(tasks=(
        make_task('001', 0, 10, name='Foundations, east', level=0, position=0,
                  children=('002', '003'), budgeted_cost=5000.0),
        make_task('002', 0, 4, parent_id='001', level=1, position=0,
                  resource='Crew 1', percent_complete=100, actual_cost=1200.5),
        make_task('003', 4, 6, parent_id='001', level=1, position=1,
                  preds=[('002', 'SS', -2)],
                  constraint=SchedulingConstraint(constraint_type=ConstraintType.START_NO_EARLIER_THAN,
                                                  constraint_date=day(4))),
        make_task('M1', 10, preds=['003'], task_type='milestone', level=0, position=1),
    ))


class TestTypeMapping:
    """Test type conversion utilities."""

    @pytest.mark.parametrize("dtype,expected", [
        ('int64', 'int'),
        ('Int64', 'int'),
        ('float64', 'float'),
        ('object', 'str'),
        ('string', 'str'),
        ('bool', 'bool'),
        ('datetime64[ns]', 'datetime'),
    ])
    def test_pandas_dtype_conversion(self, dtype, expected):
        """Pandas dtypes should map to correct Python types."""
        assert pandas_dtype_to_python_type(dtype) == expected

    @pytest.mark.parametrize("annotation,expected", [
        (str, 'str'),
        (int, 'int'),
        (float, 'float'),
        (bool, 'bool'),
        (Optional[str], 'str'),
        (Optional[int], 'int'),
    ])
    def test_pydantic_type_conversion(self, annotation, expected):
        """Field annotations should map to simplified type names."""
        assert pydantic_type_to_string(annotation) == expected

    @pytest.mark.parametrize("pandas_type,pydantic_type,expected", [
        ('int', 'int', True),
        ('float', 'int', True),   # nullable int
        ('int', 'float', True),
        ('str', 'int', True),     # all-None column
        ('int', 'str', False),
        ('bool', 'str', False),
    ])
    def test_types_compatible(self, pandas_type, pydantic_type, expected):
        """Compatibility is lenient where CSV inference is imprecise."""
        assert types_compatible(pandas_type, pydantic_type) is expected


class TestValidateDataframe:
    """Column and type checks against a row schema."""

    class _Row(BaseModel):
        task_id: str
        duration: int

    def test_matching_frame(self):
        """A frame with exactly the schema columns passes."""
        df = pd.DataFrame({'task_id': ['A'], 'duration': [3]})
        assert validate_dataframe(df, self._Row, strict=True) == []

    def test_missing_column(self):
        """Missing columns are reported."""
        df = pd.DataFrame({'task_id': ['A']})
        errors = validate_dataframe(df, self._Row)
        assert any('Missing required columns' in e for e in errors)

    def test_extra_column_only_fails_strict(self):
        """Extra columns are tolerated unless strict."""
        df = pd.DataFrame({'task_id': ['A'], 'duration': [3], 'colour': ['red']})
        assert validate_dataframe(df, self._Row) == []
        assert any('Unexpected columns' in e for e in validate_dataframe(df, self._Row, strict=True))

    def test_type_mismatch(self):
        """An integer column holding text is a mismatch."""
        df = pd.DataFrame({'task_id': [1], 'duration': [3]})
        errors = validate_dataframe(df, self._Row)
        assert any('task_id: got int, expected str' in e for e in errors)

    def test_validated_write_refuses_bad_frame(self, tmp_path):
        """Nothing is written when validation fails."""
        path = tmp_path / 'out' / 'bad.csv'
        with pytest.raises(SchemaValidationError) as exc_info:
            validated_df_to_csv(pd.DataFrame({'task_id': ['A']}), path, self._Row)
        assert exc_info.value.missing_columns == ['duration']
        assert not path.exists()


class TestDependencyFormat:
    """FROM:TYPE:LAG link strings."""

    def test_format(self, make_task):
        """Links are rendered in stored order."""
        task = make_task('C', 0, 1, preds=['A', ('B', 'SS', -2)])
        assert format_dependencies(task) == 'A:FS:0;B:SS:-2'

    @pytest.mark.parametrize("pred_id", ['A;B', ' A', 'A '])
    def test_unparseable_ids_rejected(self, make_task, pred_id):
        """Ids that would not survive a re-parse are refused on export."""
        task = make_task('C', 0, 1, preds=[pred_id])
        with pytest.raises(ValueError, match='cannot be written'):
            format_dependencies(task)

    def test_export_refuses_unparseable_ids(self, make_task, tmp_path):
        """Nothing is written when a link cannot be represented."""
        tasks = [make_task('A;1', 0, 1), make_task('B', 1, 1, preds=['A;1'])]
        path = tmp_path / 'schedule.csv'
        with pytest.raises(ValueError):
            export_schedule_csv(tasks, path)
        assert not path.exists()

    def test_colon_in_id_round_trips(self, make_task):
        """Ids containing ':' parse back because type and lag are always written."""
        task = make_task('C', 0, 1, preds=[('site:A', 'SS', 2)])
        deps = parse_dependencies(format_dependencies(task))
        assert [(d.from_task_id, d.type, d.lag) for d in deps] == [('site:A', DependencyType.SS, 2)]

    def test_parse_defaults(self):
        """Type defaults to FS and lag to 0."""
        deps = parse_dependencies('A; B:FF ;C:SF:3')
        assert [(d.from_task_id, d.type, d.lag) for d in deps] == [
            ('A', DependencyType.FS, 0),
            ('B', DependencyType.FF, 0),
            ('C', DependencyType.SF, 3),
        ]

    @pytest.mark.parametrize("raw", [None, '', '   '])
    def test_parse_empty(self, raw):
        """No links."""
        assert parse_dependencies(raw) == ()

    @pytest.mark.parametrize("raw", ['A:XX:0', 'A:FS:soon'])
    def test_parse_invalid(self, raw):
        """Unknown types and non-integer lags are rejected."""
        with pytest.raises(ValueError):
            parse_dependencies(raw)


class TestScheduleCsv:
    """Schedule export and import."""

    def test_dataframe_columns(self, rich_schedule):
        """Columns follow the row schema."""
        df = schedule_to_dataframe(rich_schedule)
        assert list(df.columns) == list(TaskExportRow.model_fields)
        assert len(df) == 4
        row = df[df.task_id == '003'].iloc[0]
        assert row['constraint_type'] == 'start-no-earlier-than'
        assert row['dependencies'] == '002:SS:-2'

    def test_export_and_reload(self, rich_schedule, tmp_path):
        """A schedule survives a trip through CSV unchanged."""
        path = export_schedule_csv(rich_schedule, tmp_path / 'nested' / 'schedule.csv')
        assert path.exists()
        loaded = load_schedule_csv(path)
        assert loaded.tasks == rich_schedule.tasks

    def test_ids_keep_leading_zeros(self, rich_schedule, tmp_path):
        """Text columns are not coerced to numbers."""
        path = export_schedule_csv(rich_schedule, tmp_path / 'schedule.csv')
        loaded = load_schedule_csv(path)
        assert loaded.task_ids[:3] == ['001', '002', '003']
        assert loaded.get('002').parent_id == '001'

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_schedule_csv(tmp_path / 'nope.csv')

    def test_unexpected_column_rejected(self, rich_schedule, tmp_path):
        """Loading is strict about columns."""
        df = schedule_to_dataframe(rich_schedule)
        df['colour'] = 'red'
        path = tmp_path / 'extra.csv'
        df.to_csv(path, index=False)
        with pytest.raises(SchemaValidationError) as exc_info:
            load_schedule_csv(path)
        assert exc_info.value.extra_columns == ['colour']

    def test_missing_column_rejected(self, rich_schedule):
        """Every schema column is required."""
        df = schedule_to_dataframe(rich_schedule).drop(columns=['duration'])
        with pytest.raises(SchemaValidationError) as exc_info:
            dataframe_to_schedule(df)
        assert exc_info.value.missing_columns == ['duration']

    def test_bad_row_rejected(self, rich_schedule):
        """Row-level problems name the offending row."""
        df = schedule_to_dataframe(rich_schedule)
        df.loc[0, 'start_date'] = '06/01/2025'
        with pytest.raises(ValueError, match='Row 1'):
            dataframe_to_schedule(df)

    def test_children_rebuilt_from_parents(self, rich_schedule):
        """children lists come from parent_id and position."""
        df = schedule_to_dataframe(rich_schedule).iloc[::-1]
        schedule = dataframe_to_schedule(df)
        assert schedule.get('001').children == ('002', '003')
