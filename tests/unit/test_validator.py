"""
Unit tests for dependency and date validation.
"""

import pytest

from programme_core.cpm.errors import ErrorKind, ValidationResult
from programme_core.cpm.models import ConstraintType, DependencyType, SchedulingConstraint
from programme_core.cpm.validator import (
    DependencyValidator,
    boundary_shortfall,
    constraint_violation,
    task_span_issues,
    validate_dependencies,
    validate_task_dates,
)


class TestValidateDependencies:
    """Whole-collection dependency checks."""

    def test_valid_schedule(self, diamond_schedule):
        """A consistent DAG passes with no issues."""
        result = validate_dependencies(diamond_schedule)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_empty_collection_is_valid(self):
        """Nothing to check is not an error."""
        assert validate_dependencies([]).is_valid

    def test_dangling_reference(self, make_task):
        """An edge to a missing task is an error."""
        result = validate_dependencies([make_task('B', 0, 1, preds=['GHOST'])])
        assert not result.is_valid
        assert result.error_kinds == [ErrorKind.DANGLING_REFERENCE]
        assert result.errors[0].task_ids == ('B', 'GHOST')

    def test_self_dependency(self, make_task):
        """A task may not depend on itself."""
        result = validate_dependencies([make_task('A', 0, 1, preds=['A'])])
        assert result.error_kinds == [ErrorKind.SELF_DEPENDENCY]

    def test_cycle_detected(self, cyclic_tasks):
        """A cycle is reported with the tasks on it."""
        result = validate_dependencies(cyclic_tasks)
        assert not result.is_valid
        assert result.has(ErrorKind.CYCLE_DETECTED)
        cycle_issue = next(i for i in result.errors if i.kind == ErrorKind.CYCLE_DETECTED)
        assert set(cycle_issue.task_ids) == {'A', 'B', 'C'}

    def test_checks_reported_in_order(self, make_task):
        """Dangling, self and cycle errors appear in that order."""
        tasks = [
            make_task('A', 0, 1, preds=['B']),
            make_task('B', 1, 1, preds=['A']),
            make_task('S', 0, 1, preds=['S']),
            make_task('D', 0, 1, preds=['GHOST']),
        ]
        result = validate_dependencies(tasks)
        assert result.error_kinds == [
            ErrorKind.DANGLING_REFERENCE,
            ErrorKind.SELF_DEPENDENCY,
            ErrorKind.CYCLE_DETECTED,
        ]

    def test_self_dependency_not_reported_as_cycle(self, make_task):
        """Self edges are reported once, not also as a one-task cycle."""
        result = validate_dependencies([make_task('A', 0, 1, preds=['A'])])
        assert not result.has(ErrorKind.CYCLE_DETECTED)

    def test_date_violation_is_warning(self, make_task):
        """Broken dates are soft: the result stays valid."""
        tasks = [make_task('A', 0, 5), make_task('B', 3, 2, preds=['A'])]
        result = validate_dependencies(tasks)
        assert result.is_valid
        assert [i.kind for i in result.warnings] == [ErrorKind.DATE_CONSTRAINT_VIOLATION]
        assert '2 day(s)' in result.warnings[0].message

    def test_duplicate_ids(self, make_task):
        """Duplicate ids are an error."""
        result = validate_dependencies([make_task('A', 0, 1), make_task('A', 3, 1)])
        assert result.error_kinds == [ErrorKind.DUPLICATE_TASK]

    def test_to_dict(self, make_task):
        """Results serialize kinds by value."""
        data = validate_dependencies([make_task('A', 0, 1, preds=['A'])]).to_dict()
        assert data['is_valid'] is False
        assert data['errors'][0]['kind'] == 'SelfDependency'
        assert data['errors'][0]['task_ids'] == ['A']

    def test_validator_class(self, diamond_schedule):
        """The class and module function agree."""
        assert DependencyValidator(diamond_schedule).validate() == validate_dependencies(diamond_schedule)

    def test_end_before_start_is_error(self, make_task, day):
        """A task ending before it starts makes the collection invalid."""
        tasks = [make_task('A', 0, 2), make_task('N', 0, 1).evolve(end=day(-3), duration=-3)]
        result = validate_dependencies(tasks)
        assert not result.is_valid
        assert result.error_kinds == [ErrorKind.INVALID_DATE_RANGE]
        assert result.errors[0].task_ids == ('N',)

    def test_duration_disagreeing_with_dates_is_error(self, make_task):
        """Duration must equal the span between start and end."""
        task = make_task('A', 0, 5).evolve(duration=2)
        result = validate_dependencies([task])
        assert result.error_kinds == [ErrorKind.INVALID_DURATION]

    def test_negative_duration_is_error(self, make_task):
        """A zero-length span with a negative duration is rejected."""
        task = make_task('A', 0, 0).evolve(duration=-1)
        assert task_span_issues(task)[0].kind == ErrorKind.INVALID_DURATION
        assert validate_dependencies([task]).error_kinds == [ErrorKind.INVALID_DURATION]


class TestValidateTaskDates:
    """Single-task date checks used to block or force date edits."""

    def test_valid_task(self, cascade_schedule):
        """A task that honours its links passes."""
        assert validate_task_dates('B', cascade_schedule).is_valid

    def test_missing_task(self, cascade_schedule):
        """An unknown id is reported, not raised."""
        result = validate_task_dates('NOPE', cascade_schedule)
        assert result.error_kinds == [ErrorKind.TASK_NOT_FOUND]

    def test_start_after_end(self, make_task, day):
        """Start after end is an invalid range."""
        task = make_task('A', 5, 1).evolve(end=day(2), duration=-3)
        result = validate_task_dates('A', [task])
        assert result.error_kinds == [ErrorKind.INVALID_DATE_RANGE]

    def test_duration_mismatch(self, make_task):
        """Duration must equal the date span."""
        task = make_task('A', 0, 5).evolve(duration=4)
        result = validate_task_dates('A', [task])
        assert result.error_kinds == [ErrorKind.INVALID_DURATION]

    def test_milestone_with_length(self, make_task):
        """Milestones have zero duration."""
        task = make_task('M', 0, 2, task_type='milestone')
        result = validate_task_dates('M', [task])
        assert result.error_kinds == [ErrorKind.INVALID_DURATION]

    def test_zero_length_normal_task(self, make_task):
        """Normal tasks are at least one day long."""
        task = make_task('A', 0, 0)
        result = validate_task_dates('A', [task])
        assert result.error_kinds == [ErrorKind.INVALID_DURATION]

    def test_incoming_violation_is_error(self, make_task):
        """A broken incoming link blocks here, unlike the collection check."""
        tasks = [make_task('A', 0, 5), make_task('B', 3, 2, preds=['A'])]
        result = validate_task_dates('B', tasks)
        assert result.error_kinds == [ErrorKind.DATE_CONSTRAINT_VIOLATION]

    def test_outgoing_links_not_checked(self, make_task):
        """Only the task's own incoming links are validated."""
        tasks = [make_task('A', 0, 5), make_task('B', 3, 2, preds=['A'])]
        assert validate_task_dates('A', tasks).is_valid

    def test_constraint_violation(self, make_task, day):
        """A task that misses its own constraint fails."""
        constraint = SchedulingConstraint(constraint_type=ConstraintType.MUST_START_ON,
                                          constraint_date=day(2))
        task = make_task('A', 0, 3, constraint=constraint)
        result = validate_task_dates('A', [task])
        assert result.error_kinds == [ErrorKind.DATE_CONSTRAINT_VIOLATION]
        assert 'must start on' in result.errors[0].message


class TestBoundaryShortfall:
    """Per-type link boundary checks."""

    @pytest.mark.parametrize("dep_type,lag,succ_start,expected", [
        (DependencyType.FS, 0, 5, 0),     # starts as A finishes
        (DependencyType.FS, 2, 5, 2),     # lag pushes the boundary out
        (DependencyType.FS, -1, 4, 0),    # lead lets it overlap by a day
        (DependencyType.SS, 0, 0, 0),
        (DependencyType.SS, 3, 1, 2),
        (DependencyType.FF, 0, 3, 0),     # B (2 days) ends day 5 with A
        (DependencyType.FF, 0, 2, 1),
        (DependencyType.SF, 0, 0, 0),
        (DependencyType.SF, 4, 1, 1),
    ])
    def test_shortfall(self, make_task, dep_type, lag, succ_start, expected):
        """Positive shortfall means the successor is too early."""
        pred = make_task('A', 0, 5)
        succ = make_task('B', succ_start, 2)
        assert max(0, boundary_shortfall(pred, succ, dep_type, lag)) == expected

    def test_slack_is_negative(self, make_task):
        """A successor with slack has a negative shortfall."""
        assert boundary_shortfall(make_task('A', 0, 5), make_task('B', 8, 1),
                                  DependencyType.FS, 0) == -3

    def test_constraint_violation_helper(self, make_task, day):
        """No constraint, no violation."""
        assert constraint_violation(make_task('A', 0, 1)) is None
        late = make_task('A', 0, 5, constraint=SchedulingConstraint(
            constraint_type='finish-no-later-than', constraint_date=day(4)))
        assert 'finish-no-later-than' in constraint_violation(late)


class TestValidationResult:
    """Result container behaviour."""

    def test_warnings_do_not_invalidate(self):
        """is_valid only looks at errors."""
        result = ValidationResult()
        result.add_warning(ErrorKind.NEGATIVE_FLOAT, "late", ['A'])
        assert result.is_valid
        result.add_error(ErrorKind.CYCLE_DETECTED, "loop", ['A', 'B'])
        assert not result.is_valid
        assert result.kinds == [ErrorKind.CYCLE_DETECTED, ErrorKind.NEGATIVE_FLOAT]
        assert str(result.errors[0]) == 'CycleDetected: loop'
