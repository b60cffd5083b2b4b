"""Pytest configuration and fixtures."""
from datetime import date, timedelta

import pytest

from programme_core.cpm.models import Dependency, DependencyType, Schedule, Task

PROJECT_START = date(2025, 1, 6)


@pytest.fixture
def day():
    """Map a day offset to a calendar date (day 0 = PROJECT_START)."""
    def _day(n: int) -> date:
        return PROJECT_START + timedelta(days=n)
    return _day


@pytest.fixture
def make_task(day):
    """
    Task factory.

    preds entries are either a predecessor id (FS, lag 0) or a
    (from_id, type, lag) tuple.
    """
    def _make(task_id, start=0, duration=None, preds=(), **fields):
        deps = []
        for pred in preds:
            if isinstance(pred, tuple):
                from_id, dep_type, lag = pred
                deps.append(Dependency(from_task_id=from_id, type=DependencyType(dep_type), lag=lag))
            else:
                deps.append(Dependency(from_task_id=pred))
        fields.setdefault('name', f'Task {task_id}')
        return Task(id=task_id, start=day(start), duration=duration,
                    dependencies=tuple(deps), **fields)
    return _make


@pytest.fixture
def cascade_schedule(make_task):
    """A (day 0, 5 days) -FS-> B (day 5, 3 days)."""
    return Schedule(tasks=(
        make_task('A', 0, 5),
        make_task('B', 5, 3, preds=['A']),
    ))


@pytest.fixture
def diamond_schedule(make_task):
    """
    A(3) feeds B(4) and C(2); both feed D(2).

    Critical path A-B-D (9 days); C has 2 days float.
    """
    return Schedule(tasks=(
        make_task('A', 0, 3),
        make_task('B', 3, 4, preds=['A']),
        make_task('C', 3, 2, preds=['A']),
        make_task('D', 7, 2, preds=['B', 'C']),
    ))


@pytest.fixture
def cyclic_tasks(make_task):
    """A -> B -> C -> A."""
    return [
        make_task('A', 0, 2, preds=['C']),
        make_task('B', 2, 2, preds=['A']),
        make_task('C', 4, 2, preds=['B']),
    ]


@pytest.fixture
def hierarchy_schedule(make_task):
    """
    P (level 0) with children X, Y, Z (level 1), then root Q.
    """
    return Schedule(tasks=(
        make_task('P', 0, 10, level=0, position=0, children=('X', 'Y', 'Z')),
        make_task('X', 0, 3, parent_id='P', level=1, position=0),
        make_task('Y', 3, 3, parent_id='P', level=1, position=1),
        make_task('Z', 6, 4, parent_id='P', level=1, position=2),
        make_task('Q', 10, 2, level=0, position=1),
    ))


@pytest.fixture
def deep_schedule(make_task):
    """
    A chain L0..L5 nested one level per task, plus S0/S at level 4 under L3
    where S has a level 5 child C.
    """
    tasks = []
    for level in range(6):
        tid = f'L{level}'
        children = (f'L{level + 1}',) if level < 5 else ()
        if level == 3:
            children = ('L4', 'S0', 'S')
        tasks.append(make_task(
            tid, 0, 1,
            parent_id=f'L{level - 1}' if level else None,
            level=level,
            position=0,
            children=children,
        ))
    tasks.append(make_task('S0', 0, 1, parent_id='L3', level=4, position=1))
    tasks.append(make_task('S', 0, 1, parent_id='L3', level=4, position=2, children=('C',)))
    tasks.append(make_task('C', 0, 1, parent_id='S', level=5, position=0))
    return Schedule(tasks=tuple(tasks))


@pytest.fixture
def evm_example_task(make_task):
    """PV 1000, 50% complete, AC 600."""
    return make_task('E', 0, 10, budgeted_cost=1000.0, percent_complete=50, actual_cost=600.0)
