"""
Task Network for CPM calculations.

Manages tasks and dependencies with support for deterministic topological
sorting and network traversal.
"""

import heapq
from collections import defaultdict
from typing import Optional

from .errors import CycleDetectedError, DanglingReferenceError, ErrorKind, ScheduleError
from .models import Link, Task, TaskCollection, as_schedule


class TaskNetwork:
    """
    Task dependency network for CPM calculations.

    Maintains tasks and their predecessor/successor relationships
    with efficient lookups and topological sorting. Successor lists are
    derived from the incoming edges stored on each task.
    """

    def __init__(self):
        self.tasks: dict[str, Task] = {}
        self.dependencies: list[Link] = []
        self._successors: dict[str, list[Link]] = defaultdict(list)
        self._predecessors: dict[str, list[Link]] = defaultdict(list)

    @classmethod
    def from_tasks(cls, tasks: TaskCollection, strict: bool = True) -> 'TaskNetwork':
        """
        Build a network from a task collection.

        With strict=True, duplicate ids raise ScheduleError and dangling
        references raise DanglingReferenceError. Otherwise offending edges
        are skipped (the validator reports them separately).
        """
        schedule = as_schedule(tasks)
        network = cls()
        for task in schedule.tasks:
            if task.id in network.tasks and strict:
                raise ScheduleError(f"Duplicate task id {task.id}",
                                    kind=ErrorKind.DUPLICATE_TASK, task_ids=[task.id])
            network.add_task(task)

        for task in schedule.tasks:
            for dep in task.dependencies:
                link = Link(dep.from_task_id, task.id, dep.type, dep.lag)
                if strict:
                    network.add_dependency(link)
                else:
                    network.add_dependency_safe(link)
        return network

    def add_task(self, task: Task) -> None:
        """Add a task to the network."""
        self.tasks[task.id] = task

    def add_dependency(self, link: Link) -> None:
        """
        Add a dependency to the network.

        Both predecessor and successor tasks must exist in the network.
        """
        if link.pred_task_id not in self.tasks:
            raise DanglingReferenceError(
                f"Task {link.succ_task_id} depends on missing task {link.pred_task_id}",
                task_ids=[link.succ_task_id, link.pred_task_id])
        if link.succ_task_id not in self.tasks:
            raise DanglingReferenceError(
                f"Successor task {link.succ_task_id} not in network",
                task_ids=[link.succ_task_id])

        self.dependencies.append(link)
        self._successors[link.pred_task_id].append(link)
        self._predecessors[link.succ_task_id].append(link)

    def add_dependency_safe(self, link: Link) -> bool:
        """
        Add a dependency only if both tasks exist.

        Returns True if added, False if skipped.
        """
        if link.pred_task_id not in self.tasks or link.succ_task_id not in self.tasks:
            return False
        self.dependencies.append(link)
        self._successors[link.pred_task_id].append(link)
        self._predecessors[link.succ_task_id].append(link)
        return True

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID."""
        return self.tasks.get(task_id)

    def get_successors(self, task_id: str) -> list[Link]:
        """Get dependencies where task_id is the predecessor."""
        return self._successors.get(task_id, [])

    def get_predecessors(self, task_id: str) -> list[Link]:
        """Get dependencies where task_id is the successor."""
        return self._predecessors.get(task_id, [])

    def successor_ids(self, task_id: str) -> list[str]:
        """Sorted, de-duplicated ids of direct successors."""
        return sorted({link.succ_task_id for link in self.get_successors(task_id)})

    def predecessor_ids(self, task_id: str) -> list[str]:
        """Sorted, de-duplicated ids of direct predecessors."""
        return sorted({link.pred_task_id for link in self.get_predecessors(task_id)})

    def get_start_tasks(self) -> list[str]:
        """Get task IDs with no predecessors."""
        return sorted(tid for tid in self.tasks if not self._predecessors.get(tid))

    def get_end_tasks(self) -> list[str]:
        """Get task IDs with no successors."""
        return sorted(tid for tid in self.tasks if not self._successors.get(tid))

    def topological_sort(self) -> list[str]:
        """
        Return task IDs in topological order (predecessors before successors).

        Uses Kahn's algorithm with a heap keyed on task id, so the order is
        the same whatever order the tasks were supplied in.
        Raises CycleDetectedError naming the tasks of one cycle.
        """
        in_degree = {tid: len(self._predecessors.get(tid, [])) for tid in self.tasks}

        heap = [tid for tid, deg in in_degree.items() if deg == 0]
        heapq.heapify(heap)
        result = []

        while heap:
            task_id = heapq.heappop(heap)
            result.append(task_id)

            for link in self._successors.get(task_id, []):
                in_degree[link.succ_task_id] -= 1
                if in_degree[link.succ_task_id] == 0:
                    heapq.heappush(heap, link.succ_task_id)

        if len(result) != len(self.tasks):
            cycle = self.find_cycle()
            raise CycleDetectedError(
                f"Circular dependency detected: {' -> '.join(cycle + cycle[:1])}",
                task_ids=cycle)

        return result

    def find_cycle(self) -> list[str]:
        """
        Return the task ids of one dependency cycle, or [] if the graph is acyclic.

        Depth-first search visiting tasks and successors in id order.
        """
        visiting, done = set(), set()

        for root in sorted(self.tasks):
            if root in done:
                continue
            path = [root]
            stack = [iter(self.successor_ids(root))]
            visiting.add(root)

            while stack:
                for child in stack[-1]:
                    if child in visiting:
                        return path[path.index(child):]
                    if child not in done:
                        visiting.add(child)
                        path.append(child)
                        stack.append(iter(self.successor_ids(child)))
                        break
                else:
                    node = path.pop()
                    visiting.discard(node)
                    done.add(node)
                    stack.pop()

        return []

    def get_all_predecessors(self, task_id: str, include_self: bool = False) -> set[str]:
        """Get all predecessor task IDs (transitive closure)."""
        result = set()
        if include_self:
            result.add(task_id)

        visited = set()
        queue = [task_id]

        while queue:
            current = queue.pop(0)
            if current in visited:
                continue
            visited.add(current)

            for link in self._predecessors.get(current, []):
                result.add(link.pred_task_id)
                queue.append(link.pred_task_id)

        return result

    def get_all_successors(self, task_id: str, include_self: bool = False) -> set[str]:
        """Get all successor task IDs (transitive closure)."""
        result = set()
        if include_self:
            result.add(task_id)

        visited = set()
        queue = [task_id]

        while queue:
            current = queue.pop(0)
            if current in visited:
                continue
            visited.add(current)

            for link in self._successors.get(current, []):
                result.add(link.succ_task_id)
                queue.append(link.succ_task_id)

        return result

    def would_create_cycle(self, from_task_id: str, to_task_id: str) -> bool:
        """Check whether adding from -> to closes a cycle."""
        if from_task_id == to_task_id:
            return True
        return from_task_id in self.get_all_successors(to_task_id)

    def get_statistics(self) -> dict:
        """Get network statistics."""
        task_types = defaultdict(int)
        statuses = defaultdict(int)
        link_types = defaultdict(int)

        for task in self.tasks.values():
            task_types[task.task_type.value] += 1
            statuses[task.status.value] += 1
        for link in self.dependencies:
            link_types[link.type.value] += 1

        return {
            'total_tasks': len(self.tasks),
            'total_dependencies': len(self.dependencies),
            'start_tasks': len(self.get_start_tasks()),
            'end_tasks': len(self.get_end_tasks()),
            'task_types': dict(task_types),
            'statuses': dict(statuses),
            'dependency_types': dict(link_types),
        }

    def __len__(self) -> int:
        return len(self.tasks)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self.tasks

    def __repr__(self) -> str:
        return f"TaskNetwork({len(self.tasks)} tasks, {len(self.dependencies)} dependencies)"
