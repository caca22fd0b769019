"""In-memory view of a project's dependency edges.

Built on demand from persisted edges; nothing here is stored.
"""

from collections import defaultdict
from typing import Dict, Iterable, Set

from ganttdeck.models.dependency import TaskDependency


class DependencyGraph:
    """Directed graph over task ids: predecessor -> successor."""

    def __init__(self):
        self._predecessors: Dict[int, Set[int]] = defaultdict(set)
        self._successors: Dict[int, Set[int]] = defaultdict(set)

    @classmethod
    def from_edges(cls, edges: Iterable[TaskDependency]) -> "DependencyGraph":
        graph = cls()
        for edge in edges:
            graph.add_edge(edge.task_id, edge.depends_on_task_id)
        return graph

    def add_edge(self, task_id: int, depends_on_task_id: int) -> None:
        """Record that `task_id` depends on `depends_on_task_id`."""
        self._predecessors[task_id].add(depends_on_task_id)
        self._successors[depends_on_task_id].add(task_id)

    def predecessors(self, task_id: int) -> Set[int]:
        """Tasks that `task_id` directly depends on."""
        return set(self._predecessors.get(task_id, ()))

    def successors(self, task_id: int) -> Set[int]:
        """Tasks that directly depend on `task_id`."""
        return set(self._successors.get(task_id, ()))

    def depends_transitively(self, task_id: int, other_task_id: int) -> bool:
        """Whether `task_id` reaches `other_task_id` by following predecessors."""
        stack = [task_id]
        seen: Set[int] = set()
        while stack:
            current = stack.pop()
            if current == other_task_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._predecessors.get(current, ()))
        return False

    def would_create_cycle(self, task_id: int, depends_on_task_id: int) -> bool:
        """Whether adding `task_id` -> `depends_on_task_id` closes a cycle.

        It does exactly when the prospective predecessor already depends,
        directly or transitively, on `task_id`.
        """
        if task_id == depends_on_task_id:
            return True
        return self.depends_transitively(depends_on_task_id, task_id)
