"""Tests for the in-memory DependencyGraph."""

from ganttdeck.engine.graph import DependencyGraph
from ganttdeck.models.dependency import TaskDependency


def _edge(edge_id, task_id, depends_on_task_id):
    return TaskDependency(
        id=edge_id,
        task_id=task_id,
        depends_on_task_id=depends_on_task_id,
        created_at="2026-01-01T00:00:00",
    )


class TestDependencyGraph:
    """Test predecessor/successor queries and cycle detection."""

    def test_from_edges(self):
        graph = DependencyGraph.from_edges([_edge(1, 2, 1), _edge(2, 3, 1), _edge(3, 3, 2)])

        assert graph.predecessors(3) == {1, 2}
        assert graph.successors(1) == {2, 3}
        assert graph.predecessors(1) == set()
        assert graph.successors(99) == set()

    def test_depends_transitively(self):
        graph = DependencyGraph()
        graph.add_edge(2, 1)
        graph.add_edge(3, 2)

        assert graph.depends_transitively(3, 1) is True
        assert graph.depends_transitively(1, 3) is False

    def test_would_create_cycle(self):
        graph = DependencyGraph()
        graph.add_edge(2, 1)
        graph.add_edge(3, 2)

        assert graph.would_create_cycle(1, 3) is True
        assert graph.would_create_cycle(1, 2) is True
        assert graph.would_create_cycle(3, 1) is False
        assert graph.would_create_cycle(4, 4) is True

    def test_existing_cycle_does_not_loop_forever(self):
        graph = DependencyGraph()
        graph.add_edge(1, 2)
        graph.add_edge(2, 1)

        assert graph.depends_transitively(1, 3) is False
        assert graph.would_create_cycle(3, 1) is False
