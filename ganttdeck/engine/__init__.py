"""Scheduling core for ganttdeck."""

from ganttdeck.engine.graph import DependencyGraph
from ganttdeck.engine.task_store import TaskStore
from ganttdeck.engine.dependency_graph import DependencyGraphManager, ENFORCE_ACYCLIC_DEPENDENCIES
from ganttdeck.engine.protocol import SchedulingProtocol

__all__ = [
    "DependencyGraph",
    "TaskStore",
    "DependencyGraphManager",
    "ENFORCE_ACYCLIC_DEPENDENCIES",
    "SchedulingProtocol",
]
