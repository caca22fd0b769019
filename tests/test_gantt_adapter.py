"""Tests for the Gantt presentation adapter."""

import pytest
from datetime import date, datetime
from unittest.mock import MagicMock

from ganttdeck.errors import ConflictError, ValidationError
from ganttdeck.gantt.adapter import (
    GanttAdapter,
    bar_to_fields,
    build_gantt_payload,
    from_link_code,
    to_gantt_link,
    to_gantt_task,
    to_link_code,
    to_stored_progress,
)
from ganttdeck.gantt.backends import ServiceBackend
from ganttdeck.database.task_repository import TaskRepository
from ganttdeck.models.dependency import TaskDependency, TaskDependencyDetail
from ganttdeck.models.schedule import ProjectSchedule
from ganttdeck.models.task import TaskDetail

from tests.seed import PROJECT_ID, OWNER_ID, VIEWER_ID

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 1, 9, 0)


def _task(task_id, **fields):
    values = {
        "id": task_id,
        "project_id": PROJECT_ID,
        "title": f"Task {task_id}",
        "created_by": OWNER_ID,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(fields)
    return TaskDetail(**values)


class TestMapping:
    """Test model <-> widget conversions."""

    @pytest.mark.parametrize("dependency_type,code", [
        ("finish_to_start", "0"),
        ("start_to_start", "1"),
        ("finish_to_finish", "2"),
        ("start_to_finish", "3"),
    ])
    def test_link_codes_round_trip(self, dependency_type, code):
        assert to_link_code(dependency_type) == code
        assert from_link_code(code) == dependency_type
        assert from_link_code(int(code)) == dependency_type

    def test_unknown_link_code_defaults_to_finish_to_start(self):
        assert from_link_code("9") == "finish_to_start"
        assert from_link_code(None) == "finish_to_start"

    def test_progress_scale(self):
        assert to_stored_progress(0.456) == 46
        assert to_stored_progress(1) == 100
        assert to_stored_progress(None) == 0
        assert to_stored_progress(1.7) == 100
        assert to_stored_progress(-0.2) == 0

    def test_task_bar_defaults(self):
        bar = to_gantt_task(_task(1, progress=40), has_children=False, today=TODAY)

        assert bar["start_date"] == "2026-10-19"
        assert bar["duration"] == 1
        assert bar["progress"] == pytest.approx(0.4)
        assert bar["type"] == "task"
        assert bar["parent"] == 0
        assert "end_date" not in bar

    def test_summary_bar_and_visible_parent(self):
        bar = to_gantt_task(
            _task(2, parent_task_id=1, start_date=date(2026, 1, 1), end_date=date(2026, 1, 4), duration=3),
            has_children=True,
            visible_ids={1, 2},
        )

        assert bar["type"] == "project"
        assert bar["parent"] == 1
        assert bar["start_date"] == "2026-01-01"
        assert bar["end_date"] == "2026-01-04"
        assert bar["duration"] == 3

    def test_hidden_parent_renders_as_root(self):
        bar = to_gantt_task(_task(2, parent_task_id=1), has_children=False, visible_ids={2}, today=TODAY)
        assert bar["parent"] == 0

    def test_link_mapping(self):
        link = to_gantt_link(TaskDependency(
            id=7, task_id=2, depends_on_task_id=1, dependency_type="finish_to_finish", lag_time=-1, created_at=NOW,
        ))
        assert link == {"id": 7, "source": 1, "target": 2, "type": "2", "lag": -1}

    def test_bar_to_fields(self):
        fields = bar_to_fields({
            "id": 5,
            "text": "Renamed",
            "start_date": "2026-03-01 00:00",
            "end_date": date(2026, 3, 4),
            "duration": 3,
            "progress": 0.5,
            "parent": 0,
            "type": "task",
        })

        assert fields == {
            "title": "Renamed",
            "start_date": "2026-03-01",
            "end_date": "2026-03-04",
            "duration": 3,
            "progress": 50,
            "parent_task_id": None,
        }

    def test_payload_types_parents_and_links(self):
        dependency = TaskDependencyDetail(id=9, task_id=3, depends_on_task_id=2, created_at=NOW)
        schedule = ProjectSchedule(
            project_id=PROJECT_ID,
            auto_scheduling=True,
            tasks=[_task(1), _task(2, parent_task_id=1), _task(3, dependencies=[dependency])],
        )

        payload = build_gantt_payload(schedule, TODAY)

        types = {bar["id"]: bar["type"] for bar in payload["data"]}
        assert types == {1: "project", 2: "task", 3: "task"}
        assert payload["links"] == [{"id": 9, "source": 2, "target": 3, "type": "0", "lag": 0}]
        assert payload["auto_scheduling"] is True


class FakeBackend:
    """Backend double that serves a fixed schedule and records calls."""

    def __init__(self, schedule):
        self.schedule = schedule
        self.calls = []
        self.fail_with = None

    def load_schedule(self, project_id):
        self.calls.append(("load", project_id))
        return self.schedule

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def create_task(self, project_id, fields):
        self.calls.append(("create", fields))
        self._maybe_fail()
        return _task(42, **fields)

    def update_task(self, task_id, fields):
        self.calls.append(("update", task_id, fields))
        self._maybe_fail()

    def delete_task(self, task_id):
        self.calls.append(("delete", task_id))
        self._maybe_fail()

    def add_dependency(self, task_id, depends_on_task_id, dependency_type, lag_time):
        self.calls.append(("link", task_id, depends_on_task_id, dependency_type, lag_time))
        self._maybe_fail()
        return TaskDependency(id=77, task_id=task_id, depends_on_task_id=depends_on_task_id, created_at=NOW)

    def remove_dependency(self, dependency_id, task_id):
        self.calls.append(("unlink", dependency_id, task_id))
        self._maybe_fail()


@pytest.fixture
def fake_backend():
    dependency = TaskDependencyDetail(id=5, task_id=2, depends_on_task_id=1, created_at=NOW)
    return FakeBackend(ProjectSchedule(
        project_id=PROJECT_ID,
        tasks=[_task(1), _task(2, dependencies=[dependency])],
    ))


@pytest.fixture
def callbacks():
    return {"select": MagicMock(), "change": MagicMock(), "message": MagicMock()}


@pytest.fixture
def adapter(fake_backend, callbacks):
    gantt = GanttAdapter(
        fake_backend,
        PROJECT_ID,
        on_select=callbacks["select"],
        on_change=callbacks["change"],
        on_message=callbacks["message"],
        today=lambda: TODAY,
    )
    gantt.reload()
    fake_backend.calls.clear()
    return gantt


class TestGestures:
    """Test gesture handling against a fake backend."""

    def test_reload_replaces_cache(self, adapter, fake_backend):
        assert set(adapter.tasks) == {1, 2}
        assert set(adapter.links) == {5}

        fake_backend.schedule = ProjectSchedule(project_id=PROJECT_ID, tasks=[_task(3)])
        adapter.recalculate()

        assert set(adapter.tasks) == {3}
        assert adapter.links == {}

    def test_task_add_returns_server_id(self, adapter, fake_backend, callbacks):
        server_id = adapter.on_task_add("tmp-1", {"text": "Drawn", "start_date": "2026-10-20", "progress": 0})

        assert server_id == 42
        assert fake_backend.calls[0] == ("create", {"title": "Drawn", "start_date": "2026-10-20"})
        assert fake_backend.calls[-1] == ("load", PROJECT_ID)
        callbacks["message"].assert_called_once_with("success", "Task created")
        callbacks["change"].assert_called_once()

    def test_task_add_failure_reloads(self, adapter, fake_backend, callbacks):
        fake_backend.fail_with = ValidationError("Start date cannot be after end date")

        assert adapter.on_task_add("tmp-1", {"text": "Bad"}) is None
        assert "tmp-1" not in adapter.tasks
        assert fake_backend.calls[-1] == ("load", PROJECT_ID)
        callbacks["message"].assert_called_once_with("error", "Start date cannot be after end date")
        callbacks["change"].assert_not_called()

    def test_task_update_sends_stored_scale(self, adapter, fake_backend):
        assert adapter.on_task_update(1, {"text": "Task 1", "progress": 0.75, "duration": 2}) is True
        assert fake_backend.calls[0] == ("update", 1, {"progress": 75, "duration": 2})

    def test_task_update_sends_only_changed_fields(self, adapter, fake_backend):
        bar = {**adapter.tasks[1], "start_date": "2026-10-21 00:00"}

        assert adapter.on_task_update(1, bar) is True
        assert fake_backend.calls[0] == ("update", 1, {"start_date": "2026-10-21"})

    def test_unchanged_bar_is_not_persisted(self, adapter, fake_backend, callbacks):
        assert adapter.on_task_update(1, dict(adapter.tasks[1])) is True
        assert fake_backend.calls == []
        callbacks["change"].assert_not_called()

    def test_task_update_failure(self, adapter, fake_backend, callbacks):
        fake_backend.fail_with = ValidationError("Progress must be between 0 and 100")
        assert adapter.on_task_update(1, {"progress": 0.5}) is False
        callbacks["message"].assert_called_once_with("error", "Progress must be between 0 and 100")

    def test_link_add_maps_source_and_target(self, adapter, fake_backend):
        link_id = adapter.on_link_add("tmp-link", {"source": 2, "target": 1, "type": "1", "lag": 3})

        assert link_id == 77
        assert fake_backend.calls[0] == ("link", 1, 2, "start_to_start", 3)

    def test_link_add_conflict_reloads(self, adapter, fake_backend, callbacks):
        fake_backend.fail_with = ConflictError("Dependency already exists")

        assert adapter.on_link_add("tmp-link", {"source": 1, "target": 2, "type": "0"}) is None
        callbacks["message"].assert_called_once_with("error", "Dependency already exists")
        assert fake_backend.calls[-1] == ("load", PROJECT_ID)

    def test_link_delete_uses_cached_target(self, adapter, fake_backend):
        assert adapter.on_link_delete(5) is True
        assert fake_backend.calls[0] == ("unlink", 5, 2)

    def test_unknown_link_delete_reports_error(self, adapter, fake_backend, callbacks):
        assert adapter.on_link_delete(404) is False
        callbacks["message"].assert_called_once_with("error", "Unknown link 404")

    def test_task_delete(self, adapter, fake_backend):
        assert adapter.on_task_delete(2) is True
        assert fake_backend.calls[0] == ("delete", 2)

    def test_selection_persists_nothing(self, adapter, fake_backend, callbacks):
        adapter.on_task_selected(1)

        callbacks["select"].assert_called_once_with(1)
        assert fake_backend.calls == []

    def test_add_new_task_under_selection(self, adapter, fake_backend):
        adapter.on_task_selected(1)
        adapter.add_new_task("Sub step")

        assert fake_backend.calls[0] == ("create", {"title": "Sub step", "parent_task_id": 1})

    def test_add_new_task_at_root(self, adapter, fake_backend):
        adapter.add_new_task("Top level")
        assert fake_backend.calls[0] == ("create", {"title": "Top level"})


class TestServiceBackend:
    """End to end: adapter -> ServiceBackend -> protocol -> database."""

    def test_gestures_persist(self, session_factory):
        messages = []
        gantt = GanttAdapter(
            ServiceBackend(session_factory, OWNER_ID),
            PROJECT_ID,
            on_message=lambda kind, text: messages.append((kind, text)),
            today=lambda: TODAY,
        )
        gantt.reload()
        assert gantt.tasks == {}

        parent_id = gantt.on_task_add("tmp-1", {"text": "Phase 1", "start_date": "2026-11-02"})
        gantt.on_task_selected(parent_id)
        child_id = gantt.add_new_task("Dig", start_date="2026-11-03", duration=2)
        other_id = gantt.on_task_add("tmp-2", {"text": "Pour", "start_date": "2026-11-05"})
        link_id = gantt.on_link_add("tmp-link", {"source": child_id, "target": other_id, "type": "0"})

        assert gantt.tasks[parent_id]["type"] == "project"
        assert gantt.tasks[child_id]["parent"] == parent_id
        assert gantt.links[link_id]["source"] == child_id

        assert gantt.on_link_add("tmp-dup", {"source": child_id, "target": other_id, "type": "2"}) is None
        assert messages[-1] == ("error", "Dependency already exists")

        gantt.on_task_update(other_id, {"progress": 0.3})
        assert gantt.tasks[other_id]["progress"] == pytest.approx(0.3)

        gantt.on_task_delete(child_id)
        assert child_id not in gantt.tasks
        assert gantt.links == {}
        assert gantt.tasks[parent_id]["type"] == "task"

    def test_drag_keeps_parent_that_is_not_on_chart(self, session_factory):
        gantt = GanttAdapter(ServiceBackend(session_factory, OWNER_ID), PROJECT_ID, today=lambda: TODAY)
        gantt.reload()
        parent_id = gantt.on_task_add("tmp-1", {"text": "Phase", "start_date": "2026-11-02"})
        gantt.on_task_selected(parent_id)
        child_id = gantt.add_new_task("Step", start_date="2026-11-03")
        gantt.on_task_delete(parent_id)
        assert gantt.tasks[child_id]["parent"] == 0

        assert gantt.on_task_update(child_id, {**gantt.tasks[child_id], "start_date": "2026-11-09"}) is True

        db = session_factory()
        try:
            stored = TaskRepository(db).get_row(child_id)
            assert stored.parent_task_id == parent_id
            assert stored.start_date == date(2026, 11, 9)
        finally:
            db.close()

    def test_undated_task_with_past_end_stays_editable(self, session_factory):
        messages = []
        gantt = GanttAdapter(
            ServiceBackend(session_factory, OWNER_ID),
            PROJECT_ID,
            on_message=lambda kind, text: messages.append((kind, text)),
            today=lambda: TODAY,
        )
        gantt.reload()
        task_id = gantt.on_task_add("tmp-1", {"text": "Permit", "end_date": "2026-01-05"})
        assert gantt.tasks[task_id]["start_date"] == TODAY.isoformat()

        assert gantt.on_task_update(task_id, {**gantt.tasks[task_id], "text": "Permit filed"}) is True
        assert messages[-1] == ("success", "Task updated")
        assert gantt.tasks[task_id]["text"] == "Permit filed"

        db = session_factory()
        try:
            assert TaskRepository(db).get_row(task_id).start_date is None
        finally:
            db.close()

    def test_viewer_gets_error_message(self, session_factory, protocol):
        protocol.create_task(OWNER_ID, PROJECT_ID, {"title": "Existing"})
        messages = []
        gantt = GanttAdapter(
            ServiceBackend(session_factory, VIEWER_ID),
            PROJECT_ID,
            on_message=lambda kind, text: messages.append((kind, text)),
        )
        gantt.reload()

        assert gantt.on_task_add(None, {"text": "Sneaky"}) is None
        assert messages == [("error", "Viewers cannot create tasks")]
        assert len(gantt.tasks) == 1
