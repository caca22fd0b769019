"""FastAPI web application for ganttdeck."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ganttdeck.errors import SchedulingError, ValidationError
from ganttdeck.database.database import get_db, init_db
from ganttdeck.auth.dependencies import get_current_user
from ganttdeck.models.user import User
from ganttdeck.models.schedule import ProjectSchedule
from ganttdeck.models.constants import DEFAULT_ACTIVITY_LIMIT
from ganttdeck.engine.protocol import SchedulingProtocol
from ganttdeck.gantt.adapter import build_gantt_payload
from ganttdeck.api.request_models import (
    TaskCreateRequest,
    TaskUpdateRequest,
    BulkUpdateRequest,
    DependencyCreateRequest,
    TaskResponse,
    TaskListResponse,
    BulkUpdateResponse,
    DependencyResponse,
    DependencyListResponse,
    ActivityListResponse,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="ganttdeck API",
    description="Project tasks, dependencies and the Gantt schedule behind them",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are validation errors (400) like any other bad input."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=ValidationError.status_code, content={"detail": "; ".join(messages)})


def _nullable_id(value: Optional[str], name: str):
    """Query ids where the literal "null" selects rows with no value."""
    if value is None:
        return None
    if value.lower() == "null":
        return value.lower()
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer or 'null'")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}


# -- project-scoped task routes -----------------------------------------------

@app.post("/projects/{project_id}/tasks", status_code=status.HTTP_201_CREATED, response_model=TaskResponse)
def create_task(
    project_id: int,
    request: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task in a project."""
    fields = request.model_dump(exclude_unset=True)
    task = SchedulingProtocol(db).create_task(current_user.id, project_id, fields)
    return {"task": task}


@app.get("/projects/{project_id}/tasks", response_model=TaskListResponse)
def list_tasks(
    project_id: int,
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    assigned_to: Optional[str] = None,
    parent_task_id: Optional[str] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List live tasks of a project.

    `assigned_to=null` selects unassigned tasks and `parent_task_id=null` root tasks.
    """
    filters = {}
    if status_filter:
        filters["status"] = status_filter
    if priority:
        filters["priority"] = priority
    if search:
        filters["search"] = search
    for name, raw in (("assigned_to", assigned_to), ("parent_task_id", parent_task_id)):
        value = _nullable_id(raw, name)
        if value is not None:
            filters[name] = None if value == "null" else value

    tasks = SchedulingProtocol(db).list_tasks(current_user.id, project_id, filters)
    return {"tasks": tasks, "count": len(tasks)}


@app.post("/projects/{project_id}/tasks/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_tasks(
    project_id: int,
    request: BulkUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Apply several schedule patches in one transaction."""
    updates = [update.model_dump(exclude_unset=True) for update in request.updates]
    updated = SchedulingProtocol(db).bulk_update_tasks(current_user.id, project_id, updates)
    return {"updated_count": updated, "message": f"Updated {updated} task(s)"}


@app.get("/projects/{project_id}/schedule", response_model=ProjectSchedule)
def get_schedule(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Tasks with their outgoing dependencies plus the auto-scheduling flag."""
    return SchedulingProtocol(db).gantt_snapshot(current_user.id, project_id)


@app.get("/projects/{project_id}/gantt")
def get_gantt(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Project schedule in Gantt widget format (`data`, `links`)."""
    schedule = SchedulingProtocol(db).gantt_snapshot(current_user.id, project_id)
    return build_gantt_payload(schedule)


@app.get("/projects/{project_id}/activity", response_model=ActivityListResponse)
def list_activity(
    project_id: int,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Most recent activity first."""
    activities = SchedulingProtocol(db).list_activity(current_user.id, project_id, limit)
    return {"activities": activities, "count": len(activities)}


# -- single-task routes -------------------------------------------------------

@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"task": SchedulingProtocol(db).get_task(current_user.id, task_id)}


@app.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    request: TaskUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Partially update a task; only fields present in the body change."""
    fields = request.model_dump(exclude_unset=True)
    task = SchedulingProtocol(db).update_task(current_user.id, task_id, fields)
    return {"task": task}


@app.delete("/tasks/{task_id}")
def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    SchedulingProtocol(db).delete_task(current_user.id, task_id)
    return {"message": "Task deleted successfully"}


@app.post("/tasks/{task_id}/dependencies", status_code=status.HTTP_201_CREATED, response_model=DependencyResponse)
def add_dependency(
    task_id: int,
    request: DependencyCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Make `task_id` depend on `depends_on_task_id`."""
    dependency = SchedulingProtocol(db).add_dependency(
        current_user.id, task_id, request.depends_on_task_id, request.dependency_type, request.lag_time,
    )
    return {"dependency": dependency}


@app.get("/tasks/{task_id}/dependencies", response_model=DependencyListResponse)
def list_dependencies(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    dependencies = SchedulingProtocol(db).list_dependencies(current_user.id, task_id)
    return {"dependencies": dependencies, "count": len(dependencies)}


@app.delete("/tasks/{task_id}/dependencies/{dependency_id}")
def remove_dependency(
    task_id: int,
    dependency_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    SchedulingProtocol(db).remove_dependency(current_user.id, dependency_id, task_id)
    return {"message": "Dependency removed successfully"}
