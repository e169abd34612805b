"""
Planner API Router

Endpoints for scheduled tasks, period todos, exam deadlines, goals and user
preferences.

Endpoints:
- GET/POST /api/planner/tasks, PATCH/DELETE /api/planner/tasks/{id}
- GET/POST /api/planner/todos, PATCH/DELETE /api/planner/todos/{id}
- GET/POST /api/planner/deadlines, PATCH/DELETE /api/planner/deadlines/{id}
- GET/POST /api/planner/goals, DELETE /api/planner/goals/{id}
- GET/PUT /api/planner/preferences
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from studytrack.dependencies import get_clock, get_repository, get_today
from studytrack.enums.study import PlannerPeriod
from studytrack.middleware.error_handling import (
    NotFoundError,
    ValidationError,
    handle_endpoint_errors,
)
from studytrack.models.base import SuccessResponse
from studytrack.models.study import (
    DATE_KEY_PATTERN,
    DeadlineCountdown,
    ExamDeadline,
    ExamDeadlineCreate,
    ExamDeadlineUpdate,
    Goal,
    GoalCreate,
    GoalProgress,
    StudyTask,
    StudyTaskCreate,
    StudyTaskUpdate,
    StudyTodo,
    StudyTodoCreate,
    StudyTodoUpdate,
    UserPreferences,
)
from studytrack.services.study.clock import Clock
from studytrack.services.study.periods import parse_date_key, planner_period_id
from studytrack.services.study.planner import deadline_countdown, goal_progress
from studytrack.services.study.repository import StudyRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/planner", tags=["planner"])


def _parse_date(key: Optional[str], default: date) -> date:
    if not key:
        return default
    try:
        return parse_date_key(key)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {key}") from e


# ===========================================
# Tasks
# ===========================================


@router.get("/tasks", response_model=list[StudyTask])
@handle_endpoint_errors("List tasks")
async def list_tasks(
    day: Optional[str] = Query(None, alias="date", pattern=DATE_KEY_PATTERN),
    repository: StudyRepository = Depends(get_repository),
) -> list[StudyTask]:
    """Tasks scheduled on a date, or all tasks when no date is given."""
    return await repository.list_tasks(day)


@router.post("/tasks", response_model=StudyTask, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors("Create task")
async def create_task(
    body: StudyTaskCreate,
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> StudyTask:
    return await repository.create_task(body, clock.now_ms())


@router.patch("/tasks/{task_id}", response_model=StudyTask)
@handle_endpoint_errors("Update task")
async def update_task(
    task_id: str,
    body: StudyTaskUpdate,
    repository: StudyRepository = Depends(get_repository),
) -> StudyTask:
    task = await repository.update_task(task_id, body)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    return task


@router.delete("/tasks/{task_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete task")
async def delete_task(
    task_id: str,
    repository: StudyRepository = Depends(get_repository),
) -> SuccessResponse:
    if not await repository.delete_task(task_id):
        raise NotFoundError(f"Task {task_id} not found")
    return SuccessResponse(message="Task deleted")


# ===========================================
# Todos
# ===========================================


@router.get("/todos", response_model=list[StudyTodo])
@handle_endpoint_errors("List todos")
async def list_todos(
    period: PlannerPeriod = Query(PlannerPeriod.DAILY),
    selected_date: Optional[str] = Query(None, alias="date", pattern=DATE_KEY_PATTERN),
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> list[StudyTodo]:
    """
    Todos for the period containing a date.

    Weekly todos are filed under the ISO week (YYYY-Www), monthly under
    YYYY-MM.
    """
    period_id = planner_period_id(period, _parse_date(selected_date, today))
    return await repository.list_todos(period, period_id)


@router.post("/todos", response_model=StudyTodo, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors("Create todo")
async def create_todo(
    body: StudyTodoCreate,
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
    today: date = Depends(get_today),
) -> StudyTodo:
    period_id = planner_period_id(body.period, _parse_date(body.selected_date, today))
    return await repository.create_todo(body.text, body.period, period_id, clock.now_ms())


@router.patch("/todos/{todo_id}", response_model=StudyTodo)
@handle_endpoint_errors("Update todo")
async def update_todo(
    todo_id: str,
    body: StudyTodoUpdate,
    repository: StudyRepository = Depends(get_repository),
) -> StudyTodo:
    todo = await repository.set_todo_completed(todo_id, body.is_completed)
    if todo is None:
        raise NotFoundError(f"Todo {todo_id} not found")
    return todo


@router.delete("/todos/{todo_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete todo")
async def delete_todo(
    todo_id: str,
    repository: StudyRepository = Depends(get_repository),
) -> SuccessResponse:
    if not await repository.delete_todo(todo_id):
        raise NotFoundError(f"Todo {todo_id} not found")
    return SuccessResponse(message="Todo deleted")


# ===========================================
# Exam Deadlines
# ===========================================


@router.get("/deadlines", response_model=list[DeadlineCountdown])
@handle_endpoint_errors("List deadlines")
async def list_deadlines(
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> list[DeadlineCountdown]:
    """Deadlines ordered by date, each with days remaining and urgency."""
    now_ms = clock.now_ms()
    return [deadline_countdown(d, now_ms) for d in await repository.list_deadlines()]


@router.post(
    "/deadlines", response_model=ExamDeadline, status_code=status.HTTP_201_CREATED
)
@handle_endpoint_errors("Create deadline")
async def create_deadline(
    body: ExamDeadlineCreate,
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> ExamDeadline:
    return await repository.create_deadline(body, clock.now_ms())


@router.patch("/deadlines/{deadline_id}", response_model=ExamDeadline)
@handle_endpoint_errors("Update deadline")
async def update_deadline(
    deadline_id: str,
    body: ExamDeadlineUpdate,
    repository: StudyRepository = Depends(get_repository),
) -> ExamDeadline:
    deadline = await repository.update_deadline(deadline_id, body)
    if deadline is None:
        raise NotFoundError(f"Deadline {deadline_id} not found")
    return deadline


@router.delete("/deadlines/{deadline_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete deadline")
async def delete_deadline(
    deadline_id: str,
    repository: StudyRepository = Depends(get_repository),
) -> SuccessResponse:
    if not await repository.delete_deadline(deadline_id):
        raise NotFoundError(f"Deadline {deadline_id} not found")
    return SuccessResponse(message="Deadline deleted")


# ===========================================
# Goals
# ===========================================


@router.get("/goals", response_model=list[GoalProgress])
@handle_endpoint_errors("List goals")
async def list_goals(
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> list[GoalProgress]:
    daily_stats = await repository.list_daily_stats()
    return [goal_progress(g, daily_stats, today) for g in await repository.list_goals()]


@router.post("/goals", response_model=Goal, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors("Create goal")
async def create_goal(
    body: GoalCreate,
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> Goal:
    return await repository.create_goal(body, clock.now_ms())


@router.delete("/goals/{goal_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete goal")
async def delete_goal(
    goal_id: str,
    repository: StudyRepository = Depends(get_repository),
) -> SuccessResponse:
    if not await repository.delete_goal(goal_id):
        raise NotFoundError(f"Goal {goal_id} not found")
    return SuccessResponse(message="Goal deleted")


# ===========================================
# Preferences
# ===========================================


@router.get("/preferences", response_model=Optional[UserPreferences])
@handle_endpoint_errors("Get preferences")
async def get_preferences(
    repository: StudyRepository = Depends(get_repository),
) -> Optional[UserPreferences]:
    """Saved preferences, or null before onboarding has stored any."""
    return await repository.get_preferences()


@router.put("/preferences", response_model=UserPreferences)
@handle_endpoint_errors("Save preferences")
async def save_preferences(
    body: UserPreferences,
    repository: StudyRepository = Depends(get_repository),
) -> UserPreferences:
    return await repository.save_preferences(body)
