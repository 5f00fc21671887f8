from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import get_current_user
from ..models import UserEntity
from ..repositories import TaskRepository, get_repository
from ..schemas import SuccessResponse, TaskCreate, TaskEnvelope, TaskListEnvelope, TaskUpdate
from ..utils import task_out

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)


def _get_repo(repo: TaskRepository = Depends(get_repository)) -> TaskRepository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListEnvelope,
    summary="List Tasks",
    description="Return every task owned by the caller. Filtering and sorting happen client-side.",
    responses={
        200: {"description": "Tasks retrieved"},
        401: {"description": "Missing, invalid or expired credential"},
    },
)
def list_tasks(
    user: UserEntity = Depends(get_current_user),
    repo: TaskRepository = Depends(_get_repo),
) -> TaskListEnvelope:
    items = repo.list_by_owner(user["id"])
    return TaskListEnvelope(tasks=[task_out(t) for t in items])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task owned by the caller. New tasks start incomplete.",
    responses={
        201: {"description": "Task created"},
        400: {"description": "Invalid input"},
        401: {"description": "Missing, invalid or expired credential"},
    },
)
def create_task(
    payload: TaskCreate,
    user: UserEntity = Depends(get_current_user),
    repo: TaskRepository = Depends(_get_repo),
) -> TaskEnvelope:
    created = repo.create(
        user["id"],
        payload.title,
        payload.description,
        payload.due_date,
        payload.priority,
    )
    return TaskEnvelope(task=task_out(created))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Replace Task",
    description="Replace title, description, due date, priority and completion of a task.",
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Invalid input"},
        401: {"description": "Missing, invalid or expired credential"},
        404: {"description": "Task not found"},
    },
)
def put_task(
    task_id: int,
    payload: TaskUpdate,
    user: UserEntity = Depends(get_current_user),
    repo: TaskRepository = Depends(_get_repo),
) -> TaskEnvelope:
    """
    Full update (replace). Another user's task is reported as not found.
    """
    updated = repo.update(
        user["id"],
        task_id,
        payload.title,
        payload.description,
        payload.due_date,
        payload.priority,
        payload.is_complete,
    )
    return TaskEnvelope(task=task_out(updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=SuccessResponse,
    summary="Delete Task",
    description="Delete a task by ID. Deleting twice yields 404 the second time.",
    responses={
        200: {"description": "Task deleted"},
        401: {"description": "Missing, invalid or expired credential"},
        404: {"description": "Task not found"},
    },
)
def delete_task(
    task_id: int,
    user: UserEntity = Depends(get_current_user),
    repo: TaskRepository = Depends(_get_repo),
) -> SuccessResponse:
    repo.delete(user["id"], task_id)
    return SuccessResponse()
