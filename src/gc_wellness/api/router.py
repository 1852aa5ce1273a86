"""gc_wellness REST endpoints.

GET  /wellness/tasks               — active tasks
POST /wellness/tasks               — admin creates a task
DELETE /wellness/tasks/{id}        — admin deactivates a task
POST /wellness/submissions         — employee submits a completed task
GET  /wellness/submissions         — employee's own submissions, newest first
GET  /wellness/pending             — manager review queue
POST /wellness/{id}/approve        — approve and post the reward
POST /wellness/{id}/reject         — reject submission and reward
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import get_db_session
from src.gc_common.response import ApiResponse, success_response
from src.gc_gateway.auth.dependencies import (
    get_current_employee,
    require_admin,
    require_manager,
)
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_wellness.application.schemas import (
    CreateTaskRequest,
    RejectSubmissionRequest,
    SubmissionItem,
    SubmitRequest,
    SubmitResponse,
    TaskItem,
)
from src.gc_wellness.application.service import WellnessService

router = APIRouter(prefix="/wellness", tags=["wellness"])

_service = WellnessService()


@router.get("/tasks")
async def list_tasks(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    tasks = await _service.list_tasks(db)
    return success_response([TaskItem.from_domain(t).model_dump() for t in tasks], request)


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    request: Request,
    body: CreateTaskRequest,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    task = await _service.create_task(
        db, body.name, body.coin_value, body.description, body.max_rewarded_users
    )
    resp = success_response(TaskItem.from_domain(task).model_dump(), request)
    resp.message = "Wellness task created"
    return resp


@router.delete("/tasks/{task_id}")
async def deactivate_task(
    request: Request,
    task_id: str,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    task = await _service.deactivate_task(db, task_id)
    resp = success_response(TaskItem.from_domain(task).model_dump(), request)
    resp.message = "Wellness task deactivated"
    return resp


@router.post("/submissions", status_code=status.HTTP_201_CREATED)
async def submit_task(
    request: Request,
    body: SubmitRequest,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    submission, reward = await _service.submit(db, current_employee, body.wellness_task_id)
    resp = success_response(SubmitResponse.from_domain(submission, reward).model_dump(), request)
    resp.message = "Submission received"
    return resp


@router.get("/submissions")
async def list_my_submissions(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    submissions = await _service.list_submissions_for(db, current_employee)
    return success_response(
        [SubmissionItem.from_domain(s).model_dump() for s in submissions], request
    )


@router.get("/pending")
async def list_pending(
    request: Request,
    manager: Annotated[EmployeeModel, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    submissions = await _service.list_pending(db)
    return success_response(
        [SubmissionItem.from_domain(s).model_dump() for s in submissions], request
    )


@router.post("/{submission_id}/approve")
async def approve_submission(
    request: Request,
    submission_id: str,
    manager: Annotated[EmployeeModel, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    submission = await _service.approve(db, manager, submission_id)
    resp = success_response(SubmissionItem.from_domain(submission).model_dump(), request)
    resp.message = "Submission approved"
    return resp


@router.post("/{submission_id}/reject")
async def reject_submission(
    request: Request,
    submission_id: str,
    manager: Annotated[EmployeeModel, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: RejectSubmissionRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body is not None else None
    submission = await _service.reject(db, manager, submission_id, reason)
    resp = success_response(SubmissionItem.from_domain(submission).model_dump(), request)
    resp.message = "Submission rejected"
    return resp
