from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from tasktrack.api.schemas import (
    CreateTaskRequest,
    LoginRequest,
    RegisterRequest,
    UpdateTaskRequest,
)
from tasktrack.service.responses import ApiResponse
from tasktrack.service.runtime import get_runtime

router = APIRouter(prefix="/api")


def _respond(result: ApiResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.to_wire())


@router.post("/auth/register", tags=["auth"])
async def register(body: RegisterRequest) -> JSONResponse:
    """Create a standard account and return it with a session token."""
    runtime = get_runtime()
    result = await runtime.accounts.register(
        email=body.email, password=body.password, full_name=body.full_name
    )
    return _respond(result)


@router.post("/auth/login", tags=["auth"])
async def login(body: LoginRequest) -> JSONResponse:
    runtime = get_runtime()
    result = await runtime.accounts.login(email=body.email, password=body.password)
    return _respond(result)


@router.get("/auth/verify", tags=["auth"])
async def verify_session(authorization: Optional[str] = Header(None)) -> JSONResponse:
    """Return the account behind the presented bearer token."""
    return _respond(get_runtime().accounts.verify_session(authorization))


@router.get("/users", tags=["admin"])
async def list_users(authorization: Optional[str] = Header(None)) -> JSONResponse:
    return _respond(get_runtime().accounts.list_accounts(authorization))


@router.post("/tasks", tags=["tasks"])
async def create_task(
    body: CreateTaskRequest, authorization: Optional[str] = Header(None)
) -> JSONResponse:
    result = get_runtime().tasks.create_task(
        authorization,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
    )
    return _respond(result)


@router.get("/tasks", tags=["tasks"])
async def list_tasks(authorization: Optional[str] = Header(None)) -> JSONResponse:
    """List the caller's tasks (every task for administrators)."""
    return _respond(get_runtime().tasks.list_tasks(authorization))


@router.get("/tasks/{task_id}", tags=["tasks"])
async def get_task(
    task_id: str, authorization: Optional[str] = Header(None)
) -> JSONResponse:
    return _respond(get_runtime().tasks.get_task(authorization, task_id))


@router.api_route("/tasks/{task_id}", methods=["PATCH", "PUT"], tags=["tasks"])
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    authorization: Optional[str] = Header(None),
) -> JSONResponse:
    result = get_runtime().tasks.update_task(
        authorization,
        task_id,
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
    )
    return _respond(result)


@router.delete("/tasks/{task_id}", tags=["tasks"])
async def delete_task(
    task_id: str, authorization: Optional[str] = Header(None)
) -> JSONResponse:
    return _respond(get_runtime().tasks.delete_task(authorization, task_id))
