"""Envelope and record shapes returned by the account and task services.

Services hand back an ``ApiResponse``; the HTTP layer only serializes it with
``to_wire()`` and uses ``status_code`` as the response status.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tasktrack.storage.models import Account, Task


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FieldErrorBody(_CamelModel):
    field: str
    message: str


class ErrorBody(_CamelModel):
    message: str
    field_errors: Optional[List[FieldErrorBody]] = Field(default=None, alias="fieldErrors")


class ApiResponse(_CamelModel):
    """Envelope returned by every service operation."""

    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorBody] = None
    status_code: int = Field(..., alias="statusCode")

    @classmethod
    def ok(cls, data: Any, status_code: int = 200) -> "ApiResponse":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(
        cls,
        status_code: int,
        message: str,
        field_errors: Optional[List[FieldErrorBody]] = None,
    ) -> "ApiResponse":
        return cls(
            success=False,
            error=ErrorBody(message=message, field_errors=field_errors or None),
            status_code=status_code,
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class AccountResponse(_CamelModel):
    id: str
    email: str
    full_name: str = Field(..., alias="fullName")
    role: str
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            email=account.email,
            full_name=account.full_name,
            role=account.role.value,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class AuthResponse(_CamelModel):
    user: AccountResponse
    token: str


class TaskResponse(_CamelModel):
    id: str
    title: str
    description: str
    status: str
    priority: str
    owner_id: str = Field(..., alias="userId")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status.value,
            priority=task.priority.value,
            owner_id=task.owner_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class MessageResponse(BaseModel):
    message: str
