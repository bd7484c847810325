from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _RequestModel(BaseModel):
    # Left loosely typed: field rules live in the service so every failing
    # field is reported in one envelope.
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = Field(default=None, alias="fullName")


class LoginRequest(_RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None


class CreateTaskRequest(_RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None


class UpdateTaskRequest(_RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
