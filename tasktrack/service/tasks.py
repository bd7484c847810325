from __future__ import annotations

from typing import Any, Dict, List, Optional

from tasktrack.logging import get_logger
from tasktrack.service.authz import AccessRule, authenticate, is_admin, require
from tasktrack.service.boundary import service_boundary
from tasktrack.service.errors import NotFoundError, ValidationError
from tasktrack.service.responses import MessageResponse, TaskResponse
from tasktrack.service.tokens import TokenClaims, TokenService
from tasktrack.service.validation import (
    clean_text,
    collect_errors,
    validate_task_priority,
    validate_task_status,
    validate_task_title,
)
from tasktrack.storage.memory import MemoryStore
from tasktrack.storage.models import Task, TaskPriority, TaskStatus

logger = get_logger(__name__)


class TaskService:
    """Task CRUD scoped to the caller; administrators see and modify every task."""

    def __init__(self, store: MemoryStore, tokens: TokenService) -> None:
        self.store = store
        self.tokens = tokens
        self.logger = logger

    def _load_for(self, claims: TokenClaims, task_id: str) -> Task:
        task = self.store.find_task_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        require(
            claims, AccessRule.SELF_OR_ADMIN, owner_id=task.owner_id, resource_id=task.id
        )
        return task

    @service_boundary(201, "Internal server error")
    def create_task(
        self,
        authorization: Optional[str],
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> TaskResponse:
        claims = authenticate(self.tokens, authorization)
        clean_title = clean_text(title)
        checks = [validate_task_title(clean_title)]
        if status is not None:
            checks.append(validate_task_status(status))
        if priority is not None:
            checks.append(validate_task_priority(priority))
        errors = collect_errors(checks)
        if errors:
            raise ValidationError(field_errors=errors)

        task = self.store.create_task(
            title=clean_title,
            description=clean_text(description) or "",
            status=TaskStatus(status or TaskStatus.PENDING),
            priority=TaskPriority(priority or TaskPriority.MEDIUM),
            owner_id=claims.sub,
        )
        self.logger.info("task_created", task_id=task.id, owner_id=claims.sub)
        return TaskResponse.from_task(task)

    @service_boundary(200, "Internal server error")
    def list_tasks(self, authorization: Optional[str]) -> List[TaskResponse]:
        claims = authenticate(self.tokens, authorization)
        if is_admin(claims):
            tasks = self.store.list_all_tasks()
        else:
            tasks = self.store.list_tasks_by_owner(claims.sub)
        return [TaskResponse.from_task(t) for t in tasks]

    @service_boundary(200, "Internal server error")
    def get_task(self, authorization: Optional[str], task_id: str) -> TaskResponse:
        claims = authenticate(self.tokens, authorization)
        return TaskResponse.from_task(self._load_for(claims, task_id))

    @service_boundary(200, "Internal server error")
    def update_task(
        self,
        authorization: Optional[str],
        task_id: str,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> TaskResponse:
        """Apply the fields that are present; absent (``None``) fields stay as they are."""
        claims = authenticate(self.tokens, authorization)
        self._load_for(claims, task_id)

        clean_title = clean_text(title)
        checks = []
        if title is not None:
            checks.append(validate_task_title(clean_title))
        if status is not None:
            checks.append(validate_task_status(status))
        if priority is not None:
            checks.append(validate_task_priority(priority))
        errors = collect_errors(checks)
        if errors:
            raise ValidationError(field_errors=errors)

        changes: Dict[str, Any] = {}
        if title is not None:
            changes["title"] = clean_title
        if description is not None:
            changes["description"] = clean_text(description)
        if status is not None:
            changes["status"] = TaskStatus(status)
        if priority is not None:
            changes["priority"] = TaskPriority(priority)

        updated = self.store.update_task(task_id, changes)
        if not updated:
            # Deleted between the ownership check and the write
            raise NotFoundError("Task not found")
        self.logger.info(
            "task_updated", task_id=task_id, fields=sorted(changes), actor_id=claims.sub
        )
        return TaskResponse.from_task(updated)

    @service_boundary(200, "Internal server error")
    def delete_task(self, authorization: Optional[str], task_id: str) -> MessageResponse:
        claims = authenticate(self.tokens, authorization)
        self._load_for(claims, task_id)
        if not self.store.delete_task(task_id):
            raise NotFoundError("Task not found")
        self.logger.info("task_deleted", task_id=task_id, actor_id=claims.sub)
        return MessageResponse(message="Task deleted successfully")
