from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Dict, List, Mapping, Optional

from tasktrack.logging import get_logger
from tasktrack.storage.errors import ConstraintViolation
from tasktrack.storage.models import (
    Account,
    Role,
    SeedAccount,
    Task,
    TaskPriority,
    TaskStatus,
    utcnow,
)

_ACCOUNT_UPDATABLE = frozenset({"email", "password_hash", "full_name", "role"})
_ACCOUNT_IMMUTABLE = frozenset({"id", "created_at", "updated_at"})
_TASK_UPDATABLE = frozenset({"title", "description", "status", "priority"})
_TASK_IMMUTABLE = frozenset({"id", "owner_id", "created_at", "updated_at"})


def _email_key(email: str) -> str:
    return email.strip().lower()


class MemoryStore:
    """Process-lifetime store for accounts and tasks.

    One re-entrant lock covers both tables and the email index, so a reader
    never observes an account that is in the table but not yet indexed (or the
    reverse). Every method hands out copies; stored instances never leave the
    store.
    """

    def __init__(self, *, seed_admin: Optional[SeedAccount] = None) -> None:
        self.logger = get_logger(__name__)
        self._accounts: Dict[str, Account] = {}
        self._tasks: Dict[str, Task] = {}
        self._email_index: Dict[str, str] = {}
        self._data_lock = threading.RLock()
        self.seeded_admin_id: Optional[str] = None

        if seed_admin is not None:
            admin = self.create_account(
                seed_admin.email,
                seed_admin.password_hash,
                seed_admin.full_name,
                role=seed_admin.role,
            )
            self.seeded_admin_id = admin.id
            self.logger.info("store_admin_seeded", account_id=admin.id)

    @staticmethod
    def _new_id(table: Mapping[str, Any]) -> str:
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in table:
                return candidate

    # accounts
    def create_account(
        self,
        email: str,
        password_hash: str,
        full_name: str,
        *,
        role: Role = Role.USER,
    ) -> Account:
        """Insert an account and index its email.

        Uniqueness is the caller's responsibility: check with
        ``find_account_by_email`` first. A repeated email re-points the index
        at the newest account.
        """
        key = _email_key(email)
        with self._data_lock:
            now = utcnow()
            account = Account(
                id=self._new_id(self._accounts),
                email=email,
                password_hash=password_hash,
                full_name=full_name,
                role=Role(role),
                created_at=now,
                updated_at=now,
            )
            self._accounts[account.id] = account
            self._email_index[key] = account.id
            return copy.copy(account)

    def find_account_by_email(self, email: str) -> Optional[Account]:
        with self._data_lock:
            account_id = self._email_index.get(_email_key(email))
            if account_id is None:
                return None
            account = self._accounts.get(account_id)
            return copy.copy(account) if account else None

    def find_account_by_id(self, account_id: str) -> Optional[Account]:
        with self._data_lock:
            account = self._accounts.get(account_id)
            return copy.copy(account) if account else None

    def list_accounts(self) -> List[Account]:
        with self._data_lock:
            return [copy.copy(account) for account in self._accounts.values()]

    def update_account(
        self, account_id: str, fields: Mapping[str, Any]
    ) -> Optional[Account]:
        changes = {k: v for k, v in fields.items() if k not in _ACCOUNT_IMMUTABLE}
        unknown = set(changes) - _ACCOUNT_UPDATABLE
        if unknown:
            raise ConstraintViolation(
                "unknown account fields", {"fields": sorted(unknown)}
            )
        with self._data_lock:
            account = self._accounts.get(account_id)
            if not account:
                return None
            if "email" in changes:
                old_key = _email_key(account.email)
                new_key = _email_key(changes["email"])
                owner = self._email_index.get(new_key)
                if owner is not None and owner != account_id:
                    raise ConstraintViolation("email already exists", {"field": "email"})
                self._email_index.pop(old_key, None)
                self._email_index[new_key] = account_id
            if "role" in changes:
                changes["role"] = Role(changes["role"])
            updated = copy.copy(account)
            for name, value in changes.items():
                setattr(updated, name, value)
            updated.updated_at = utcnow()
            self._accounts[account_id] = updated
            return copy.copy(updated)

    # tasks
    def create_task(
        self,
        title: str,
        description: str,
        status: TaskStatus,
        priority: TaskPriority,
        owner_id: str,
    ) -> Task:
        with self._data_lock:
            now = utcnow()
            task = Task(
                id=self._new_id(self._tasks),
                title=title,
                description=description,
                status=TaskStatus(status),
                priority=TaskPriority(priority),
                owner_id=owner_id,
                created_at=now,
                updated_at=now,
            )
            self._tasks[task.id] = task
            return copy.copy(task)

    def find_task_by_id(self, task_id: str) -> Optional[Task]:
        with self._data_lock:
            task = self._tasks.get(task_id)
            return copy.copy(task) if task else None

    def list_tasks_by_owner(self, owner_id: str) -> List[Task]:
        with self._data_lock:
            return [copy.copy(t) for t in self._tasks.values() if t.owner_id == owner_id]

    def list_all_tasks(self) -> List[Task]:
        with self._data_lock:
            return [copy.copy(t) for t in self._tasks.values()]

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Optional[Task]:
        changes = {k: v for k, v in fields.items() if k not in _TASK_IMMUTABLE}
        unknown = set(changes) - _TASK_UPDATABLE
        if unknown:
            raise ConstraintViolation("unknown task fields", {"fields": sorted(unknown)})
        if "status" in changes:
            changes["status"] = TaskStatus(changes["status"])
        if "priority" in changes:
            changes["priority"] = TaskPriority(changes["priority"])
        with self._data_lock:
            task = self._tasks.get(task_id)
            if not task:
                return None
            updated = copy.copy(task)
            for name, value in changes.items():
                setattr(updated, name, value)
            updated.updated_at = utcnow()
            self._tasks[task_id] = updated
            return copy.copy(updated)

    def delete_task(self, task_id: str) -> bool:
        with self._data_lock:
            return self._tasks.pop(task_id, None) is not None
