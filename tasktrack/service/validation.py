"""Field-level checks for account and task payloads.

Each validator returns a ``FieldError`` describing the first problem with its
field, or ``None`` when the value is acceptable. Callers collect every error so
a single response can report all failing fields.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from tasktrack.storage.models import TaskPriority, TaskStatus

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
_STRIPPED_CHARS = re.compile(r"[<>]")

MIN_PASSWORD_LENGTH = 6
MIN_FULL_NAME_LENGTH = 2
MIN_TITLE_LENGTH = 3


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def validate_email(email: Any) -> Optional[FieldError]:
    if not email or not isinstance(email, str):
        return FieldError("email", "Email is required")
    if not _EMAIL_RE.match(email.strip()):
        return FieldError("email", "Invalid email format")
    return None


def validate_password(password: Any) -> Optional[FieldError]:
    if not password or not isinstance(password, str):
        return FieldError("password", "Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        return FieldError(
            "password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )
    return None


def validate_full_name(full_name: Any) -> Optional[FieldError]:
    if not full_name or not isinstance(full_name, str):
        return FieldError("fullName", "Full name is required")
    if len(full_name.strip()) < MIN_FULL_NAME_LENGTH:
        return FieldError(
            "fullName",
            f"Full name must be at least {MIN_FULL_NAME_LENGTH} characters long",
        )
    return None


def validate_task_title(title: Any) -> Optional[FieldError]:
    if not title or not isinstance(title, str):
        return FieldError("title", "Title is required")
    if len(title.strip()) < MIN_TITLE_LENGTH:
        return FieldError(
            "title", f"Title must be at least {MIN_TITLE_LENGTH} characters long"
        )
    return None


def validate_task_status(status: Any) -> Optional[FieldError]:
    if not status:
        return FieldError("status", "Status is required")
    if not isinstance(status, str) or status not in {s.value for s in TaskStatus}:
        return FieldError(
            "status", "Invalid status. Must be: pending, in_progress, or completed"
        )
    return None


def validate_task_priority(priority: Any) -> Optional[FieldError]:
    if not priority:
        return FieldError("priority", "Priority is required")
    if not isinstance(priority, str) or priority not in {p.value for p in TaskPriority}:
        return FieldError("priority", "Invalid priority. Must be: low, medium, or high")
    return None


def sanitize_input(value: str) -> str:
    """Trim whitespace and drop angle brackets."""
    return _STRIPPED_CHARS.sub("", value.strip())


def clean_text(value: Any) -> Any:
    """Sanitize strings and pass anything else through for the validators to reject."""
    return sanitize_input(value) if isinstance(value, str) else value


def collect_errors(results: Iterable[Optional[FieldError]]) -> List[FieldError]:
    return [err for err in results if err is not None]
