"""Tests for task CRUD and ownership rules."""

import pytest

from tasktrack.service.tasks import TaskService
from tasktrack.service.tokens import TokenService
from tasktrack.storage.memory import MemoryStore
from tasktrack.storage.models import Role


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def tokens():
    return TokenService("task-service-test-secret-0123456789abcdefgh")


@pytest.fixture
def tasks(store, tokens):
    return TaskService(store, tokens)


def _bearer(store, tokens, email, role=Role.USER):
    account = store.create_account(email, "hash", email.split("@")[0].title(), role=role)
    return f"Bearer {tokens.issue(account.id, account.email, account.role.value)}", account


@pytest.fixture
def alice(store, tokens):
    return _bearer(store, tokens, "alice@example.com")


@pytest.fixture
def bob(store, tokens):
    return _bearer(store, tokens, "bob@example.com")


@pytest.fixture
def admin(store, tokens):
    return _bearer(store, tokens, "root@example.com", Role.ADMIN)


def _create(tasks, auth, **fields):
    fields.setdefault("title", "Write report")
    return tasks.create_task(auth, **fields)


class TestCreate:
    def test_defaults(self, tasks, alice):
        auth, account = alice

        result = _create(tasks, auth, description="  quarterly  ")

        assert result.status_code == 201
        assert result.data.status == "pending"
        assert result.data.priority == "medium"
        assert result.data.description == "quarterly"
        assert result.data.owner_id == account.id

    def test_explicit_status_and_priority(self, tasks, alice):
        result = _create(tasks, alice[0], status="in_progress", priority="high")

        assert result.data.status == "in_progress"
        assert result.data.priority == "high"

    def test_title_is_sanitized(self, tasks, alice):
        result = _create(tasks, alice[0], title="  <script>Fix</script>  ")

        assert result.data.title == "scriptFix/script"

    def test_validation_failure(self, tasks, alice):
        result = _create(tasks, alice[0], title="ab", status="done", priority="urgent")

        assert result.status_code == 400
        assert {fe.field for fe in result.error.field_errors} == {
            "title",
            "status",
            "priority",
        }

    def test_title_too_short_once_brackets_are_stripped(self, tasks, store, alice):
        result = _create(tasks, alice[0], title="<<>>")

        assert result.status_code == 400
        assert [fe.field for fe in result.error.field_errors] == ["title"]
        assert store.list_all_tasks() == []

    def test_requires_token(self, tasks):
        result = _create(tasks, None)

        assert result.status_code == 401


class TestList:
    def test_users_see_only_their_own(self, tasks, alice, bob):
        _create(tasks, alice[0], title="Alice task")
        _create(tasks, bob[0], title="Bob task")

        result = tasks.list_tasks(alice[0])

        assert [t.title for t in result.data] == ["Alice task"]

    def test_admin_sees_everything(self, tasks, alice, bob, admin):
        _create(tasks, alice[0], title="Alice task")
        _create(tasks, bob[0], title="Bob task")

        result = tasks.list_tasks(admin[0])

        assert {t.title for t in result.data} == {"Alice task", "Bob task"}

    def test_empty_list(self, tasks, alice):
        result = tasks.list_tasks(alice[0])

        assert result.success is True
        assert result.data == []


class TestOwnership:
    """Non-owners get 403 on every single-task operation; admins pass."""

    @pytest.fixture
    def alice_task(self, tasks, alice):
        return _create(tasks, alice[0]).data

    def test_other_user_get_forbidden(self, tasks, bob, alice_task):
        result = tasks.get_task(bob[0], alice_task.id)

        assert result.status_code == 403
        assert result.error.message == "Access denied"

    def test_other_user_update_forbidden(self, tasks, store, bob, alice_task):
        result = tasks.update_task(bob[0], alice_task.id, title="Hijacked")

        assert result.status_code == 403
        assert store.find_task_by_id(alice_task.id).title == "Write report"

    def test_other_user_delete_forbidden(self, tasks, store, bob, alice_task):
        result = tasks.delete_task(bob[0], alice_task.id)

        assert result.status_code == 403
        assert store.find_task_by_id(alice_task.id) is not None

    def test_admin_can_get_update_and_delete(self, tasks, admin, alice_task):
        assert tasks.get_task(admin[0], alice_task.id).status_code == 200
        updated = tasks.update_task(admin[0], alice_task.id, status="completed")
        assert updated.data.status == "completed"
        assert updated.data.owner_id == alice_task.owner_id
        assert tasks.delete_task(admin[0], alice_task.id).status_code == 200

    def test_owner_can_get(self, tasks, alice, alice_task):
        result = tasks.get_task(alice[0], alice_task.id)

        assert result.data.id == alice_task.id


class TestUpdate:
    def test_partial_update(self, tasks, alice):
        task = _create(tasks, alice[0], description="first").data

        result = tasks.update_task(alice[0], task.id, priority="low")

        assert result.status_code == 200
        assert result.data.priority == "low"
        assert result.data.title == "Write report"
        assert result.data.description == "first"

    def test_invalid_fields_rejected(self, tasks, alice):
        task = _create(tasks, alice[0]).data

        result = tasks.update_task(alice[0], task.id, title="x", status="nope")

        assert result.status_code == 400
        assert {fe.field for fe in result.error.field_errors} == {"title", "status"}

    def test_bracket_only_title_rejected(self, tasks, store, alice):
        task = _create(tasks, alice[0]).data

        result = tasks.update_task(alice[0], task.id, title="<a>")

        assert result.status_code == 400
        assert store.find_task_by_id(task.id).title == "Write report"

    def test_missing_task(self, tasks, alice):
        result = tasks.update_task(alice[0], "missing", title="Whatever")

        assert result.status_code == 404
        assert result.error.message == "Task not found"


class TestDelete:
    def test_delete_then_get(self, tasks, alice):
        task = _create(tasks, alice[0]).data

        deleted = tasks.delete_task(alice[0], task.id)

        assert deleted.status_code == 200
        assert deleted.data.message == "Task deleted successfully"
        assert tasks.get_task(alice[0], task.id).status_code == 404

    def test_delete_nonexistent_is_not_found(self, tasks, alice):
        result = tasks.delete_task(alice[0], "does-not-exist")

        assert result.status_code == 404
        assert result.error.message == "Task not found"
