from __future__ import annotations

import threading
from typing import Optional

from tasktrack.config import Settings, get_settings, reset_settings_cache
from tasktrack.logging import get_logger
from tasktrack.service.accounts import AccountService
from tasktrack.service.passwords import CredentialHasher
from tasktrack.service.tasks import TaskService
from tasktrack.service.tokens import TokenService
from tasktrack.storage.memory import MemoryStore
from tasktrack.storage.models import Role, SeedAccount

logger = get_logger(__name__)


def build_hasher(settings: Settings) -> CredentialHasher:
    return CredentialHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_cost,
        parallelism=settings.password_hash_parallelism,
    )


def build_store(settings: Settings, hasher: CredentialHasher) -> MemoryStore:
    """Create the store with the configured administrator already inserted.

    The seed password is hashed here, before the store exists, so the store
    lock is never held during hashing and no caller can see an unseeded store.
    """
    if settings.uses_default_admin_password:
        logger.warning(
            "admin_default_password_in_use",
            admin_email=settings.admin_email,
            message="Set ADMIN_PASSWORD before exposing this service",
        )
    seed = SeedAccount(
        email=settings.admin_email,
        password_hash=hasher.hash(settings.admin_password),
        full_name=settings.admin_full_name,
        role=Role.ADMIN,
    )
    return MemoryStore(seed_admin=seed)


class Runtime:
    """Holds the per-process service instances for the FastAPI app."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.hasher = build_hasher(self.settings)
        self.store = build_store(self.settings, self.hasher)
        self.tokens = TokenService(
            self.settings.jwt_secret,
            ttl_seconds=self.settings.token_ttl_hours * 60 * 60,
        )
        self.accounts = AccountService(self.store, self.hasher, self.tokens)
        self.tasks = TaskService(self.store, self.tokens)
        logger.info(
            "runtime_initialized",
            token_ttl_hours=self.settings.token_ttl_hours,
            seeded_admin_id=self.store.seeded_admin_id,
        )


runtime: Optional[Runtime] = None
_runtime_lock = threading.Lock()


def get_runtime() -> Runtime:
    """Get or create the Runtime singleton in a thread-safe manner."""
    global runtime
    if runtime is not None:
        return runtime
    with _runtime_lock:
        if runtime is None:
            runtime = Runtime()
        return runtime


def reset_runtime_for_tests() -> None:
    """Drop the runtime and cached settings so the next access rebuilds both."""
    global runtime
    with _runtime_lock:
        runtime = None
        reset_settings_cache()
