"""
Lock module.
Contains the lock backends and the coordinator that runs actions under a lease.
"""

from lockqueue.lock.backends import (
    InMemoryLockBackend,
    LockBackend,
    RedisLockNode,
    RedlockBackend,
    create_lock_backend,
)
from lockqueue.lock.coordinator import LockCoordinator, LockValidationError

__all__ = [
    "LockBackend",
    "InMemoryLockBackend",
    "RedlockBackend",
    "RedisLockNode",
    "create_lock_backend",
    "LockCoordinator",
    "LockValidationError",
]
