"""
Lock backends behind a narrow acquire/release interface.

The coordinator only sees ``LockBackend``; swapping the Redlock quorum
client for a single-node lease (or anything else) does not touch the
processor.
"""

import asyncio
import logging
import time
import uuid
from typing import Protocol, runtime_checkable

import redis.asyncio as redis

from lockqueue.config import Settings
from lockqueue.constants import CLOCK_DRIFT_FACTOR, CLOCK_DRIFT_MIN_SECONDS
from lockqueue.types.lock import LockLease

logger = logging.getLogger(__name__)

# Delete the key only if it still holds our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


@runtime_checkable
class LockBackend(Protocol):
    """Exclusive lease provider keyed by resource name."""

    name: str

    async def acquire(
        self,
        resource: str,
        expiry: float,
        wait_timeout: float,
        retry_interval: float,
    ) -> LockLease | None:
        """Acquire a lease, retrying until ``wait_timeout``. None if not acquired."""
        ...

    async def release(self, lease: LockLease) -> None:
        """Release a lease previously returned by ``acquire``."""
        ...

    async def close(self) -> None:
        """Release backend resources such as connections."""
        ...


async def _acquire_with_retry(attempt, resource: str, wait_timeout: float, retry_interval: float):
    """
    Call ``attempt()`` until it returns a lease or ``wait_timeout`` elapses.

    At least one attempt is always made.
    """
    deadline = time.monotonic() + wait_timeout
    while True:
        lease = await attempt()
        if lease is not None:
            return lease

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.debug("Lock wait timed out", extra={"resource": resource})
            return None
        await asyncio.sleep(min(retry_interval, remaining))


class InMemoryLockBackend:
    """
    Single-process lease table.

    Honours expiry (an expired lease can be taken over) and only lets the
    owning token release a lease. Suitable for tests and single-instance
    deployments; it gives no exclusion across processes.
    """

    name = "memory"

    def __init__(self) -> None:
        self._leases: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    async def acquire(
        self,
        resource: str,
        expiry: float,
        wait_timeout: float,
        retry_interval: float,
    ) -> LockLease | None:
        async def attempt() -> LockLease | None:
            async with self._lock:
                now = time.monotonic()
                held = self._leases.get(resource)
                if held is not None and held[1] > now:
                    return None
                token = uuid.uuid4().hex
                self._leases[resource] = (token, now + expiry)
                return LockLease(resource=resource, token=token, expiry=expiry, validity=expiry)

        return await _acquire_with_retry(attempt, resource, wait_timeout, retry_interval)

    async def release(self, lease: LockLease) -> None:
        async with self._lock:
            held = self._leases.get(lease.resource)
            if held is not None and held[0] == lease.token:
                del self._leases[lease.resource]

    async def close(self) -> None:
        async with self._lock:
            self._leases.clear()

    def is_locked(self, resource: str) -> bool:
        """Check whether a live lease exists for a resource."""
        held = self._leases.get(resource)
        return held is not None and held[1] > time.monotonic()


class LockNode(Protocol):
    """One independent lock server participating in a quorum."""

    address: str

    async def try_acquire(self, resource: str, token: str, ttl_ms: int) -> bool:
        ...

    async def release(self, resource: str, token: str) -> None:
        ...

    async def close(self) -> None:
        ...


class RedisLockNode:
    """A single Redis server used as a Redlock participant."""

    def __init__(self, client: redis.Redis, address: str | None = None):
        self._client = client
        self.address = address or repr(client)
        self._release_script = client.register_script(RELEASE_SCRIPT)

    @classmethod
    def from_url(cls, url: str) -> "RedisLockNode":
        """Create a node from a ``redis://`` URL. Does not connect eagerly."""
        return cls(redis.Redis.from_url(url), address=url)

    async def try_acquire(self, resource: str, token: str, ttl_ms: int) -> bool:
        result = await self._client.set(resource, token, nx=True, px=ttl_ms)
        return bool(result)

    async def release(self, resource: str, token: str) -> None:
        await self._release_script(keys=[resource], args=[token])

    async def close(self) -> None:
        await self._client.aclose()


class RedlockBackend:
    """
    Client side of the Redlock algorithm over independent lock nodes.

    A lease is granted when a majority of nodes accept the same random
    token and the time spent acquiring still leaves positive validity after
    subtracting clock drift. Partial acquisitions are rolled back on every
    node before retrying.
    """

    name = "redlock"

    def __init__(
        self,
        nodes: list[LockNode],
        node_timeout: float = 0.5,
        drift_factor: float = CLOCK_DRIFT_FACTOR,
    ):
        """
        Initialize the backend.

        Args:
            nodes: Independent lock servers. Must not be empty.
            node_timeout: Per-node timeout for a single request, in seconds.
            drift_factor: Fraction of expiry reserved for clock drift.
        """
        if not nodes:
            raise ValueError("RedlockBackend requires at least one lock node")
        self._nodes = nodes
        self._node_timeout = node_timeout
        self._drift_factor = drift_factor

    @classmethod
    def from_urls(cls, urls: list[str], node_timeout: float = 0.5) -> "RedlockBackend":
        """Create a backend with one Redis node per URL."""
        return cls([RedisLockNode.from_url(url) for url in urls], node_timeout=node_timeout)

    @property
    def quorum(self) -> int:
        """Number of nodes that must agree for a lease to be held."""
        return len(self._nodes) // 2 + 1

    async def acquire(
        self,
        resource: str,
        expiry: float,
        wait_timeout: float,
        retry_interval: float,
    ) -> LockLease | None:
        return await _acquire_with_retry(
            lambda: self._attempt(resource, expiry),
            resource,
            wait_timeout,
            retry_interval,
        )

    async def release(self, lease: LockLease) -> None:
        await self._release_all(lease.resource, lease.token)

    async def close(self) -> None:
        for node in self._nodes:
            try:
                await node.close()
            except Exception:
                logger.exception("Failed to close lock node", extra={"node": node.address})

    async def _attempt(self, resource: str, expiry: float) -> LockLease | None:
        token = uuid.uuid4().hex
        ttl_ms = max(1, int(expiry * 1000))
        start = time.monotonic()

        results = await asyncio.gather(
            *(self._node_acquire(node, resource, token, ttl_ms) for node in self._nodes)
        )
        accepted = sum(1 for result in results if result)

        elapsed = time.monotonic() - start
        drift = expiry * self._drift_factor + CLOCK_DRIFT_MIN_SECONDS
        validity = expiry - elapsed - drift

        if accepted >= self.quorum and validity > 0:
            return LockLease(resource=resource, token=token, expiry=expiry, validity=validity)

        logger.debug(
            "Quorum not reached",
            extra={
                "resource": resource,
                "accepted": accepted,
                "quorum": self.quorum,
                "validity": validity,
            },
        )
        await self._release_all(resource, token)
        return None

    async def _node_acquire(self, node: LockNode, resource: str, token: str, ttl_ms: int) -> bool:
        try:
            return await asyncio.wait_for(
                node.try_acquire(resource, token, ttl_ms),
                timeout=self._node_timeout,
            )
        except Exception as e:
            logger.warning(
                "Lock node rejected acquire",
                extra={"node": node.address, "resource": resource, "error": str(e)},
            )
            return False

    async def _release_all(self, resource: str, token: str) -> None:
        await asyncio.gather(*(self._node_release(node, resource, token) for node in self._nodes))

    async def _node_release(self, node: LockNode, resource: str, token: str) -> None:
        try:
            await asyncio.wait_for(node.release(resource, token), timeout=self._node_timeout)
        except Exception as e:
            # The key still expires on its own after ttl
            logger.warning(
                "Lock node release failed",
                extra={"node": node.address, "resource": resource, "error": str(e)},
            )


def create_lock_backend(settings: Settings) -> LockBackend:
    """
    Create the lock backend described by the settings.

    Args:
        settings: Application settings.

    Returns:
        A Redlock backend when lock servers are configured, otherwise an
        in-memory backend.
    """
    if settings.lock_servers:
        logger.info(
            "Using Redlock backend",
            extra={"nodes": len(settings.lock_servers)},
        )
        return RedlockBackend.from_urls(
            settings.lock_servers,
            node_timeout=settings.lock_node_timeout_seconds,
        )

    logger.warning("No lock servers configured, using in-memory lock backend")
    return InMemoryLockBackend()
