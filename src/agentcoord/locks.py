"""Resource lock manager: TTL leases with same-holder re-entrancy.

A lease is free when absent, expired, or already held by the caller.
Expiry is evaluated lazily whenever a lock is read; there is no sweeper.
Re-acquiring an owned lock restarts its TTL, which is how holders renew.
"""

from __future__ import annotations

from typing import Any

from agentcoord.config.schema import DEFAULT_LOCK_TTL_MS
from agentcoord.logging import get_logger
from agentcoord.state.schema import Lock
from agentcoord.state.store import Store
from agentcoord.utils import isoformat, utcnow

log = get_logger("locks")


class LockManager:
    """Mutual-exclusion leases over named resources."""

    def __init__(self, store: Store, default_ttl_ms: int = DEFAULT_LOCK_TTL_MS) -> None:
        self._store = store
        self._default_ttl_ms = default_ttl_ms

    def acquire(self, resource: str, agent_id: str, ttl_ms: int | None = None) -> bool:
        """Try to take (or renew) the lease on ``resource``.

        Returns:
            True if granted, False if another agent holds an unexpired lease.
        """
        ttl = self._default_ttl_ms if ttl_ms is None else int(ttl_ms)

        with self._store.transaction() as txn:
            now = utcnow()
            existing = txn.doc.locks.get(resource)
            if existing and not existing.is_expired(now) and existing.agent != agent_id:
                log.info("Lock %s denied to %s (held by %s)", resource, agent_id, existing.agent)
                return False

            txn.doc.locks[resource] = Lock(
                resource=resource,
                agent=agent_id,
                acquired_at=now,
                ttl_ms=ttl,
            )
            txn.log(agent_id, "lock_acquired", resource=resource)

        log.debug("Lock %s acquired by %s for %dms", resource, agent_id, ttl)
        return True

    def release(self, resource: str, agent_id: str) -> bool:
        """Drop the lease if ``agent_id`` holds it.

        Returns:
            True if released, False if the lock is absent or held by someone else.
        """
        with self._store.transaction() as txn:
            existing = txn.doc.locks.get(resource)
            if existing is None or existing.agent != agent_id:
                return False
            del txn.doc.locks[resource]
            txn.log(agent_id, "lock_released", resource=resource)

        log.debug("Lock %s released by %s", resource, agent_id)
        return True

    def list_locks(self) -> list[dict[str, Any]]:
        """Currently unexpired leases."""
        now = utcnow()
        return [
            {
                "resource": lock.resource,
                **lock.to_dict(),
                "expires_at": isoformat(lock.expires_at),
            }
            for lock in self._store.load().locks.values()
            if not lock.is_expired(now)
        ]

    def purge_expired(self) -> int:
        """Remove expired entries from storage. Lease semantics are unchanged.

        Returns:
            Number of entries removed.
        """
        with self._store.transaction() as txn:
            now = utcnow()
            expired = [r for r, lock in txn.doc.locks.items() if lock.is_expired(now)]
            for resource in expired:
                del txn.doc.locks[resource]
            if expired:
                txn.log("system", "locks_purged", resources=expired)

        if expired:
            log.info("Purged %d expired lock(s)", len(expired))
        return len(expired)
