"""
Per-resource mutual exclusion for desired-state mutations.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from clusterstate.utils.logging import get_logger

logger = get_logger(__name__)


class ResourceLockManager:
    """
    Hands out one re-entrant lock per resource name.

    Mutations of the same resource are serialized; mutations of different
    resources run concurrently.
    """

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, resource_name: str) -> threading.RLock:
        """
        Get the lock of a resource, creating it on first use.

        Args:
            resource_name: Resource name

        Returns:
            The resource's lock
        """
        with self._registry_lock:
            lock = self._locks.get(resource_name)
            if lock is None:
                lock = threading.RLock()
                self._locks[resource_name] = lock
            return lock

    @contextmanager
    def locked(self, resource_name: str) -> Iterator[None]:
        """Hold the lock of a resource for the duration of the block."""
        lock = self.lock_for(resource_name)
        with lock:
            logger.debug("Acquired resource lock", resource=resource_name)
            yield

    def __len__(self) -> int:
        return len(self._locks)
