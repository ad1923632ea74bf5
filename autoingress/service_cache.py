"""In-memory cache of the last known state of each Service."""

import logging
import threading
from typing import Dict, List, Optional

from .utils import make_key, object_key

logger = logging.getLogger(__name__)


class ServiceCache:
    """Thread-safe store of Service objects keyed by namespace/name."""

    def __init__(self):
        """Initialize the cache."""
        self._services: Dict[str, object] = {}
        self._lock = threading.RLock()

    def add_or_update(self, service) -> Optional[object]:
        """
        Add or update a Service in the cache.

        Returns:
            The previously cached object, or None if it was not cached
        """
        key = object_key(service)

        with self._lock:
            old = self._services.get(key)
            self._services[key] = service
            return old

    def remove(self, namespace: str, name: str) -> Optional[object]:
        """
        Remove a Service from the cache.

        Returns:
            The removed Service or None
        """
        key = make_key(namespace, name)

        with self._lock:
            return self._services.pop(key, None)

    def get_all(self) -> List[object]:
        with self._lock:
            return list(self._services.values())

    def replace(self, services: list) -> Dict[str, object]:
        """
        Replace the cache contents with a fresh list.

        Args:
            services: Full list of Services from the API server

        Returns:
            The previous contents, as a mapping of key -> last known object
        """
        fresh = {object_key(service): service for service in services}

        with self._lock:
            previous = self._services
            self._services = fresh

        logger.debug(f"Cache replaced: {len(previous)} -> {len(fresh)} service(s)")
        return previous

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)
