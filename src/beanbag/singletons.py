"""Container-wide cache of singleton-scoped beans."""

import threading
from collections import defaultdict
from typing import Any, Optional

from beanbag.domain import TypeKey

__all__ = ["SingletonCache"]


class SingletonCache:
    """Thread-safe map from type to its single shared instance.

    ``put`` overwrites an existing entry without comparing instances, so two
    threads racing to create the same singleton both succeed and the last
    write is kept. :meth:`lock_for` supports callers that need a single
    construction per type.
    """

    def __init__(self):
        self._instances: dict[TypeKey, Any] = {}
        self._lock = threading.RLock()
        self._key_locks: dict[TypeKey, threading.RLock] = defaultdict(threading.RLock)

    def __contains__(self, bean_type: TypeKey) -> bool:
        with self._lock:
            return bean_type in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)

    def get(self, bean_type: TypeKey) -> Optional[Any]:
        with self._lock:
            return self._instances.get(bean_type)

    def put(self, bean_type: TypeKey, instance: Any):
        with self._lock:
            self._instances[bean_type] = instance

    def lock_for(self, bean_type: TypeKey) -> threading.RLock:
        """The re-entrant lock guarding creation of ``bean_type``."""
        with self._lock:
            return self._key_locks[bean_type]

    def snapshot(self) -> dict[TypeKey, Any]:
        with self._lock:
            return dict(self._instances)
