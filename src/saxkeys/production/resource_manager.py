"""
Production Resource Manager

Teardown stack for an instrument: whatever is registered while mounting is
released in reverse order on unmount, with a few retries for cleanups that
fail transiently (an audio device still busy, a loader thread finishing).
"""

import functools
import inspect
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)


class ResourceStatus(Enum):
    ACTIVE = "active"
    CLEANED = "cleaned"
    FAILED = "failed"


@dataclass
class ResourceInfo:
    """One registered resource and how to release it"""
    name: str
    resource: Any
    release: Callable[[], Any]
    status: ResourceStatus = ResourceStatus.ACTIVE
    registered_at: float = field(default_factory=time.monotonic)
    attempts: int = 0
    last_error: Optional[Exception] = None


class ProductionResourceManager:
    """Registers resources and releases them last-in, first-out"""

    def __init__(self, max_cleanup_retries: int = 3, retry_delay: float = 0.05):
        self.max_cleanup_retries = max(1, max_cleanup_retries)
        self.retry_delay = retry_delay
        self.resources: Dict[str, ResourceInfo] = {}
        self._stack: List[str] = []
        self._lock = threading.Lock()
        self._counters = {
            'resources_registered': 0,
            'resources_cleaned': 0,
            'cleanup_failures': 0,
            'total_cleanup_time': 0.0,
        }

    def register_resource(self, name: str, resource: Any, cleanup_func: Callable) -> bool:
        """
        Track a resource until cleanup

        A bound method is called as-is (``manager.close``); any other
        callable receives the resource (``lambda r: r.stop()``).
        """
        if inspect.ismethod(cleanup_func):
            release = cleanup_func
        else:
            release = functools.partial(cleanup_func, resource)

        with self._lock:
            if name in self.resources:
                log.warning(f"Resource '{name}' registered twice; keeping the newer one")
                self._stack.remove(name)
            self.resources[name] = ResourceInfo(name, resource, release)
            self._stack.append(name)
            self._counters['resources_registered'] += 1

        log.debug(f"✓ Tracking {name}")
        return True

    def unregister_resource(self, name: str) -> bool:
        """Release a resource now and stop tracking it"""
        with self._lock:
            info = self.resources.pop(name, None)
            if info is None:
                log.warning(f"Resource '{name}' is not registered")
                return False
            self._stack.remove(name)
            self._release(info)
        return True

    def cleanup_resource(self, name: str) -> bool:
        with self._lock:
            info = self.resources.get(name)
            if info is None:
                log.warning(f"Resource '{name}' is not registered")
                return False
            return self._release(info)

    def cleanup_all(self) -> Dict[str, bool]:
        """Release everything, newest first. Returns name -> success."""
        started = time.monotonic()
        results: Dict[str, bool] = {}

        with self._lock:
            while self._stack:
                name = self._stack.pop()
                results[name] = self._release(self.resources.pop(name))
            elapsed = time.monotonic() - started
            self._counters['total_cleanup_time'] += elapsed

        if results:
            log.debug(f"Released {len(results)} resources in {elapsed * 1000:.1f}ms")
        return results

    def get_resource_status(self, name: str) -> Optional[ResourceInfo]:
        return self.resources.get(name)

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            active = [r for r in self.resources.values() if r.status is ResourceStatus.ACTIVE]
            return {
                **self._counters,
                'active_resources': len(active),
                'registered_resources': len(self.resources),
            }

    def _release(self, info: ResourceInfo) -> bool:
        # Caller holds the lock
        if info.status is ResourceStatus.CLEANED:
            return True

        for attempt in range(1, self.max_cleanup_retries + 1):
            info.attempts += 1
            try:
                info.release()
            except Exception as e:
                info.last_error = e
                log.warning(f"Releasing '{info.name}' failed (attempt {attempt}): {e}")
                if attempt < self.max_cleanup_retries:
                    time.sleep(self.retry_delay * attempt)
                continue

            info.status = ResourceStatus.CLEANED
            self._counters['resources_cleaned'] += 1
            log.debug(f"✓ Released {info.name}")
            return True

        info.status = ResourceStatus.FAILED
        self._counters['cleanup_failures'] += 1
        log.error(f"✗ Could not release '{info.name}' after {self.max_cleanup_retries} attempts")
        return False
