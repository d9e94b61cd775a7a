"""
Change handler registry.

Handlers subscribe to a path prefix and are told about value changes and
erasures below that prefix. Host and default mutations produce the same
notifications.
"""

import threading
from typing import Any, List


class ChangeHandler:
    """
    Base class for configuration change handlers.

    Args:
        prefix: Only paths starting with this prefix are reported ("" for all)
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def config_value_changed(self, path: str, value: Any):
        """Called after a value has been set."""
        pass

    def config_value_erased(self, path: str):
        """Called after a value has been erased, even if nothing was deleted."""
        pass


class ChangeHandlerRegistry:
    """Thread-safe list of registered change handlers."""

    def __init__(self):
        self._handlers: List[ChangeHandler] = []
        self._lock = threading.Lock()

    def add(self, handler: ChangeHandler):
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def remove(self, handler: ChangeHandler):
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def find(self, path: str) -> List[ChangeHandler]:
        """Handlers whose prefix matches path, in registration order."""
        with self._lock:
            return [h for h in self._handlers if path.startswith(h.prefix)]

    def notify_changed(self, path: str, value: Any):
        for handler in self.find(path):
            handler.config_value_changed(path, value)

    def notify_erased(self, path: str):
        for handler in self.find(path):
            handler.config_value_erased(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)
