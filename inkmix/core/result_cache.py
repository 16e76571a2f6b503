"""
Result Cache Module

Bounded LRU cache for recipe search results.

Entries are immutable results; a hit returns the stored object itself.
Eviction is size-based: once `capacity` is reached the least recently used
entry is dropped.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Hashable, Optional, Tuple

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor

logger = logging.getLogger(__name__)

KEY_PRECISION = 4  # decimal places of Lab components in the key


def make_key(target: LabColor, max_inks: int, *options: Hashable) -> Tuple:
    """Normalized cache key: rounded target, max inks, extra option values."""
    lab = tuple(round(v, KEY_PRECISION) + 0.0 for v in target.as_tuple())
    return (lab, int(max_inks)) + tuple(options)


class ResultCache:
    def __init__(self, capacity: int = 256):
        if capacity < 1:
            raise InputError("Cache capacity must be >= 1")
        self.capacity = capacity
        self._data: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                self.misses += 1
                return None
            self._data.move_to_end(key)
            self.hits += 1
            return self._data[key]

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            if key in self._data:
                # entries are immutable; keep the first stored value
                self._data.move_to_end(key)
                return
            self._data[key] = value
            if len(self._data) > self.capacity:
                evicted, _ = self._data.popitem(last=False)
                logger.debug(f"Cache evicted {evicted}")

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self.hits = self.misses = 0

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data
