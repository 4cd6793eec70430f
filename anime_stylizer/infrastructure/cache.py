from __future__ import annotations

import hashlib
import threading
import time
from typing import Dict, Optional, Tuple

from ..config import SETTINGS


CacheEntry = Tuple[float, bytes]


def cache_key(payload: bytes, preset: str, intensity: float) -> str:
    digest = hashlib.sha1(payload).hexdigest()
    return f"{digest}:{preset}:{intensity:.4f}"


class ResponseCache:
    def __init__(self, max_entries: int | None = None, ttl: float | None = None) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.max_entries = SETTINGS.cache_size if max_entries is None else max_entries
        self.ttl = SETTINGS.cache_ttl if ttl is None else ttl

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None
            timestamp, data = entry
            if time.time() - timestamp > self.ttl:
                self._entries.pop(key, None)
                return None
            return data

    def put(self, key: str, data: bytes) -> None:
        if self.max_entries <= 0:
            return
        with self._lock:
            while key not in self._entries and len(self._entries) >= self.max_entries:
                oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
                self._entries.pop(oldest, None)
            self._entries[key] = (time.time(), data)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


CACHE = ResponseCache()
