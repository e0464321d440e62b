from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple


@dataclass
class CacheEntry:
    value: Any
    expires_at: float  # clock seconds


def payload_key(kind: str, payload: Dict[str, Any]) -> str:
    """Stable key for a calculation request: kind + sha256 of the canonical JSON payload."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return f"{kind}:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"


class TTLCache:
    """
    In-memory TTL cache for computed results.
    - Thread-safe
    - Callers store only serialised (dict) results, so hits cannot be mutated in place
    """

    def __init__(
        self,
        default_ttl_seconds: int = 1800,
        max_items: int = 2048,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl_seconds = int(default_ttl_seconds)
        self.max_items = int(max_items)
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Tuple[Any, int]]:
        """(value, remaining_ttl_seconds) if present and not expired, else None."""
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None or entry.expires_at <= now:
                self._store.pop(key, None)
                self.misses += 1
                return None
            self.hits += 1
            return entry.value, max(0, int(entry.expires_at - now))

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else int(ttl_seconds)
        expires_at = self._clock() + max(1, ttl)

        with self._lock:
            if key not in self._store and len(self._store) >= self.max_items:
                # drop the soonest-expiring 10%
                items = sorted(self._store.items(), key=lambda kv: kv[1].expires_at)
                for k, _ in items[: max(1, self.max_items // 10)]:
                    self._store.pop(k, None)
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    def get_or_compute(self, key: str, compute: Callable[[], Any], *, cache_if: Callable[[Any], bool] = lambda v: True) -> Tuple[Any, bool]:
        """Return (value, was_cached); ``compute`` runs outside the lock."""
        hit = self.get(key)
        if hit is not None:
            return hit[0], True
        value = compute()
        if cache_if(value):
            self.set(key, value)
        return value, False

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
