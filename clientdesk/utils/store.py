# clientdesk/utils/store.py
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Any, Dict, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoreEntry:
    value: Any
    expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)

    def expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at


class TTLStore:
    """In-process key/value store with per-entry expiry and a size cap."""

    def __init__(self, default_ttl: Optional[int] = 300, max_size: int = 10000):
        self.default_ttl = default_ttl  # seconds, None = never expires
        self.max_size = max_size
        self._data: Dict[str, StoreEntry] = {}
        self._lock = RLock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.expired(_now()):
                del self._data[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        with self._lock:
            if key not in self._data and len(self._data) >= self.max_size:
                self._evict()

            ttl = ttl if ttl is not None else self.default_ttl
            expires = _now() + timedelta(seconds=ttl) if ttl else None
            self._data[key] = StoreEntry(value=value, expires_at=expires)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def _evict(self) -> None:
        # Expired entries go first; otherwise drop the oldest one
        now = _now()
        expired = [k for k, e in self._data.items() if e.expired(now)]
        if expired:
            for key in expired:
                del self._data[key]
            return
        oldest = min(self._data.items(), key=lambda x: x[1].created_at)
        del self._data[oldest[0]]

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._data)
