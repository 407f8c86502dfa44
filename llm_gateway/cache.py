"""TTL and capacity bounded response cache."""
from __future__ import annotations

import hashlib
import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    content: str
    provider: str
    created_at: float


def fingerprint(
    messages: Sequence[Dict[str, str]],
    *,
    language: Optional[str],
    domain: Optional[str],
    max_tokens: int,
    temperature: float,
) -> str:
    """Stable hash of everything that shapes a generation request."""

    canonical = json.dumps(
        {
            "messages": [{"role": m.get("role"), "content": m.get("content")} for m in messages],
            "language": language,
            "domain": domain,
            "max_tokens": max_tokens,
            "temperature": temperature,
        },
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ResponseCache:
    def __init__(self, *, ttl_s: float = 600.0, max_entries: int = 256, clock: Clock = time.time) -> None:
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if self._clock() - entry.created_at >= self.ttl_s:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return entry

    def put(self, key: str, content: str, provider: str) -> None:
        with self._lock:
            # Re-inserting moves the key to the newest position.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(content=content, provider=provider, created_at=self._clock())
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def stats(self) -> Dict[str, float]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_s": self.ttl_s,
                "hits": self.hits,
                "misses": self.misses,
            }


__all__ = ["CacheEntry", "ResponseCache", "fingerprint"]
