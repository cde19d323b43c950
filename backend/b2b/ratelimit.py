# b2b/ratelimit.py
"""
Sliding-window submission limiter.

The limiter owns the counting rule; where timestamps live is up to the
injected store, so a single process can keep them in memory while several
instances share them through the Django cache (Redis in production).
"""

import threading
import time
from typing import List, Protocol

from django.conf import settings
from django.core.cache import caches


class SubmissionStore(Protocol):
    def get(self, key: str) -> List[float]:
        """Recorded timestamps for key, oldest first. Empty on miss."""
        ...

    def set(self, key: str, timestamps: List[float], ttl: int) -> None:
        """Replace the timestamps for key, expiring after ttl seconds."""
        ...


class InMemorySubmissionStore:
    """Process-local store. Counters are not shared between workers."""

    def __init__(self, clock=time.time):
        # key -> (expires_at, timestamps)
        self._entries = {}
        self._lock = threading.Lock()
        self.clock = clock

    def _evict_expired(self, now):
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry[0] <= self.clock():
                return []
            return list(entry[1])

    def set(self, key, timestamps, ttl):
        with self._lock:
            now = self.clock()
            self._evict_expired(now)
            if timestamps:
                self._entries[key] = (now + ttl, list(timestamps))
            else:
                self._entries.pop(key, None)

    def __len__(self):
        with self._lock:
            return len(self._entries)


class CacheSubmissionStore:
    """Store backed by a Django cache alias."""

    def __init__(self, alias='default', prefix='ratelimit'):
        self.cache = caches[alias]
        self.prefix = prefix

    def _key(self, key):
        return f"{self.prefix}:{key}"

    def get(self, key):
        return list(self.cache.get(self._key(key)) or [])

    def set(self, key, timestamps, ttl):
        self.cache.set(self._key(key), list(timestamps), timeout=ttl)


class RateLimiter:
    def __init__(self, store, max_submissions, window_seconds, clock=time.time):
        self.store = store
        self.max_submissions = max_submissions
        self.window_seconds = window_seconds
        self.clock = clock

    def _recent(self, key, now):
        return [t for t in self.store.get(key) if now - t < self.window_seconds]

    def allow(self, key) -> bool:
        """Record a submission for key; False, and nothing recorded, once the window is full."""
        now = self.clock()
        recent = self._recent(key, now)
        if len(recent) >= self.max_submissions:
            return False
        recent.append(now)
        self.store.set(key, recent, self.window_seconds)
        return True

    def remaining(self, key) -> int:
        return max(0, self.max_submissions - len(self._recent(key, self.clock())))


_in_memory_store = InMemorySubmissionStore()


def get_submission_store():
    if settings.RATE_LIMIT_STORE == 'memory':
        return _in_memory_store
    return CacheSubmissionStore()


def get_b2b_rate_limiter():
    return RateLimiter(
        get_submission_store(),
        max_submissions=settings.B2B_MAX_SUBMISSIONS,
        window_seconds=settings.B2B_RATE_LIMIT_WINDOW,
    )


def client_ip(request):
    """
    Address of the client as seen by the outermost trusted proxy.

    Each of the TRUSTED_PROXY_COUNT proxies in front of the app appends the
    address it received the request from to X-Forwarded-For, so the client is
    that many hops from the right. Anything further left was written by the
    client and is ignored. With no trusted proxies only REMOTE_ADDR counts.
    """
    remote_addr = request.META.get('REMOTE_ADDR') or 'unknown'
    proxies = settings.TRUSTED_PROXY_COUNT
    if proxies <= 0:
        return remote_addr
    hops = [hop.strip() for hop in request.META.get('HTTP_X_FORWARDED_FOR', '').split(',') if hop.strip()]
    if len(hops) < proxies:
        return remote_addr
    return hops[-proxies]
