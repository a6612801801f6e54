"""
WebAuthn challenge store.

Challenges are single-use: issued by an options call, consumed by the
matching verify call. Keys are the member id for registration and
``auth-{member_id}`` for authentication; a newer options call for the same
key overwrites the older challenge (last write wins).

Entries expire after WEBAUTHN_CHALLENGE_TTL_S seconds. A TTL of 0 keeps the
legacy behaviour where a challenge lives until consumed or overwritten.

Backends:
- memory (default): process-wide dict guarded by a lock. Only valid for a
  single-process deployment.
- redis: shared across processes, expiry handled by SETEX.
"""
from __future__ import annotations

import base64
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

import redis
from redis.exceptions import RedisError

from core.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "webauthn:challenge:"


def registration_key(member_id: int) -> str:
    return str(member_id)


def authentication_key(member_id: int) -> str:
    return f"auth-{member_id}"


class ChallengeStore:
    """In-process challenge map with optional TTL eviction."""

    def __init__(self, ttl_s: int = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: Dict[str, Tuple[bytes, float]] = {}
        self._lock = threading.Lock()

    def _expired(self, issued_at: float, now: float) -> bool:
        return self.ttl_s > 0 and (now - issued_at) > self.ttl_s

    def _evict_expired(self, now: float) -> None:
        if self.ttl_s <= 0:
            return
        stale = [k for k, (_, issued_at) in self._entries.items() if self._expired(issued_at, now)]
        for k in stale:
            del self._entries[k]

    def put(self, key: str, challenge: bytes) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            self._entries[key] = (challenge, now)

    def pop(self, key: str) -> Optional[bytes]:
        """Consume the challenge for key. Returns None when absent or expired."""
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return None
            challenge, issued_at = entry
            if self._expired(issued_at, self._clock()):
                logger.info(f"WebAuthn challenge expired for key {key}")
                return None
            return challenge

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisChallengeStore:
    """Same interface as ChallengeStore, backed by Redis for multi-process deployments."""

    def __init__(self, client: "redis.Redis", ttl_s: int = 0):
        self.client = client
        self.ttl_s = ttl_s

    def put(self, key: str, challenge: bytes) -> None:
        value = base64.b64encode(challenge).decode("ascii")
        if self.ttl_s > 0:
            self.client.setex(KEY_PREFIX + key, self.ttl_s, value)
        else:
            self.client.set(KEY_PREFIX + key, value)

    def pop(self, key: str) -> Optional[bytes]:
        try:
            pipe = self.client.pipeline()  # MULTI/EXEC: get + delete atomically
            pipe.get(KEY_PREFIX + key)
            pipe.delete(KEY_PREFIX + key)
            value, _ = pipe.execute()
        except RedisError as e:
            logger.warning(f"Challenge lookup failed for key {key}: {e}")
            return None
        if not value:
            return None
        return base64.b64decode(value)

    def clear(self) -> None:
        for k in self.client.scan_iter(match=KEY_PREFIX + "*"):
            self.client.delete(k)


_store: Optional[ChallengeStore | RedisChallengeStore] = None
_store_lock = threading.Lock()


def _build_store() -> ChallengeStore | RedisChallengeStore:
    ttl = settings.WEBAUTHN_CHALLENGE_TTL_S
    if settings.CHALLENGE_STORE_BACKEND == "redis":
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
        )
        client.ping()  # fail fast at startup rather than on the first fingerprint scan
        logger.info("WebAuthn challenge store: redis")
        return RedisChallengeStore(client, ttl_s=ttl)
    logger.info(f"WebAuthn challenge store: memory (ttl={ttl}s)")
    return ChallengeStore(ttl_s=ttl)


def init_challenge_store() -> ChallengeStore | RedisChallengeStore:
    """Create the process-wide store (idempotent). Called at application startup."""
    global _store
    with _store_lock:
        if _store is None:
            _store = _build_store()
        return _store


def get_challenge_store() -> ChallengeStore | RedisChallengeStore:
    if _store is None:
        return init_challenge_store()
    return _store


def shutdown_challenge_store() -> None:
    """Drop all outstanding challenges. Called at application shutdown."""
    global _store
    with _store_lock:
        if _store is not None and isinstance(_store, ChallengeStore):
            _store.clear()
        _store = None
