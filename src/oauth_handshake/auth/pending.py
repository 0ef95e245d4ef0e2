"""Session-scoped storage for pending OAuth1 authorizations.

OAuth1 has no ``state`` parameter, so the request-token secret and the encoded
round-trip state are kept server-side between the redirect to the provider and
the callback, keyed by the public request token.
"""

from __future__ import annotations

import fcntl
import json
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from oauth_handshake.exceptions import PendingAuthorizationNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from redis import Redis

# Providers typically let a request token live for a few minutes.
DEFAULT_PENDING_TTL = 600


def get_data_dir() -> Path:
    """Get XDG-compliant data directory for pending authorizations.

    Uses XDG_DATA_HOME if set, otherwise ~/.local/share/oauth-handshake.
    """
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / "oauth-handshake"
    return Path.home() / ".local" / "share" / "oauth-handshake"


@dataclass(frozen=True, slots=True)
class PendingAuthorization:
    """Request-token secret and encoded state awaiting the provider callback."""

    token_secret: str
    state: str | None
    created_at: float

    def to_json(self) -> str:
        return json.dumps(
            {"token_secret": self.token_secret, "state": self.state, "created_at": self.created_at}
        )

    @classmethod
    def from_json(cls, raw: str) -> PendingAuthorization:
        data = json.loads(raw)
        return cls(
            token_secret=data["token_secret"],
            state=data.get("state"),
            created_at=data.get("created_at", 0.0),
        )


class PendingBackend(Protocol):
    """Key-value storage with per-entry expiry.

    ``pop`` must be atomic: of two concurrent callers, at most one receives the value.
    """

    def set(self, key: str, value: str, ttl: int) -> None: ...

    def get(self, key: str) -> str | None: ...

    def pop(self, key: str) -> str | None: ...

    def delete(self, key: str) -> None: ...


class MemoryBackend:
    """In-process backend guarded by a lock."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._purge_expired()
            self._entries[key] = (value, self._clock() + ttl)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live(key)

    def pop(self, key: str) -> str | None:
        with self._lock:
            value = self._live(key)
            self._entries.pop(key, None)
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]


class FileBackend:
    """JSON-file backend so separate processes can share pending entries.

    Every operation holds an exclusive ``flock`` on a sidecar ``.lock`` file,
    so ``pop`` stays atomic across processes. Writes go through a temp file
    and ``os.replace``. Expiry uses wall-clock time since entries outlive the
    process.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_data_dir() / "pending.json"
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._locked():
            entries = self._load()
            entries[key] = {"value": value, "expires_at": time.time() + ttl}
            self._save(entries)

    def get(self, key: str) -> str | None:
        if not self.path.exists():
            return None
        with self._locked():
            entry = self._load().get(key)
            return entry["value"] if entry else None

    def pop(self, key: str) -> str | None:
        if not self.path.exists():
            return None
        with self._locked():
            entries = self._load()
            entry = entries.pop(key, None)
            if entry is None:
                return None
            self._save(entries)
            return entry["value"]

    def delete(self, key: str) -> None:
        if not self.path.exists():
            return
        with self._locked():
            entries = self._load()
            if entries.pop(key, None) is not None:
                self._save(entries)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock_path.open("a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}

        try:
            with self.path.open() as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}

        if not isinstance(data, dict):
            return {}

        # Expired and unrecognised entries are dropped on every read.
        now = time.time()
        return {
            k: v
            for k, v in data.items()
            if isinstance(v, dict)
            and isinstance(v.get("value"), str)
            and isinstance(v.get("expires_at"), (int, float))
            and v["expires_at"] > now
        }

    def _save(self, entries: dict[str, dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        # Owner read/write only, set before the file becomes visible
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(entries, f, indent=2)
        tmp_path.chmod(0o600)

        os.replace(tmp_path, self.path)


class RedisBackend:
    """Backend over a ``redis.Redis`` client (``decode_responses=True`` not required)."""

    def __init__(self, client: Redis) -> None:
        self.client = client

    def set(self, key: str, value: str, ttl: int) -> None:
        self.client.set(key, value, ex=ttl)

    def get(self, key: str) -> str | None:
        return self._text(self.client.get(key))

    def pop(self, key: str) -> str | None:
        return self._text(self.client.getdel(key))

    def delete(self, key: str) -> None:
        self.client.delete(key)

    @staticmethod
    def _text(value: bytes | str | None) -> str | None:
        if isinstance(value, bytes):
            return value.decode()
        return value


class PendingAuthorizationStore:
    """Pending OAuth1 authorizations for one user-agent session.

    Keys are namespaced by session id, so two sessions that receive the same
    request token from a provider never see each other's secret.
    """

    def __init__(
        self,
        backend: PendingBackend,
        session_id: str,
        *,
        ttl: int = DEFAULT_PENDING_TTL,
        namespace: str = "oauth_handshake",
    ) -> None:
        if not session_id:
            raise ValueError("session_id must not be empty")
        self.backend = backend
        self.session_id = session_id
        self.ttl = ttl
        self.namespace = namespace

    def put(self, key: str, secret: str, state: str | None) -> None:
        """Store a request-token secret and state (last write wins)."""
        entry = PendingAuthorization(token_secret=secret, state=state, created_at=time.time())
        self.backend.set(self._key(key), entry.to_json(), self.ttl)

    def get(self, key: str) -> PendingAuthorization:
        """Look up a pending authorization without consuming it."""
        return self._parse(key, self.backend.get(self._key(key)))

    def take(self, key: str) -> PendingAuthorization:
        """Atomically look up and remove a pending authorization."""
        return self._parse(key, self.backend.pop(self._key(key)))

    def delete(self, key: str) -> None:
        """Remove a pending authorization if present."""
        self.backend.delete(self._key(key))

    def restore(self, key: str, entry: PendingAuthorization) -> None:
        """Put back an entry previously removed with ``take``."""
        self.backend.set(self._key(key), entry.to_json(), self.ttl)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{self.session_id}:{key}"

    def _parse(self, key: str, raw: str | None) -> PendingAuthorization:
        if raw is None:
            raise PendingAuthorizationNotFoundError(
                f"No pending authorization for request token {key!r} (missing or expired)",
                key=key,
            )
        return PendingAuthorization.from_json(raw)
