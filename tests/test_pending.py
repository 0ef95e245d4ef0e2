"""Tests for pending-authorization storage."""

import json
import stat
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from oauth_handshake.auth import (
    FileBackend,
    MemoryBackend,
    PendingAuthorizationStore,
    RedisBackend,
)
from oauth_handshake.exceptions import PendingAuthorizationNotFoundError


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestPendingAuthorizationStore:
    """Tests for the session-scoped store contract."""

    def test_put_then_get(self, store: PendingAuthorizationStore) -> None:
        store.put("tok", "secret", "state-token")

        entry = store.get("tok")
        assert entry.token_secret == "secret"
        assert entry.state == "state-token"

    def test_get_missing_raises_not_found(self, store: PendingAuthorizationStore) -> None:
        with pytest.raises(PendingAuthorizationNotFoundError) as exc_info:
            store.get("missing")

        assert exc_info.value.key == "missing"

    def test_last_write_wins(self, store: PendingAuthorizationStore) -> None:
        store.put("tok", "first", "s1")
        store.put("tok", "second", "s2")

        assert store.get("tok").token_secret == "second"

    def test_delete_is_idempotent(self, store: PendingAuthorizationStore) -> None:
        store.put("tok", "secret", None)
        store.delete("tok")
        store.delete("tok")

        with pytest.raises(PendingAuthorizationNotFoundError):
            store.get("tok")

    def test_take_removes_entry(self, store: PendingAuthorizationStore) -> None:
        store.put("tok", "secret", None)

        assert store.take("tok").token_secret == "secret"
        with pytest.raises(PendingAuthorizationNotFoundError):
            store.take("tok")

    def test_restore_puts_entry_back(self, store: PendingAuthorizationStore) -> None:
        store.put("tok", "secret", "s")
        entry = store.take("tok")
        store.restore("tok", entry)

        assert store.get("tok") == entry

    def test_keys_namespaced_by_session(self) -> None:
        backend = MagicMock()
        store = PendingAuthorizationStore(backend, "abc", namespace="app", ttl=60)

        store.put("tok", "secret", None)

        key, _value, ttl = backend.set.call_args.args
        assert key == "app:abc:tok"
        assert ttl == 60

    def test_sessions_do_not_collide(self, backend: MemoryBackend) -> None:
        store_a = PendingAuthorizationStore(backend, "a")
        store_b = PendingAuthorizationStore(backend, "b")

        store_a.put("same", "secret-a", None)
        store_b.put("same", "secret-b", None)

        assert store_a.get("same").token_secret == "secret-a"
        assert store_b.get("same").token_secret == "secret-b"

    def test_empty_session_rejected(self, backend: MemoryBackend) -> None:
        with pytest.raises(ValueError):
            PendingAuthorizationStore(backend, "")


class TestMemoryBackend:
    """Tests for the in-process backend."""

    def test_entries_expire(self) -> None:
        clock = FakeClock()
        backend = MemoryBackend(clock=clock)
        store = PendingAuthorizationStore(backend, "s", ttl=600)
        store.put("tok", "secret", None)

        clock.now += 599
        assert store.get("tok").token_secret == "secret"

        clock.now += 1
        with pytest.raises(PendingAuthorizationNotFoundError):
            store.get("tok")

    def test_expired_entries_purged_on_write(self) -> None:
        clock = FakeClock()
        backend = MemoryBackend(clock=clock)
        backend.set("old", "v", 10)

        clock.now += 11
        backend.set("new", "v", 10)

        assert len(backend) == 1

    def test_pop_is_atomic_across_threads(self) -> None:
        """Only one of many concurrent pops receives the value."""
        backend = MemoryBackend()
        backend.set("tok", "v", 60)
        results: list[str | None] = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            results.append(backend.pop("tok"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("v") == 1


class TestFileBackend:
    """Tests for the JSON-file backend."""

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "pending.json"
        PendingAuthorizationStore(FileBackend(path), "cli").put("tok", "secret", "s")

        entry = PendingAuthorizationStore(FileBackend(path), "cli").get("tok")

        assert entry.token_secret == "secret"
        assert entry.state == "s"

    def test_file_permissions(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "pending.json"
        FileBackend(path).set("k", "v", 60)

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_pop_removes_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "pending.json"
        backend = FileBackend(path)
        backend.set("k", "v", 60)

        assert backend.pop("k") == "v"
        assert FileBackend(path).get("k") is None

    def test_expired_entries_ignored(self, tmp_path: Path) -> None:
        backend = FileBackend(tmp_path / "pending.json")
        backend.set("k", "v", 60)

        with patch("oauth_handshake.auth.pending.time.time", return_value=time.time() + 61):
            assert backend.get("k") is None

    def test_corrupt_file_treated_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "pending.json"
        path.write_text("{not json")

        assert FileBackend(path).get("k") is None

    @pytest.mark.parametrize("content", ["[1, 2]", '"x"', "null"])
    def test_non_object_file_treated_as_empty(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "pending.json"
        path.write_text(content)
        backend = FileBackend(path)

        assert backend.get("k") is None
        assert backend.pop("k") is None
        backend.set("k", "v", 60)
        assert backend.get("k") == "v"

    def test_unrecognised_entries_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "pending.json"
        path.write_text(
            json.dumps(
                {
                    "a": 1,
                    "b": {"value": "v", "expires_at": "soon"},
                    "c": {"value": 2, "expires_at": time.time() + 60},
                }
            )
        )

        backend = FileBackend(path)

        assert [backend.get(k) for k in "abc"] == [None, None, None]

    def test_pop_is_atomic_across_instances(self, tmp_path: Path) -> None:
        """Backends sharing a file hand the value to exactly one popper."""
        path = tmp_path / "pending.json"
        FileBackend(path).set("tok", "v", 60)
        results: list[str | None] = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            backend = FileBackend(path)
            barrier.wait()
            results.append(backend.pop("tok"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("v") == 1
        assert FileBackend(path).get("tok") is None

    def test_concurrent_writers_keep_all_entries(self, tmp_path: Path) -> None:
        path = tmp_path / "pending.json"
        barrier = threading.Barrier(8)

        def worker(n: int) -> None:
            backend = FileBackend(path)
            barrier.wait()
            backend.set(f"k{n}", str(n), 60)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        backend = FileBackend(path)
        assert [backend.get(f"k{n}") for n in range(8)] == [str(n) for n in range(8)]
        assert not (tmp_path / "pending.json.tmp").exists()

    def test_default_path_uses_xdg_data_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

        assert FileBackend().path == tmp_path / "oauth-handshake" / "pending.json"


class TestRedisBackend:
    """Tests for the Redis backend against a mocked client."""

    def test_set_uses_expiry(self) -> None:
        client = MagicMock()
        RedisBackend(client).set("k", "v", 600)

        client.set.assert_called_once_with("k", "v", ex=600)

    def test_get_decodes_bytes(self) -> None:
        client = MagicMock()
        client.get.return_value = b"value"

        assert RedisBackend(client).get("k") == "value"

    def test_pop_uses_getdel(self) -> None:
        client = MagicMock()
        client.getdel.return_value = None

        assert RedisBackend(client).pop("k") is None
        client.getdel.assert_called_once_with("k")

    def test_delete(self) -> None:
        client = MagicMock()
        RedisBackend(client).delete("k")

        client.delete.assert_called_once_with("k")
