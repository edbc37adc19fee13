# eyes/db/store.py
# Realtime database access
#
# Two backends behind one small interface (get / set / update / push / remove / listen):
#   FirebaseStore -- Firebase Realtime Database through firebase-admin (production)
#   MemoryStore   -- in-process tree with the same path semantics (development, tests)
#
# Semantics follow the vendor database: last write wins per path, writing None
# deletes, empty objects do not exist, push keys sort in creation order.
# No transactions -- two writers on the same path both succeed.

import copy
import logging
import random
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from eyes.core.errors import StoreUnavailable
from eyes.db.paths import join

logger = logging.getLogger("eyes.store")

Listener = Callable[[Any], None]
Unsubscribe = Callable[[], None]

# Alphabet of vendor push ids -- ASCII ordered, so ids sort by creation time
PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


class PushIdGenerator:
    """
    Generates 20-character chronologically ordered keys:
    8 chars of millisecond timestamp + 12 chars of randomness.
    Keys generated within the same millisecond increment the random part,
    so ordering holds even for bursts.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_ms = 0
        self._last_rand: List[int] = [0] * 12

    def __call__(self, now_ms: Optional[int] = None) -> str:
        with self._lock:
            now = int(time.time() * 1000) if now_ms is None else now_ms
            same_ms = now <= self._last_ms
            if same_ms:
                now = self._last_ms
            self._last_ms = now

            ts_chars = []
            value = now
            for _ in range(8):
                ts_chars.append(PUSH_CHARS[value % 64])
                value //= 64
            key = "".join(reversed(ts_chars))

            if not same_ms:
                self._last_rand = [random.randrange(64) for _ in range(12)]
            else:
                i = 11
                while i >= 0 and self._last_rand[i] == 63:
                    self._last_rand[i] = 0
                    i -= 1
                if i >= 0:
                    self._last_rand[i] += 1

            return key + "".join(PUSH_CHARS[r] for r in self._last_rand)


class Store:
    """Interface shared by every backend. Paths are slash separated, no leading slash."""

    def get(self, path: str) -> Any:
        raise NotImplementedError

    def set(self, path: str, value: Any) -> None:
        raise NotImplementedError

    def update(self, path: str, values: Dict[str, Any]) -> None:
        """Multi-location update -- keys may themselves be slash paths below `path`."""
        raise NotImplementedError

    def push(self, path: str, value: Any) -> str:
        """Append a child with a generated key. Returns the key."""
        raise NotImplementedError

    def remove(self, path: str) -> None:
        raise NotImplementedError

    def listen(self, path: str, callback: Listener) -> Unsubscribe:
        """Call `callback(value)` now and whenever the subtree at `path` changes."""
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def exists(self, path: str) -> bool:
        return self.get(path) is not None


# ── In-memory backend ─────────────────────────────────────────────────────────

def _segments(path: str) -> List[str]:
    return [p for p in path.split("/") if p]


def _prune(value: Any) -> Any:
    """Drop None leaves and empty objects, like the vendor database does on write."""
    if isinstance(value, dict):
        cleaned = {}
        for k, v in value.items():
            v = _prune(v)
            if v is not None:
                cleaned[str(k)] = v
        return cleaned or None
    if isinstance(value, (list, tuple)):
        items = [_prune(v) for v in value]
        return items if any(v is not None for v in items) else None
    return value


class MemoryStore(Store):
    """In-process tree. Thread safe; listeners run outside the lock."""

    def __init__(self, initial: Optional[dict] = None):
        self._lock = threading.RLock()
        self._root: dict = _prune(copy.deepcopy(initial)) or {}
        self._listeners: Dict[int, Tuple[List[str], Listener]] = {}
        self._next_listener = 0
        self._push_id = PushIdGenerator()

    # reads

    def get(self, path: str) -> Any:
        with self._lock:
            node: Any = self._root
            for seg in _segments(path):
                if isinstance(node, dict) and seg in node:
                    node = node[seg]
                elif isinstance(node, list) and seg.isdigit() and int(seg) < len(node):
                    node = node[int(seg)]
                else:
                    return None
            if node == {}:
                return None
            return copy.deepcopy(node)

    def ping(self) -> bool:
        return True

    # writes

    def _write(self, segs: List[str], value: Any) -> None:
        value = _prune(copy.deepcopy(value))
        if not segs:
            self._root = value if isinstance(value, dict) else {}
            return

        parents = [self._root]
        node = self._root
        for seg in segs[:-1]:
            child = node.get(seg) if isinstance(node, dict) else None
            if not isinstance(child, dict):
                if value is None:
                    return
                child = {}
                node[seg] = child
            node = child
            parents.append(node)

        if value is None:
            node.pop(segs[-1], None)
        else:
            node[segs[-1]] = value

        # walk back up removing emptied objects
        for depth in range(len(segs) - 1, 0, -1):
            if parents[depth] == {}:
                parents[depth - 1].pop(segs[depth - 1], None)
            else:
                break

    def set(self, path: str, value: Any) -> None:
        with self._lock:
            self._write(_segments(path), value)
        self._notify([path])

    def update(self, path: str, values: Dict[str, Any]) -> None:
        written = []
        with self._lock:
            for key, value in values.items():
                full = join(path, key)
                self._write(_segments(full), value)
                written.append(full)
        self._notify(written)

    def push(self, path: str, value: Any) -> str:
        key = self._push_id()
        self.set(join(path, key), value)
        return key

    def remove(self, path: str) -> None:
        self.set(path, None)

    # subscriptions

    def listen(self, path: str, callback: Listener) -> Unsubscribe:
        with self._lock:
            listener_id = self._next_listener
            self._next_listener += 1
            self._listeners[listener_id] = (_segments(path), callback)

        callback(self.get(path))

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(listener_id, None)

        return unsubscribe

    def _notify(self, written_paths: List[str]) -> None:
        written = [_segments(p) for p in written_paths]
        with self._lock:
            targets = [
                (segs, cb) for segs, cb in self._listeners.values()
                if any(_overlaps(segs, w) for w in written)
            ]
        for segs, cb in targets:
            try:
                cb(self.get("/".join(segs)))
            except Exception:
                logger.exception("Listener on %s failed", "/".join(segs) or "/")


def _overlaps(a: List[str], b: List[str]) -> bool:
    """True when one path is an ancestor of (or equal to) the other."""
    n = min(len(a), len(b))
    return a[:n] == b[:n]


# ── Firebase backend ──────────────────────────────────────────────────────────

class FirebaseStore(Store):
    """
    Firebase Realtime Database via firebase-admin.
    Transport, reconnection and serialization are owned by the SDK.
    """

    def __init__(self, credentials_path: str, database_url: str):
        import firebase_admin
        from firebase_admin import credentials, db

        if not database_url:
            raise StoreUnavailable("FIREBASE_DATABASE_URL is not set.")

        try:
            self._app = firebase_admin.get_app()
        except ValueError:
            cred = credentials.Certificate(credentials_path)
            self._app = firebase_admin.initialize_app(cred, {"databaseURL": database_url})
        self._db = db

    def _ref(self, path: str):
        return self._db.reference("/" + path.strip("/"), app=self._app)

    def get(self, path: str) -> Any:
        return self._ref(path).get()

    def set(self, path: str, value: Any) -> None:
        if value is None:
            self._ref(path).delete()
        else:
            self._ref(path).set(value)

    def update(self, path: str, values: Dict[str, Any]) -> None:
        if values:
            self._ref(path).update(values)

    def push(self, path: str, value: Any) -> str:
        return self._ref(path).push(value).key

    def remove(self, path: str) -> None:
        self._ref(path).delete()

    def listen(self, path: str, callback: Listener) -> Unsubscribe:
        # The SDK streams patch events; hand listeners the whole subtree instead,
        # the same value a client-side onValue subscription sees.
        def on_event(event) -> None:
            try:
                callback(self.get(path))
            except Exception:
                logger.exception("Listener on %s failed", path)

        registration = self._ref(path).listen(on_event)
        return registration.close

    def ping(self) -> bool:
        try:
            self._db.reference("/", app=self._app).get(shallow=True)
            return True
        except Exception as exc:
            logger.warning("Realtime database ping failed: %s", exc)
            return False
