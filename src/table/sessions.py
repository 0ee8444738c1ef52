"""
Table session store.

Each mounted table gets its own ``TableCoordinator`` (and therefore its own
facet registry) kept under a random session id.  The store is a process-local
dict with a TTL and a max size; the oldest session is evicted when full.

Requests for one table are serialised through the session's own lock so a
mutation and its recompute finish before the next one starts.
"""
from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

from src.table.coordinator import TableCoordinator
from src.table.paginator import PageSink
from src.core.config import get_settings
from src.core.logging import get_logger
from src.core.utils import timer

logger = get_logger(__name__)

# (page, page_size) -> (records, total_records)
PageSource = Callable[[int, int], tuple[list[dict[str, Any]], int]]


# ── Session ─────────────────────────────────────────────


@dataclass
class TableSession:
    """One mounted table."""
    session_id: str
    created_at: float
    ttl: float
    coordinator: TableCoordinator | None = None
    view_name: str | None = None
    source: PageSource | None = None
    page_requests: list[tuple[int, int]] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    last_access: float = 0.0

    @property
    def is_expired(self) -> bool:
        return (time.time() - self.last_access) > self.ttl

    def touch(self) -> None:
        self.last_access = time.time()

    def record_page_request(self, page: int, page_size: int) -> None:
        """Server-side sink: remember the page the table asked for."""
        self.page_requests.append((page, page_size))

    def fetch_pending(self) -> bool:
        """Load the most recently requested page from ``source``; True if one was loaded."""
        if not self.page_requests or self.source is None:
            return False
        page, page_size = self.page_requests[-1]
        self.page_requests.clear()
        with timer() as t:
            records, total = self.source(page, page_size)
        self.coordinator.set_records(records, total_records=total)
        logger.debug("Session %s fetched page=%d size=%d total=%d | %.3fms",
                     self.session_id[:8], page, page_size, total, t["elapsed_ms"])
        return True


# ── Store ───────────────────────────────────────────────


class TableSessionStore:
    """Thread-safe in-memory store of table sessions.

    Parameters
    ----------
    ttl : float
        Seconds of inactivity after which a session expires.
    max_size : int
        Maximum number of live sessions. Oldest sessions are evicted when full.
    """

    def __init__(self, ttl: float | None = None, max_size: int | None = None):
        settings = get_settings()
        self._store: dict[str, TableSession] = {}
        self._lock = threading.Lock()
        self._ttl = ttl if ttl is not None else settings.session_ttl_seconds
        self._max_size = max_size if max_size is not None else settings.max_sessions
        self._hits = 0
        self._misses = 0

    # ── Public API ──────────────────────────────────────

    def create(
        self,
        build: Callable[[PageSink], TableCoordinator],
        view_name: str | None = None,
        source: PageSource | None = None,
    ) -> TableSession:
        """Build a coordinator and register it under a new session id.

        *build* receives the session's page-request sink, to be passed as the
        coordinator's ``on_page_change`` / ``on_page_size_change``.
        """
        now = time.time()
        session = TableSession(
            session_id=uuid.uuid4().hex,
            created_at=now,
            ttl=self._ttl,
            view_name=view_name,
            source=source,
            last_access=now,
        )
        session.coordinator = build(session.record_page_request)
        with self._lock:
            if len(self._store) >= self._max_size:
                self._evict_oldest()
            self._store[session.session_id] = session
        logger.info("Table session created id=%s view=%s size=%d",
                    session.session_id[:8], view_name, len(self._store))
        return session

    def get(self, session_id: str) -> TableSession | None:
        """Return a live session, or ``None`` if unknown / expired."""
        with self._lock:
            session = self._store.get(session_id)
            if session is None:
                self._misses += 1
                return None
            if session.is_expired:
                del self._store[session_id]
                self._misses += 1
                logger.info("Table session expired id=%s", session_id[:8])
                return None
            session.touch()
            self._hits += 1
            return session

    def drop(self, session_id: str | None = None) -> int:
        """Remove one session, or all of them. Returns number removed."""
        with self._lock:
            if session_id is None:
                count = len(self._store)
                self._store.clear()
                return count
            if session_id in self._store:
                del self._store[session_id]
                return 1
            return 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._store),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total, 3) if total else 0.0,
            }

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Returns count removed."""
        with self._lock:
            expired = [k for k, v in self._store.items() if v.is_expired]
            for k in expired:
                del self._store[k]
            return len(expired)

    # ── Internals ───────────────────────────────────────

    def _evict_oldest(self) -> None:
        if not self._store:
            return
        oldest = min(self._store, key=lambda k: self._store[k].created_at)
        del self._store[oldest]
        logger.info("Table session evicted id=%s", oldest[:8])


# ── Module-level singleton ──────────────────────────────

_store: TableSessionStore | None = None


def get_session_store() -> TableSessionStore:
    """Return the process-wide session store."""
    global _store
    if _store is None:
        _store = TableSessionStore()
    return _store
