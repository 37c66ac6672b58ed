"""
Process-local real-time channel registry.

Each live client connection owns a bounded queue. A connection may join
the private channel of one subject (user id); ``emit`` targets every
connection in that channel, ``emit_all`` every open connection.
Delivery is fire-and-forget: a message for a subject with no live
connection is dropped, and a full queue drops the message for that
connection only. The registry is rebuilt from live connections and is
lost on restart.
"""
import logging
import queue
import threading
import uuid
from typing import Optional

from flask import json

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class ChannelRegistry:
    _inst = None
    _inst_lock = threading.Lock()

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._lock = threading.RLock()
        self._queues: dict[str, queue.Queue] = {}
        self._subject_of: dict[str, str] = {}
        self._rooms: dict[str, set[str]] = {}

    # ---------- Singleton ----------
    @classmethod
    def instance(cls, queue_size: Optional[int] = None):
        """Return the process-wide registry."""
        with cls._inst_lock:
            if cls._inst is None:
                cls._inst = ChannelRegistry(queue_size or DEFAULT_QUEUE_SIZE)
        return cls._inst

    # ---------- Connections ----------
    def open(self, connection_id: Optional[str] = None) -> str:
        """Register a new live connection and return its id."""
        cid = connection_id or uuid.uuid4().hex
        with self._lock:
            self._queues.setdefault(cid, queue.Queue(maxsize=self.queue_size))
        logger.debug("Connection opened: %s", cid)
        return cid

    def join(self, subject_id: str, connection_id: str) -> None:
        """Add a connection to a subject's private channel, opening it if needed."""
        with self._lock:
            self.open(connection_id)
            previous = self._subject_of.get(connection_id)
            if previous and previous != subject_id:
                self._discard(previous, connection_id)
            self._subject_of[connection_id] = subject_id
            self._rooms.setdefault(subject_id, set()).add(connection_id)
        logger.info("User %s joined their room (connection %s)", subject_id, connection_id)

    def leave(self, connection_id: str) -> None:
        """Forget a connection entirely (client disconnected)."""
        with self._lock:
            self._queues.pop(connection_id, None)
            subject_id = self._subject_of.pop(connection_id, None)
            if subject_id:
                self._discard(subject_id, connection_id)
        logger.info("Connection closed: %s", connection_id)

    def _discard(self, subject_id: str, connection_id: str) -> None:
        members = self._rooms.get(subject_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[subject_id]

    def connections_for(self, subject_id: str) -> set[str]:
        with self._lock:
            return set(self._rooms.get(subject_id, ()))

    # ---------- Delivery ----------
    def _put(self, connection_id: str, message: dict) -> bool:
        q = self._queues.get(connection_id)
        if q is None:
            return False
        try:
            q.put_nowait(message)
            return True
        except queue.Full:
            logger.warning("Dropping %s for slow connection %s", message["event"], connection_id)
            return False

    def emit(self, subject_id: str, event: str, payload) -> int:
        """Push an event to every connection of one subject. Returns deliveries."""
        message = {"event": event, "data": payload}
        with self._lock:
            targets = list(self._rooms.get(subject_id, ()))
            return sum(1 for cid in targets if self._put(cid, message))

    def emit_all(self, event: str, payload) -> int:
        """Push an event to every open connection. Returns deliveries."""
        message = {"event": event, "data": payload}
        with self._lock:
            return sum(1 for cid in list(self._queues) if self._put(cid, message))

    def next_message(self, connection_id: str, timeout: float) -> Optional[dict]:
        """Block up to `timeout` seconds for the next message; None on timeout."""
        with self._lock:
            q = self._queues.get(connection_id)
        if q is None:
            return None
        try:
            return q.get(timeout=timeout)
        except queue.Empty:
            return None


def format_sse(event: str, data) -> str:
    """Encode one Server-Sent Events frame."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"
