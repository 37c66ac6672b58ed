import atexit
import copy
import logging
import os
import pickle
import threading
import uuid
from datetime import datetime
from pathlib import Path

import pytz

from fleet_rental.exceptions import DuplicateKey
from fleet_rental.utils.constants import USERS, VEHICLES, RENTALS, NOTIFICATIONS

logger = logging.getLogger(__name__)

# ---- Paths ----
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_PATH = BASE_DIR / "data.pkl"

# collection name -> fields that must be unique across documents
UNIQUE_FIELDS = {
    USERS: ("email", "username"),
    VEHICLES: ("licensePlate",),
    RENTALS: (),
    NOTIFICATIONS: (),
}


def _matches(doc: dict, flt: dict | None) -> bool:
    """
    Evaluate a document-store style filter against one document.
    Plain values compare by equality; operator dicts support
    $lte, $gte, $lt, $gt, $ne and $in.
    """
    if not flt:
        return True
    for field, cond in flt.items():
        value = doc.get(field)
        if isinstance(cond, dict):
            for op, arg in cond.items():
                if op == "$lte" and not (value is not None and value <= arg):
                    return False
                if op == "$gte" and not (value is not None and value >= arg):
                    return False
                if op == "$lt" and not (value is not None and value < arg):
                    return False
                if op == "$gt" and not (value is not None and value > arg):
                    return False
                if op == "$ne" and value == arg:
                    return False
                if op == "$in" and value not in arg:
                    return False
        elif value != cond:
            return False
    return True


class Collection:
    """
    One named collection inside the Store.

    Reads hand out deep copies so callers can never mutate persisted
    documents behind the store's back; every write goes through the
    store lock and is flushed to disk.
    """

    def __init__(self, store: "Store", name: str):
        self._store = store
        self.name = name

    @property
    def _docs(self) -> dict[str, dict]:
        return self._store.data[self.name]

    def _check_unique(self, doc: dict, skip_id: str | None = None):
        for field in UNIQUE_FIELDS.get(self.name, ()):
            value = doc.get(field)
            if value is None:
                continue
            for other in self._docs.values():
                if other["id"] != skip_id and other.get(field) == value:
                    raise DuplicateKey(
                        "Duplicate field value",
                        errors=[{"field": field, "message": f"{field} already exists"}],
                    )

    # ---------- queries ----------
    def find_many(self, flt: dict | None = None, sort: list[tuple[str, int]] | None = None,
                  limit: int | None = None) -> list[dict]:
        with self._store._rw:
            res = [copy.deepcopy(d) for d in self._docs.values() if _matches(d, flt)]
        # apply sort keys last-to-first so the first key wins (stable sort)
        for field, direction in reversed(sort or []):
            res.sort(key=lambda d: (d.get(field) is None, d.get(field)), reverse=direction < 0)
        if limit is not None:
            res = res[:limit]
        return res

    def find_one(self, flt: dict) -> dict | None:
        with self._store._rw:
            for d in self._docs.values():
                if _matches(d, flt):
                    return copy.deepcopy(d)
        return None

    def get(self, doc_id) -> dict | None:
        """Look a document up by id; malformed or unknown ids yield None."""
        if not isinstance(doc_id, str) or not doc_id:
            return None
        with self._store._rw:
            d = self._docs.get(doc_id)
            return copy.deepcopy(d) if d is not None else None

    def count(self, flt: dict | None = None) -> int:
        with self._store._rw:
            return sum(1 for d in self._docs.values() if _matches(d, flt))

    # ---------- commands ----------
    def insert(self, doc: dict) -> dict:
        """Insert a new document, stamping id and timestamps; return a copy."""
        with self._store._rw:
            now = datetime.now(pytz.utc)
            new = dict(doc)
            new["id"] = uuid.uuid4().hex
            new.setdefault("createdAt", now)
            new["updatedAt"] = now
            self._check_unique(new)
            self._docs[new["id"]] = new
            self._store._dump()
            return copy.deepcopy(new)

    def update_one(self, flt: dict, patch: dict) -> dict | None:
        """Apply `patch` to the first matching document; None if nothing matched."""
        with self._store._rw:
            for d in self._docs.values():
                if _matches(d, flt):
                    merged = {**d, **patch, "id": d["id"], "updatedAt": datetime.now(pytz.utc)}
                    self._check_unique(merged, skip_id=d["id"])
                    self._docs[d["id"]] = merged
                    self._store._dump()
                    return copy.deepcopy(merged)
        return None

    def delete_one(self, flt: dict) -> dict | None:
        with self._store._rw:
            for doc_id, d in self._docs.items():
                if _matches(d, flt):
                    del self._docs[doc_id]
                    self._store._dump()
                    return d
        return None

    def delete_many(self, flt: dict | None = None) -> int:
        with self._store._rw:
            doomed = [doc_id for doc_id, d in self._docs.items() if _matches(d, flt)]
            for doc_id in doomed:
                del self._docs[doc_id]
            if doomed:
                self._store._dump()
            return len(doomed)


class Store:
    _inst = None
    _inst_lock = threading.Lock()
    _atexit_registered = False

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = str(path or DEFAULT_DATA_PATH)
        self.data: dict[str, dict[str, dict]] = {name: {} for name in UNIQUE_FIELDS}
        self._rw = threading.RLock()

        logger.info("[Store] Using file: %s", self.path)
        self._load()

        # Automatically save on exit (skipped in test environments)
        if not Store._atexit_registered and os.getenv("APP_ENV") != "test":
            atexit.register(self.save)
            Store._atexit_registered = True

    # ---------- Singleton ----------
    @classmethod
    def instance(cls, path: str | os.PathLike | None = None):
        """Return the global singleton instance of Store."""
        with cls._inst_lock:
            if cls._inst is None:
                cls._inst = Store(path or DEFAULT_DATA_PATH)
        return cls._inst

    def collection(self, name: str) -> Collection:
        if name not in self.data:
            raise KeyError(f"Unknown collection: {name}")
        return Collection(self, name)

    @property
    def users(self) -> Collection:
        return self.collection(USERS)

    @property
    def vehicles(self) -> Collection:
        return self.collection(VEHICLES)

    @property
    def rentals(self) -> Collection:
        return self.collection(RENTALS)

    @property
    def notifications(self) -> Collection:
        return self.collection(NOTIFICATIONS)

    # ---------- Persistence ----------
    def _load(self):
        """Load data from the pickle file, or start empty if unavailable or invalid."""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "rb") as f:
                data = pickle.load(f)
        except Exception as e:
            logger.warning("[Store] Load failed (%s); starting empty.", e)
            return

        if isinstance(data, dict):
            for name in self.data:
                self.data[name] = data.get(name, {}) or {}
            logger.info(
                "[Store] Loaded: %s",
                ", ".join(f"{name}={len(docs)}" for name, docs in self.data.items()),
            )
        else:
            # Handle incompatible data format: backup the old file and start empty
            try:
                bak = self.path + ".bak"
                os.replace(self.path, bak)
                logger.warning("[Store] Incompatible store (%s); backed up to %s. Starting empty.",
                               type(data).__name__, bak)
            except OSError as e:
                logger.error("[Store] Backup failed: %s", e)

    def _dump(self):
        """Write the in-memory data to the pickle file safely (atomic replace)."""
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "wb") as f:
            pickle.dump(self.data, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def save(self):
        """Thread-safe save method."""
        with self._rw:
            logger.info("[Store] Saving to %s ...", self.path)
            self._dump()

    def clear(self):
        """Drop every document in every collection and persist the empty store."""
        with self._rw:
            for docs in self.data.values():
                docs.clear()
            self._dump()
