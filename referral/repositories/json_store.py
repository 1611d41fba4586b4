"""
JSON-file persistence for record collections.

Each collection lives in its own file `<root>/<name>.json` holding a single
object `{"<name>": [record, ...]}`. Writes replace the whole file through a
temporary file + rename, so readers only ever see a fully committed version.

Mutations of one collection are serialised inside the process by `mutate()`;
`upsert()` and `update()` go through it. A bare `read_collection()` followed by
`write_collection()` is still last-writer-wins against any other writer.
There is no cross-process locking.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from referral.core.logging import get_logger
from referral.domain.ids import new_id, prefix_for
from referral.domain.lookup import match_alternate_key

logger = get_logger(__name__)

_COLLECTION_NAME = re.compile(r"[a-z][a-z0-9_]*")


class StorageError(Exception):
    """Raised when a collection file cannot be read or written."""

    def __init__(self, collection: str, message: str):
        super().__init__(f"{collection}: {message}")
        self.collection = collection


@dataclass(frozen=True)
class Ref:
    """Reference from one record to another, resolved lazily via JsonStore.resolve."""

    collection: str
    id: Optional[str]

    @classmethod
    def of(cls, record: Mapping[str, Any] | None, field: str, collection: str) -> "Ref":
        value = (record or {}).get(field)
        return cls(collection, str(value) if value else None)


class JsonStore:
    """Named collections of records persisted as JSON files under `root`."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # -------------------------- files --------------------------
    def path_for(self, name: str) -> Path:
        if not _COLLECTION_NAME.fullmatch(name or ""):
            raise ValueError(f"Invalid collection name: {name!r}")
        return self.root / f"{name}.json"

    def _lock_for(self, name: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.RLock()
            return lock

    def read_collection(self, name: str) -> List[dict]:
        """Load a collection; a missing or malformed file yields an empty list."""
        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError:
            logger.warning("Collection %s is not valid UTF-8; treating as empty", name)
            return []
        except OSError as exc:
            logger.error("Failed to read collection %s from %s: %s", name, path, exc)
            raise StorageError(name, f"read failed: {exc}") from exc

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Collection %s holds invalid JSON; treating as empty", name)
            return []
        items = data.get(name) if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.warning("Collection %s has no %r array; treating as empty", name, name)
            return []
        records = [item for item in items if isinstance(item, dict)]
        if len(records) != len(items):
            logger.warning("Collection %s: dropped %d non-object entries", name, len(items) - len(records))
        return records

    def write_collection(self, name: str, records: Iterable[Mapping[str, Any]]) -> None:
        """Persist the full sequence, atomically replacing the previous file."""
        path = self.path_for(name)
        payload = json.dumps({name: [dict(r) for r in records]}, ensure_ascii=False, indent=2)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.error("Failed to write collection %s to %s: %s", name, path, exc)
            raise StorageError(name, f"write failed: {exc}") from exc

    @contextlib.contextmanager
    def locked(self, name: str) -> Iterator[None]:
        """Hold the collection lock so several store calls run as one unit.

        The lock is re-entrant; upsert/update called inside the block reuse it.
        """
        with self._lock_for(name):
            yield

    @contextlib.contextmanager
    def mutate(self, name: str) -> Iterator[List[dict]]:
        """Hold the collection lock across read -> change -> write.

        The yielded list is written back when the block exits normally; an
        exception inside the block discards the changes. Do not call
        upsert/update for the same collection inside the block.
        """
        with self.locked(name):
            records = self.read_collection(name)
            yield records
            self.write_collection(name, records)

    # -------------------------- lookups --------------------------
    def find_by_id(self, name: str, record_id: Optional[str]) -> Optional[dict]:
        if not record_id:
            return None
        return _find_id(self.read_collection(name), record_id)

    def find_by_alternate_key(self, name: str, *, email: Any = None, phone: Any = None) -> Optional[dict]:
        """First record matching email (preferred) or, failing that, phone."""
        found = match_alternate_key(self.read_collection(name), {"email": email, "phone": phone})
        return dict(found) if found is not None else None

    def filter(self, name: str, **fields: Any) -> List[dict]:
        """Records whose given fields equal the given values."""
        return [
            record
            for record in self.read_collection(name)
            if all(record.get(key) == value for key, value in fields.items())
        ]

    def first(self, name: str) -> Optional[dict]:
        records = self.read_collection(name)
        return records[0] if records else None

    def resolve(self, ref: Ref) -> Optional[dict]:
        """Follow a reference; dangling or empty references resolve to None."""
        return self.find_by_id(ref.collection, ref.id)

    # -------------------------- writes --------------------------
    def upsert(self, name: str, record: Mapping[str, Any]) -> dict:
        """Append a new record (assigning an id if needed) or update one in place by id."""
        with self.mutate(name) as records:
            record_id = record.get("id")
            existing = _find_id(records, record_id) if record_id else None
            if existing is not None:
                existing.update(record)
                return dict(existing)
            stored = dict(record)
            if not record_id:
                stored["id"] = _unused_id(records, prefix_for(name))
            records.append(stored)
            return dict(stored)

    def update(self, name: str, record_id: Optional[str], changes: Mapping[str, Any]) -> Optional[dict]:
        """Set fields on the record with `record_id` and persist; None when it does not exist."""
        if not record_id:
            return None
        with self.locked(name):
            records = self.read_collection(name)
            target = _find_id(records, record_id)
            if target is None:
                return None
            target.update({k: v for k, v in changes.items() if k != "id"})
            self.write_collection(name, records)
            return dict(target)


def _find_id(records: Iterable[dict], record_id: Any) -> Optional[dict]:
    for record in records:
        if record.get("id") == record_id:
            return record
    return None


def _unused_id(records: List[dict], prefix: str) -> str:
    taken = {record.get("id") for record in records}
    candidate = new_id(prefix)
    while candidate in taken:
        candidate = new_id(prefix)
    return candidate
