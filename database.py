# database.py
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol, Tuple, Type

from pydantic import BaseModel, ValidationError

from config import DATABASE_FILE, PERSISTENCE_POLICY
from errors import PersistenceError
from models import Message, Snapshot, User, dump

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Whole-snapshot persistence: every operation reads or writes everything."""

    def load(self) -> Snapshot: ...

    def save(self, snapshot: Snapshot) -> None: ...


def _validate_each(model: Type[BaseModel], records) -> Tuple[List, int]:
    """Validate records one by one. Returns the good ones and how many were dropped."""
    if records is None:
        return [], 0
    if not isinstance(records, list):
        return [], 1
    good, bad = [], 0
    for record in records:
        try:
            good.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning("Skipping invalid %s record: %s", model.__name__, e)
            bad += 1
    return good, bad


class JsonFileStore:
    """
    Keeps the snapshot in a single JSON file: {"users": [...], "messages": [...]}.

    A missing file reads as an empty snapshot. Unparseable JSON reads as
    empty and invalid records are skipped; in both cases the file is first
    copied to `<name>.corrupt` so the next save can't destroy the only copy.
    I/O failures are logged; with fail_open=False they are raised as
    PersistenceError instead of being swallowed. There is no locking, so two
    concurrent load/modify/save cycles end with the last writer's snapshot.
    """

    def __init__(self, path, fail_open: bool = True, atomic: bool = True):
        self.path = Path(path)
        self.fail_open = fail_open
        self.atomic = atomic

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_name(self.path.name + ".corrupt")

    def load(self) -> Snapshot:
        if not self.path.exists():
            return Snapshot()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Read failed for %s: %s", self.path, e)
            if not self.fail_open:
                raise PersistenceError("Database read failed") from e
            return Snapshot()

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Corrupt database %s, starting empty: %s", self.path, e)
            self._keep_corrupt_copy()
            return Snapshot()
        if not isinstance(data, dict):
            logger.warning("Corrupt database %s: top level is not an object", self.path)
            self._keep_corrupt_copy()
            return Snapshot()

        users, bad_users = _validate_each(User, data.get("users"))
        messages, bad_messages = _validate_each(Message, data.get("messages"))
        if bad_users or bad_messages:
            logger.warning(
                "Dropped %d user(s) and %d message(s) from %s", bad_users, bad_messages, self.path
            )
            self._keep_corrupt_copy()
        return Snapshot(users=users, messages=messages)

    def _keep_corrupt_copy(self) -> None:
        try:
            shutil.copyfile(self.path, self.corrupt_path)
        except OSError as e:
            logger.error("Could not back up %s: %s", self.path, e)

    def save(self, snapshot: Snapshot) -> None:
        payload = json.dumps(dump(snapshot), indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.atomic:
                self._write_atomic(payload)
            else:
                self.path.write_text(payload, encoding="utf-8")
        except OSError as e:
            logger.error("Write failed for %s: %s", self.path, e)
            if not self.fail_open:
                raise PersistenceError("Database write failed") from e

    def _write_atomic(self, payload: str) -> None:
        # unique temp name per write, so concurrent savers never share one
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise


class MemoryStore:
    """In-process store. Hands out copies so callers can't mutate it without save()."""

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._snapshot = snapshot.model_copy(deep=True) if snapshot else Snapshot()
        self.saves = 0

    def load(self) -> Snapshot:
        return self._snapshot.model_copy(deep=True)

    def save(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot.model_copy(deep=True)
        self.saves += 1


_store: Optional[Store] = None


def get_store() -> Store:
    """Process-wide store built from config. Used as a FastAPI dependency."""
    global _store
    if _store is None:
        _store = JsonFileStore(DATABASE_FILE, fail_open=PERSISTENCE_POLICY != "closed")
    return _store
