"""JSON document persistence for the users, matches and messages collections."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .errors import StorageFailure

logger = logging.getLogger("sennight.store")

USERS = "users"
MATCHES = "matches"
MESSAGES = "messages"

COLLECTIONS = (USERS, MATCHES, MESSAGES)

Record = Dict[str, Any]


def resolve_data_dir(env_value: Optional[str]) -> Path:
    """Resolve the directory holding the collection documents."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (Path(__file__).resolve().parent.parent / "data").resolve(strict=False)


class CollectionStore:
    """Whole-document storage for the named collections.

    Every collection lives in its own pretty-printed JSON array. ``load`` and
    ``replace`` always operate on the entire document; ``replace`` writes to a
    temporary file first and renames it into place so readers never observe a
    partially written file. Read-modify-write sequences must go through
    :meth:`transaction`, which serialises writers of the same collection.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._locks: Dict[str, threading.RLock] = {name: threading.RLock() for name in COLLECTIONS}

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def ensure(self) -> None:
        """Create the data directory if it does not already exist."""

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageFailure(f"Unable to create data directory {self._data_dir}: {exc}") from exc

    def path_for(self, name: str) -> Path:
        self._check_name(name)
        return self._data_dir / f"{name}.json"

    def lock(self, name: str) -> threading.RLock:
        self._check_name(name)
        return self._locks[name]

    def load(self, name: str) -> List[Record]:
        """Return every record of ``name``, or an empty list if it was never written."""

        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageFailure(f"Unable to read {path.name}: {exc}") from exc

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed JSON in %s; treating collection as empty", path)
            return []

        if not isinstance(data, list):
            logger.warning("Expected a JSON array in %s; treating collection as empty", path)
            return []
        return data

    def replace(self, name: str, records: List[Record]) -> None:
        """Atomically replace the whole document for ``name``."""

        path = self.path_for(name)
        try:
            payload = json.dumps(records, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageFailure(f"Unable to serialise {name}: {exc}") from exc

        self.ensure()
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self._data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            logger.error("Failed to persist %s: %s", path, exc)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise StorageFailure(f"Unable to write {path.name}: {exc}") from exc

    @contextmanager
    def transaction(self, name: str) -> Iterator[List[Record]]:
        """Hold the collection lock across a load → mutate → replace cycle.

        The loaded list is yielded for in-place mutation and written back when
        the block completes. Nothing is written if the block raises.
        """

        with self.lock(name):
            records = self.load(name)
            yield records
            self.replace(name, records)

    def initialize(self) -> None:
        """Create empty documents for collections that have never been written."""

        self.ensure()
        for name in COLLECTIONS:
            with self.lock(name):
                if not self.path_for(name).exists():
                    self.replace(name, [])

    def _check_name(self, name: str) -> None:
        if name not in self._locks:
            raise ValueError(f"Unknown collection '{name}'")


__all__ = [
    "COLLECTIONS",
    "CollectionStore",
    "MATCHES",
    "MESSAGES",
    "Record",
    "USERS",
    "resolve_data_dir",
]
