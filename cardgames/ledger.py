"""Persistent best-score ledger over a key-value store."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import ContextManager, Dict, Generator, Optional, Protocol, Union

import portalocker

from .scoring import MATCHING, is_better_score

logger = logging.getLogger(__name__)

STORAGE_KEY = "baseballCardGame_highScores"

Scores = Dict[str, Dict[str, int]]


class StorageError(RuntimeError):
    """Raised by a store when it cannot read, write or lock an item."""


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def lock(self) -> ContextManager[object]:
        """Exclusive hold over the store for one read-modify-write."""
        ...


class MemoryStore:
    """In-process store, mainly for tests and throwaway sessions."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self.items: Dict[str, str] = dict(items or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def lock(self) -> ContextManager[object]:
        return self._lock


class JsonFileStore:
    """Keep string items in one JSON object on disk.

    Writes go to a temporary file in the same directory and are moved into
    place, so a reader never sees a half-written document. ``lock`` holds a
    ``portalocker`` exclusive lock on a sibling ``.lock`` file, which
    serializes every store opened on the same path, in this process or
    another.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(f".{self.path.name}.lock")

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            items = self._read()
        except StorageError as exc:
            logger.warning("Replacing unreadable store %s: %s", self.path, exc)
            items = {}
        items[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc

    @contextmanager
    def lock(self) -> Generator[None, None, None]:
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.lock_path, "a", encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot lock {self.path}: {exc}") from exc
        with handle:
            try:
                portalocker.lock(handle, portalocker.LOCK_EX)
            except portalocker.LockException as exc:
                raise StorageError(f"Cannot lock {self.path}: {exc}") from exc
            try:
                yield
            finally:
                portalocker.unlock(handle)

    def _read(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"{self.path} does not hold a JSON object.")
        return payload


class ScoreLedger:
    """Best score per (mode, key); lower wins for matching, higher elsewhere.

    Each ``save`` runs its load, compare and write under the store's lock, so
    ledgers sharing one store never lose or downgrade each other's records.
    """

    def __init__(self, store: Optional[KeyValueStore] = None, storage_key: str = STORAGE_KEY) -> None:
        self.store = store if store is not None else MemoryStore()
        self.storage_key = storage_key
        self._lock = threading.Lock()

    def get_all(self) -> Scores:
        with self._lock:
            try:
                with self.store.lock():
                    return self._load()
            except StorageError as exc:
                logger.warning("Reading high scores without the store lock: %s", exc)
                return self._load(write_back=False)

    def get(self, mode: str, key: Union[str, int]) -> Optional[int]:
        return self.get_all().get(mode, {}).get(str(key))

    def save(self, mode: str, key: Union[str, int], score: int) -> bool:
        """Store ``score`` if it beats the current best; return True on a new record."""
        with self._lock:
            try:
                with self.store.lock():
                    if not self._save_locked(mode, str(key), score):
                        return False
            except StorageError as exc:
                logger.warning("Could not lock high scores: %s", exc)
                return False
        logger.info("New %s record for %s: %s", mode, key, score)
        return True

    def _save_locked(self, mode: str, key: str, score: int) -> bool:
        scores = self._load()
        if not is_better_score(mode, score, scores.get(mode, {}).get(key)):
            return False
        scores.setdefault(mode, {})[key] = score
        return self._write(scores)

    def _load(self, write_back: bool = True) -> Scores:
        try:
            raw = self.store.get_item(self.storage_key)
        except StorageError as exc:
            logger.warning("Score storage unreadable, treating as empty: %s", exc)
            return {}
        if not raw:
            return {}
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Corrupt high-score entry under %s, treating as empty", self.storage_key)
            return {}
        if not isinstance(payload, dict):
            return {}

        scores, migrated = normalize_scores(payload)
        if migrated and write_back:
            logger.info("Migrating legacy matching high scores")
            self._write(scores)
        return scores

    def _write(self, scores: Scores) -> bool:
        try:
            self.store.set_item(self.storage_key, json.dumps(scores))
        except (StorageError, OSError) as exc:
            logger.warning("Could not persist high scores: %s", exc)
            return False
        return True


def normalize_scores(payload: Dict[str, object]) -> tuple[Scores, bool]:
    """Return the nested score mapping and whether legacy entries were folded in.

    The legacy shape is a flat ``{difficulty: turns}`` mapping written by the
    matching game alone.
    """
    scores: Scores = {}
    migrated = False
    for mode, entry in payload.items():
        if isinstance(entry, dict):
            bucket = scores.setdefault(mode, {})
            for key, value in entry.items():
                if _is_score(value):
                    bucket[str(key)] = int(value)
        elif _is_score(entry):
            legacy = scores.setdefault(MATCHING, {})
            legacy.setdefault(str(mode), int(entry))
            migrated = True
    return scores, migrated


def _is_score(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
