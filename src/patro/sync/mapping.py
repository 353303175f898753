"""
patro.sync.mapping
------------------
Persistent derived-id -> external-id mapping.

At most one external id per key. Writers must hold ``store.locks.lock(key)``
while reading-then-writing a key. The reconciler does this for every derived
id, so separate reconcilers over one store still serialize per key. A store
without a ``locks`` attribute only gets per-reconciler locking.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol

logger = logging.getLogger(__name__)


class MappingStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, external_id: str) -> None: ...
    def remove(self, key: str) -> None: ...
    def snapshot(self) -> Dict[str, str]: ...


class KeyedLocks:
    """One lock per key, created on demand and dropped once nobody holds or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders + waiters]
        self._locks: Dict[str, List[Any]] = {}

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class InMemoryMappingStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._mu = threading.Lock()
        # shared by every reconciler writing to this store
        self.locks = KeyedLocks()

    def get(self, key: str) -> Optional[str]:
        with self._mu:
            return self._data.get(key)

    def set(self, key: str, external_id: str) -> None:
        with self._mu:
            self._data[key] = external_id

    def remove(self, key: str) -> None:
        with self._mu:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        with self._mu:
            return dict(self._data)

    def __len__(self) -> int:
        return len(self.snapshot())


class JsonFileMappingStore(InMemoryMappingStore):
    """
    Flat JSON object on disk, rewritten on every change so that a batch
    interrupted midway keeps every mapping already established.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        initial: Dict[str, str] = {}
        if self.path.is_file():
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            if not isinstance(raw, dict):
                raise ValueError(f"{self.path}: expected a JSON object")
            initial = {str(k): str(v) for k, v in raw.items()}
        super().__init__(initial)

    def set(self, key: str, external_id: str) -> None:
        with self._mu:
            self._data[key] = external_id
            self._flush()

    def remove(self, key: str) -> None:
        with self._mu:
            if self._data.pop(key, None) is not None:
                self._flush()

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        logger.debug("Wrote %d mappings to %s", len(self._data), self.path)
