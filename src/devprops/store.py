"""Shared cache and lookup contract for property stores."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

log = logging.getLogger(__name__)


class PropertyCache:
    """Key/value mapping owned by a single store instance."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def discard(self, key: str) -> None:
        self._data.pop(key, None)

    def replace(self, entries: Dict[str, str]) -> None:
        # Swap in a complete load in one step
        self._data = dict(entries)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)


def check_key(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Property name must be a non-empty string, got {name!r}")


class PropertyStore(ABC):
    """Lazily populated property store.

    Subclasses provide ``_populate`` (return the full mapping, or ``None`` when
    the backing collaborator failed) and their own write path in ``set``. The
    cache is filled on the first successful ``get_all`` and is not reloaded
    afterwards; ``exists`` only consults the cache and never triggers a load.
    """

    def __init__(self) -> None:
        self._cache = PropertyCache()
        self._populated = False
        self._lock = threading.RLock()

    @property
    def populated(self) -> bool:
        return self._populated

    @abstractmethod
    def _populate(self) -> Optional[Dict[str, str]]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set(self, name: str, value: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def get_all(self) -> Dict[str, str]:
        with self._lock:
            if not self._populated:
                entries = self._populate()
                if entries is None:
                    log.debug("%s: population failed, cache left empty", type(self).__name__)
                else:
                    self._cache.replace(entries)
                    self._populated = True
                    log.debug("%s: loaded %d properties", type(self).__name__, len(entries))
            return self._cache.as_dict()

    def get(self, name: str) -> Optional[str]:
        check_key(name)
        return self.get_all().get(name)

    def exists(self, name: str) -> bool:
        check_key(name)
        with self._lock:
            return name in self._cache

    def _commit(self, name: str, value: str) -> None:
        self._cache.put(name, value)
