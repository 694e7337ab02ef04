"""
Cache delle istanze di Table, indicizzata per path assoluto.

Politica: nessuna invalidazione. Una volta creata, l'istanza associata a un
path resta in cache per tutta la vita del processo (o finché il chiamante non
invoca clear()/discard()); modifiche successive al file su disco NON vengono
viste. Il lock rende atomico il "lookup-or-insert", quindi al massimo
un'istanza per path anche con più thread.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, Generic, Optional, TypeVar

from .logger import LogManager

log = LogManager("cache").get_logger()

T = TypeVar("T")


class InstanceCache(Generic[T]):
    def __init__(self) -> None:
        self._items: Dict[Path, T] = {}
        # RLock: la factory può a sua volta consultare la cache
        self._lock = threading.RLock()

    def get_or_create(self, key: Path, factory: Callable[[], T]) -> T:
        with self._lock:
            item = self._items.get(key)
            if item is not None:
                log.debug("Cache hit: %s", key)
                return item
            item = factory()
            self._items[key] = item
            log.debug("Cache miss, istanza creata: %s", key)
            return item

    def get(self, key: Path) -> Optional[T]:
        with self._lock:
            return self._items.get(key)

    def discard(self, key: Path) -> None:
        with self._lock:
            self._items.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


default_cache: InstanceCache = InstanceCache()
