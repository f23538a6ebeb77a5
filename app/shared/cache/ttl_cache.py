# -*- coding: utf-8 -*-
"""
backend/app/shared/cache/ttl_cache.py

Caché in-memory por proceso con TTL y eviction LRU.

Política de TTL:
- ttl=None en set(): usa default_ttl
- ttl<=0: la entrada NO se almacena
- default_ttl=None: las entradas nunca expiran por defecto

Autor: Naturinex Billing
Fecha: 2026-09-04
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from .cache_backend import CacheBackend

logger = logging.getLogger(__name__)


class TTLCache(CacheBackend):
    """Caché thread-safe con TTL y LRU."""

    def __init__(
        self,
        max_size: Optional[int] = 1000,
        default_ttl: Optional[int] = 300,
        name: str = "ttl",
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_size = max_size
        self._default_ttl = default_ttl
        self.name = name
        self._clock = clock

        self._cache: OrderedDict[str, tuple[Any, Optional[float]]] = OrderedDict()
        self._lock = threading.RLock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._invalidations = 0
        self._expired_removals = 0

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    @property
    def default_ttl(self) -> Optional[int]:
        return self._default_ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expiry = entry
            if expiry is not None and expiry <= self._clock():
                del self._cache[key]
                self._misses += 1
                self._expired_removals += 1
                return None

            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        effective_ttl = self._default_ttl if ttl is None else ttl
        if effective_ttl is not None and effective_ttl <= 0:
            return

        expiry = None if effective_ttl is None else self._clock() + effective_ttl
        with self._lock:
            self._cache[key] = (value, expiry)
            self._cache.move_to_end(key)
            while self._max_size is not None and len(self._cache) > self._max_size:
                evicted, _ = self._cache.popitem(last=False)
                self._evictions += 1
                logger.debug(f"[{self.name}] LRU eviction key={evicted}")

    def invalidate(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                self._invalidations += 1
                return True
            return False

    def cleanup(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._cache.items() if exp is not None and exp <= now]
            for k in expired:
                del self._cache[k]
            self._expired_removals += len(expired)
        if expired:
            logger.debug(f"[{self.name}] cleanup removed={len(expired)}")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "name": self.name,
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "invalidations": self._invalidations,
                "expired_removals": self._expired_removals,
                "hit_rate_percent": round(self._hits * 100.0 / total, 2) if total else 0.0,
                "total_requests": total,
            }


__all__ = ["TTLCache"]
# Fin del archivo backend/app/shared/cache/ttl_cache.py
