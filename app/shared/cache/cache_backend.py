# -*- coding: utf-8 -*-
"""
backend/app/shared/cache/cache_backend.py

Interfaz base (ABC) para backends de caché.

Define el contrato de las cachés explícitas del servicio (hoy: caché de
entitlements por propietario). Ninguna caché es un global implícito:
se construyen en el lifespan y se inyectan a quien las usa.

Autor: Naturinex Billing
Fecha: 2026-09-04
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """
    Interfaz abstracta para backends de caché.

    Propiedades esperadas:
    - max_size: Tamaño máximo del caché (None = sin límite)
    - default_ttl: TTL por defecto en segundos (None = no expira por defecto)

    Métricas esperadas en get_stats():
    - size, max_size, hits, misses, evictions, invalidations,
      expired_removals, hit_rate_percent, total_requests
    """

    @property
    @abstractmethod
    def max_size(self) -> Optional[int]:
        """Tamaño máximo del caché. None si no tiene límite."""
        ...

    @property
    @abstractmethod
    def default_ttl(self) -> Optional[int]:
        """TTL por defecto en segundos. None si las entradas no expiran por defecto."""
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Valor asociado o None si no existe/expiró."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Almacena un valor en el caché.

        Args:
            key: Clave única
            value: Valor a almacenar
            ttl: None usa default_ttl; 0 o negativo no cachea
        """
        ...

    @abstractmethod
    def invalidate(self, key: str) -> bool:
        """True si existía y fue eliminada."""
        ...

    @abstractmethod
    def cleanup(self) -> int:
        """Elimina entradas expiradas; retorna cuántas."""
        ...

    @abstractmethod
    def get_stats(self) -> dict:
        ...
