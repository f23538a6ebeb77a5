# -*- coding: utf-8 -*-
"""
backend/app/shared/utils/datetime_helpers.py

Utilidades para manejo consistente de timestamps UTC.

Los payloads del gateway traen epoch en segundos; la base de datos
puede devolver datetimes naive (SQLite), por eso toda comparación
pasa por ensure_utc().

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Retorna el timestamp UTC actual (timezone-aware).

    Examples:
        >>> utcnow().tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Asegura que un datetime sea UTC timezone-aware.

    Args:
        dt: datetime a convertir (naive se asume UTC)

    Returns:
        datetime UTC timezone-aware
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    if dt.tzinfo != timezone.utc:
        return dt.astimezone(timezone.utc)
    return dt


def from_unix(ts: Optional[int | float]) -> Optional[datetime]:
    """
    Convierte epoch (segundos) del gateway a datetime UTC.

    Examples:
        >>> from_unix(0).isoformat()
        '1970-01-01T00:00:00+00:00'
        >>> from_unix(None) is None
        True
    """
    if ts is None:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc)


def to_unix(dt: Optional[datetime]) -> Optional[int]:
    """Convierte datetime a epoch en segundos (naive se asume UTC)."""
    if dt is None:
        return None
    return int(ensure_utc(dt).timestamp())


def to_iso8601(dt: Optional[datetime]) -> Optional[str]:
    """
    Convierte datetime a string ISO 8601 con 'Z' para UTC.

    Examples:
        >>> to_iso8601(datetime(2026, 9, 2, 14, 30, tzinfo=timezone.utc))
        '2026-09-02T14:30:00Z'
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')


__all__ = ["utcnow", "ensure_utc", "from_unix", "to_unix", "to_iso8601"]
# Fin del archivo backend/app/shared/utils/datetime_helpers.py
