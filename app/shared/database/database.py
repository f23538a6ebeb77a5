# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async: asyncpg en producción, aiosqlite en pruebas/local.

Provee:
- engine (create_async_engine)
- SessionLocal (async_sessionmaker)
- Base (DeclarativeBase con naming convention)
- Dependencias FastAPI: get_async_session / get_db
- context manager: session_scope()
- check_database_health()

Notas:
- SQLite en memoria usa StaticPool para compartir la conexión entre sesiones.
- Las transacciones las controla quien usa la sesión (facades/jobs);
  aquí solo se garantiza rollback de lo que quede abierto.

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.shared.config import get_settings
from app.shared.database.base import Base  # reutilizamos la Base única

logger = logging.getLogger(__name__)


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Crea el engine async adecuado al dialecto de `url`.

    Args:
        url: DSN SQLAlchemy (postgresql+asyncpg://... o sqlite+aiosqlite://...)
        echo: Loguea SQL emitido

    Returns:
        AsyncEngine
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=echo, **kwargs)

    settings = get_settings()
    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
    )


_settings = get_settings()
engine = build_engine(_settings.database_url, echo=_settings.db_echo_sql)
logger.debug(f"[DB] Engine creado (dialecto={engine.dialect.name}, echo={_settings.db_echo_sql})")

# ── Session factory
SessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
)


# ── Dependencias FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError:
            # Importante: rollback para liberar cualquier transacción/lock
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# Alias para routers que usan el nombre corto
get_db = get_async_session


# ── Context manager reutilizable en jobs/scripts
@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            # El commit lo decide quien usa el scope; esto es solo un helper
        finally:
            if session.in_transaction():
                await session.rollback()


async def create_all_tables(bind: AsyncEngine | None = None) -> None:
    """Crea las tablas registradas en Base.metadata (dev/local; producción usa migraciones)."""
    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── Health check
async def check_database_health(timeout_s: float = 3.0, sql: str = "SELECT 1") -> bool:
    """
    Verifica conectividad a la base de datos.

    Args:
        timeout_s: Tiempo máximo de espera en segundos
        sql: Query SQL a ejecutar (default: "SELECT 1")

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with engine.connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning(f"[DB] Health check falló: {e}")
        return False


__all__ = [
    "engine",
    "build_engine",
    "SessionLocal",
    "Base",
    "get_async_session",
    "get_db",
    "session_scope",
    "create_all_tables",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
