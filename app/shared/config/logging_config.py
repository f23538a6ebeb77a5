# -*- coding: utf-8 -*-
"""
backend/app/shared/config/logging_config.py

Configuración centralizada de logging.
Soporta formato plain/pretty (desarrollo) y json (producción).

Autor: Naturinex Billing
Fecha: 02/09/2026
"""

import logging.config
from typing import Literal

# Librerías ruidosas que se fijan en WARNING salvo en DEBUG
_NOISY_LOGGERS = ("apscheduler", "sqlalchemy.engine", "aiosqlite", "httpx")


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain"
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Formato de salida (plain, pretty, json)

    Ejemplos:
        >>> setup_logging("INFO", "plain")
        >>> setup_logging("WARNING", "json")
    """
    # python-json-logger v3 movió jsonlogger -> json
    try:
        import importlib
        importlib.import_module("pythonjsonlogger.json")
        json_formatter_path = "pythonjsonlogger.json.JsonFormatter"
    except ImportError:  # pragma: no cover
        json_formatter_path = "pythonjsonlogger.jsonlogger.JsonFormatter"

    formatter_name = {"json": "json", "pretty": "pretty"}.get(fmt, "default")

    formatters = {
        "default": {
            "format": "%(levelname)s [%(name)s]: %(message)s"
        },
        "pretty": {
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "json": {
            "()": json_formatter_path,
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    }

    noisy_level = "DEBUG" if level.upper() == "DEBUG" else "WARNING"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter_name,
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {name: {"level": noisy_level} for name in _NOISY_LOGGERS},
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(logging_config)


__all__ = ["setup_logging"]
# Fin del archivo backend/app/shared/config/logging_config.py
