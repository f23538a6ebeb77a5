# -*- coding: utf-8 -*-
import logging

import pytest

json_logger = pytest.importorskip(
    "pythonjsonlogger", reason="Se omite test JSON si no está instalado python-json-logger"
)


def test_setup_logging_plain():
    from app.shared.config.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="plain")
    logging.getLogger("test_plain").debug("hello plain")
    # Debe existir handler de consola
    assert any(isinstance(h, logging.StreamHandler) for h in logging.getLogger().handlers)
    # En DEBUG las librerías ruidosas también bajan a DEBUG
    assert logging.getLogger("apscheduler").level == logging.DEBUG


def test_setup_logging_json():
    from app.shared.config.logging_config import setup_logging
    setup_logging(level="INFO", fmt="json")
    logging.getLogger("test_json").info("hello json")
    formatters = [getattr(h, "formatter", None) for h in logging.getLogger().handlers]
    assert any(
        f is not None and f.__class__.__module__.startswith("pythonjsonlogger") for f in formatters
    ), "Se esperaba JsonFormatter activo en modo json"
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

# Fin del archivo backend/tests/shared/config/test_logging_config.py
