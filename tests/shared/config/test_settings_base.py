# -*- coding: utf-8 -*-
from app.shared.config.settings_base import BaseAppSettings


def test_database_url_builds_from_parts(monkeypatch):
    monkeypatch.setenv("DB_USER", "alice")
    monkeypatch.setenv("DB_PASSWORD", "s3cr3t!")
    monkeypatch.setenv("DB_HOST", "db.local")
    monkeypatch.setenv("DB_PORT", "5433")
    monkeypatch.setenv("DB_NAME", "billing_db")
    s = BaseAppSettings()
    assert s.database_url.startswith("postgresql+asyncpg://alice:s3cr3t%21@")
    assert "db.local:5433/billing_db" in s.database_url


def test_database_url_uses_DB_URL_and_normalizes(monkeypatch):
    monkeypatch.setenv("DB_URL", "postgres://u:p@h:5432/db")
    s = BaseAppSettings()
    assert s.database_url == "postgresql+asyncpg://u:p@h:5432/db"


def test_database_url_keeps_sqlite(monkeypatch):
    monkeypatch.setenv("DB_URL", "sqlite+aiosqlite:///./billing.db")
    assert BaseAppSettings().database_url == "sqlite+aiosqlite:///./billing.db"


def test_cors_origins_parsing_list(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.com, https://b.com , 'http://localhost:8080'")
    s = BaseAppSettings()
    assert s.get_cors_origins() == ["https://a.com", "https://b.com", "http://localhost:8080"]


def test_cors_origins_wildcard(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "*")
    assert BaseAppSettings().get_cors_origins() == ["*"]

# Fin del archivo backend/tests/shared/config/test_settings_base.py
