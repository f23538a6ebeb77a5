# -*- coding: utf-8 -*-
import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_env_and_cache(monkeypatch):
    """
    Aísla variables de entorno y limpia los singletons de configuración en cada test.
    """
    # No heredar PYTHON_ENV ni secretos del shell del dev
    for k in list(os.environ.keys()):
        if k.startswith(("DB_", "CORS_", "APP_", "WEBHOOK_", "DUNNING_", "PAYOUT_", "PAYMENT_", "FRAUD_", "GATEWAY_", "ALLOW_")):
            monkeypatch.delenv(k, raising=False)
    monkeypatch.setenv("PYTHON_ENV", "development")

    from app.shared.config.config_loader import get_settings
    from app.shared.config.settings_billing import reset_billing_settings
    from app.shared.config.settings_payouts import reset_payout_settings

    get_settings.cache_clear()
    reset_billing_settings()
    reset_payout_settings()

    yield

    get_settings.cache_clear()
    reset_billing_settings()
    reset_payout_settings()
# Fin del archivo backend/tests/shared/config/conftest.py
