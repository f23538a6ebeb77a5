# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/__init__.py

Módulo Billing: ingesta de webhooks del gateway, ledger de idempotencia,
handlers de estado de suscripción y motor de dunning.

Autor: Naturinex Billing
Fecha: 2026-09-08
"""
