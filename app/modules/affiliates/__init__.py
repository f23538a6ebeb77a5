# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/__init__.py

Módulo Affiliates: comisiones, screening de fraude y payouts.

Autor: Naturinex Billing
Fecha: 2026-09-15
"""
