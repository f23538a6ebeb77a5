# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Inicializador del paquete principal 'app' del motor de facturación
y pagos a afiliados.

Autor: Naturinex Billing
Fecha: 2026-09-02
"""

# Fin del archivo backend/app/__init__.py
