# -*- coding: utf-8 -*-
"""
backend/app/modules/billing/adapters/__init__.py

Adaptadores hacia el gateway de pagos.
"""

from .gateway_client import (
    GatewayClient,
    GatewayClientError,
    LoggingGatewayClient,
    HttpGatewayClient,
    build_gateway_client,
)

__all__ = [
    "GatewayClient",
    "GatewayClientError",
    "LoggingGatewayClient",
    "HttpGatewayClient",
    "build_gateway_client",
]

# Fin del archivo backend/app/modules/billing/adapters/__init__.py
