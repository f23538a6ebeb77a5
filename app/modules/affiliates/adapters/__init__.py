# -*- coding: utf-8 -*-
"""
backend/app/modules/affiliates/adapters/__init__.py
"""

from .transfer_adapters import (
    RAIL_ADAPTERS,
    HttpTransferProvider,
    StubTransferProvider,
    TransferProvider,
    TransferReceipt,
    TransferRequest,
    TransferResult,
    TransferRouter,
    build_transfer_provider,
)

__all__ = [
    "RAIL_ADAPTERS",
    "HttpTransferProvider",
    "StubTransferProvider",
    "TransferProvider",
    "TransferReceipt",
    "TransferRequest",
    "TransferResult",
    "TransferRouter",
    "build_transfer_provider",
]
