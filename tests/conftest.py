# backend/tests/conftest.py
# -*- coding: utf-8 -*-
"""
Config global de tests del motor de facturación.

- PYTHON_ENV=test ANTES de importar la app (SQLite en memoria, scheduler
  y métricas apagados)
- Engine aiosqlite por test con el esquema completo (billing + affiliates)
- Colaboradores falsos: gateway, proveedor de transferencias y cola de
  notificaciones que solo registran llamadas
- Cliente httpx contra la app (ASGITransport) con la sesión y los
  servicios de app.state reemplazados por los de cada test
"""

import os
import sys
import pathlib
from collections.abc import AsyncIterator
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

# -----------------------------------------------------------------------------
# 0) Entorno de pruebas (antes de cualquier import de app.*)
# -----------------------------------------------------------------------------
os.environ["PYTHON_ENV"] = "test"
os.environ.setdefault("LOG_LEVEL", "WARNING")

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.shared.config.config_loader import get_settings
from app.shared.config.settings_billing import BillingSettings
from app.shared.config.settings_payouts import PayoutSettings
from app.shared.database.base import Base
from app.shared.database.database import build_engine, get_async_session
from app.shared.security import PaymentDetailsCodec
from app.shared.utils.datetime_helpers import utcnow

# Registrar todos los modelos en Base.metadata
import app.modules.billing.models  # noqa: F401
import app.modules.affiliates.models  # noqa: F401

from app.modules.billing.adapters import GatewayClientError
from app.modules.billing.facades.webhooks import BillingDependencies, EventDispatcher
from app.modules.billing.models import BillingAccount
from app.modules.billing.repositories import BillingAccountRepository
from app.modules.billing.services import EntitlementCache
from app.modules.billing.services.webhooks import build_signature_header
from app.modules.affiliates.adapters import TransferReceipt, TransferRequest
from app.modules.affiliates.enums import AffiliateStatus, CommissionStatus, PayoutRail
from app.modules.affiliates.errors import ProviderTransferError
from app.modules.affiliates.facades.payouts import PayoutDependencies, PayoutOrchestrator
from app.modules.affiliates.models import Affiliate, CommissionRecord
from app.modules.affiliates.repositories import AffiliateRepository

WEBHOOK_SECRET = "whsec_test_secret"
SERVICE_TOKEN = "test-service-token"

BANK_DETAILS = {
    "account_number": "000123456789",
    "routing_number": "110000000",
    "account_holder_name": "Ana Torres",
}


# -----------------------------------------------------------------------------
# 1) Base de datos
# -----------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine():
    eng = build_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as s:
        yield s


# -----------------------------------------------------------------------------
# 2) Colaboradores falsos
# -----------------------------------------------------------------------------
class FakeGateway:
    """Registra cancelaciones y cobros; puede forzarse a fallar."""

    def __init__(self) -> None:
        self.canceled: list[str] = []
        self.paid: list[str] = []
        self.fail_cancel = False
        self.fail_pay = False

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        if self.fail_cancel:
            raise GatewayClientError("gateway unavailable")
        self.canceled.append(subscription_id)
        return {"id": subscription_id, "status": "canceled"}

    async def pay_invoice(self, invoice_id: str) -> dict[str, Any]:
        if self.fail_pay:
            raise GatewayClientError("gateway unavailable")
        self.paid.append(invoice_id)
        return {"id": invoice_id, "status": "open"}


class FakeTransferProvider:
    """Proveedor de transferencias en memoria."""

    def __init__(self) -> None:
        self.requests: list[TransferRequest] = []
        self.error: Optional[str] = None
        self.status: Optional[str] = None

    async def transfer(self, request: TransferRequest) -> TransferReceipt:
        self.requests.append(request)
        if self.error:
            raise ProviderTransferError(self.error)
        return TransferReceipt(reference=f"REF-{len(self.requests)}", status=self.status)


class RecordingQueue:
    """Sustituto de NotificationQueue que solo acumula mensajes."""

    def __init__(self) -> None:
        self.messages: list = []

    def enqueue(self, message) -> bool:
        self.messages.append(message)
        return True

    def enqueue_many(self, messages) -> int:
        items = list(messages)
        self.messages.extend(items)
        return len(items)

    def templates(self) -> list[str]:
        return [m.template for m in self.messages]


async def _instant_sleep(_delay: float) -> None:
    return None


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def fake_provider() -> FakeTransferProvider:
    return FakeTransferProvider()


@pytest.fixture
def notifications() -> RecordingQueue:
    return RecordingQueue()


# -----------------------------------------------------------------------------
# 3) Billing
# -----------------------------------------------------------------------------
@pytest.fixture
def billing_settings() -> BillingSettings:
    return BillingSettings(
        webhook_signing_secret=WEBHOOK_SECRET,
        signature_tolerance_seconds=300,
        webhook_handler_max_attempts=3,
        webhook_retry_base_delay_seconds=0.01,
        webhook_handler_timeout_seconds=5.0,
        webhook_processing_timeout_seconds=30.0,
        dunning_max_attempts=4,
        dunning_retry_intervals_days=[3, 5, 7, 10],
        dunning_grace_period_days=3,
    )


@pytest.fixture
def entitlements() -> EntitlementCache:
    return EntitlementCache(BillingAccountRepository())


@pytest.fixture
def billing_deps(billing_settings, fake_gateway, entitlements) -> BillingDependencies:
    return BillingDependencies.build(billing_settings, gateway=fake_gateway, entitlements=entitlements)


@pytest.fixture
def dispatcher(billing_settings, billing_deps, notifications) -> EventDispatcher:
    return EventDispatcher(billing_settings, billing_deps, notifications=notifications, sleep=_instant_sleep)


@pytest.fixture
def make_account(session):
    """Factory de BillingAccount persistida (commit incluido)."""

    async def _make(
        owner_id: str = "user_1",
        customer_id: str = "cus_1",
        subscription_id: Optional[str] = "sub_1",
        tier: str = "pro",
        status: Optional[str] = "active",
    ) -> BillingAccount:
        account = BillingAccount(
            owner_id=owner_id,
            gateway_customer_id=customer_id,
            subscription_id=subscription_id,
            tier=tier,
            status=status,
        )
        session.add(account)
        await session.commit()
        return account

    return _make


def make_event(event_id: str, event_type: str, obj: dict, previous: Optional[dict] = None) -> dict:
    data: dict[str, Any] = {"object": obj}
    if previous is not None:
        data["previous_attributes"] = previous
    return {"id": event_id, "type": event_type, "created": int(utcnow().timestamp()), "data": data}


def sign(raw_body: bytes, timestamp: Optional[int] = None) -> str:
    return build_signature_header(raw_body, WEBHOOK_SECRET, timestamp=timestamp)


@pytest.fixture
def event_payload():
    """Factory del sobre {id, type, created, data} del gateway."""
    return make_event


@pytest.fixture
def signer():
    """Firma un cuerpo crudo con el secreto de pruebas."""
    return sign


# -----------------------------------------------------------------------------
# 4) Affiliates
# -----------------------------------------------------------------------------
@pytest.fixture(scope="session")
def codec() -> PaymentDetailsCodec:
    return PaymentDetailsCodec("test-payment-details-secret", "test-salt")


@pytest.fixture
def payout_settings() -> PayoutSettings:
    return PayoutSettings(
        minimum_payout_threshold=Decimal("50.00"),
        processing_fee=Decimal("2.50"),
        processing_fee_cap_rate=Decimal("0.05"),
        tax_withholding_rate=Decimal("0"),
        fraud_risk_threshold=50,
        max_payout_retries=3,
    )


@pytest.fixture
def payout_deps(payout_settings, codec, fake_provider) -> PayoutDependencies:
    return PayoutDependencies.build(payout_settings, codec, provider=fake_provider)


@pytest.fixture
def orchestrator(payout_deps, notifications) -> PayoutOrchestrator:
    return PayoutOrchestrator(payout_deps, notifications=notifications)


@pytest.fixture
def bank_details() -> dict:
    return dict(BANK_DETAILS)


@pytest.fixture
def make_affiliate(session, codec):
    """
    Factory de afiliado aprobado con datos bancarios cifrados y comisiones
    confirmadas sin vincular (commit incluido).
    """

    async def _make(
        commissions: tuple = (Decimal("60.00"),),
        *,
        name: str = "Ana Torres",
        status: str = AffiliateStatus.APPROVED.value,
        method: str = PayoutRail.BANK_TRANSFER.value,
        details: Optional[dict] = None,
        threshold: Optional[Decimal] = None,
        transaction_date: Optional[datetime] = None,
    ) -> Affiliate:
        affiliate = Affiliate(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            status=status,
            minimum_payout_threshold=threshold,
            total_pending=sum(commissions, Decimal("0.00")),
        )
        AffiliateRepository().set_payment_details(
            affiliate,
            method=method,
            details=details if details is not None else dict(BANK_DETAILS),
            codec=codec,
        )
        session.add(affiliate)
        await session.flush()
        for amount in commissions:
            session.add(
                CommissionRecord(
                    affiliate_id=affiliate.id,
                    amount=Decimal(amount),
                    status=CommissionStatus.CONFIRMED.value,
                    transaction_date=transaction_date or utcnow(),
                )
            )
        await session.commit()
        return affiliate

    return _make


# -----------------------------------------------------------------------------
# 5) Cliente HTTP
# -----------------------------------------------------------------------------
@pytest.fixture
def service_token(monkeypatch):
    monkeypatch.setenv("APP_SERVICE_TOKEN", SERVICE_TOKEN)
    get_settings.cache_clear()
    yield {"Authorization": f"Bearer {SERVICE_TOKEN}"}
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def app():
    """Carga la app FastAPI **después** de fijar PYTHON_ENV=test."""
    from app.main import app as fastapi_app

    return fastapi_app


@pytest_asyncio.fixture
async def async_client(app, session_factory, dispatcher, orchestrator, service_token) -> AsyncIterator[AsyncClient]:
    """
    Cliente HTTP sin lifespan: los servicios de app.state y la sesión
    se reemplazan por los del test.
    """

    async def _session_override() -> AsyncIterator[AsyncSession]:
        async with session_factory() as s:
            try:
                yield s
            finally:
                if s.in_transaction():
                    await s.rollback()

    app.dependency_overrides[get_async_session] = _session_override
    app.state.billing_dispatcher = dispatcher
    app.state.payout_orchestrator = orchestrator
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        app.state.billing_dispatcher = None
        app.state.payout_orchestrator = None


# Fin del archivo backend/tests/conftest.py
