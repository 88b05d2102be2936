"""Shared test fixtures for all test modules."""

import contextlib
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

import recoverhub.models  # noqa: F401
from recoverhub.core.database import Base, Database
from recoverhub.main import create_app
from recoverhub.models.dunning_template import DunningTemplate
from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.models.gateway_connection import GatewayConnection
from recoverhub.models.merchant import Merchant
from recoverhub.repositories.failed_payment_repository import FailedPaymentRepository
from recoverhub.repositories.gateway_connection_repository import GatewayConnectionRepository
from recoverhub.repositories.merchant_repository import MerchantRepository
from recoverhub.services.credential_vault import CredentialVault
from recoverhub.services.default_templates import seed_default_templates

# In-memory SQLite with StaticPool so every session (including the ones the
# worker opens in threads) shares the same database state.
_test_database = Database("sqlite://", poolclass=StaticPool)

TEST_ENCRYPTION_KEY = "test-encryption-key"
ACCESS_TOKEN = "sk_test_connected_account_token"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after."""
    _test_database.create_all()
    yield
    with _test_database.engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()


@pytest.fixture
def database() -> Database:
    return _test_database


@pytest.fixture
def db_session():
    """Create a database session for direct service and repository testing."""
    db = _test_database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def vault() -> CredentialVault:
    return CredentialVault(TEST_ENCRYPTION_KEY)


@pytest.fixture
def access_token() -> str:
    """Plaintext token stored (encrypted) on the test gateway connection."""
    return ACCESS_TOKEN


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def merchant(db_session) -> Merchant:
    merchant = MerchantRepository(db_session).create("owner@example.com", "Example Co")
    db_session.commit()
    return merchant


@pytest.fixture
def connection(db_session, merchant, vault) -> GatewayConnection:
    connection = GatewayConnectionRepository(db_session).upsert(
        merchant_id=merchant.id,
        account_id="acct_test123",
        credential=vault.encrypt(ACCESS_TOKEN),
        account_name="Example Co Billing",
    )
    db_session.commit()
    return connection


@pytest.fixture
def templates(db_session, merchant) -> list[DunningTemplate]:
    """The default three-step dunning sequence for the test merchant."""
    created = seed_default_templates(db_session, merchant.id)
    db_session.commit()
    return created


@pytest.fixture
def make_case(db_session, merchant, connection, now) -> Callable[..., FailedPayment]:
    """Factory for failed-payment cases with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> FailedPayment:
        counter["n"] += 1
        fields: dict[str, Any] = {
            "merchant_id": merchant.id,
            "gateway_connection_id": connection.id,
            "external_invoice_id": f"in_test_{counter['n']}",
            "external_customer_id": "cus_test",
            "customer_email": "customer@example.com",
            "customer_name": "Jane Customer",
            "amount_cents": 4900,
            "currency": "usd",
            "failure_reason": "Your card was declined.",
            "failure_code": "card_declined",
            "status": FailedPaymentStatus.ACTIVE.value,
            "recovery_started_at": now,
            "created_at": now,
        }
        fields.update(overrides)
        case = FailedPaymentRepository(db_session).create(**fields)
        db_session.commit()
        return case

    return _make


@pytest.fixture
def redis() -> MagicMock:
    """Stand-in for the arq pool; enqueue_job echoes the requested job id."""
    pool = MagicMock()

    async def _enqueue(function: str, *args: Any, **kwargs: Any) -> MagicMock:
        job = MagicMock()
        job.job_id = kwargs.get("_job_id") or "job-123"
        return job

    pool.enqueue_job = AsyncMock(side_effect=_enqueue)
    return pool


@pytest.fixture
def client(redis) -> TestClient:
    return TestClient(create_app(database=_test_database, redis=redis))


@pytest.fixture
def auth_headers(merchant) -> dict[str, str]:
    return {"X-Merchant-Id": str(merchant.id)}
