from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.factories import FakeRedis


# ── Patch settings before any other import ──────────────────────────────────
@pytest.fixture(autouse=True)
def _patch_settings(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-for-unit-tests-0123456789")
    from storefront.core.config import settings
    monkeypatch.setattr(settings, "jwt_secret_key", "test-secret-key-for-unit-tests-0123456789")
    monkeypatch.setattr(settings, "razorpay_key_id", "rzp_test_key")
    monkeypatch.setattr(settings, "razorpay_key_secret", "rzp-test-secret")
    monkeypatch.setattr(settings, "razorpay_webhook_secret", "rzp-webhook-secret")
    monkeypatch.setattr(settings, "cron_secret", "cron-test-secret")
    monkeypatch.setattr(settings, "free_delivery_threshold", 99900)
    monkeypatch.setattr(settings, "delivery_fee", 9900)


@pytest.fixture
def mock_db():
    """Create a mock async database session."""
    db = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.get = AsyncMock(return_value=None)
    db.execute = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest.fixture
def fake_redis():
    return FakeRedis()


def result_of(*, scalar=None, scalars=None, rows=None, first=None, rowcount=None):
    """Build a stand-in for an AsyncSession.execute() result."""
    result = MagicMock()
    result.scalar.return_value = scalar
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    result.all.return_value = rows or []
    result.first.return_value = first
    result.rowcount = rowcount
    return result
