# dudelang/conftest.py
import os

import pytest

# The app validates env at import time; tests run against local defaults.
os.environ.setdefault("SKIP_ENV_VALIDATION", "1")

from dudelang.core.config import Settings
from dudelang.features.billing.service import BillingBroker
from dudelang.features.entitlements import service as entitlement_service_module
from dudelang.features.entitlements.service import EntitlementService
from dudelang.features.entitlements.store import EntitlementStore
from dudelang.tests.mocks import FakeBillingProvider

MONTHLY_PRICE = "price_monthly_test"
ANNUAL_PRICE = "price_annual_test"


@pytest.fixture
def test_settings(tmp_path):
    """Server settings pointing at a per-test entitlement file."""
    return Settings(
        _env_file=None,
        STRIPE_SECRET_KEY="sk_test_dummy",
        STRIPE_PRICE_MONTHLY=MONTHLY_PRICE,
        STRIPE_PRICE_ANNUAL=ANNUAL_PRICE,
        CLIENT_URL="http://localhost:5173",
        ENTITLEMENTS_FILE=str(tmp_path / "data" / "users.json"),
        PROVIDER_TIMEOUT_SECONDS=1.0,
    )


@pytest.fixture
def store(test_settings):
    return EntitlementStore(test_settings.ENTITLEMENTS_FILE)


@pytest.fixture
def provider():
    return FakeBillingProvider()


@pytest.fixture
def service(store, provider, test_settings):
    broker = BillingBroker(provider, timeout_seconds=test_settings.PROVIDER_TIMEOUT_SECONDS)
    return EntitlementService(store, broker, cfg=test_settings)


@pytest.fixture(autouse=True)
def reset_entitlement_service():
    """Each test builds its own service; never share the process singleton."""
    entitlement_service_module._service = None
    yield
    entitlement_service_module._service = None


@pytest.fixture
def client(service):
    """TestClient with the entitlement service swapped for the per-test one."""
    from fastapi.testclient import TestClient

    from dudelang.main import app

    app.dependency_overrides[entitlement_service_module.get_entitlement_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
