import os
import sys
from unittest.mock import MagicMock

import pytest

# Settings is instantiated at import time; these must be set first
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_stripe_test")
os.environ.setdefault("FAKE_WEBHOOK_SECRET", "whsec_fake_test")
os.environ.setdefault("ENABLED_PROVIDERS", "stripe,fake")

# Ensure project root is in pythonpath
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from billing_gateway.payments.context import ProviderContext  # noqa: E402
from billing_gateway.payments.fake_provider import FakeProvider, FakeVendorClient  # noqa: E402
from billing_gateway.payments.stripe_client import StripeV1Client  # noqa: E402
from billing_gateway.payments.stripe_provider import StripeProvider  # noqa: E402


@pytest.fixture
def ctx():
    return ProviderContext(config={"apiKey": "sk_test_123"}, trace_id="trace-test")


@pytest.fixture
def stripe_sdk():
    """Stands in for stripe.StripeClient; tests program sdk.v1.<service>.<method>."""
    return MagicMock(name="StripeClient")


@pytest.fixture
def stripe_client(stripe_sdk):
    return StripeV1Client(client_factory=lambda api_key: stripe_sdk, timeout=2.0)


@pytest.fixture
def stripe_provider(stripe_client):
    return StripeProvider(client=stripe_client)


@pytest.fixture
def fake_vendor():
    return FakeVendorClient()


@pytest.fixture
def fake_provider(fake_vendor):
    return FakeProvider(client=fake_vendor)
