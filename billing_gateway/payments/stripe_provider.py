# billing_gateway/payments/stripe_provider.py
from __future__ import annotations
from typing import Optional

from billing_gateway.core.settings import settings
from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.stripe_client import StripeV1Client
from billing_gateway.payments.stripe_manifest import STRIPE_MANIFEST


class StripeProvider(BaseProvider):
    manifest = STRIPE_MANIFEST

    def __init__(self, client: Optional[StripeV1Client] = None):
        super().__init__(
            client
            or StripeV1Client(
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                max_network_retries=settings.STRIPE_MAX_NETWORK_RETRIES,
            )
        )
