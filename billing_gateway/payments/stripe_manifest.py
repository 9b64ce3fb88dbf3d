# billing_gateway/payments/stripe_manifest.py
from __future__ import annotations

from billing_gateway.payments.manifest import (
    CatalogCapability,
    CheckoutCapability,
    ConfigField,
    CustomerFeatures,
    CustomersCapability,
    DataField,
    PaymentFeatures,
    PaymentsCapability,
    ProviderCapabilities,
    ProviderManifest,
    SubscriptionFeatures,
    SubscriptionsCapability,
    WebhooksCapability,
)

STRIPE_MANIFEST = ProviderManifest(
    slug="stripe",
    name="Stripe",
    category="card",
    version="1.0.0",
    description=(
        "Card and wallet payments, hosted checkout and native recurring billing "
        "through the Stripe API."
    ),
    author="Billing Gateway",
    documentation_url="https://docs.stripe.com/api",
    support_url="https://support.stripe.com",
    regions=["*"],
    currencies=["*"],
    sandbox_available=True,
    status="stable",
    capabilities=ProviderCapabilities(
        checkout=CheckoutCapability(supported=True, strategy="redirect"),
        payments=PaymentsCapability(
            supported=True,
            features=PaymentFeatures(refunds=True, partial_refunds=True, capture=True, disputes=True),
        ),
        subscriptions=SubscriptionsCapability(
            supported=True,
            mode="native",
            features=SubscriptionFeatures(pause=True, resume=True, cancellation=True, proration=True),
        ),
        customers=CustomersCapability(
            supported=True,
            features=CustomerFeatures(create=True, update=True, delete=True),
        ),
        webhooks=WebhooksCapability(supported=True, verification="signature"),
        catalog=CatalogCapability(supported=True, strategy="inline"),
    ),
    config_schema={
        "apiKey": ConfigField(
            label="Secret Key",
            type="password",
            secure=True,
            required=True,
            pattern=r"^(sk|rk)_(test|live)_[A-Za-z0-9]+$",
            error_message="Secret Key must start with sk_test_, sk_live_, rk_test_ or rk_live_",
        ),
    },
    data_schema={
        "webhookEndpointId": DataField(secure=False, description="ID of the webhook endpoint registered at install."),
        "webhookSecret": DataField(secure=True, description="Signing secret for inbound webhook verification."),
        "apiKey": DataField(secure=True, description="API key used for requests on behalf of the account."),
    },
)
