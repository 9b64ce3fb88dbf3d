# billing_gateway/payments/conformance.py
from __future__ import annotations
from typing import Callable, List, Tuple

from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.manifest import ProviderCapabilities

# (claim description, predicate over capabilities, operations the claim requires)
_CLAIMS: List[Tuple[str, Callable[[ProviderCapabilities], bool], Tuple[str, ...]]] = [
    ("payments.supported", lambda c: c.payments.supported, ("create_payment", "get_payment")),
    ("payments.features.refunds", lambda c: c.payments.features.refunds, ("refund_payment",)),
    ("payments.features.capture", lambda c: c.payments.features.capture, ("capture_payment",)),
    ("checkout.supported", lambda c: c.checkout.supported, ("create_checkout_session",)),
    # virtual subscriptions are driven by the platform, not the vendor
    (
        "subscriptions.supported (native)",
        lambda c: c.subscriptions.supported and c.subscriptions.mode == "native",
        ("create_subscription", "get_subscription"),
    ),
    (
        "subscriptions.features.cancellation",
        lambda c: c.subscriptions.mode == "native" and c.subscriptions.features.cancellation,
        ("cancel_subscription",),
    ),
    (
        "subscriptions.features.pause",
        lambda c: c.subscriptions.mode == "native" and c.subscriptions.features.pause,
        ("pause_subscription",),
    ),
    (
        "subscriptions.features.resume",
        lambda c: c.subscriptions.mode == "native" and c.subscriptions.features.resume,
        ("resume_subscription",),
    ),
    (
        "subscriptions.features.proration",
        lambda c: c.subscriptions.mode == "native" and c.subscriptions.features.proration,
        ("update_subscription",),
    ),
    ("customers.supported", lambda c: c.customers.supported, ("get_customer",)),
    ("customers.features.create", lambda c: c.customers.features.create, ("create_customer",)),
    ("customers.features.update", lambda c: c.customers.features.update, ("update_customer",)),
    ("customers.features.delete", lambda c: c.customers.features.delete, ("delete_customer",)),
    ("webhooks.supported", lambda c: c.webhooks.supported, ("parse_webhook_event",)),
    (
        "catalog.strategy=synced",
        lambda c: c.catalog.supported and c.catalog.strategy == "synced",
        ("resolve_price",),
    ),
]


def check_conformance(provider: BaseProvider) -> List[str]:
    """
    Return one message per capability the manifest claims but the client does
    not implement. An empty list means the provider honours its manifest.
    """
    caps = provider.manifest.capabilities
    problems: List[str] = []
    for claim, claimed, operations in _CLAIMS:
        if not claimed(caps):
            continue
        for op in operations:
            if not provider.supports(op):
                problems.append(f"{provider.slug}: claims {claim} but does not implement {op}")
    if caps.webhooks.supported and caps.webhooks.verification == "signature" and not provider.webhook_signature_header:
        problems.append(f"{provider.slug}: claims signed webhooks but declares no signature header")
    return problems
