# billing_gateway/payments/types.py
from __future__ import annotations
from typing import Any, Dict, Optional, Protocol

from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.models import (
    AddonInput,
    AsyncActionResult,
    BillingPortalInput,
    CheckoutSessionInput,
    CreatePaymentInput,
    CreateSubscriptionInput,
    CustomerInput,
    PaginationOptions,
    RefundPaymentInput,
    ResolvePriceInput,
    RevstackEvent,
    SetupPaymentMethodInput,
    UpdateAddonInput,
    UpdateSubscriptionInput,
)

# Every gated operation, in contract order. A client adapter supports an
# operation iff it defines a callable attribute with that name.
OPERATIONS = (
    # --- lifecycle ---
    "validate_credentials",
    "setup_webhooks",
    "remove_webhooks",
    # --- payments ---
    "create_payment",
    "get_payment",
    "refund_payment",
    "list_payments",
    "capture_payment",
    # --- subscriptions ---
    "create_subscription",
    "get_subscription",
    "update_subscription",
    "cancel_subscription",
    "pause_subscription",
    "resume_subscription",
    "list_subscriptions",
    # --- checkout ---
    "create_checkout_session",
    "setup_payment_method",
    "create_billing_portal_session",
    # --- customers ---
    "create_customer",
    "get_customer",
    "update_customer",
    "delete_customer",
    "list_customers",
    # --- payment methods ---
    "list_payment_methods",
    "delete_payment_method",
    # --- addons ---
    "create_addon",
    "get_addon",
    "update_addon",
    "delete_addon",
    "list_addons",
    # --- catalog ---
    "resolve_price",
    # --- webhooks ---
    "parse_webhook_event",
)


class ProviderClient(Protocol):
    """
    Full shape of a vendor adapter. Adapters implement any subset; the
    provider base only dispatches to what is actually defined.
    """
    webhook_signature_header: str

    # --- lifecycle ---
    async def validate_credentials(self, ctx: ProviderContext) -> bool: ...
    async def setup_webhooks(self, ctx: ProviderContext, webhook_url: str) -> AsyncActionResult: ...
    async def remove_webhooks(self, ctx: ProviderContext, endpoint_id: str) -> AsyncActionResult: ...

    # --- payments ---
    async def create_payment(self, ctx: ProviderContext, input: CreatePaymentInput) -> AsyncActionResult: ...
    async def get_payment(self, ctx: ProviderContext, payment_id: str) -> AsyncActionResult: ...
    async def refund_payment(self, ctx: ProviderContext, input: RefundPaymentInput) -> AsyncActionResult: ...
    async def list_payments(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult: ...
    async def capture_payment(self, ctx: ProviderContext, payment_id: str, amount: Optional[int] = None) -> AsyncActionResult: ...

    # --- subscriptions ---
    async def create_subscription(self, ctx: ProviderContext, input: CreateSubscriptionInput) -> AsyncActionResult: ...
    async def get_subscription(self, ctx: ProviderContext, subscription_id: str) -> AsyncActionResult: ...
    async def update_subscription(
        self, ctx: ProviderContext, subscription_id: str, input: UpdateSubscriptionInput
    ) -> AsyncActionResult: ...
    async def cancel_subscription(
        self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None, at_period_end: bool = True
    ) -> AsyncActionResult: ...
    async def pause_subscription(self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None) -> AsyncActionResult: ...
    async def resume_subscription(self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None) -> AsyncActionResult: ...
    async def list_subscriptions(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult: ...

    # --- checkout ---
    async def create_checkout_session(self, ctx: ProviderContext, input: CheckoutSessionInput) -> AsyncActionResult: ...
    async def setup_payment_method(self, ctx: ProviderContext, input: SetupPaymentMethodInput) -> AsyncActionResult: ...
    async def create_billing_portal_session(self, ctx: ProviderContext, input: BillingPortalInput) -> AsyncActionResult: ...

    # --- customers ---
    async def create_customer(self, ctx: ProviderContext, input: CustomerInput) -> AsyncActionResult: ...
    async def get_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult: ...
    async def update_customer(self, ctx: ProviderContext, customer_id: str, input: CustomerInput) -> AsyncActionResult: ...
    async def delete_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult: ...
    async def list_customers(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult: ...

    # --- payment methods ---
    async def list_payment_methods(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult: ...
    async def delete_payment_method(self, ctx: ProviderContext, payment_method_id: str) -> AsyncActionResult: ...

    # --- addons ---
    async def create_addon(self, ctx: ProviderContext, input: AddonInput) -> AsyncActionResult: ...
    async def get_addon(self, ctx: ProviderContext, addon_id: str) -> AsyncActionResult: ...
    async def update_addon(self, ctx: ProviderContext, addon_id: str, input: UpdateAddonInput) -> AsyncActionResult: ...
    async def delete_addon(self, ctx: ProviderContext, addon_id: str) -> AsyncActionResult: ...
    async def list_addons(self, ctx: ProviderContext, subscription_id: str) -> AsyncActionResult: ...

    # --- catalog ---
    async def resolve_price(self, ctx: ProviderContext, input: ResolvePriceInput) -> AsyncActionResult: ...

    # --- webhooks ---
    def parse_webhook_event(self, payload: Dict[str, Any]) -> Optional[RevstackEvent]: ...
