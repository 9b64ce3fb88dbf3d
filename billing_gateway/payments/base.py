# billing_gateway/payments/base.py
from __future__ import annotations
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Union

import structlog

from billing_gateway.payments import webhook
from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.errors import (
    InvalidCredentialsError,
    OperationNotSupportedError,
    RevstackError,
)
from billing_gateway.payments.manifest import ProviderManifest
from billing_gateway.payments.models import (
    AddonInput,
    AsyncActionResult,
    BillingPortalInput,
    CheckoutSessionInput,
    CreatePaymentInput,
    CreateSubscriptionInput,
    CustomerInput,
    InstallInput,
    InstallResult,
    PaginationOptions,
    RefundPaymentInput,
    ResolvePriceInput,
    RevstackEvent,
    SetupPaymentMethodInput,
    UninstallInput,
    UpdateAddonInput,
    UpdateSubscriptionInput,
    WebhookResponse,
    ok,
)
from billing_gateway.payments.types import OPERATIONS, ProviderClient
from billing_gateway.schemas.config_validator import validate_config

log = structlog.get_logger(__name__)


class BaseProvider:
    """
    Unified provider contract with a capability gate.

    Each contract method forwards to the same-named method on `client` when the
    client defines it. When it does not, the call raises
    OperationNotSupportedError before the input is looked at. The base holds no
    business logic beyond that presence check and the install/uninstall protocol.
    """

    manifest: ProviderManifest

    def __init__(self, client: ProviderClient):
        self.client = client
        self._supported: FrozenSet[str] = frozenset(
            op for op in OPERATIONS if callable(getattr(client, op, None))
        )

    @property
    def slug(self) -> str:
        return self.manifest.slug

    def supports(self, operation: str) -> bool:
        return operation in self._supported

    def supported_operations(self) -> FrozenSet[str]:
        return self._supported

    def _handler(self, operation: str) -> Callable[..., Any]:
        if operation not in self._supported:
            raise OperationNotSupportedError(operation, provider=self.slug)
        return getattr(self.client, operation)

    # ---------------- lifecycle ----------------

    async def validate_credentials(self, ctx: ProviderContext) -> bool:
        return await self._handler("validate_credentials")(ctx)

    async def on_install(self, ctx: ProviderContext, input: InstallInput) -> AsyncActionResult:
        config = validate_config(self.manifest, input.config)
        install_ctx = ctx.with_config(config)

        if self.supports("validate_credentials"):
            if not await self.validate_credentials(install_ctx):
                raise InvalidCredentialsError(provider=self.slug)
        else:
            log.info("credentials_check_skipped", provider=self.slug)

        data: Dict[str, Any] = dict(config)

        if input.webhook_url and self.supports("setup_webhooks"):
            try:
                res = await self.client.setup_webhooks(install_ctx, input.webhook_url)
                if res.ok:
                    data.update(res.data or {})
                else:
                    log.warning(
                        "webhook_setup_failed",
                        provider=self.slug,
                        code=res.error.code.value,
                        message=res.error.message,
                    )
            except RevstackError as e:
                log.warning("webhook_setup_failed", provider=self.slug, code=e.code.value, message=e.message)
            except Exception as e:
                # adapters are not required to wrap vendor SDK errors
                log.warning("webhook_setup_failed", provider=self.slug, error_type=type(e).__name__, exc_info=True)

        data["_providerVersion"] = self.manifest.version
        log.info("provider_installed", provider=self.slug, webhooks="webhookEndpointId" in data)
        return ok(InstallResult(success=True, data=data))

    async def on_uninstall(self, ctx: ProviderContext, input: UninstallInput) -> AsyncActionResult:
        endpoint_id = (input.data or {}).get("webhookEndpointId")
        if endpoint_id and self.supports("remove_webhooks"):
            uninstall_ctx = ctx.with_config({**input.config, **input.data})
            try:
                res = await self.client.remove_webhooks(uninstall_ctx, endpoint_id)
                if not res.ok:
                    log.warning("webhook_removal_failed", provider=self.slug, code=res.error.code.value)
            except RevstackError as e:
                log.warning("webhook_removal_failed", provider=self.slug, code=e.code.value, message=e.message)
            except Exception as e:
                log.warning("webhook_removal_failed", provider=self.slug, error_type=type(e).__name__, exc_info=True)

        log.info("provider_uninstalled", provider=self.slug)
        return ok(True)

    # ---------------- payments ----------------

    async def create_payment(self, ctx: ProviderContext, input: CreatePaymentInput) -> AsyncActionResult:
        return await self._handler("create_payment")(ctx, input)

    async def get_payment(self, ctx: ProviderContext, payment_id: str) -> AsyncActionResult:
        return await self._handler("get_payment")(ctx, payment_id)

    async def refund_payment(self, ctx: ProviderContext, input: RefundPaymentInput) -> AsyncActionResult:
        return await self._handler("refund_payment")(ctx, input)

    async def list_payments(self, ctx: ProviderContext, pagination: Optional[PaginationOptions] = None) -> AsyncActionResult:
        return await self._handler("list_payments")(ctx, pagination or PaginationOptions())

    async def capture_payment(self, ctx: ProviderContext, payment_id: str, amount: Optional[int] = None) -> AsyncActionResult:
        return await self._handler("capture_payment")(ctx, payment_id, amount)

    # ---------------- subscriptions ----------------

    async def create_subscription(self, ctx: ProviderContext, input: CreateSubscriptionInput) -> AsyncActionResult:
        return await self._handler("create_subscription")(ctx, input)

    async def get_subscription(self, ctx: ProviderContext, subscription_id: str) -> AsyncActionResult:
        return await self._handler("get_subscription")(ctx, subscription_id)

    async def update_subscription(
        self, ctx: ProviderContext, subscription_id: str, input: UpdateSubscriptionInput
    ) -> AsyncActionResult:
        return await self._handler("update_subscription")(ctx, subscription_id, input)

    async def cancel_subscription(
        self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None, at_period_end: bool = True
    ) -> AsyncActionResult:
        return await self._handler("cancel_subscription")(ctx, subscription_id, reason, at_period_end)

    async def pause_subscription(self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None) -> AsyncActionResult:
        return await self._handler("pause_subscription")(ctx, subscription_id, reason)

    async def resume_subscription(self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None) -> AsyncActionResult:
        return await self._handler("resume_subscription")(ctx, subscription_id, reason)

    async def list_subscriptions(self, ctx: ProviderContext, pagination: Optional[PaginationOptions] = None) -> AsyncActionResult:
        return await self._handler("list_subscriptions")(ctx, pagination or PaginationOptions())

    # ---------------- checkout ----------------

    async def create_checkout_session(self, ctx: ProviderContext, input: CheckoutSessionInput) -> AsyncActionResult:
        return await self._handler("create_checkout_session")(ctx, input)

    async def setup_payment_method(self, ctx: ProviderContext, input: SetupPaymentMethodInput) -> AsyncActionResult:
        return await self._handler("setup_payment_method")(ctx, input)

    async def create_billing_portal_session(self, ctx: ProviderContext, input: BillingPortalInput) -> AsyncActionResult:
        return await self._handler("create_billing_portal_session")(ctx, input)

    # ---------------- customers ----------------

    async def create_customer(self, ctx: ProviderContext, input: CustomerInput) -> AsyncActionResult:
        return await self._handler("create_customer")(ctx, input)

    async def get_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        return await self._handler("get_customer")(ctx, customer_id)

    async def update_customer(self, ctx: ProviderContext, customer_id: str, input: CustomerInput) -> AsyncActionResult:
        return await self._handler("update_customer")(ctx, customer_id, input)

    async def delete_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        return await self._handler("delete_customer")(ctx, customer_id)

    async def list_customers(self, ctx: ProviderContext, pagination: Optional[PaginationOptions] = None) -> AsyncActionResult:
        return await self._handler("list_customers")(ctx, pagination or PaginationOptions())

    # ---------------- payment methods ----------------

    async def list_payment_methods(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        return await self._handler("list_payment_methods")(ctx, customer_id)

    async def delete_payment_method(self, ctx: ProviderContext, payment_method_id: str) -> AsyncActionResult:
        return await self._handler("delete_payment_method")(ctx, payment_method_id)

    # ---------------- addons ----------------

    async def create_addon(self, ctx: ProviderContext, input: AddonInput) -> AsyncActionResult:
        return await self._handler("create_addon")(ctx, input)

    async def get_addon(self, ctx: ProviderContext, addon_id: str) -> AsyncActionResult:
        return await self._handler("get_addon")(ctx, addon_id)

    async def update_addon(self, ctx: ProviderContext, addon_id: str, input: UpdateAddonInput) -> AsyncActionResult:
        return await self._handler("update_addon")(ctx, addon_id, input)

    async def delete_addon(self, ctx: ProviderContext, addon_id: str) -> AsyncActionResult:
        return await self._handler("delete_addon")(ctx, addon_id)

    async def list_addons(self, ctx: ProviderContext, subscription_id: str) -> AsyncActionResult:
        return await self._handler("list_addons")(ctx, subscription_id)

    # ---------------- catalog ----------------

    async def resolve_price(self, ctx: ProviderContext, input: ResolvePriceInput) -> AsyncActionResult:
        return await self._handler("resolve_price")(ctx, input)

    # ---------------- webhooks ----------------

    @property
    def webhook_signature_header(self) -> Optional[str]:
        return getattr(self.client, "webhook_signature_header", None)

    def verify_webhook_signature(
        self,
        ctx: ProviderContext,
        raw_body: Union[bytes, str],
        headers: Mapping[str, Any],
        secret: str,
        tolerance: int = webhook.DEFAULT_TOLERANCE_SECONDS,
    ) -> bool:
        """True on success; raises a WebhookVerificationError subclass otherwise."""
        self.verify_webhook(ctx, raw_body, headers, secret, tolerance)
        return True

    def verify_webhook(
        self,
        ctx: ProviderContext,
        raw_body: Union[bytes, str],
        headers: Mapping[str, Any],
        secret: str,
        tolerance: int = webhook.DEFAULT_TOLERANCE_SECONDS,
    ) -> webhook.VerifiedEvent:
        header_name = self.webhook_signature_header
        if not header_name or not self.manifest.capabilities.webhooks.supported:
            raise OperationNotSupportedError("verify_webhook_signature", provider=self.slug)
        sig = webhook.signature_from_headers(headers, header_name)
        return webhook.verify(raw_body, sig, secret, tolerance=tolerance)

    def parse_webhook_event(self, payload: Dict[str, Any]) -> Optional[RevstackEvent]:
        return self._handler("parse_webhook_event")(payload)

    def construct_event(
        self,
        ctx: ProviderContext,
        raw_body: Union[bytes, str],
        headers: Mapping[str, Any],
        secret: str,
        tolerance: int = webhook.DEFAULT_TOLERANCE_SECONDS,
    ) -> Optional[RevstackEvent]:
        """Verify then normalize. None means a genuine event this gateway does not map."""
        verified = self.verify_webhook(ctx, raw_body, headers, secret, tolerance)
        return self.parse_webhook_event(verified.payload)

    def get_webhook_response(self) -> WebhookResponse:
        custom = getattr(self.client, "get_webhook_response", None)
        if callable(custom):
            return custom()
        return WebhookResponse()
