# billing_gateway/payments/stripe_client.py
from __future__ import annotations
import asyncio
import functools
import threading
from typing import Any, Callable, Dict, List, Optional

import stripe
import structlog

from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.errors import RevstackError, RevstackErrorCode as E
from billing_gateway.payments.models import (
    AddonInput,
    AsyncActionResult,
    BillingPortalInput,
    BillingPortalResult,
    CheckoutLineItem,
    CheckoutSessionInput,
    CheckoutSessionResult,
    CreatePaymentInput,
    CreateSubscriptionInput,
    CustomerInput,
    NextAction,
    PaginatedResult,
    PaginationOptions,
    RefundPaymentInput,
    ResolvePriceInput,
    RevstackEvent,
    SetupPaymentMethodInput,
    UpdateAddonInput,
    UpdateSubscriptionInput,
    fail,
    ok,
    requires_action,
)
from billing_gateway.payments.stripe_mappers import (
    _get,
    _id_of,
    to_addon,
    to_customer,
    to_event,
    to_payment,
    to_payment_method,
    to_subscription,
)
from billing_gateway.payments.stripe_maps import map_stripe_error

log = structlog.get_logger(__name__)

# events registered on the endpoint created at install time
WEBHOOK_EVENTS = [
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "payment_intent.processing",
    "payment_intent.canceled",
    "payment_intent.amount_capturable_updated",
    "checkout.session.completed",
    "charge.captured",
    "charge.refunded",
    "charge.dispute.created",
    "charge.dispute.closed",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.paused",
    "customer.subscription.resumed",
    "customer.subscription.trial_will_end",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
    "payment_method.attached",
    "payment_method.detached",
]


def append_query_param(url: str, param: str) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{param}"


def format_line_items(items: List[CheckoutLineItem], mode: str) -> List[Dict[str, Any]]:
    """
    Existing prices are referenced by id; anything else becomes inline price_data.
    Inline items get a recurring interval in subscription mode and never otherwise.
    """
    out: List[Dict[str, Any]] = []
    for item in items:
        if item.price_id:
            out.append({"price": item.price_id, "quantity": item.quantity})
            continue

        product: Dict[str, Any] = {"name": item.name or "Item"}
        if item.description:
            product["description"] = item.description
        if item.images:
            product["images"] = list(item.images)

        price_data: Dict[str, Any] = {
            "currency": (item.currency or "usd").lower(),
            "product_data": product,
            "unit_amount": item.amount,
            "tax_behavior": item.tax_behavior or "unspecified",
        }
        if mode == "subscription":
            price_data["recurring"] = {"interval": item.interval or "month"}
        out.append({"price_data": price_data, "quantity": item.quantity})
    return out


def _guarded(remap: Optional[Callable[[E, Optional[str]], E]] = None):
    """
    Turn vendor failures into failed results. Only Stripe errors and timeouts
    are caught; anything else is a bug and propagates.
    """
    def deco(fn):
        @functools.wraps(fn)
        async def wrapper(self: "StripeV1Client", ctx: ProviderContext, *args, **kwargs):
            try:
                return await fn(self, ctx, *args, **kwargs)
            except TimeoutError:
                log.warning("stripe_timeout", operation=fn.__name__, trace_id=ctx.trace_id, timeout=self.timeout)
                return fail(E.ProviderUnavailable, f"Stripe did not respond within {self.timeout}s", "timeout")
            except stripe.StripeError as e:
                code, message, provider_error = map_stripe_error(e)
                if remap is not None:
                    code = remap(code, provider_error)
                log.info(
                    "stripe_call_failed",
                    operation=fn.__name__,
                    trace_id=ctx.trace_id,
                    code=code.value,
                    provider_error=provider_error,
                )
                return fail(code, message, provider_error)
        return wrapper
    return deco


def _refund_remap(code: E, provider_error: Optional[str]) -> E:
    return E.RefundFailed if code == E.UnknownError else code


def _cancel_remap(code: E, provider_error: Optional[str]) -> E:
    return E.SubscriptionNotFound if provider_error == "resource_missing" else code


class StripeV1Client:
    """
    Stripe adapter over the StripeClient v1 services.

    One SDK handle per API key, owned by this instance and created lazily under
    a lock. SDK calls are blocking, so each one runs in a worker thread bounded
    by `timeout`; on timeout the caller stops waiting and gets ProviderUnavailable.
    """

    webhook_signature_header = "stripe-signature"

    def __init__(
        self,
        client_factory: Optional[Callable[[str], Any]] = None,
        *,
        timeout: float = 30.0,
        max_network_retries: int = 2,
    ):
        self.timeout = timeout
        self.max_network_retries = max_network_retries
        self._factory = client_factory or self._default_factory
        self._clients: Dict[str, Any] = {}
        self._lock = threading.Lock()

    # -------------------- plumbing --------------------

    def _default_factory(self, api_key: str) -> Any:
        return stripe.StripeClient(api_key, max_network_retries=self.max_network_retries)

    def _client(self, ctx: ProviderContext) -> Any:
        api_key = ctx.get("apiKey")
        if not api_key:
            raise RevstackError(E.MisconfiguredProvider, "Stripe apiKey is not configured", provider="stripe")
        client = self._clients.get(api_key)
        if client is None:
            with self._lock:
                client = self._clients.get(api_key)
                if client is None:
                    client = self._factory(api_key)
                    self._clients[api_key] = client
        return client

    def _v1(self, ctx: ProviderContext) -> Any:
        return self._client(ctx).v1

    async def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout=self.timeout)

    @staticmethod
    def _opts(ctx: ProviderContext) -> Dict[str, Any]:
        return {"idempotency_key": ctx.idempotency_key} if ctx.idempotency_key else {}

    @staticmethod
    def _trace_metadata(ctx: ProviderContext, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {**(extra or {}), "revstack_trace_id": ctx.trace_id}

    @staticmethod
    def _page(result: Any, mapper: Callable[[Any], Any]) -> PaginatedResult:
        rows = list(_get(result, "data", []) or [])
        return PaginatedResult(
            data=[mapper(r) for r in rows],
            has_more=bool(_get(result, "has_more", False)),
            next_cursor=_get(rows[-1], "id") if rows else None,
        )

    @staticmethod
    def _list_params(pagination: PaginationOptions, **extra: Any) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": pagination.limit, **extra}
        if pagination.cursor:
            params["starting_after"] = pagination.cursor
        return params

    # -------------------- lifecycle --------------------

    async def validate_credentials(self, ctx: ProviderContext) -> bool:
        if not ctx.get("apiKey"):
            return False
        try:
            await self._call(self._v1(ctx).payment_intents.list, params={"limit": 1})
            return True
        except (stripe.StripeError, TimeoutError) as e:
            log.info("stripe_credentials_rejected", trace_id=ctx.trace_id, error=type(e).__name__)
            return False

    async def setup_webhooks(self, ctx: ProviderContext, webhook_url: str) -> AsyncActionResult:
        endpoints = self._v1(ctx).webhook_endpoints
        try:
            existing = await self._call(endpoints.list, params={"limit": 100})
            match = next((w for w in _get(existing, "data", []) if _get(w, "url") == webhook_url), None)
            if match is not None:
                # Stripe only reveals the signing secret on create
                endpoint = await self._call(
                    endpoints.update, _get(match, "id"), params={"enabled_events": WEBHOOK_EVENTS}
                )
                data = {"webhookEndpointId": _get(endpoint, "id")}
            else:
                endpoint = await self._call(
                    endpoints.create,
                    params={"url": webhook_url, "enabled_events": WEBHOOK_EVENTS},
                    options=self._opts(ctx),
                )
                data = {"webhookEndpointId": _get(endpoint, "id"), "webhookSecret": _get(endpoint, "secret")}
        except TimeoutError as e:
            raise RevstackError(E.ProviderUnavailable, "Timed out registering webhook", provider="stripe", cause=e)
        except stripe.StripeError as e:
            code, message, _ = map_stripe_error(e)
            raise RevstackError(code, message, provider="stripe", cause=e)
        return ok(data)

    @_guarded()
    async def remove_webhooks(self, ctx: ProviderContext, endpoint_id: str) -> AsyncActionResult:
        await self._call(self._v1(ctx).webhook_endpoints.delete, endpoint_id)
        return ok(True)

    # -------------------- payments --------------------

    async def create_payment(self, ctx: ProviderContext, input: CreatePaymentInput) -> AsyncActionResult:
        if input.payment_method_id:
            return await self._create_payment_intent(ctx, input)
        if not input.return_url:
            return fail(E.MissingRequiredField, "return_url is required for hosted checkout payments")

        res = await self.create_checkout_session(
            ctx,
            CheckoutSessionInput(
                mode="payment",
                customer_id=input.customer_id,
                customer_email=input.customer_email,
                success_url=input.return_url,
                cancel_url=input.cancel_url or input.return_url,
                metadata=input.metadata,
                line_items=[
                    CheckoutLineItem(
                        name=input.description or "Payment",
                        amount=input.amount,
                        currency=input.currency,
                        quantity=1,
                    )
                ],
            ),
        )
        if not res.ok:
            return res
        return requires_action(res.data.session_id, res.next_action)

    @_guarded()
    async def _create_payment_intent(self, ctx: ProviderContext, input: CreatePaymentInput) -> AsyncActionResult:
        params: Dict[str, Any] = {
            "amount": input.amount,
            "currency": input.currency.lower(),
            "payment_method": input.payment_method_id,
            "confirm": True,
            "capture_method": "automatic" if input.capture else "manual",
            "metadata": self._trace_metadata(ctx, input.metadata),
        }
        if input.customer_id:
            params["customer"] = input.customer_id
        if input.description:
            params["description"] = input.description
        if input.return_url:
            params["return_url"] = input.return_url

        pi = await self._call(self._v1(ctx).payment_intents.create, params=params, options=self._opts(ctx))
        if _get(pi, "status") == "requires_action":
            redirect = _get(_get(_get(pi, "next_action"), "redirect_to_url"), "url")
            action = (
                NextAction(type="redirect", url=redirect)
                if redirect
                else NextAction(type="show_modal", payload={"clientSecret": _get(pi, "client_secret")})
            )
            return requires_action(_get(pi, "id"), action)
        return ok(_get(pi, "id"))

    @_guarded()
    async def get_payment(self, ctx: ProviderContext, payment_id: str) -> AsyncActionResult:
        v1 = self._v1(ctx)
        if payment_id.startswith("cs_"):
            session = await self._call(v1.checkout.sessions.retrieve, payment_id)
            pi_id = _id_of(_get(session, "payment_intent"))
            if not pi_id:
                return fail(E.ResourceNotFound, "Checkout session has no associated payment intent yet")
            payment_id = pi_id
        pi = await self._call(v1.payment_intents.retrieve, payment_id, params={"expand": ["latest_charge"]})
        return ok(to_payment(pi))

    @_guarded(remap=_refund_remap)
    async def refund_payment(self, ctx: ProviderContext, input: RefundPaymentInput) -> AsyncActionResult:
        params: Dict[str, Any] = {
            "payment_intent": input.payment_id,
            "metadata": self._trace_metadata(ctx, input.metadata),
        }
        if input.amount is not None:
            params["amount"] = input.amount
        if input.reason:
            params["reason"] = input.reason
        refund = await self._call(self._v1(ctx).refunds.create, params=params, options=self._opts(ctx))
        return ok(_get(refund, "id"))

    @_guarded()
    async def list_payments(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult:
        params = self._list_params(pagination, expand=["data.latest_charge"])
        result = await self._call(self._v1(ctx).payment_intents.list, params=params)
        return ok(self._page(result, to_payment))

    @_guarded()
    async def capture_payment(self, ctx: ProviderContext, payment_id: str, amount: Optional[int] = None) -> AsyncActionResult:
        params = {"amount_to_capture": amount} if amount else {}
        pi = await self._call(
            self._v1(ctx).payment_intents.capture, payment_id, params=params, options=self._opts(ctx)
        )
        return ok(_get(pi, "id"))

    # -------------------- subscriptions --------------------

    async def create_subscription(self, ctx: ProviderContext, input: CreateSubscriptionInput) -> AsyncActionResult:
        if not input.checkout:
            return await self._create_subscription_direct(ctx, input)
        if not input.success_url:
            return fail(E.MissingRequiredField, "success_url is required for hosted checkout subscriptions")

        res = await self.create_checkout_session(
            ctx,
            CheckoutSessionInput(
                mode="subscription",
                customer_id=input.customer_id,
                success_url=input.success_url,
                cancel_url=input.cancel_url or input.success_url,
                trial_days=input.trial_days,
                metadata=input.metadata,
                line_items=[CheckoutLineItem(price_id=input.price_id, quantity=input.quantity)],
            ),
        )
        if not res.ok:
            return res
        return requires_action(res.data.session_id, res.next_action)

    @_guarded()
    async def _create_subscription_direct(self, ctx: ProviderContext, input: CreateSubscriptionInput) -> AsyncActionResult:
        params: Dict[str, Any] = {
            "customer": input.customer_id,
            "items": [{"price": input.price_id, "quantity": input.quantity}],
            "metadata": self._trace_metadata(ctx, input.metadata),
        }
        if input.trial_days:
            params["trial_period_days"] = input.trial_days
        sub = await self._call(self._v1(ctx).subscriptions.create, params=params, options=self._opts(ctx))
        return ok(_get(sub, "id"))

    @_guarded()
    async def get_subscription(self, ctx: ProviderContext, subscription_id: str) -> AsyncActionResult:
        sub = await self._call(self._v1(ctx).subscriptions.retrieve, subscription_id)
        return ok(to_subscription(sub))

    @_guarded()
    async def update_subscription(
        self, ctx: ProviderContext, subscription_id: str, input: UpdateSubscriptionInput
    ) -> AsyncActionResult:
        subs = self._v1(ctx).subscriptions
        # read-modify-write: the first item id is needed to swap price/quantity
        current = await self._call(subs.retrieve, subscription_id)
        items = _get(_get(current, "items"), "data", []) or []

        params: Dict[str, Any] = {"proration_behavior": input.proration}
        if input.metadata is not None:
            params["metadata"] = input.metadata
        if items and (input.price_id or input.quantity):
            item: Dict[str, Any] = {"id": _get(items[0], "id")}
            if input.price_id:
                item["price"] = input.price_id
            if input.quantity:
                item["quantity"] = input.quantity
            params["items"] = [item]
        if input.trial_end is not None:
            params["trial_end"] = input.trial_end

        sub = await self._call(subs.update, subscription_id, params=params, options=self._opts(ctx))
        return ok(_get(sub, "id"))

    @_guarded(remap=_cancel_remap)
    async def cancel_subscription(
        self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None, at_period_end: bool = True
    ) -> AsyncActionResult:
        subs = self._v1(ctx).subscriptions
        details = {"comment": reason or "", "feedback": "other"}
        if at_period_end:
            sub = await self._call(
                subs.update,
                subscription_id,
                params={"cancel_at_period_end": True, "cancellation_details": details},
                options=self._opts(ctx),
            )
        else:
            sub = await self._call(
                subs.cancel, subscription_id, params={"cancellation_details": details}, options=self._opts(ctx)
            )
        return ok(_get(sub, "id"))

    @_guarded()
    async def pause_subscription(self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None) -> AsyncActionResult:
        params: Dict[str, Any] = {"pause_collection": {"behavior": "void"}}
        if reason:
            params["metadata"] = {"pause_reason": reason}
        sub = await self._call(self._v1(ctx).subscriptions.update, subscription_id, params=params, options=self._opts(ctx))
        return ok(_get(sub, "id"))

    @_guarded()
    async def resume_subscription(self, ctx: ProviderContext, subscription_id: str, reason: Optional[str] = None) -> AsyncActionResult:
        # empty string unsets the field in the Stripe API
        sub = await self._call(
            self._v1(ctx).subscriptions.update,
            subscription_id,
            params={"pause_collection": ""},
            options=self._opts(ctx),
        )
        return ok(_get(sub, "id"))

    @_guarded()
    async def list_subscriptions(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult:
        result = await self._call(self._v1(ctx).subscriptions.list, params=self._list_params(pagination))
        return ok(self._page(result, to_subscription))

    # -------------------- checkout --------------------

    @_guarded()
    async def create_checkout_session(self, ctx: ProviderContext, input: CheckoutSessionInput) -> AsyncActionResult:
        params: Dict[str, Any] = {
            "mode": input.mode,
            "success_url": append_query_param(input.success_url, "session_id={CHECKOUT_SESSION_ID}"),
            "cancel_url": input.cancel_url,
            "metadata": self._trace_metadata(ctx, input.metadata),
        }
        if input.mode != "setup":
            params["line_items"] = format_line_items(input.line_items, input.mode)
        else:
            params["currency"] = "usd"
        if input.customer_id:
            params["customer"] = input.customer_id
        elif input.customer_email:
            params["customer_email"] = input.customer_email
        if input.client_reference_id:
            params["client_reference_id"] = input.client_reference_id
        if input.allow_promotion_codes:
            params["allow_promotion_codes"] = True
        if input.mode == "subscription" and input.trial_days:
            params["subscription_data"] = {"trial_period_days": input.trial_days}

        session = await self._call(self._v1(ctx).checkout.sessions.create, params=params, options=self._opts(ctx))
        url = _get(session, "url")
        if not url:
            # embedded ui_mode sessions carry a client_secret instead of a url
            log.warning("checkout_session_without_url", provider="stripe", session_id=_get(session, "id"))
            return fail(E.InvalidState, "Checkout session has no redirect URL.", "missing_redirect_url")
        return requires_action(
            CheckoutSessionResult(session_id=_get(session, "id"), redirect_url=url),
            NextAction(type="redirect", url=url),
        )

    async def setup_payment_method(self, ctx: ProviderContext, input: SetupPaymentMethodInput) -> AsyncActionResult:
        return await self.create_checkout_session(
            ctx,
            CheckoutSessionInput(
                mode="setup",
                customer_id=input.customer_id,
                success_url=input.return_url,
                cancel_url=input.cancel_url or input.return_url,
            ),
        )

    @_guarded()
    async def create_billing_portal_session(self, ctx: ProviderContext, input: BillingPortalInput) -> AsyncActionResult:
        session = await self._call(
            self._v1(ctx).billing_portal.sessions.create,
            params={"customer": input.customer_id, "return_url": input.return_url},
        )
        return ok(BillingPortalResult(url=_get(session, "url")))

    # -------------------- customers --------------------

    @staticmethod
    def _customer_params(input: CustomerInput) -> Dict[str, Any]:
        params = input.model_dump(exclude_none=True)
        if not params.get("metadata"):
            params.pop("metadata", None)
        return params

    @_guarded()
    async def create_customer(self, ctx: ProviderContext, input: CustomerInput) -> AsyncActionResult:
        cust = await self._call(
            self._v1(ctx).customers.create, params=self._customer_params(input), options=self._opts(ctx)
        )
        return ok(to_customer(cust))

    @_guarded()
    async def get_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        cust = await self._call(self._v1(ctx).customers.retrieve, customer_id)
        if _get(cust, "deleted", False):
            return fail(E.ResourceNotFound, f"Customer {customer_id} has been deleted")
        return ok(to_customer(cust))

    @_guarded()
    async def update_customer(self, ctx: ProviderContext, customer_id: str, input: CustomerInput) -> AsyncActionResult:
        cust = await self._call(
            self._v1(ctx).customers.update, customer_id, params=self._customer_params(input), options=self._opts(ctx)
        )
        return ok(to_customer(cust))

    @_guarded()
    async def delete_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        await self._call(self._v1(ctx).customers.delete, customer_id)
        return ok(True)

    @_guarded()
    async def list_customers(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult:
        result = await self._call(self._v1(ctx).customers.list, params=self._list_params(pagination))
        return ok(self._page(result, to_customer))

    # -------------------- payment methods --------------------

    @_guarded()
    async def list_payment_methods(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        v1 = self._v1(ctx)
        methods, customer = await asyncio.gather(
            self._call(v1.payment_methods.list, params={"customer": customer_id, "limit": 100}),
            self._call(v1.customers.retrieve, customer_id),
        )
        if _get(customer, "deleted", False):
            return fail(E.ResourceNotFound, f"Customer {customer_id} has been deleted")
        default_id = _id_of(_get(_get(customer, "invoice_settings"), "default_payment_method")) or _id_of(
            _get(customer, "default_source")
        )
        return ok([to_payment_method(pm, default_id) for pm in _get(methods, "data", [])])

    @_guarded()
    async def delete_payment_method(self, ctx: ProviderContext, payment_method_id: str) -> AsyncActionResult:
        await self._call(self._v1(ctx).payment_methods.detach, payment_method_id)
        return ok(True)

    # -------------------- addons (subscription items) --------------------

    @_guarded()
    async def create_addon(self, ctx: ProviderContext, input: AddonInput) -> AsyncActionResult:
        params: Dict[str, Any] = {
            "subscription": input.subscription_id,
            "price": input.price_id,
            "quantity": input.quantity,
            "proration_behavior": input.proration,
        }
        if input.metadata:
            params["metadata"] = input.metadata
        item = await self._call(self._v1(ctx).subscription_items.create, params=params, options=self._opts(ctx))
        return ok(_get(item, "id"))

    @_guarded()
    async def get_addon(self, ctx: ProviderContext, addon_id: str) -> AsyncActionResult:
        item = await self._call(self._v1(ctx).subscription_items.retrieve, addon_id)
        return ok(to_addon(item))

    @_guarded()
    async def update_addon(self, ctx: ProviderContext, addon_id: str, input: UpdateAddonInput) -> AsyncActionResult:
        params: Dict[str, Any] = {"proration_behavior": input.proration}
        if input.price_id:
            params["price"] = input.price_id
        if input.quantity:
            params["quantity"] = input.quantity
        if input.metadata is not None:
            params["metadata"] = input.metadata
        item = await self._call(
            self._v1(ctx).subscription_items.update, addon_id, params=params, options=self._opts(ctx)
        )
        return ok(_get(item, "id"))

    @_guarded()
    async def delete_addon(self, ctx: ProviderContext, addon_id: str) -> AsyncActionResult:
        await self._call(
            self._v1(ctx).subscription_items.delete, addon_id, params={"proration_behavior": "create_prorations"}
        )
        return ok(True)

    @_guarded()
    async def list_addons(self, ctx: ProviderContext, subscription_id: str) -> AsyncActionResult:
        result = await self._call(
            self._v1(ctx).subscription_items.list, params={"subscription": subscription_id, "limit": 100}
        )
        return ok([to_addon(i) for i in _get(result, "data", [])])

    # -------------------- catalog --------------------

    @_guarded()
    async def resolve_price(self, ctx: ProviderContext, input: ResolvePriceInput) -> AsyncActionResult:
        """
        Find an active price matching (currency, interval, amount) or create a
        product + price pair for it. Returns the price id.
        """
        v1 = self._v1(ctx)
        currency = input.currency.lower()
        price_type = "recurring" if input.interval else "one_time"

        query = (
            "active:'true' "
            f"AND currency:'{currency}' "
            f"AND type:'{price_type}' "
            f"AND unit_amount:'{input.unit_amount}'"
        )
        if input.interval:
            query += f" AND recurring.interval:'{input.interval}'"
        try:
            found = await self._call(v1.prices.search, params={"query": query, "limit": 1})
            rows = _get(found, "data", [])
            if rows:
                return ok(_get(rows[0], "id"))
        except stripe.InvalidRequestError:
            # search is not available on every account; scan the list instead
            listed = await self._call(v1.prices.list, params={"active": True, "limit": 100})
            for p in _get(listed, "data", []):
                if (
                    str(_get(p, "currency", "")).lower() == currency
                    and _get(p, "type") == price_type
                    and _get(p, "unit_amount") == input.unit_amount
                    and _get(_get(p, "recurring"), "interval") == input.interval
                ):
                    return ok(_get(p, "id"))

        name = input.product_name or (
            f"{(input.interval or 'one-time').capitalize()} {currency.upper()} {input.unit_amount / 100:.2f}"
        )
        product = await self._call(v1.products.create, params={"name": name})
        params: Dict[str, Any] = {
            "unit_amount": input.unit_amount,
            "currency": currency,
            "product": _get(product, "id"),
        }
        if input.interval:
            params["recurring"] = {"interval": input.interval}
        price = await self._call(v1.prices.create, params=params, options=self._opts(ctx))
        return ok(_get(price, "id"))

    # -------------------- webhooks --------------------

    def parse_webhook_event(self, payload: Dict[str, Any]) -> Optional[RevstackEvent]:
        return to_event(payload)
