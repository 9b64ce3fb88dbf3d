# billing_gateway/payments/fake_provider.py
from __future__ import annotations
import json
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydantic import BaseModel

from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.errors import RevstackErrorCode as E
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
    SubscriptionsCapability,
    WebhooksCapability,
)
from billing_gateway.payments.models import (
    AsyncActionResult,
    CheckoutSessionInput,
    CheckoutSessionResult,
    CreatePaymentInput,
    Customer,
    CustomerInput,
    EventType,
    NextAction,
    PaginatedResult,
    PaginationOptions,
    Payment,
    PaymentStatus,
    RefundPaymentInput,
    ResolvePriceInput,
    RevstackEvent,
    fail,
    ok,
    requires_action,
)

log = structlog.get_logger(__name__)

FAKE_MANIFEST = ProviderManifest(
    slug="fake",
    name="Fake Payments",
    category="card",
    version="0.1.0",
    description="In-memory provider for local runs and tests. Never moves money.",
    author="Billing Gateway",
    sandbox_available=True,
    status="experimental",
    hidden=True,
    capabilities=ProviderCapabilities(
        checkout=CheckoutCapability(supported=True, strategy="redirect"),
        payments=PaymentsCapability(
            supported=True,
            features=PaymentFeatures(refunds=True, partial_refunds=True),
        ),
        # the platform runs the billing schedule; the fake only charges
        subscriptions=SubscriptionsCapability(supported=True, mode="virtual"),
        customers=CustomersCapability(
            supported=True,
            features=CustomerFeatures(create=True, update=True, delete=True),
        ),
        webhooks=WebhooksCapability(supported=True, verification="signature"),
        catalog=CatalogCapability(supported=True, strategy="synced"),
    ),
    config_schema={
        "apiKey": ConfigField(label="API Key", type="text", required=True, secure=True),
        "sandbox": ConfigField(label="Sandbox", type="switch"),
    },
    data_schema={
        "webhookEndpointId": DataField(description="Fake endpoint id."),
        "webhookSecret": DataField(secure=True, description="Fake signing secret."),
    },
)

# event names emitted by the fake vendor
FAKE_EVENT_MAP: Dict[str, EventType] = {
    "payment.succeeded": EventType.PAYMENT_SUCCEEDED,
    "payment.failed": EventType.PAYMENT_FAILED,
    "refund.succeeded": EventType.REFUND_PROCESSED,
    "checkout.completed": EventType.CHECKOUT_COMPLETED,
    "customer.created": EventType.CUSTOMER_CREATED,
    "customer.deleted": EventType.CUSTOMER_DELETED,
}


class FakeVendorClient:
    """
    In-memory, contract-compliant fake vendor for tests/local runs.

    - Payments succeed immediately unless the amount ends in 02 (declined).
    - Refunds track the refunded total; refunding a fully refunded payment fails.
    - Mutations replay the stored result when an idempotency key repeats.
    - Credentials: any apiKey except one starting with "bad" is accepted.
    """

    webhook_signature_header = "x-fake-signature"

    def __init__(self):
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.webhooks: Dict[str, Dict[str, Any]] = {}
        # key(currency:interval:amount) -> price_id
        self._prices: Dict[str, str] = {}
        # idempotency_key -> (request fingerprint, result of the first call)
        self._idempotent: Dict[str, Tuple[str, AsyncActionResult]] = {}
        self._counter = 0
        self._lock = threading.Lock()

    # ----------------------- helpers -----------------------

    @staticmethod
    def _now_ts() -> int:
        return int(datetime.now(tz=timezone.utc).timestamp())

    def _next_id(self, prefix: str) -> str:
        with self._lock:
            self._counter += 1
            return f"{prefix}_fake_{self._counter}"

    @staticmethod
    def _fingerprint(operation: str, input: BaseModel) -> str:
        return f"{operation}:{json.dumps(input.model_dump(mode='json'), sort_keys=True)}"

    def _replay(self, ctx: ProviderContext, fingerprint: str) -> Optional[AsyncActionResult]:
        """Stored result for a repeated key; a conflict when the key was used for another request."""
        if not ctx.idempotency_key:
            return None
        stored = self._idempotent.get(ctx.idempotency_key)
        if stored is None:
            return None
        seen, result = stored
        if seen != fingerprint:
            return fail(
                E.IdempotencyKeyConflict,
                f"Idempotency key '{ctx.idempotency_key}' was already used for a different request.",
                "idempotency_key_in_use",
            )
        return result

    def _remember(self, ctx: ProviderContext, fingerprint: str, result: AsyncActionResult) -> AsyncActionResult:
        if ctx.idempotency_key:
            self._idempotent[ctx.idempotency_key] = (fingerprint, result)
        return result

    def _to_payment(self, row: Dict[str, Any]) -> Payment:
        refunded = row["amount_refunded"]
        if row["status"] == "succeeded" and refunded:
            status = PaymentStatus.Refunded if refunded >= row["amount"] else PaymentStatus.PartiallyRefunded
        else:
            status = PaymentStatus(row["status"])
        return Payment(
            id=row["id"],
            provider_id="fake",
            external_id=row["id"],
            amount=row["amount"],
            amount_refunded=refunded,
            currency=row["currency"],
            status=status,
            customer_id=row.get("customer"),
            description=row.get("description"),
            created_at=row["created"],
            metadata=dict(row.get("metadata") or {}),
            raw=dict(row),
        )

    @staticmethod
    def _to_customer(row: Dict[str, Any]) -> Customer:
        return Customer(
            id=row["id"],
            provider_id="fake",
            external_id=row["id"],
            email=row.get("email"),
            name=row.get("name"),
            phone=row.get("phone"),
            metadata=dict(row.get("metadata") or {}),
            created_at=row["created"],
            raw=dict(row),
        )

    @staticmethod
    def _page(rows: List[Dict[str, Any]], pagination: PaginationOptions, mapper) -> PaginatedResult:
        ids = [r["id"] for r in rows]
        start = ids.index(pagination.cursor) + 1 if pagination.cursor in ids else 0
        chunk = rows[start:start + pagination.limit]
        return PaginatedResult(
            data=[mapper(r) for r in chunk],
            has_more=start + pagination.limit < len(rows),
            next_cursor=chunk[-1]["id"] if chunk else None,
        )

    # --------------------- lifecycle -----------------------

    async def validate_credentials(self, ctx: ProviderContext) -> bool:
        key = ctx.get("apiKey")
        return bool(key) and not str(key).startswith("bad")

    async def setup_webhooks(self, ctx: ProviderContext, webhook_url: str) -> AsyncActionResult:
        for endpoint in self.webhooks.values():
            if endpoint["url"] == webhook_url:
                return ok({"webhookEndpointId": endpoint["id"]})
        eid = self._next_id("we")
        self.webhooks[eid] = {"id": eid, "url": webhook_url, "secret": f"whsec_{eid}"}
        return ok({"webhookEndpointId": eid, "webhookSecret": f"whsec_{eid}"})

    async def remove_webhooks(self, ctx: ProviderContext, endpoint_id: str) -> AsyncActionResult:
        if self.webhooks.pop(endpoint_id, None) is None:
            return fail(E.ResourceNotFound, f"No webhook endpoint {endpoint_id}")
        return ok(True)

    # --------------------- payments ------------------------

    async def create_payment(self, ctx: ProviderContext, input: CreatePaymentInput) -> AsyncActionResult:
        fp = self._fingerprint("create_payment", input)
        replay = self._replay(ctx, fp)
        if replay is not None:
            return replay
        if input.amount % 100 == 2:
            return self._remember(ctx, fp, fail(E.CardDeclined, "Your card was declined.", "card_declined"))
        pid = self._next_id("pay")
        self.payments[pid] = {
            "id": pid,
            "amount": input.amount,
            "amount_refunded": 0,
            "currency": input.currency.upper(),
            "status": "succeeded" if input.capture else "authorized",
            "customer": input.customer_id,
            "description": input.description,
            "metadata": dict(input.metadata),
            "created": self._now_ts(),
        }
        return self._remember(ctx, fp, ok(pid))

    async def get_payment(self, ctx: ProviderContext, payment_id: str) -> AsyncActionResult:
        row = self.payments.get(payment_id)
        if row is None:
            return fail(E.ResourceNotFound, f"No such payment: {payment_id}", "resource_missing")
        return ok(self._to_payment(row))

    async def refund_payment(self, ctx: ProviderContext, input: RefundPaymentInput) -> AsyncActionResult:
        fp = self._fingerprint("refund_payment", input)
        replay = self._replay(ctx, fp)
        if replay is not None:
            return replay
        row = self.payments.get(input.payment_id)
        if row is None:
            return fail(E.ResourceNotFound, f"No such payment: {input.payment_id}", "resource_missing")
        remaining = row["amount"] - row["amount_refunded"]
        if remaining <= 0:
            return self._remember(
                ctx, fp, fail(E.RefundAlreadyProcessed, "Payment has already been refunded.", "charge_already_refunded")
            )
        amount = input.amount if input.amount is not None else remaining
        if amount > remaining:
            return fail(E.InvalidAmount, f"Refund amount exceeds remaining {remaining}", "amount_too_large")
        row["amount_refunded"] += amount
        return self._remember(ctx, fp, ok(self._next_id("re")))

    async def list_payments(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult:
        return ok(self._page(list(self.payments.values()), pagination, self._to_payment))

    # --------------------- checkout ------------------------

    async def create_checkout_session(self, ctx: ProviderContext, input: CheckoutSessionInput) -> AsyncActionResult:
        fp = self._fingerprint("create_checkout_session", input)
        replay = self._replay(ctx, fp)
        if replay is not None:
            return replay
        sid = self._next_id("cs")
        url = f"https://checkout.local/{sid}"
        return self._remember(
            ctx,
            fp,
            requires_action(
                CheckoutSessionResult(session_id=sid, redirect_url=url),
                NextAction(type="redirect", url=url),
            ),
        )

    # --------------------- customers -----------------------

    async def create_customer(self, ctx: ProviderContext, input: CustomerInput) -> AsyncActionResult:
        fp = self._fingerprint("create_customer", input)
        replay = self._replay(ctx, fp)
        if replay is not None:
            return replay
        cid = self._next_id("cus")
        self.customers[cid] = {"id": cid, "created": self._now_ts(), **input.model_dump(exclude_none=True)}
        return self._remember(ctx, fp, ok(self._to_customer(self.customers[cid])))

    async def get_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        row = self.customers.get(customer_id)
        if row is None:
            return fail(E.ResourceNotFound, f"No such customer: {customer_id}", "resource_missing")
        return ok(self._to_customer(row))

    async def update_customer(self, ctx: ProviderContext, customer_id: str, input: CustomerInput) -> AsyncActionResult:
        row = self.customers.get(customer_id)
        if row is None:
            return fail(E.ResourceNotFound, f"No such customer: {customer_id}", "resource_missing")
        row.update(input.model_dump(exclude_none=True))
        return ok(self._to_customer(row))

    async def delete_customer(self, ctx: ProviderContext, customer_id: str) -> AsyncActionResult:
        if self.customers.pop(customer_id, None) is None:
            return fail(E.ResourceNotFound, f"No such customer: {customer_id}", "resource_missing")
        return ok(True)

    async def list_customers(self, ctx: ProviderContext, pagination: PaginationOptions) -> AsyncActionResult:
        return ok(self._page(list(self.customers.values()), pagination, self._to_customer))

    # ------------------ price resolution -------------------

    async def resolve_price(self, ctx: ProviderContext, input: ResolvePriceInput) -> AsyncActionResult:
        key = f"{input.currency.upper()}:{input.interval or 'one_time'}:{input.unit_amount}"
        with self._lock:
            pid = self._prices.get(key)
            if not pid:
                pid = f"price_fake_{len(self._prices) + 1}"
                self._prices[key] = pid
        return ok(pid)

    # --------------------- webhooks ------------------------

    def parse_webhook_event(self, payload: Dict[str, Any]) -> Optional[RevstackEvent]:
        mapped = FAKE_EVENT_MAP.get(payload.get("type") or "")
        if mapped is None:
            return None
        event_id = payload.get("id")
        if not event_id:
            log.warning("fake_event_missing_id", fake_type=payload["type"])
            return None
        try:
            created = int(payload.get("created") or self._now_ts())
        except (TypeError, ValueError):
            created = self._now_ts()
        obj = payload.get("data") or {}
        return RevstackEvent(
            type=mapped,
            provider_event_id=event_id,
            created_at=created,
            resource_id=obj.get("id") or event_id,
            metadata={"fakeType": payload["type"]},
            original_payload=payload,
        )

    def build_event(self, event_type: str, resource_id: str) -> bytes:
        """Serialize an event the way the fake vendor would deliver it."""
        body = {
            "id": self._next_id("evt"),
            "type": event_type,
            "created": self._now_ts(),
            "data": {"id": resource_id},
        }
        return json.dumps(body).encode("utf-8")


class FakeProvider(BaseProvider):
    manifest = FAKE_MANIFEST

    def __init__(self, client: Optional[FakeVendorClient] = None):
        super().__init__(client or FakeVendorClient())
