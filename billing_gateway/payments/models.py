# billing_gateway/payments/models.py
from __future__ import annotations
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field, model_validator

from billing_gateway.payments.errors import RevstackErrorCode

T = TypeVar("T")


# -------------------------
# Statuses / event types
# -------------------------
class PaymentStatus(str, Enum):
    Pending = "pending"
    RequiresAction = "requires_action"
    Authorized = "authorized"
    Succeeded = "succeeded"
    Failed = "failed"
    Canceled = "canceled"
    Refunded = "refunded"
    PartiallyRefunded = "partially_refunded"
    Disputed = "disputed"


class SubscriptionStatus(str, Enum):
    Incomplete = "incomplete"
    IncompleteExpired = "incomplete_expired"
    Trialing = "trialing"
    Active = "active"
    PastDue = "past_due"
    Canceled = "canceled"
    Unpaid = "unpaid"
    Paused = "paused"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_SUBSCRIPTION_STATUSES


_TERMINAL_SUBSCRIPTION_STATUSES = frozenset(
    {SubscriptionStatus.Canceled, SubscriptionStatus.IncompleteExpired, SubscriptionStatus.Unpaid}
)


class EventType(str, Enum):
    # payments
    PAYMENT_CREATED = "PAYMENT_CREATED"
    PAYMENT_PROCESSING = "PAYMENT_PROCESSING"
    PAYMENT_AUTHORIZED = "PAYMENT_AUTHORIZED"
    PAYMENT_SUCCEEDED = "PAYMENT_SUCCEEDED"
    PAYMENT_CAPTURED = "PAYMENT_CAPTURED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_CANCELED = "PAYMENT_CANCELED"
    # refunds
    REFUND_CREATED = "REFUND_CREATED"
    REFUND_PROCESSED = "REFUND_PROCESSED"
    REFUND_FAILED = "REFUND_FAILED"
    # disputes
    DISPUTE_CREATED = "DISPUTE_CREATED"
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED"
    DISPUTE_EXPIRED = "DISPUTE_EXPIRED"
    # checkout
    CHECKOUT_COMPLETED = "CHECKOUT_COMPLETED"
    CHECKOUT_EXPIRED = "CHECKOUT_EXPIRED"
    # subscriptions
    SUBSCRIPTION_CREATED = "SUBSCRIPTION_CREATED"
    SUBSCRIPTION_UPDATED = "SUBSCRIPTION_UPDATED"
    SUBSCRIPTION_CANCELED = "SUBSCRIPTION_CANCELED"
    SUBSCRIPTION_PAUSED = "SUBSCRIPTION_PAUSED"
    SUBSCRIPTION_RESUMED = "SUBSCRIPTION_RESUMED"
    SUBSCRIPTION_TRIAL_WILL_END = "SUBSCRIPTION_TRIAL_WILL_END"
    SUBSCRIPTION_EXPIRING = "SUBSCRIPTION_EXPIRING"
    SUBSCRIPTION_PAYMENT_FAILED = "SUBSCRIPTION_PAYMENT_FAILED"
    # invoices
    INVOICE_PAYMENT_SUCCEEDED = "INVOICE_PAYMENT_SUCCEEDED"
    INVOICE_PAYMENT_FAILED = "INVOICE_PAYMENT_FAILED"
    # customers
    CUSTOMER_CREATED = "CUSTOMER_CREATED"
    CUSTOMER_UPDATED = "CUSTOMER_UPDATED"
    CUSTOMER_DELETED = "CUSTOMER_DELETED"
    # payment methods
    PAYMENT_METHOD_ATTACHED = "PAYMENT_METHOD_ATTACHED"
    PAYMENT_METHOD_DETACHED = "PAYMENT_METHOD_DETACHED"
    MANDATE_CREATED = "MANDATE_CREATED"


# -------------------------
# Entities
# -------------------------
class Payment(BaseModel):
    id: str
    provider_id: str
    external_id: str
    amount: int
    amount_refunded: int = 0
    currency: str
    status: PaymentStatus
    customer_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[int] = None  # epoch seconds
    metadata: Dict[str, Any] = Field(default_factory=dict)
    raw: Any = None


class Subscription(BaseModel):
    id: str
    provider_id: str
    external_id: str
    customer_id: Optional[str] = None
    status: SubscriptionStatus
    price_id: Optional[str] = None
    quantity: int = 1
    amount: int = 0
    currency: Optional[str] = None
    interval: Optional[str] = None
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None
    cancel_at_period_end: bool = False
    trial_end: Optional[int] = None
    started_at: Optional[int] = None
    canceled_at: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    raw: Any = None


class Customer(BaseModel):
    id: str
    provider_id: str
    external_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[int] = None
    deleted: bool = False
    raw: Any = None


class PaymentMethod(BaseModel):
    id: str
    provider_id: str
    external_id: str
    customer_id: Optional[str] = None
    type: str
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    is_default: bool = False
    raw: Any = None


class Addon(BaseModel):
    """A subscription item layered on top of the base plan."""
    id: str
    provider_id: str
    external_id: str
    subscription_id: Optional[str] = None
    price_id: Optional[str] = None
    quantity: int = 1
    metadata: Dict[str, Any] = Field(default_factory=dict)
    raw: Any = None


class RevstackEvent(BaseModel):
    type: EventType
    provider_event_id: str            # de-duplication key
    created_at: int                   # epoch seconds
    resource_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    original_payload: Any = None


# -------------------------
# Inputs
# -------------------------
class PaginationOptions(BaseModel):
    limit: int = Field(10, ge=1, le=100)
    cursor: Optional[str] = None


class CreatePaymentInput(BaseModel):
    amount: int = Field(..., gt=0)    # minor units
    currency: str = Field(..., min_length=3, max_length=3)
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    description: Optional[str] = None
    payment_method_id: Optional[str] = None   # direct charge instead of hosted checkout
    capture: bool = True
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RefundPaymentInput(BaseModel):
    payment_id: str
    amount: Optional[int] = Field(None, gt=0)  # None => full refund
    reason: Optional[Literal["duplicate", "fraudulent", "requested_by_customer"]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CreateSubscriptionInput(BaseModel):
    customer_id: str
    price_id: str
    quantity: int = Field(1, ge=1)
    trial_days: Optional[int] = Field(None, ge=0)
    checkout: bool = True             # True => hosted Checkout; False => direct API
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class UpdateSubscriptionInput(BaseModel):
    price_id: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    proration: Literal["create_prorations", "none", "always_invoice"] = "create_prorations"
    trial_end: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


class CheckoutLineItem(BaseModel):
    price_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    amount: Optional[int] = Field(None, ge=0)   # unit amount, minor units
    currency: Optional[str] = None
    quantity: int = Field(1, ge=1)
    interval: Optional[Literal["day", "week", "month", "year"]] = None
    tax_behavior: Optional[Literal["inclusive", "exclusive", "unspecified"]] = None

    @model_validator(mode="after")
    def _price_or_inline(self) -> "CheckoutLineItem":
        if not self.price_id and (self.amount is None or not self.currency or not self.name):
            raise ValueError("line item needs either price_id or name + amount + currency")
        return self


class CheckoutSessionInput(BaseModel):
    mode: Literal["payment", "subscription", "setup"]
    line_items: List[CheckoutLineItem] = Field(default_factory=list)
    success_url: str
    cancel_url: str
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    client_reference_id: Optional[str] = None
    allow_promotion_codes: bool = False
    trial_days: Optional[int] = Field(None, ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SetupPaymentMethodInput(BaseModel):
    customer_id: str
    return_url: str
    cancel_url: Optional[str] = None


class BillingPortalInput(BaseModel):
    customer_id: str
    return_url: str


class CustomerInput(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AddonInput(BaseModel):
    subscription_id: str
    price_id: str
    quantity: int = Field(1, ge=1)
    proration: Literal["create_prorations", "none", "always_invoice"] = "create_prorations"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class UpdateAddonInput(BaseModel):
    quantity: Optional[int] = Field(None, ge=1)
    price_id: Optional[str] = None
    proration: Literal["create_prorations", "none", "always_invoice"] = "create_prorations"
    metadata: Optional[Dict[str, Any]] = None


class ResolvePriceInput(BaseModel):
    currency: str = Field(..., min_length=3, max_length=3)
    unit_amount: int = Field(..., ge=0)
    interval: Optional[Literal["day", "week", "month", "year"]] = None   # None => one-time
    product_name: Optional[str] = None


class InstallInput(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)
    webhook_url: Optional[str] = None


class UninstallInput(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)
    data: Dict[str, Any] = Field(default_factory=dict)


# -------------------------
# Results
# -------------------------
class NextAction(BaseModel):
    type: Literal["redirect", "url_load", "show_modal"]
    url: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None


class ActionError(BaseModel):
    code: RevstackErrorCode
    message: str
    provider_error: Optional[str] = None   # raw vendor code, kept for debugging


class AsyncActionResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: Literal["success", "requires_action", "failed"]
    next_action: Optional[NextAction] = None
    error: Optional[ActionError] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "AsyncActionResult[T]":
        if self.status == "failed":
            if self.error is None:
                raise ValueError("failed result requires an error")
            if self.data is not None:
                raise ValueError("failed result must not carry data")
        else:
            if self.data is None:
                raise ValueError(f"{self.status} result requires data")
            if self.error is not None:
                raise ValueError(f"{self.status} result must not carry an error")
        return self

    @property
    def ok(self) -> bool:
        return self.status != "failed"


class PaginatedResult(BaseModel, Generic[T]):
    data: List[T] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None


class CheckoutSessionResult(BaseModel):
    session_id: str
    redirect_url: str


class BillingPortalResult(BaseModel):
    url: str


class InstallResult(BaseModel):
    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)


class WebhookResponse(BaseModel):
    status_code: int = 200
    body: Dict[str, Any] = Field(default_factory=lambda: {"received": True})


def ok(data: Any) -> AsyncActionResult:
    return AsyncActionResult(status="success", data=data)


def requires_action(data: Any, next_action: NextAction) -> AsyncActionResult:
    return AsyncActionResult(status="requires_action", data=data, next_action=next_action)


def fail(code: RevstackErrorCode, message: str, provider_error: Optional[str] = None) -> AsyncActionResult:
    return AsyncActionResult(
        status="failed",
        error=ActionError(code=code, message=message, provider_error=provider_error),
    )
