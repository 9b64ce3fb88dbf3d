# billing_gateway/payments/stripe_maps.py
from __future__ import annotations
from typing import Dict, Optional, Tuple

from billing_gateway.payments.errors import RevstackErrorCode as E
from billing_gateway.payments.models import EventType, PaymentStatus, SubscriptionStatus

# ---------- statuses ----------

PAYMENT_STATUS_MAP: Dict[str, PaymentStatus] = {
    "succeeded": PaymentStatus.Succeeded,
    "requires_payment_method": PaymentStatus.Pending,
    "requires_confirmation": PaymentStatus.Pending,
    "requires_action": PaymentStatus.RequiresAction,
    "requires_capture": PaymentStatus.Authorized,
    "processing": PaymentStatus.Pending,
    "canceled": PaymentStatus.Canceled,
}

SUBSCRIPTION_STATUS_MAP: Dict[str, SubscriptionStatus] = {s.value: s for s in SubscriptionStatus}


def map_payment_status(status: Optional[str], amount: int = 0, amount_refunded: int = 0) -> PaymentStatus:
    """Unknown statuses fall back to Pending. Refunds are read off the latest charge."""
    mapped = PAYMENT_STATUS_MAP.get(status or "", PaymentStatus.Pending)
    if mapped == PaymentStatus.Succeeded and amount_refunded > 0:
        return PaymentStatus.Refunded if amount_refunded >= amount else PaymentStatus.PartiallyRefunded
    return mapped


def map_subscription_status(status: Optional[str]) -> SubscriptionStatus:
    return SUBSCRIPTION_STATUS_MAP.get(status or "", SubscriptionStatus.Active)


# ---------- errors ----------

ERROR_CODE_MAP: Dict[str, E] = {
    "card_declined": E.CardDeclined,
    "insufficient_funds": E.InsufficientFunds,
    "expired_card": E.ExpiredCard,
    "incorrect_cvc": E.IncorrectCvc,
    "incorrect_number": E.InvalidInput,
    "invalid_card_type": E.PaymentMethodNotSupported,
    "processing_error": E.PaymentFailed,
    "payment_intent_unexpected_state": E.InvalidState,
    "authentication_required": E.AuthenticationRequired,
    "resource_missing": E.ResourceNotFound,
    "resource_already_exists": E.ResourceAlreadyExists,
    "idempotency_key_in_use": E.IdempotencyKeyConflict,
    "amount_too_small": E.InvalidAmount,
    "amount_too_large": E.InvalidAmount,
    "balance_insufficient": E.InsufficientFunds,
    "currency_not_supported": E.InvalidCurrency,
    "payment_method_not_available": E.PaymentMethodNotSupported,
    "payment_method_provider_decline": E.CardDeclined,
    "missing_required_param": E.MissingRequiredField,
    "card_velocity_exceeded": E.LimitExceeded,
    "subscription_payment_intent_requires_action": E.AuthenticationRequired,
    "account_closed": E.AccountSuspended,
    "account_country_invalid_address": E.InvalidInput,
    "charge_already_refunded": E.RefundAlreadyProcessed,
    "charge_disputed": E.DisputeLost,
    "charge_expired_for_capture": E.RefundWindowExpired,
    "fraudulent": E.FraudDetected,
    "email_invalid": E.InvalidEmail,
}

# keyed by SDK exception class name; matched along the class hierarchy
ERROR_TYPE_MAP: Dict[str, E] = {
    "RateLimitError": E.RateLimitExceeded,
    "AuthenticationError": E.InvalidCredentials,
    "PermissionError": E.InvalidCredentials,
    "IdempotencyError": E.IdempotencyKeyConflict,
    "APIConnectionError": E.ProviderUnavailable,
    "TimeoutError": E.ProviderUnavailable,
    "APIError": E.InternalError,
}


def map_error_code(code: Optional[str], type_name: Optional[str] = None) -> E:
    if code and code in ERROR_CODE_MAP:
        return ERROR_CODE_MAP[code]
    if type_name and type_name in ERROR_TYPE_MAP:
        return ERROR_TYPE_MAP[type_name]
    return E.UnknownError


def map_stripe_error(exc: BaseException) -> Tuple[E, str, Optional[str]]:
    """
    Returns (code, message, provider_error). The most specific signal wins:
    decline code, then error code, then the exception class hierarchy.
    """
    code = getattr(exc, "code", None)
    decline_code = getattr(exc, "decline_code", None)
    message = getattr(exc, "user_message", None) or str(exc) or type(exc).__name__

    for candidate in (decline_code, code):
        if candidate and candidate in ERROR_CODE_MAP:
            return ERROR_CODE_MAP[candidate], message, candidate

    for klass in type(exc).__mro__:
        mapped = ERROR_TYPE_MAP.get(klass.__name__)
        if mapped is not None:
            return mapped, message, code or klass.__name__

    return E.UnknownError, message, code or type(exc).__name__


# ---------- events ----------

EVENT_MAP: Dict[str, EventType] = {
    "checkout.session.completed": EventType.PAYMENT_SUCCEEDED,
    "checkout.session.expired": EventType.CHECKOUT_EXPIRED,
    "payment_intent.created": EventType.PAYMENT_CREATED,
    "payment_intent.processing": EventType.PAYMENT_PROCESSING,
    "payment_intent.amount_capturable_updated": EventType.PAYMENT_AUTHORIZED,
    "payment_intent.succeeded": EventType.PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": EventType.PAYMENT_FAILED,
    "payment_intent.canceled": EventType.PAYMENT_CANCELED,
    "charge.captured": EventType.PAYMENT_CAPTURED,
    "charge.refunded": EventType.REFUND_PROCESSED,
    "refund.created": EventType.REFUND_CREATED,
    "refund.failed": EventType.REFUND_FAILED,
    "charge.dispute.created": EventType.DISPUTE_CREATED,
    "charge.dispute.closed": EventType.DISPUTE_RESOLVED,
    "charge.dispute.funds_reinstated": EventType.DISPUTE_RESOLVED,
    "customer.subscription.created": EventType.SUBSCRIPTION_CREATED,
    "customer.subscription.updated": EventType.SUBSCRIPTION_UPDATED,
    "customer.subscription.deleted": EventType.SUBSCRIPTION_CANCELED,
    "customer.subscription.paused": EventType.SUBSCRIPTION_PAUSED,
    "customer.subscription.resumed": EventType.SUBSCRIPTION_RESUMED,
    "customer.subscription.trial_will_end": EventType.SUBSCRIPTION_TRIAL_WILL_END,
    "invoice.upcoming": EventType.SUBSCRIPTION_EXPIRING,
    "invoice.payment_succeeded": EventType.INVOICE_PAYMENT_SUCCEEDED,
    "invoice.payment_failed": EventType.INVOICE_PAYMENT_FAILED,
    "customer.created": EventType.CUSTOMER_CREATED,
    "customer.updated": EventType.CUSTOMER_UPDATED,
    "customer.deleted": EventType.CUSTOMER_DELETED,
    "payment_method.attached": EventType.PAYMENT_METHOD_ATTACHED,
    "payment_method.detached": EventType.PAYMENT_METHOD_DETACHED,
    "mandate.updated": EventType.MANDATE_CREATED,
}


def map_event_type(event_name: Optional[str]) -> Optional[EventType]:
    """Unknown or missing event names yield None; callers acknowledge and drop them."""
    if not event_name:
        return None
    return EVENT_MAP.get(event_name)
