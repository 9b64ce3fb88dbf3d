# billing_gateway/payments/stripe_mappers.py
from __future__ import annotations
from typing import Any, Dict, Optional

import structlog

from billing_gateway.payments.models import (
    Addon,
    Customer,
    Payment,
    PaymentMethod,
    RevstackEvent,
    Subscription,
)
from billing_gateway.payments.stripe_maps import (
    map_event_type,
    map_payment_status,
    map_subscription_status,
)

PROVIDER_ID = "stripe"

log = structlog.get_logger(__name__)


# -------------------- helpers --------------------

def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field off a plain dict or a StripeObject (itself a dict subclass)."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        value = obj.get(key, default)
    else:
        value = getattr(obj, key, default)
    return default if value is None else value


def _id_of(ref: Any) -> Optional[str]:
    # expandable fields arrive either as an id string or as the expanded object
    if ref is None or isinstance(ref, str):
        return ref
    return _get(ref, "id")


def _to_dict(obj: Any) -> Dict[str, Any]:
    """
    Normalize Stripe SDK objects and plain dicts to a plain dict.
    """
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None) or getattr(obj, "to_dict_recursive", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(obj, dict):
        return obj
    return dict(obj)


def _int_or_none(v: Any) -> Optional[int]:
    if v is None:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _first_item(sub: Any) -> Any:
    items = _get(_get(sub, "items"), "data", []) or []
    return items[0] if items else None


# -------------------- entities --------------------

def to_payment(pi: Any) -> Payment:
    amount = int(_get(pi, "amount", 0))
    charge = _get(pi, "latest_charge")
    amount_refunded = 0 if charge is None or isinstance(charge, str) else int(_get(charge, "amount_refunded", 0))
    return Payment(
        id=_get(pi, "id"),
        provider_id=PROVIDER_ID,
        external_id=_get(pi, "id"),
        amount=amount,
        amount_refunded=amount_refunded,
        currency=str(_get(pi, "currency", "")).upper(),
        status=map_payment_status(_get(pi, "status"), amount, amount_refunded),
        customer_id=_id_of(_get(pi, "customer")),
        description=_get(pi, "description"),
        created_at=_int_or_none(_get(pi, "created")),
        metadata=dict(_get(pi, "metadata", {}) or {}),
        raw=_to_dict(pi),
    )


def to_subscription(sub: Any) -> Subscription:
    item = _first_item(sub)
    price = _get(item, "price")
    recurring = _get(price, "recurring")
    # newer API versions moved the period fields onto the subscription item
    period_start = _get(sub, "current_period_start") or _get(item, "current_period_start") or _get(sub, "start_date")
    period_end = _get(sub, "current_period_end") or _get(item, "current_period_end") or _get(sub, "billing_cycle_anchor")
    return Subscription(
        id=_get(sub, "id"),
        provider_id=PROVIDER_ID,
        external_id=_get(sub, "id"),
        customer_id=_id_of(_get(sub, "customer")),
        status=map_subscription_status(_get(sub, "status")),
        price_id=_id_of(price),
        quantity=int(_get(item, "quantity", 1)),
        amount=int(_get(price, "unit_amount", 0)),
        currency=str(_get(sub, "currency", "")).upper() or None,
        interval=_get(recurring, "interval"),
        current_period_start=_int_or_none(period_start),
        current_period_end=_int_or_none(period_end),
        cancel_at_period_end=bool(_get(sub, "cancel_at_period_end", False)),
        trial_end=_int_or_none(_get(sub, "trial_end")),
        started_at=_int_or_none(_get(sub, "start_date")),
        canceled_at=_int_or_none(_get(sub, "canceled_at")),
        metadata=dict(_get(sub, "metadata", {}) or {}),
        raw=_to_dict(sub),
    )


def to_customer(cust: Any) -> Customer:
    if _get(cust, "deleted", False):
        return Customer(
            id=_get(cust, "id"),
            provider_id=PROVIDER_ID,
            external_id=_get(cust, "id"),
            deleted=True,
            raw=_to_dict(cust),
        )
    return Customer(
        id=_get(cust, "id"),
        provider_id=PROVIDER_ID,
        external_id=_get(cust, "id"),
        email=_get(cust, "email"),
        name=_get(cust, "name"),
        phone=_get(cust, "phone"),
        metadata=dict(_get(cust, "metadata", {}) or {}),
        created_at=_int_or_none(_get(cust, "created")),
        raw=_to_dict(cust),
    )


def to_payment_method(pm: Any, default_id: Optional[str] = None) -> PaymentMethod:
    pm_type = _get(pm, "type", "card")
    card = _get(pm, "card") if pm_type == "card" else None
    return PaymentMethod(
        id=_get(pm, "id"),
        provider_id=PROVIDER_ID,
        external_id=_get(pm, "id"),
        customer_id=_id_of(_get(pm, "customer")),
        type="bank_transfer" if pm_type == "us_bank_account" else pm_type,
        brand=_get(card, "brand") if card is not None else ("ach" if pm_type == "us_bank_account" else None),
        last4=_get(card, "last4"),
        exp_month=_int_or_none(_get(card, "exp_month")),
        exp_year=_int_or_none(_get(card, "exp_year")),
        is_default=bool(default_id) and _get(pm, "id") == default_id,
        raw=_to_dict(pm),
    )


def to_addon(item: Any) -> Addon:
    return Addon(
        id=_get(item, "id"),
        provider_id=PROVIDER_ID,
        external_id=_get(item, "id"),
        subscription_id=_get(item, "subscription"),
        price_id=_id_of(_get(item, "price")),
        quantity=int(_get(item, "quantity", 1)),
        metadata=dict(_get(item, "metadata", {}) or {}),
        raw=_to_dict(item),
    )


# -------------------- events --------------------

def extract_resource_id(event_type: str, obj: Any) -> Optional[str]:
    if event_type.startswith("charge.dispute"):
        return _id_of(_get(obj, "payment_intent")) or _id_of(_get(obj, "charge")) or _get(obj, "id")
    return _get(obj, "id")


def to_event(payload: Dict[str, Any]) -> Optional[RevstackEvent]:
    stripe_type = _get(payload, "type")
    mapped = map_event_type(stripe_type)
    if mapped is None:
        return None
    event_id = _get(payload, "id")
    if not event_id:
        log.warning("stripe_event_missing_id", stripe_type=stripe_type)
        return None
    obj = _get(_get(payload, "data"), "object", {})
    return RevstackEvent(
        type=mapped,
        provider_event_id=event_id,
        created_at=_int_or_none(_get(payload, "created")) or 0,
        resource_id=extract_resource_id(stripe_type, obj) or event_id,
        metadata={"stripeType": stripe_type, "livemode": bool(_get(payload, "livemode", False))},
        original_payload=_to_dict(payload),
    )
