import pytest
import stripe

from billing_gateway.payments.errors import RevstackErrorCode, http_status_for
from billing_gateway.payments.models import EventType, PaymentStatus, SubscriptionStatus
from billing_gateway.payments.stripe_maps import (
    ERROR_CODE_MAP,
    EVENT_MAP,
    map_error_code,
    map_event_type,
    map_payment_status,
    map_stripe_error,
    map_subscription_status,
)
from billing_gateway.payments.stripe_mappers import to_event


class TestStatusMapping:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("succeeded", PaymentStatus.Succeeded),
            ("requires_payment_method", PaymentStatus.Pending),
            ("requires_confirmation", PaymentStatus.Pending),
            ("requires_action", PaymentStatus.RequiresAction),
            ("requires_capture", PaymentStatus.Authorized),
            ("processing", PaymentStatus.Pending),
            ("canceled", PaymentStatus.Canceled),
        ],
    )
    def test_known_payment_statuses(self, raw, expected):
        assert map_payment_status(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "brand_new_status", "SUCCEEDED"])
    def test_unknown_payment_status_defaults_to_pending(self, raw):
        assert map_payment_status(raw) == PaymentStatus.Pending

    def test_refunds_are_derived_from_amount_refunded(self):
        assert map_payment_status("succeeded", 1000, 1000) == PaymentStatus.Refunded
        assert map_payment_status("succeeded", 1000, 400) == PaymentStatus.PartiallyRefunded
        assert map_payment_status("succeeded", 1000, 0) == PaymentStatus.Succeeded

    def test_subscription_statuses_are_identity(self):
        for status in SubscriptionStatus:
            assert map_subscription_status(status.value) == status

    @pytest.mark.parametrize("raw", [None, "", "mystery"])
    def test_unknown_subscription_status_defaults_to_active(self, raw):
        assert map_subscription_status(raw) == SubscriptionStatus.Active

    def test_terminal_subscription_statuses(self):
        terminal = {s for s in SubscriptionStatus if s.is_terminal}
        assert terminal == {
            SubscriptionStatus.Canceled,
            SubscriptionStatus.IncompleteExpired,
            SubscriptionStatus.Unpaid,
        }


class TestErrorMapping:
    def test_every_code_maps_into_the_taxonomy(self):
        for vendor_code, mapped in ERROR_CODE_MAP.items():
            assert map_error_code(vendor_code) == mapped
            assert isinstance(mapped, RevstackErrorCode)

    def test_code_wins_over_type(self):
        assert map_error_code("card_declined", "RateLimitError") == RevstackErrorCode.CardDeclined

    def test_type_used_when_code_unknown(self):
        assert map_error_code("weird", "RateLimitError") == RevstackErrorCode.RateLimitExceeded

    def test_unknown_everything_is_unknown_error(self):
        assert map_error_code("weird", "WeirdError") == RevstackErrorCode.UnknownError
        assert map_error_code(None) == RevstackErrorCode.UnknownError

    def test_card_error(self):
        exc = stripe.CardError("Your card was declined.", param=None, code="card_declined")
        code, message, provider_error = map_stripe_error(exc)
        assert code == RevstackErrorCode.CardDeclined
        assert provider_error == "card_declined"
        assert "declined" in message

    def test_rate_limit_by_class(self):
        code, _, _ = map_stripe_error(stripe.RateLimitError("slow down"))
        assert code == RevstackErrorCode.RateLimitExceeded

    def test_connection_error_is_provider_unavailable(self):
        code, _, _ = map_stripe_error(stripe.APIConnectionError("network down"))
        assert code == RevstackErrorCode.ProviderUnavailable

    def test_authentication_error_is_invalid_credentials(self):
        code, _, _ = map_stripe_error(stripe.AuthenticationError("bad key"))
        assert code == RevstackErrorCode.InvalidCredentials

    def test_unmapped_vendor_code_is_preserved(self):
        exc = stripe.InvalidRequestError("nope", param=None, code="some_new_code")
        code, _, provider_error = map_stripe_error(exc)
        assert code == RevstackErrorCode.UnknownError
        assert provider_error == "some_new_code"

    def test_http_status_suggestions(self):
        assert http_status_for(RevstackErrorCode.CardDeclined) == 400
        assert http_status_for(RevstackErrorCode.InvalidCredentials) == 401
        assert http_status_for(RevstackErrorCode.AuthenticationRequired) == 402
        assert http_status_for(RevstackErrorCode.ResourceNotFound) == 404
        assert http_status_for(RevstackErrorCode.RefundAlreadyProcessed) == 409
        assert http_status_for(RevstackErrorCode.RateLimitExceeded) == 429
        assert http_status_for(RevstackErrorCode.NotImplemented) == 501
        assert http_status_for(RevstackErrorCode.ProviderUnavailable) == 502
        assert http_status_for(RevstackErrorCode.UnknownError) == 500


class TestEventMapping:
    def test_every_known_event_maps(self):
        for name, mapped in EVENT_MAP.items():
            assert map_event_type(name) == mapped
            assert isinstance(mapped, EventType)

    @pytest.mark.parametrize("name", [None, "", "account.updated", "payment_intent"])
    def test_unknown_event_is_none(self, name):
        assert map_event_type(name) is None

    def test_core_events(self):
        assert map_event_type("checkout.session.completed") == EventType.PAYMENT_SUCCEEDED
        assert map_event_type("charge.refunded") == EventType.REFUND_PROCESSED
        assert map_event_type("customer.subscription.deleted") == EventType.SUBSCRIPTION_CANCELED
        assert map_event_type("charge.dispute.created") == EventType.DISPUTE_CREATED


class TestEventPayloads:
    def test_dispute_resolves_to_payment_intent(self):
        event = to_event(
            {
                "id": "evt_1",
                "type": "charge.dispute.created",
                "created": 1700000000,
                "livemode": False,
                "data": {"object": {"id": "dp_1", "charge": "ch_1", "payment_intent": "pi_1"}},
            }
        )
        assert event.type == EventType.DISPUTE_CREATED
        assert event.provider_event_id == "evt_1"
        assert event.resource_id == "pi_1"
        assert event.created_at == 1700000000
        assert event.metadata == {"stripeType": "charge.dispute.created", "livemode": False}

    def test_missing_event_id_is_dropped(self):
        payload = {"type": "payment_intent.succeeded", "created": 1, "data": {"object": {"id": "pi_1"}}}
        assert to_event(payload) is None

    @pytest.mark.parametrize("created", ["yesterday", None, {"ts": 1}])
    def test_unusable_created_defaults_to_zero(self, created):
        event = to_event(
            {"id": "evt_2", "type": "payment_intent.succeeded", "created": created, "data": {"object": {"id": "pi_2"}}}
        )
        assert event.created_at == 0
        assert event.resource_id == "pi_2"
