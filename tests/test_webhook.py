import json

import pytest

from billing_gateway.payments import webhook
from billing_gateway.payments.errors import (
    InvalidPayload,
    InvalidSignatureFormat,
    RevstackErrorCode,
    SignatureMismatch,
    TimestampTooOld,
    WebhookVerificationError,
)

SECRET = "whsec_test_secret"
T0 = 1_700_000_000
BODY = json.dumps({"id": "evt_1", "type": "payment_intent.succeeded"}).encode()


def test_round_trip_within_tolerance():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    verified = webhook.verify(BODY, header, SECRET, tolerance=300, now=T0 + 10)
    assert verified.timestamp == T0
    assert verified.payload["id"] == "evt_1"


def test_accepts_str_body():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    assert webhook.verify(BODY.decode(), header, SECRET, now=T0).payload["type"] == "payment_intent.succeeded"


def test_age_equal_to_tolerance_passes():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    webhook.verify(BODY, header, SECRET, tolerance=300, now=T0 + 300)


def test_age_one_past_tolerance_fails():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    with pytest.raises(TimestampTooOld):
        webhook.verify(BODY, header, SECRET, tolerance=300, now=T0 + 301)


def test_zero_tolerance_disables_replay_window():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    verified = webhook.verify(BODY, header, SECRET, tolerance=0, now=T0 + 10 * 365 * 24 * 3600)
    assert verified.payload["id"] == "evt_1"


def test_future_timestamp_is_accepted():
    header = webhook.sign(BODY, SECRET, timestamp=T0 + 60)
    webhook.verify(BODY, header, SECRET, tolerance=300, now=T0)


def test_flipped_body_byte_is_signature_mismatch():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    tampered = bytearray(BODY)
    tampered[5] ^= 0x01
    with pytest.raises(SignatureMismatch):
        webhook.verify(bytes(tampered), header, SECRET, now=T0)


def test_wrong_secret_deadbeef_is_signature_mismatch():
    with pytest.raises(SignatureMismatch) as exc:
        webhook.verify(b'{"type":"x"}', "t=1700000000,v1=deadbeef", "not-the-secret", now=T0)
    assert exc.value.code == RevstackErrorCode.WebhookSignatureVerificationFailed


def test_signature_checked_before_age():
    # stale AND forged: the forgery is what gets reported
    with pytest.raises(SignatureMismatch):
        webhook.verify(BODY, f"t={T0},v1=deadbeef", SECRET, tolerance=300, now=T0 + 10_000)


@pytest.mark.parametrize(
    "header",
    [None, "", "garbage", "v1=abc", f"t={T0}", "t=notanumber,v1=abc", f"t={T0},v0=abc"],
)
def test_malformed_header_is_invalid_format(header):
    with pytest.raises(InvalidSignatureFormat):
        webhook.verify(BODY, header, SECRET, now=T0)


def test_any_of_multiple_v1_signatures_may_match():
    good = webhook.compute_signature(BODY, SECRET, T0)
    header = f"t={T0},v1=deadbeef,v1={good}"
    assert webhook.verify(BODY, header, SECRET, now=T0).payload["id"] == "evt_1"


def test_non_json_body_with_valid_signature_is_invalid_payload():
    body = b"not json at all"
    header = webhook.sign(body, SECRET, timestamp=T0)
    with pytest.raises(InvalidPayload):
        webhook.verify(body, header, SECRET, now=T0)


def test_decoded_object_is_rejected():
    header = webhook.sign(BODY, SECRET, timestamp=T0)
    with pytest.raises(TypeError):
        webhook.verify(json.loads(BODY), header, SECRET, now=T0)


def test_all_failures_share_a_base_class():
    for cls in (InvalidSignatureFormat, SignatureMismatch, TimestampTooOld, InvalidPayload):
        assert issubclass(cls, WebhookVerificationError)


def test_signature_from_headers_is_case_insensitive_and_list_aware():
    assert webhook.signature_from_headers({"Stripe-Signature": "t=1,v1=a"}, "stripe-signature") == "t=1,v1=a"
    assert webhook.signature_from_headers({"stripe-signature": ["t=2,v1=b", "x"]}, "Stripe-Signature") == "t=2,v1=b"
    assert webhook.signature_from_headers({}, "stripe-signature") is None
