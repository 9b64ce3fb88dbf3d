# billing_gateway/payments/webhook.py
from __future__ import annotations
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from billing_gateway.payments.errors import (
    InvalidPayload,
    InvalidSignatureFormat,
    SignatureMismatch,
    TimestampTooOld,
)

DEFAULT_TOLERANCE_SECONDS = 300


@dataclass(frozen=True)
class VerifiedEvent:
    timestamp: int
    payload: Dict[str, Any]


def compute_signature(raw_body: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode("utf-8") + raw_body
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def sign(raw_body: Union[bytes, str], secret: str, timestamp: Optional[int] = None) -> str:
    """Build a `t=...,v1=...` header value. Used by senders and tests."""
    body = raw_body.encode("utf-8") if isinstance(raw_body, str) else raw_body
    ts = int(time.time()) if timestamp is None else int(timestamp)
    return f"t={ts},v1={compute_signature(body, secret, ts)}"


def _parse_header(header: Optional[str]) -> Tuple[int, List[str]]:
    if not header or not isinstance(header, str):
        raise InvalidSignatureFormat("missing signature header")

    timestamp: Optional[int] = None
    signatures: List[str] = []
    for piece in header.split(","):
        key, sep, value = piece.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise InvalidSignatureFormat(f"non-numeric timestamp '{value}'")
        elif key == "v1" and value:
            signatures.append(value)

    if timestamp is None:
        raise InvalidSignatureFormat("no timestamp")
    if not signatures:
        raise InvalidSignatureFormat("no v1 signature")
    return timestamp, signatures


def verify(
    raw_body: Union[bytes, str],
    signature_header: Optional[str],
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: Optional[int] = None,
) -> VerifiedEvent:
    """
    Authenticate an inbound webhook and return its parsed payload.

    Order matters: format, then signature (constant-time), then age, then JSON.
    `raw_body` must be the exact bytes received; a decoded object is rejected
    with TypeError since re-serialising it would not reproduce the signed bytes.
    Several v1 entries (secret rotation) are accepted if any one matches.
    `tolerance=0` disables the replay window. Future timestamps are accepted.
    """
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    elif isinstance(raw_body, bytearray):
        raw_body = bytes(raw_body)
    elif not isinstance(raw_body, bytes):
        raise TypeError(f"raw_body must be bytes or str, got {type(raw_body).__name__}")

    timestamp, candidates = _parse_header(signature_header)

    expected = compute_signature(raw_body, secret, timestamp)
    if not any(hmac.compare_digest(expected.encode(), c.encode("utf-8", "replace")) for c in candidates):
        raise SignatureMismatch()

    if tolerance > 0:
        current = int(time.time()) if now is None else int(now)
        age = current - timestamp
        if age > tolerance:
            raise TimestampTooOld(f"age {age}s exceeds tolerance {tolerance}s")

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidPayload(str(e))
    if not isinstance(payload, dict):
        raise InvalidPayload("expected a JSON object")

    return VerifiedEvent(timestamp=timestamp, payload=payload)


def signature_from_headers(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive lookup; list values (some frameworks) yield the first entry."""
    wanted = name.lower()
    for k, v in headers.items():
        if k.lower() != wanted:
            continue
        if isinstance(v, (list, tuple)):
            return v[0] if v else None
        return v
    return None
